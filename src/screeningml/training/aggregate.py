"""Reduce per-pair OvR results into one batch result."""

from __future__ import annotations

from statistics import fmean
from typing import Sequence

from screeningml.training.results import BatchResult, PairTrainingResult


def aggregate(results: Sequence[PairTrainingResult]) -> BatchResult:
    """
    Average the metrics of all pair results.

    The representative model path is the first result's artifact and the
    data paths keep processing order.

    Raises
    ------
    ValueError
        If ``results`` is empty
    """
    if not results:
        raise ValueError("Cannot aggregate an empty list of pair results")

    return BatchResult(
        model_path=results[0].model_path,
        training_accuracy=fmean(r.training_accuracy for r in results),
        validation_accuracy=fmean(r.validation_accuracy for r in results),
        training_error_rate=fmean(r.training_error_rate for r in results),
        validation_error_rate=fmean(r.validation_error_rate for r in results),
        training_seconds=fmean(r.training_seconds for r in results),
        data_paths=tuple(r.data_path for r in results),
        pair_results=tuple(results),
    )
