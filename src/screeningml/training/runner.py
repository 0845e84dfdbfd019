"""Single label-vs-rest training job."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from screeningml.artifacts import MODEL_EXTENSION, save_model
from screeningml.config import ModelMetadata, TrainingParameters
from screeningml.data.partition import REST_WORKSPACE_NAME, PairWorkspace
from screeningml.engine.base import ClassifierService
from screeningml.exceptions import PairTrainingFailed
from screeningml.training.results import PairTrainingResult

logger = logging.getLogger(__name__)


def pair_model_filename(label_name: str, version: str) -> str:
    return f"{label_name}_OvR_{version}{MODEL_EXTENSION}"


def pair_description(label_name: str) -> str:
    return f"{label_name} vs {REST_WORKSPACE_NAME} binary classifier."


def run_one(
    workspace: PairWorkspace,
    parameters: TrainingParameters,
    metadata: ModelMetadata,
    output_dir: Path,
    service: ClassifierService,
) -> PairTrainingResult:
    """
    Train one pair, write its artifact into ``output_dir`` and report metrics.

    Parameters
    ----------
    workspace : PairWorkspace
        Materialized ``<Label>/`` + ``Rest/`` dataset
    parameters : TrainingParameters
        Shared batch hyperparameters
    metadata : ModelMetadata
        Author and version; the description is replaced per pair
    output_dir : Path
        Output run directory
    service : ClassifierService
        Trainable classifier service

    Returns
    -------
    PairTrainingResult

    Raises
    ------
    PairTrainingFailed
        If training or writing the artifact fails
    """
    label_name = workspace.label.normalized_name
    model_path = Path(output_dir) / pair_model_filename(label_name, metadata.version)

    try:
        start = time.perf_counter()
        outcome = service.train(workspace.root, parameters)
        elapsed = time.perf_counter() - start

        save_model(
            outcome.classifier,
            model_path,
            metadata={
                "author": metadata.author,
                "description": pair_description(label_name),
                "version": metadata.version,
                "label": label_name,
                "classes": list(outcome.classes),
                "parameters": parameters.to_dict(),
            },
        )
    except Exception as e:
        logger.warning(f"  Pair {label_name} vs {REST_WORKSPACE_NAME} failed: {e}")
        raise PairTrainingFailed(label_name, str(e)) from e

    result = PairTrainingResult.from_errors(
        label=label_name,
        model_path=str(model_path),
        training_error_rate=outcome.training_error,
        validation_error_rate=outcome.validation_error,
        training_seconds=elapsed,
        data_path=str(workspace.root),
        warnings=workspace.warnings,
    )
    logger.info(
        f"  {label_name} vs {REST_WORKSPACE_NAME}: "
        f"train acc={result.training_accuracy * 100:.2f}%, "
        f"val acc={result.validation_accuracy * 100:.2f}% ({elapsed:.2f}s)"
    )
    return result
