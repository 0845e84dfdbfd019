"""
Optional experiment tracking for training runs.

Trainers use a ``NoOpTracker`` unless a backend is requested. The only
backend is MLflow, installed with ``pip install screeningml[mlflow]``.
"""

from __future__ import annotations

from typing import Any, Optional

from screeningml.tracking.base import ExperimentTracker
from screeningml.tracking.noop import NoOpTracker
from screeningml.tracking.utils import extract_loggable_params, flatten_dict, sanitize_metric_name

__all__ = [
    "ExperimentTracker",
    "NoOpTracker",
    "get_tracker",
    "extract_loggable_params",
    "flatten_dict",
    "sanitize_metric_name",
]

BACKENDS = ("mlflow",)


def get_tracker(
    backend: Optional[str] = None,
    experiment_name: Optional[str] = None,
    **kwargs: Any,
) -> ExperimentTracker:
    """
    Build the tracker for ``backend``.

    Parameters
    ----------
    backend : str, optional
        ``"mlflow"``; None or ``"none"`` disables tracking
    experiment_name : str, optional
        Experiment name (default ``"screeningml"``)
    **kwargs
        Extra tracker arguments such as ``tracking_uri``

    Raises
    ------
    ImportError
        If MLflow is requested but not installed
    ValueError
        If the backend is unknown
    """
    name = (backend or "none").lower()
    if name == "none":
        return NoOpTracker()
    if name not in BACKENDS:
        raise ValueError(f"Unknown tracking backend: {backend}. Supported backends: {', '.join(BACKENDS)}")

    try:
        from screeningml.tracking.mlflow_tracker import MLflowTracker

        return MLflowTracker(experiment_name=experiment_name or "screeningml", **kwargs)
    except ImportError as e:
        raise ImportError("MLflow is not installed. Install with: pip install screeningml[mlflow]") from e
