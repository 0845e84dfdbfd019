"""Interface every experiment tracking backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ExperimentTracker(ABC):
    """
    Receives run parameters and metrics from the trainers.

    A tracker run spans one trainer invocation: the OvR coordinator opens it
    after the labels are known, reports every successful pair with its index
    as the step, then reports the batch means. Backends must not make a
    training run fail.

    Usage
    -----
    >>> tracker = get_tracker("mlflow", experiment_name="screening")
    >>> with tracker.start_run(run_name="OvR_Result_3_v3", tags={"task_type": "ovr"}):
    ...     tracker.log_params({"max_iterations": 11})
    ...     tracker.log_pair(pair_result, step=0)
    """

    @abstractmethod
    def start_run(
        self,
        run_name: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> "ExperimentTracker":
        """Open a run; returns self so it can be used as a context manager."""

    @abstractmethod
    def end_run(self) -> None:
        """Close the current run, if any."""

    @abstractmethod
    def log_params(self, params: Dict[str, Any]) -> None:
        """Record run parameters."""

    @abstractmethod
    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None) -> None:
        """Record numeric metrics; ``step`` is the pair index for OvR batches."""

    def log_pair(self, result, step: int) -> None:
        """Report one ``PairTrainingResult`` under ``<Label>/...`` metric names."""
        self.log_metrics(
            {
                f"{result.label}/training_accuracy": result.training_accuracy,
                f"{result.label}/validation_accuracy": result.validation_accuracy,
                f"{result.label}/training_seconds": result.training_seconds,
            },
            step=step,
        )

    def log_summary(self, result, prefix: str = "") -> None:
        """Report the headline metrics of a ``BatchResult`` or ``TrainingResult``."""
        self.log_metrics(
            {
                f"{prefix}training_accuracy": result.training_accuracy,
                f"{prefix}validation_accuracy": result.validation_accuracy,
                f"{prefix}training_seconds": result.training_seconds,
            }
        )

    def __enter__(self) -> "ExperimentTracker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.end_run()
