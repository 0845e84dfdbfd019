"""MLflow tracking backend (``pip install screeningml[mlflow]``)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from screeningml.tracking.base import ExperimentTracker
from screeningml.tracking.utils import flatten_dict, sanitize_metric_name

logger = logging.getLogger(__name__)

MAX_PARAM_LENGTH = 500


def _truncate(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_PARAM_LENGTH:
        return text[: MAX_PARAM_LENGTH - 3] + "..."
    return text


class MLflowTracker(ExperimentTracker):
    """
    Send trainer parameters and metrics to MLflow.

    ``mlflow`` is imported on construction so the package works without it.
    Calls made outside an active run are skipped, and backend errors are
    logged as warnings instead of interrupting training.

    Parameters
    ----------
    experiment_name : str
        MLflow experiment receiving the runs
    tracking_uri : str, optional
        Tracking server URI (default: MLflow's own configuration)
    """

    def __init__(self, experiment_name: str = "screeningml", tracking_uri: Optional[str] = None):
        import mlflow

        self._mlflow = mlflow
        self.experiment_name = experiment_name
        self.tracking_uri = tracking_uri
        self._active = False

        if tracking_uri:
            mlflow.set_tracking_uri(tracking_uri)
        mlflow.set_experiment(experiment_name)
        logger.info(f"MLflow experiment: {experiment_name}")

    def _send(self, what: str, call: Callable, *args, **kwargs) -> None:
        if not self._active:
            logger.warning(f"No active MLflow run; {what} skipped")
            return
        try:
            call(*args, **kwargs)
        except Exception as e:
            logger.warning(f"MLflow {what} failed: {e}")

    def start_run(self, run_name: Optional[str] = None, tags: Optional[Dict[str, str]] = None) -> "MLflowTracker":
        if self._active:
            logger.warning("MLflow run still open; closing it first")
            self.end_run()

        try:
            self._mlflow.start_run(run_name=run_name)
        except Exception as e:
            logger.warning(f"MLflow start_run failed, tracking disabled for this run: {e}")
            return self
        self._active = True
        if tags:
            self._send("set_tags", self._mlflow.set_tags, tags)
        logger.info(f"MLflow run started: {run_name or 'unnamed'}")
        return self

    def end_run(self) -> None:
        if not self._active:
            return
        self._active = False
        try:
            self._mlflow.end_run()
        except Exception as e:
            logger.warning(f"MLflow end_run failed: {e}")

    def log_params(self, params: Dict[str, Any]) -> None:
        cleaned = {sanitize_metric_name(k): _truncate(v) for k, v in flatten_dict(params).items()}
        self._send("log_params", self._mlflow.log_params, cleaned)

    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None) -> None:
        numeric = {
            sanitize_metric_name(k): float(v)
            for k, v in flatten_dict(metrics).items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }
        self._send("log_metrics", self._mlflow.log_metrics, numeric, step=step)
