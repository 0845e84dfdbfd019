"""Tracker used when no backend is configured."""

from __future__ import annotations

from typing import Any, Dict, Optional

from screeningml.tracking.base import ExperimentTracker


class NoOpTracker(ExperimentTracker):
    """Accepts every call and records nothing."""

    def start_run(self, run_name: Optional[str] = None, tags: Optional[Dict[str, str]] = None) -> "NoOpTracker":
        return self

    def end_run(self) -> None:
        return None

    def log_params(self, params: Dict[str, Any]) -> None:
        return None

    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None) -> None:
        return None
