"""Read model artifacts written by ``save_model``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import joblib

logger = logging.getLogger(__name__)


def load_model(path: Path) -> Tuple[Any, Dict[str, Any]]:
    """
    Return ``(classifier, metadata)`` from a ``.joblib`` artifact.

    Files holding a bare estimator instead of the ``{"model", "metadata"}``
    payload load with empty metadata.
    """
    payload = joblib.load(Path(path))
    if not isinstance(payload, dict) or "model" not in payload:
        logger.debug(f"{path} has no metadata payload")
        return payload, {}

    logger.info(f"Loaded model from {path}")
    return payload["model"], dict(payload.get("metadata") or {})
