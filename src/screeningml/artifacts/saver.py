"""Artifact saving utilities."""

from __future__ import annotations

import logging
import pickle
from pathlib import Path
from typing import Any, Dict

import joblib

from screeningml.exceptions import ArtifactWriteError

logger = logging.getLogger(__name__)

MODEL_EXTENSION = ".joblib"


def save_model(model: Any, path: Path, metadata: Dict[str, Any] | None = None) -> Path:
    """
    Save model with optional metadata.

    Parameters
    ----------
    model : Any
        Fitted classifier (picklable)
    path : Path
        Output path (.joblib)
    metadata : Optional[Dict]
        Author, description, version and any extra fields

    Returns
    -------
    Path
        The written artifact path

    Raises
    ------
    ArtifactWriteError
        If the artifact cannot be written
    """
    path = Path(path)
    payload = {"model": model}
    if metadata:
        payload["metadata"] = metadata

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(payload, path)
    except (OSError, pickle.PicklingError) as e:
        raise ArtifactWriteError(path, e) from e

    logger.info(f"Saved model to {path}")
    return path
