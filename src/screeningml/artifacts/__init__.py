"""Artifact saving and loading utilities."""

from screeningml.artifacts.saver import MODEL_EXTENSION, save_model
from screeningml.artifacts.loader import load_model

__all__ = ["MODEL_EXTENSION", "save_model", "load_model"]
