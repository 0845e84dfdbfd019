"""Lineage tracking for training runs."""

from screeningml.lineage.manifest import (
    MANIFEST_FILENAME,
    TrainingRunManifest,
    create_training_manifest,
)

__all__ = ["MANIFEST_FILENAME", "TrainingRunManifest", "create_training_manifest"]
