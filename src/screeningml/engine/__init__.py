"""Trainable image classifier service used by all trainers."""

from screeningml.engine.base import ClassifierService, FitOutcome
from screeningml.engine.image_classifier import ImageClassifier, SklearnImageClassifier

__all__ = ["ClassifierService", "FitOutcome", "ImageClassifier", "SklearnImageClassifier"]
