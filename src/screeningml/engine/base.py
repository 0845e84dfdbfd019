"""Interface of the trainable image classifier service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Tuple

from screeningml.config import TrainingParameters
from screeningml.exceptions import TrainingServiceError


@dataclass(frozen=True)
class FitOutcome:
    """A fitted classifier and its reported classification error rates."""

    classifier: Any
    classes: Tuple[str, ...]
    training_error: float
    validation_error: float
    n_training_samples: int = 0
    n_validation_samples: int = 0


class ClassifierService(ABC):
    """
    Trains an image classifier from a labeled directory tree.

    Each immediate subdirectory of the dataset is one class and holds the
    images of that class. Implementations raise ``TrainingServiceError``
    (or any exception) when the dataset cannot be trained.
    """

    @abstractmethod
    def train(self, dataset_dir: Path, params: TrainingParameters) -> FitOutcome:
        """
        Fit a classifier on ``dataset_dir``.

        Parameters
        ----------
        dataset_dir : Path
            Root of the labeled-directory dataset
        params : TrainingParameters
            Feature extractor, iteration cap, validation and augmentation

        Returns
        -------
        FitOutcome
            Classifier plus training/validation error in [0, 1]
        """
        pass

    def train_multilabel(self, dataset_dir: Path, params: TrainingParameters) -> FitOutcome:
        """Fit a multi-label classifier; services without support raise."""
        raise TrainingServiceError(f"{type(self).__name__} does not support multi-label training")
