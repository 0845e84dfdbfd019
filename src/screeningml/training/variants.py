"""Trainer variants sharing one ``train(config)`` interface."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Type, Union

from screeningml.artifacts import MODEL_EXTENSION, save_model
from screeningml.config import TrainerConfig
from screeningml.engine.base import ClassifierService, FitOutcome
from screeningml.engine.image_classifier import SklearnImageClassifier, list_class_directories
from screeningml.exceptions import ScreeningError, SourceNotFoundError, TrainingServiceError
from screeningml.io.provision import OutputRun, provision_output_run
from screeningml.tracking import ExperimentTracker, NoOpTracker, extract_loggable_params
from screeningml.training.ovr import OVR_PREFIX, OvRBatchCoordinator
from screeningml.training.results import BatchResult, TrainingResult

logger = logging.getLogger(__name__)

TrainingOutcome = Union[TrainingResult, BatchResult]


class ScreeningTrainer(ABC):
    """
    Common shape of every trainer: provision a run, train, write artifacts.

    ``execute`` raises ``ScreeningError`` subclasses; ``train`` turns them
    into ``None`` for callers that only need success or absence.
    """

    name: str = ""
    output_prefix: str = ""

    def __init__(
        self,
        service: Optional[ClassifierService] = None,
        tracker: Optional[ExperimentTracker] = None,
    ):
        self.service = service or SklearnImageClassifier()
        self.tracker = tracker or NoOpTracker()
        self.output_run: Optional[OutputRun] = None

    @abstractmethod
    def execute(self, config: TrainerConfig) -> TrainingOutcome:
        pass

    def train(self, config: TrainerConfig) -> Optional[TrainingOutcome]:
        try:
            return self.execute(config)
        except ScreeningError as e:
            logger.error(f"{self.name} training failed: {e}")
            return None


class SingleModelTrainer(ScreeningTrainer):
    """Trains one model on the whole resources directory (N = 1 pair)."""

    min_classes = 2
    max_classes: Optional[int] = None

    def fit(self, dataset_dir: Path, config: TrainerConfig) -> FitOutcome:
        return self.service.train(dataset_dir, config.parameters())

    def model_filename(self, config: TrainerConfig) -> str:
        return f"{config.model_name}_{self.output_prefix}_{config.version}{MODEL_EXTENSION}"

    def _check_classes(self, resources_dir: Path) -> list:
        if not resources_dir.is_dir():
            raise SourceNotFoundError(resources_dir)
        try:
            class_labels = [d.name for d in list_class_directories(resources_dir)]
        except OSError as e:
            raise SourceNotFoundError(resources_dir, str(e)) from e

        if len(class_labels) < self.min_classes or (
            self.max_classes is not None and len(class_labels) > self.max_classes
        ):
            expected = (
                f"exactly {self.min_classes}"
                if self.max_classes == self.min_classes
                else f"at least {self.min_classes}"
            )
            raise TrainingServiceError(
                f"{self.name} training needs {expected} class directories in {resources_dir}, "
                f"found {len(class_labels)}: {class_labels}"
            )
        return class_labels

    def execute(self, config: TrainerConfig) -> TrainingResult:
        self.output_run = provision_output_run(config.output_root, self.output_prefix)
        logger.info(f"Starting {self.name} training: {config.model_name} {config.version}")

        class_labels = self._check_classes(config.resources_dir)
        logger.info(f"  Classes: {', '.join(class_labels)}")

        self.tracker.start_run(
            run_name=f"{self.output_run.name}_{config.version}",
            tags={"task_type": self.name, "version": config.version},
        )
        try:
            self.tracker.log_params(extract_loggable_params(config.parameters()))

            start = time.perf_counter()
            outcome = self.fit(config.resources_dir, config)
            elapsed = time.perf_counter() - start

            model_path = self.output_run.path / self.model_filename(config)
            save_model(
                outcome.classifier,
                model_path,
                metadata={
                    **config.metadata().to_dict(),
                    "classes": list(outcome.classes),
                    "parameters": config.parameters().to_dict(),
                },
            )

            result = TrainingResult(
                model_name=config.model_name,
                model_path=str(model_path),
                training_accuracy=1.0 - outcome.training_error,
                validation_accuracy=1.0 - outcome.validation_error,
                training_error_rate=outcome.training_error,
                validation_error_rate=outcome.validation_error,
                training_seconds=elapsed,
                data_path=str(config.resources_dir),
                class_labels=tuple(class_labels),
                max_iterations=config.max_iterations,
            )
            self.tracker.log_summary(result)
        finally:
            self.tracker.end_run()

        logger.info(
            f"{self.name} training complete ({elapsed:.2f}s): "
            f"train acc={result.training_accuracy * 100:.2f}%, "
            f"val acc={result.validation_accuracy * 100:.2f}%"
        )
        return result


class BinaryTrainer(SingleModelTrainer):
    name = "binary"
    output_prefix = "Binary"
    min_classes = 2
    max_classes = 2


class MultiClassTrainer(SingleModelTrainer):
    name = "multiclass"
    output_prefix = "MultiClass"


class MultiLabelTrainer(SingleModelTrainer):
    """Images may belong to several label directories at once."""

    name = "multilabel"
    output_prefix = "MultiLabel"

    def fit(self, dataset_dir: Path, config: TrainerConfig) -> FitOutcome:
        return self.service.train_multilabel(dataset_dir, config.parameters())


class OvRTrainer(ScreeningTrainer):
    """One binary classifier per label against the shared ``rest`` bucket."""

    name = "ovr"
    output_prefix = OVR_PREFIX

    def execute(self, config: TrainerConfig) -> BatchResult:
        coordinator = OvRBatchCoordinator(
            service=self.service,
            tracker=self.tracker,
            prefix=self.output_prefix,
        )
        try:
            return coordinator.execute(
                resources_root=config.resources_dir,
                batch_output_root=config.output_root,
                temp_root=config.temp_root,
                metadata=config.metadata(),
                parameters=config.parameters(),
            )
        finally:
            self.output_run = coordinator.output_run


TRAINERS: Dict[str, Type[ScreeningTrainer]] = {
    "binary": BinaryTrainer,
    "multiclass": MultiClassTrainer,
    "multilabel": MultiLabelTrainer,
    "ovr": OvRTrainer,
}


def get_trainer(
    variant: str,
    service: Optional[ClassifierService] = None,
    tracker: Optional[ExperimentTracker] = None,
) -> ScreeningTrainer:
    """Instantiate the trainer registered for ``variant``."""
    try:
        trainer_cls = TRAINERS[variant.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown trainer variant: {variant}. Supported: {', '.join(TRAINERS)}"
        ) from None
    return trainer_cls(service=service, tracker=tracker)
