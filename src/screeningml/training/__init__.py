"""Training pipelines: OvR batch coordinator and single-model trainers."""

from screeningml.training.aggregate import aggregate
from screeningml.training.ovr import OvRBatchCoordinator
from screeningml.training.results import BatchResult, PairTrainingResult, TrainingResult
from screeningml.training.runner import run_one
from screeningml.training.variants import (
    BinaryTrainer,
    MultiClassTrainer,
    MultiLabelTrainer,
    OvRTrainer,
    ScreeningTrainer,
    get_trainer,
)

__all__ = [
    "aggregate",
    "OvRBatchCoordinator",
    "BatchResult",
    "PairTrainingResult",
    "TrainingResult",
    "run_one",
    "BinaryTrainer",
    "MultiClassTrainer",
    "MultiLabelTrainer",
    "OvRTrainer",
    "ScreeningTrainer",
    "get_trainer",
]
