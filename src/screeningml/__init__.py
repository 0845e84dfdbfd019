"""
screeningml: image screening classifier training.

This package provides:
- One-vs-Rest batch training over labeled image directories
- Binary, multi-class and multi-label single-model trainers
- Sequentially numbered output runs with joblib model artifacts
- Result logs, run manifests and optional MLflow tracking
- A Typer CLI
"""

__version__ = "0.1.0"

from screeningml.config import ModelMetadata, TrainerConfig, TrainingParameters
from screeningml.training import OvRBatchCoordinator, get_trainer

__all__ = [
    "__version__",
    "ModelMetadata",
    "TrainerConfig",
    "TrainingParameters",
    "OvRBatchCoordinator",
    "get_trainer",
]
