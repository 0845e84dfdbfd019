"""Result records produced by trainers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Tuple

DATA_PATH_SEPARATOR = ", "


@dataclass(frozen=True)
class PairTrainingResult:
    """Metrics and artifact of one label-vs-rest training run."""

    label: str
    model_path: str
    training_accuracy: float
    validation_accuracy: float
    training_error_rate: float
    validation_error_rate: float
    training_seconds: float
    data_path: str
    warnings: Tuple[str, ...] = ()

    @classmethod
    def from_errors(
        cls,
        label: str,
        model_path: str,
        training_error_rate: float,
        validation_error_rate: float,
        training_seconds: float,
        data_path: str,
        warnings: Tuple[str, ...] = (),
    ) -> PairTrainingResult:
        """Build a result whose accuracies are ``1 - error`` for both splits."""
        return cls(
            label=label,
            model_path=model_path,
            training_accuracy=1.0 - training_error_rate,
            validation_accuracy=1.0 - validation_error_rate,
            training_error_rate=training_error_rate,
            validation_error_rate=validation_error_rate,
            training_seconds=training_seconds,
            data_path=data_path,
            warnings=tuple(warnings),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["warnings"] = list(self.warnings)
        return d


@dataclass(frozen=True)
class BatchResult:
    """Averaged metrics over all successful pairs of an OvR batch."""

    model_path: str
    training_accuracy: float
    validation_accuracy: float
    training_error_rate: float
    validation_error_rate: float
    training_seconds: float
    data_paths: Tuple[str, ...]
    pair_results: Tuple[PairTrainingResult, ...] = field(default=())
    warnings: Tuple[str, ...] = ()

    @property
    def labels(self) -> List[str]:
        return [r.label for r in self.pair_results]

    @property
    def data_path_summary(self) -> str:
        """Source data paths joined in processing order."""
        return DATA_PATH_SEPARATOR.join(self.data_paths)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_path": self.model_path,
            "training_accuracy": self.training_accuracy,
            "validation_accuracy": self.validation_accuracy,
            "training_error_rate": self.training_error_rate,
            "validation_error_rate": self.validation_error_rate,
            "training_seconds": self.training_seconds,
            "data_paths": list(self.data_paths),
            "labels": self.labels,
            "pairs": [r.to_dict() for r in self.pair_results],
            "warnings": list(self.warnings),
        }

    def summary_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Representative model", self.model_path),
            ("Pairs trained", str(len(self.pair_results))),
            ("Mean training accuracy", f"{self.training_accuracy * 100:.2f}%"),
            ("Mean validation accuracy", f"{self.validation_accuracy * 100:.2f}%"),
            ("Mean training error", f"{self.training_error_rate:.4f}"),
            ("Mean validation error", f"{self.validation_error_rate:.4f}"),
            ("Mean training time", f"{self.training_seconds:.2f}s"),
            ("Training data", self.data_path_summary),
        ]


@dataclass(frozen=True)
class TrainingResult:
    """Metrics and artifact of a single-model (binary/multi-class/multi-label) run."""

    model_name: str
    model_path: str
    training_accuracy: float
    validation_accuracy: float
    training_error_rate: float
    validation_error_rate: float
    training_seconds: float
    data_path: str
    class_labels: Tuple[str, ...] = ()
    max_iterations: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["class_labels"] = list(self.class_labels)
        return d

    def summary_rows(self) -> List[Tuple[str, str]]:
        return [
            ("Model", self.model_name),
            ("Model file", self.model_path),
            ("Training accuracy", f"{self.training_accuracy * 100:.2f}%"),
            ("Validation accuracy", f"{self.validation_accuracy * 100:.2f}%"),
            ("Training error", f"{self.training_error_rate:.4f}"),
            ("Validation error", f"{self.validation_error_rate:.4f}"),
            ("Training time", f"{self.training_seconds:.2f}s"),
            ("Training data", self.data_path),
            ("Classes", ", ".join(self.class_labels)),
            ("Max iterations", str(self.max_iterations)),
        ]
