"""Configuration dataclasses for screening model training."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

TrainerVariant = Literal["binary", "multiclass", "multilabel", "ovr"]
ValidationStrategy = Literal["automatic", "none"]

AUGMENTATIONS = ("crop", "rotation", "blur")
FEATURE_EXTRACTORS = ("color_histogram",)

# Model version used by each trainer variant when none is given
DEFAULT_VERSIONS: Dict[str, str] = {
    "binary": "v5",
    "multiclass": "v3",
    "multilabel": "v1",
    "ovr": "v3",
}

DEFAULT_MAX_ITERATIONS = 11


@dataclass(frozen=True)
class TrainingParameters:
    """Hyperparameters passed unchanged to every training call of a batch."""

    feature_extractor: str = "color_histogram"
    max_iterations: int = 25
    validation: ValidationStrategy = "automatic"
    augmentation: FrozenSet[str] = frozenset({"crop", "rotation", "blur"})
    random_state: int = 42

    def __post_init__(self):
        object.__setattr__(self, "augmentation", frozenset(self.augmentation))
        if self.feature_extractor not in FEATURE_EXTRACTORS:
            raise ValueError(
                f"Unknown feature extractor: {self.feature_extractor}. "
                f"Supported: {', '.join(FEATURE_EXTRACTORS)}"
            )
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.validation not in ("automatic", "none"):
            raise ValueError(f"Unknown validation strategy: {self.validation}")
        unknown = set(self.augmentation) - set(AUGMENTATIONS)
        if unknown:
            raise ValueError(
                f"Unknown augmentation option(s): {sorted(unknown)}. "
                f"Supported: {', '.join(AUGMENTATIONS)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature_extractor": self.feature_extractor,
            "max_iterations": self.max_iterations,
            "validation": self.validation,
            "augmentation": sorted(self.augmentation),
            "random_state": self.random_state,
        }


@dataclass(frozen=True)
class ModelMetadata:
    """Metadata embedded into every written model artifact."""

    author: str
    description: str
    version: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class TrainerConfig:
    """Configuration for one trainer invocation (any variant)."""

    variant: TrainerVariant = "ovr"

    # Data and output
    resources_dir: Path = Path("Resources")
    output_root: Path = Path("OutputModels")
    temp_root: Path = Path("TempOvRTrainingData")

    # Model metadata
    author: str = "unknown"
    description: str = ""
    version: Optional[str] = None  # Falls back to the variant default
    model_name: str = "ScaryCatScreeningML"

    # Training
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    augmentation: List[str] = field(default_factory=lambda: list(AUGMENTATIONS))
    validation: ValidationStrategy = "automatic"
    random_state: int = 42

    # Experiment tracking (optional)
    tracker: Optional[Literal["mlflow"]] = None
    experiment_name: Optional[str] = None

    def __post_init__(self):
        """Convert string paths to Path objects and fill the version."""
        self.resources_dir = Path(self.resources_dir)
        self.output_root = Path(self.output_root)
        self.temp_root = Path(self.temp_root)
        if self.variant not in DEFAULT_VERSIONS:
            raise ValueError(
                f"Unknown trainer variant: {self.variant}. "
                f"Supported: {', '.join(DEFAULT_VERSIONS)}"
            )
        if not self.version:
            self.version = DEFAULT_VERSIONS[self.variant]

    def parameters(self) -> TrainingParameters:
        """Build the immutable training parameters for this run."""
        return TrainingParameters(
            max_iterations=self.max_iterations,
            validation=self.validation,
            augmentation=frozenset(self.augmentation),
            random_state=self.random_state,
        )

    def metadata(self) -> ModelMetadata:
        return ModelMetadata(author=self.author, description=self.description, version=self.version)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dict with Path objects as strings."""
        d = asdict(self)
        d["resources_dir"] = str(self.resources_dir)
        d["output_root"] = str(self.output_root)
        d["temp_root"] = str(self.temp_root)
        return d

    def save(self, path: Path) -> None:
        """Save config to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


class TrainerSettings(BaseModel):
    """Schema of a YAML trainer configuration file."""

    model_config = ConfigDict(extra="forbid")

    variant: TrainerVariant = "ovr"
    resources_dir: Optional[Path] = None
    output_root: Optional[Path] = None
    temp_root: Optional[Path] = None
    author: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    model_name: Optional[str] = None
    max_iterations: Optional[int] = Field(default=None, ge=1)
    augmentation: Optional[List[str]] = None
    validation: Optional[ValidationStrategy] = None
    random_state: Optional[int] = None
    tracker: Optional[Literal["mlflow"]] = None
    experiment_name: Optional[str] = None

    @field_validator("augmentation")
    @classmethod
    def _check_augmentation(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        unknown = sorted(set(value) - set(AUGMENTATIONS))
        if unknown:
            raise ValueError(f"Unknown augmentation option(s): {unknown}")
        return value

    def to_config(self, **overrides: Any) -> TrainerConfig:
        """Build a ``TrainerConfig``; non-None ``overrides`` win over file values."""
        values = {k: v for k, v in self.model_dump().items() if v is not None}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TrainerConfig(**values)


def load_yaml(path: Path) -> Any:
    """Load YAML from disk."""
    import yaml

    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_trainer_config(path: Path, **overrides: Any) -> TrainerConfig:
    """
    Load a trainer configuration from a YAML file.

    Parameters
    ----------
    path : Path
        YAML file with ``TrainerSettings`` keys
    **overrides
        Values taking precedence over the file (``None`` is ignored)

    Raises
    ------
    pydantic.ValidationError
        If the file contains unknown keys or invalid values
    """
    payload = load_yaml(Path(path))
    if not isinstance(payload, dict):
        raise ValueError(f"Trainer config must be a mapping, got {type(payload).__name__}")
    settings = TrainerSettings.model_validate(payload)
    logger.info(f"Loaded trainer config from {path}")
    return settings.to_config(**overrides)


def normalize_augmentation(values: Optional[Iterable[str]]) -> Optional[List[str]]:
    """Lower-case and de-duplicate CLI augmentation names; ``none`` disables all."""
    if not values:
        return None
    out: List[str] = []
    for value in values:
        for piece in str(value).split(","):
            name = piece.strip().lower()
            if name == "none":
                return []
            if name and name not in out:
                out.append(name)
    return out
