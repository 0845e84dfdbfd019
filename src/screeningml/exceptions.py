"""Error kinds raised by screeningml training pipelines."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional


class ScreeningError(Exception):
    """Base class for all screeningml errors."""


class DirectoryCreationError(ScreeningError):
    """Raised when an output run or workspace directory cannot be created."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        message = f"Could not create directory: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class SourceNotFoundError(ScreeningError):
    """Raised when a resources root is missing or cannot be listed."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = Path(path)
        message = f"Training data directory not found or unreadable: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NoLabelsFoundError(ScreeningError):
    """Raised when a resources root holds no eligible label directories."""

    def __init__(self, root: Path):
        self.root = Path(root)
        super().__init__(f"No label directories found under {self.root} (excluding 'rest')")


class PairTrainingFailed(ScreeningError):
    """Raised when training or saving a single label-vs-rest pair fails."""

    def __init__(self, label: str, reason: str = ""):
        self.label = label
        message = f"Training failed for pair '{label}' vs Rest"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AllPairsFailedError(ScreeningError):
    """Raised when every pair of an OvR batch failed."""

    def __init__(self, labels: Iterable[str]):
        self.labels: List[str] = list(labels)
        super().__init__(f"All {len(self.labels)} OvR pairs failed: {', '.join(self.labels)}")


class TrainingServiceError(ScreeningError):
    """Raised by a classifier service when a dataset cannot be trained."""


class ArtifactWriteError(ScreeningError):
    """Raised when a fitted classifier cannot be written to disk."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        message = f"Could not write model artifact to {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
