"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Dict, Iterable, Optional

import numpy as np
import pytest
from PIL import Image

from screeningml.config import ModelMetadata, TrainingParameters
from screeningml.engine.base import ClassifierService, FitOutcome
from screeningml.exceptions import TrainingServiceError

BASE_COLORS = {
    "red": (200, 40, 40),
    "green": (40, 200, 40),
    "blue": (40, 40, 200),
    "gray": (128, 128, 128),
}


def write_image(path: Path, color=(128, 128, 128), seed: int = 0, size: int = 24) -> Path:
    """Write a small noisy PNG around ``color``."""
    rng = np.random.default_rng(seed)
    base = np.array(color, dtype=np.int16)
    noise = rng.integers(-20, 21, size=(size, size, 3))
    pixels = np.clip(base + noise, 0, 255).astype(np.uint8)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels, "RGB").save(path)
    return path


def make_labeled_tree(root: Path, layout: Dict[str, Iterable[str]], colors: Optional[Dict[str, str]] = None) -> Path:
    """Create ``root/<label>/<file>`` images; colors map label -> BASE_COLORS key."""
    colors = colors or {}
    for i, (label, files) in enumerate(layout.items()):
        color = BASE_COLORS[colors.get(label, "gray")]
        label_dir = root / label
        label_dir.mkdir(parents=True, exist_ok=True)
        for j, name in enumerate(files):
            write_image(label_dir / name, color, seed=i * 100 + j)
    return root


class FakeClassifierService(ClassifierService):
    """Records training calls and returns canned error rates."""

    def __init__(self, errors=None, fail_labels=(), validation_errors=None):
        self.errors = errors or {}
        self.validation_errors = validation_errors or {}
        self.fail_labels = set(fail_labels)
        self.calls = []

    def train(self, dataset_dir: Path, params: TrainingParameters) -> FitOutcome:
        classes = sorted(p.name for p in Path(dataset_dir).iterdir() if p.is_dir())
        files = {c: sorted(f.name for f in (Path(dataset_dir) / c).iterdir()) for c in classes}
        self.calls.append({"dataset_dir": Path(dataset_dir), "params": params, "files": files})

        positive = next((c for c in classes if c != "Rest"), classes[0] if classes else "")
        if positive in self.fail_labels:
            raise TrainingServiceError(f"simulated failure for {positive}")

        err = self.errors.get(positive, 0.1)
        return FitOutcome(
            classifier={"positive": positive, "classes": classes},
            classes=tuple(classes),
            training_error=err,
            validation_error=self.validation_errors.get(positive, err),
            n_training_samples=sum(len(v) for v in files.values()),
        )


@pytest.fixture
def fake_service():
    return FakeClassifierService()


@pytest.fixture
def metadata():
    return ModelMetadata(author="tester", description="Screening test run", version="v1")


@pytest.fixture
def parameters():
    return TrainingParameters(max_iterations=50)


@pytest.fixture
def resources_dir(tmp_path):
    """Resources tree from the end-to-end scenario: cat, dog and rest."""
    return make_labeled_tree(
        tmp_path / "Resources",
        {
            "cat": ["c1.png", "c2.png"],
            "dog": ["d1.png"],
            "rest": ["r1.png", "r2.png"],
        },
        colors={"cat": "red", "dog": "blue", "rest": "green"},
    )


@pytest.fixture
def make_tree():
    """Factory fixture: build a labeled image tree."""
    return make_labeled_tree


@pytest.fixture
def service_factory():
    """Factory fixture: build a ``FakeClassifierService`` with custom behavior."""
    return FakeClassifierService
