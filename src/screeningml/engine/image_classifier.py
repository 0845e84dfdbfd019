"""scikit-learn image classifier trained from labeled directories."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score
from sklearn.model_selection import train_test_split
from sklearn.multioutput import MultiOutputClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from screeningml.config import TrainingParameters
from screeningml.engine.augment import augment_image
from screeningml.engine.base import ClassifierService, FitOutcome
from screeningml.engine.features import get_feature_extractor
from screeningml.exceptions import TrainingServiceError

logger = logging.getLogger(__name__)

VALIDATION_FRACTION = 0.1
MIN_IMAGES_FOR_SPLIT = 10


def _visible(path: Path) -> bool:
    return not path.name.startswith(".")


def list_class_directories(dataset_dir: Path) -> List[Path]:
    """Immediate non-hidden subdirectories of a labeled dataset, sorted by name."""
    dataset_dir = Path(dataset_dir)
    if not dataset_dir.is_dir():
        raise TrainingServiceError(f"Dataset directory not found: {dataset_dir}")
    return sorted((p for p in dataset_dir.iterdir() if p.is_dir() and _visible(p)), key=lambda p: p.name)


def scan_labeled_directories(dataset_dir: Path) -> Tuple[List[Path], List[str], List[str]]:
    """
    Collect ``(paths, labels, classes)`` from a labeled-directory dataset.

    Classes without any file are dropped from ``classes``.
    """
    paths: List[Path] = []
    labels: List[str] = []
    classes: List[str] = []
    for class_dir in list_class_directories(dataset_dir):
        files = sorted(p for p in class_dir.iterdir() if p.is_file() and _visible(p))
        if not files:
            logger.debug(f"Skipping empty class directory: {class_dir}")
            continue
        classes.append(class_dir.name)
        paths.extend(files)
        labels.extend([class_dir.name] * len(files))
    return paths, labels, classes


def load_image(path: Path) -> Optional[Image.Image]:
    """Open and fully decode an image, or return None if it is unreadable."""
    try:
        with Image.open(path) as img:
            img.load()
            return img.convert("RGB")
    except OSError as e:
        logger.warning(f"Skipping unreadable image {path}: {e}")
        return None


def _automatic_split(n_samples: int, stratify: Optional[Sequence]) -> bool:
    if n_samples < MIN_IMAGES_FOR_SPLIT:
        return False
    if stratify is not None:
        counts: Dict = {}
        for value in stratify:
            counts[value] = counts.get(value, 0) + 1
        if min(counts.values()) < 2:
            return False
    return True


def _validation_size(n_samples: int, n_classes: int) -> int:
    return max(n_classes, int(round(n_samples * VALIDATION_FRACTION)))


class ImageClassifier:
    """
    Fitted image classifier: a feature extractor plus a scikit-learn pipeline.

    Instances are picklable and are what gets written to model artifacts.
    """

    def __init__(self, pipeline, classes: Sequence[str], feature_extractor: str, multilabel: bool = False):
        self.pipeline = pipeline
        self.classes = tuple(classes)
        self.feature_extractor = feature_extractor
        self.multilabel = multilabel

    def _features(self, images: Sequence[Image.Image]) -> np.ndarray:
        extract = get_feature_extractor(self.feature_extractor)
        return np.vstack([extract(img) for img in images])

    def predict_images(self, images: Sequence[Image.Image]):
        """Predict class names (or label sets for multi-label models)."""
        preds = self.pipeline.predict(self._features(images))
        if self.multilabel:
            return [tuple(c for c, flag in zip(self.classes, row) if flag) for row in preds]
        return [str(p) for p in preds]

    def predict_paths(self, paths: Sequence[Path]):
        images = []
        for path in paths:
            img = load_image(Path(path))
            if img is None:
                raise TrainingServiceError(f"Cannot read image for prediction: {path}")
            images.append(img)
        return self.predict_images(images)

    def __repr__(self) -> str:
        kind = "multilabel" if self.multilabel else "singlelabel"
        return f"ImageClassifier({kind}, classes={list(self.classes)}, features={self.feature_extractor})"


def _make_pipeline(params: TrainingParameters) -> Pipeline:
    return Pipeline(
        [
            ("scaler", StandardScaler()),
            (
                "clf",
                LogisticRegression(max_iter=params.max_iterations, random_state=params.random_state),
            ),
        ]
    )


class SklearnImageClassifier(ClassifierService):
    """
    Default classifier service.

    Extracts fixed features with Pillow/NumPy, augments training images and
    fits a standardized logistic regression. Validation follows
    ``params.validation``: ``automatic`` holds out a stratified 10% when the
    dataset is large enough, otherwise metrics are reported on the training
    set.
    """

    def _featurize(
        self,
        paths: Sequence[Path],
        labels: Sequence,
        params: TrainingParameters,
        augment: bool,
        rng: random.Random,
    ) -> Tuple[np.ndarray, list]:
        extract = get_feature_extractor(params.feature_extractor)
        rows = []
        targets = []
        for path, label in zip(paths, labels):
            img = load_image(path)
            if img is None:
                continue
            variants = [img]
            if augment and params.augmentation:
                variants.extend(augment_image(img, params.augmentation, rng))
            for variant in variants:
                rows.append(extract(variant))
                targets.append(label)
        if not rows:
            return np.empty((0, 0)), []
        return np.vstack(rows), targets

    def _split(self, paths, labels, params: TrainingParameters, n_classes: int, stratify=True):
        use_split = params.validation == "automatic" and _automatic_split(
            len(paths), labels if stratify else None
        )
        if not use_split:
            if params.validation == "automatic":
                logger.warning(
                    f"Dataset too small for a validation split ({len(paths)} images); "
                    "reporting validation metrics on the training set"
                )
            return list(paths), list(labels), [], []

        train_p, val_p, train_y, val_y = train_test_split(
            list(paths),
            list(labels),
            test_size=_validation_size(len(paths), n_classes),
            stratify=list(labels) if stratify else None,
            random_state=params.random_state,
        )
        return train_p, train_y, val_p, val_y

    def train(self, dataset_dir: Path, params: TrainingParameters) -> FitOutcome:
        paths, labels, classes = scan_labeled_directories(dataset_dir)
        if len(classes) < 2:
            raise TrainingServiceError(
                f"At least two non-empty class directories are required in {dataset_dir}, found {classes}"
            )

        rng = random.Random(params.random_state)
        train_p, train_y, val_p, val_y = self._split(paths, labels, params, len(classes))

        X_train, y_train = self._featurize(train_p, train_y, params, augment=True, rng=rng)
        if len(set(y_train)) < 2:
            raise TrainingServiceError(f"Fewer than two classes have readable images in {dataset_dir}")

        pipeline = _make_pipeline(params)
        try:
            pipeline.fit(X_train, y_train)
        except ValueError as e:
            raise TrainingServiceError(f"Estimator failed to fit: {e}") from e

        # Training error is measured on the un-augmented training images
        X_eval, y_eval = self._featurize(train_p, train_y, params, augment=False, rng=rng)
        training_error = 1.0 - accuracy_score(y_eval, pipeline.predict(X_eval))

        X_val, y_val = self._featurize(val_p, val_y, params, augment=False, rng=rng)
        if len(y_val):
            validation_error = 1.0 - accuracy_score(y_val, pipeline.predict(X_val))
        else:
            validation_error = training_error

        classifier = ImageClassifier(pipeline, classes, params.feature_extractor)
        logger.debug(
            f"Fitted {classifier!r}: train_err={training_error:.4f}, val_err={validation_error:.4f}"
        )
        return FitOutcome(
            classifier=classifier,
            classes=tuple(classes),
            training_error=float(training_error),
            validation_error=float(validation_error),
            n_training_samples=len(y_eval),
            n_validation_samples=len(y_val),
        )

    def train_multilabel(self, dataset_dir: Path, params: TrainingParameters) -> FitOutcome:
        """
        Fit a multi-label classifier on a labeled-directory dataset.

        An image's label set is every class directory that contains a file
        with the same name. One logistic regression is fitted per label.
        Errors are ``1 - subset accuracy``.
        """
        class_dirs = list_class_directories(dataset_dir)
        classes = [d.name for d in class_dirs]
        if len(classes) < 2:
            raise TrainingServiceError(f"At least two label directories are required in {dataset_dir}")

        first_path: Dict[str, Path] = {}
        label_sets: Dict[str, set] = {}
        for class_dir in class_dirs:
            for p in sorted(class_dir.iterdir()):
                if not (p.is_file() and _visible(p)):
                    continue
                first_path.setdefault(p.name, p)
                label_sets.setdefault(p.name, set()).add(class_dir.name)

        names = sorted(first_path)
        paths = [first_path[n] for n in names]
        targets = [tuple(int(c in label_sets[n]) for c in classes) for n in names]

        Y = np.array(targets)
        if Y.size == 0:
            raise TrainingServiceError(f"No images found in {dataset_dir}")
        constant = [c for i, c in enumerate(classes) if Y[:, i].min() == Y[:, i].max()]
        if constant:
            raise TrainingServiceError(
                f"Labels {constant} are present on all or none of the images; cannot fit"
            )

        rng = random.Random(params.random_state)
        train_p, train_y, val_p, val_y = self._split(paths, targets, params, len(classes), stratify=False)

        X_train, y_train = self._featurize(train_p, train_y, params, augment=True, rng=rng)
        if not y_train:
            raise TrainingServiceError(f"No readable images in {dataset_dir}")

        pipeline = Pipeline(
            [
                ("scaler", StandardScaler()),
                (
                    "clf",
                    MultiOutputClassifier(
                        LogisticRegression(max_iter=params.max_iterations, random_state=params.random_state)
                    ),
                ),
            ]
        )
        try:
            pipeline.fit(X_train, np.array(y_train))
        except ValueError as e:
            raise TrainingServiceError(f"Estimator failed to fit: {e}") from e

        X_eval, y_eval = self._featurize(train_p, train_y, params, augment=False, rng=rng)
        training_error = 1.0 - accuracy_score(np.array(y_eval), pipeline.predict(X_eval))

        X_val, y_val = self._featurize(val_p, val_y, params, augment=False, rng=rng)
        if len(y_val):
            validation_error = 1.0 - accuracy_score(np.array(y_val), pipeline.predict(X_val))
        else:
            validation_error = training_error

        classifier = ImageClassifier(pipeline, classes, params.feature_extractor, multilabel=True)
        return FitOutcome(
            classifier=classifier,
            classes=tuple(classes),
            training_error=float(training_error),
            validation_error=float(validation_error),
            n_training_samples=len(y_eval),
            n_validation_samples=len(y_val),
        )
