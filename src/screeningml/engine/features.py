"""Fixed image feature extraction."""

from __future__ import annotations

from typing import Callable, Dict

import numpy as np
from PIL import Image

IMAGE_SIZE = 64
THUMBNAIL_SIZE = 8
HISTOGRAM_BINS = 16


def color_histogram_features(image: Image.Image) -> np.ndarray:
    """
    Per-channel RGB histograms plus a coarse grayscale thumbnail.

    The image is resized to a fixed square first, so the feature length is
    ``3 * HISTOGRAM_BINS + THUMBNAIL_SIZE ** 2`` for every input.
    """
    rgb = image.convert("RGB").resize((IMAGE_SIZE, IMAGE_SIZE))
    pixels = np.asarray(rgb, dtype=np.float64)

    histograms = []
    for channel in range(3):
        counts, _ = np.histogram(pixels[:, :, channel], bins=HISTOGRAM_BINS, range=(0, 256))
        histograms.append(counts / counts.sum())

    thumb = rgb.convert("L").resize((THUMBNAIL_SIZE, THUMBNAIL_SIZE))
    thumb_values = np.asarray(thumb, dtype=np.float64).ravel() / 255.0

    return np.concatenate(histograms + [thumb_values])


FEATURE_EXTRACTORS: Dict[str, Callable[[Image.Image], np.ndarray]] = {
    "color_histogram": color_histogram_features,
}


def get_feature_extractor(name: str) -> Callable[[Image.Image], np.ndarray]:
    """Look up a feature extractor by name."""
    try:
        return FEATURE_EXTRACTORS[name]
    except KeyError:
        raise ValueError(
            f"Unknown feature extractor: {name}. Supported: {', '.join(FEATURE_EXTRACTORS)}"
        ) from None
