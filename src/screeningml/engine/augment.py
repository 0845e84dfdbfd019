"""Training-set image augmentation."""

from __future__ import annotations

import random
from typing import Iterable, List

from PIL import Image, ImageFilter

CROP_FRACTION = 0.8
MAX_ROTATION_DEGREES = 15.0
BLUR_RADIUS = 1.0

# Applied in this order so results do not depend on set iteration order
AUGMENTATION_ORDER = ("crop", "rotation", "blur")


def center_crop(image: Image.Image, fraction: float = CROP_FRACTION) -> Image.Image:
    width, height = image.size
    new_w = max(1, int(round(width * fraction)))
    new_h = max(1, int(round(height * fraction)))
    left = (width - new_w) // 2
    top = (height - new_h) // 2
    return image.crop((left, top, left + new_w, top + new_h))


def rotate(image: Image.Image, rng: random.Random) -> Image.Image:
    angle = rng.uniform(-MAX_ROTATION_DEGREES, MAX_ROTATION_DEGREES)
    return image.rotate(angle)


def blur(image: Image.Image, radius: float = BLUR_RADIUS) -> Image.Image:
    return image.filter(ImageFilter.GaussianBlur(radius=radius))


def augment_image(image: Image.Image, options: Iterable[str], rng: random.Random) -> List[Image.Image]:
    """
    Return one transformed copy of ``image`` per enabled option.

    The original image is not included in the returned list.
    """
    enabled = set(options)
    variants = []
    for name in AUGMENTATION_ORDER:
        if name not in enabled:
            continue
        if name == "crop":
            variants.append(center_crop(image))
        elif name == "rotation":
            variants.append(rotate(image, rng))
        elif name == "blur":
            variants.append(blur(image))
    return variants
