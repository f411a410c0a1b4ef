"""Target image loading.

The decoded target is held as a flat RGBA ``uint8`` buffer and treated as
read-only for the lifetime of a run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from polyapprox.errors import DimensionMismatch, ImageLoadError, InvalidArgument

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class TargetImage:
    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidArgument(
                f"image dimensions must be positive, got {self.width}x{self.height}"
            )
        pixels = np.asarray(self.pixels, dtype=np.uint8).reshape(-1)
        if pixels.size != self.width * self.height * 4:
            raise DimensionMismatch(
                f"expected {self.width * self.height * 4} RGBA bytes, got {pixels.size}"
            )
        pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def byte_length(self) -> int:
        return int(self.pixels.size)

    @classmethod
    def from_image(cls, img: Image.Image) -> TargetImage:
        rgba = img.convert("RGBA")
        w, h = rgba.size
        return cls(w, h, np.asarray(rgba, dtype=np.uint8).reshape(-1))

    @classmethod
    def solid(cls, width: int, height: int,
              rgba: tuple[int, int, int, int] = (255, 255, 255, 255)) -> TargetImage:
        """Flat single-color target, mostly useful for tests and demos."""
        if width <= 0 or height <= 0:
            raise InvalidArgument(f"image dimensions must be positive, got {width}x{height}")
        pixels = np.tile(np.array(rgba, dtype=np.uint8), width * height)
        return cls(width, height, pixels)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels.reshape(self.height, self.width, 4), "RGBA")


def load_target(path: str | Path, max_size: int | None = None) -> TargetImage:
    """Decode an image file, optionally shrinking it to fit ``max_size``.

    Scoring cost is linear in pixel count, so large photos are usually
    downscaled first.
    """
    path = Path(path)
    if max_size is not None and max_size <= 0:
        raise InvalidArgument(f"max_size must be positive, got {max_size}")
    try:
        with Image.open(path) as img:
            img.load()
            if max_size is not None:
                img.thumbnail((max_size, max_size))
            target = TargetImage.from_image(img)
    except (OSError, UnidentifiedImageError) as e:
        raise ImageLoadError(f"could not load image {path}: {e}") from e

    logger.debug("loaded target %s (%dx%d)", path, target.width, target.height)
    return target
