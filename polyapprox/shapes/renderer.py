"""Rasterize a polygon population with Pillow.

Polygons are painted in list order (back-to-front) onto an opaque canvas
cleared to the background color.  Each fill is alpha-blended over what is
already there, so the composite is always fully opaque.
"""

from __future__ import annotations

import io
from typing import Callable, Sequence

import numpy as np
from PIL import Image, ImageDraw

from polyapprox.errors import DimensionMismatch, InvalidArgument
from polyapprox.shapes.polygon import Polygon

WHITE = (255, 255, 255)

# (polygons, width, height) -> flat RGBA uint8 buffer
Renderer = Callable[[Sequence[Polygon], int, int], np.ndarray]


def render_image(polygons: Sequence[Polygon], width: int, height: int,
                 background: tuple[int, int, int] = WHITE) -> Image.Image:
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"canvas dimensions must be positive, got {width}x{height}")

    canvas = Image.new("RGB", (width, height), background)
    # An "RGBA" draw on an "RGB" image blends each fill over the canvas.
    draw = ImageDraw.Draw(canvas, "RGBA")
    for polygon in polygons:
        draw.polygon(polygon.xy(), fill=polygon.color.to_rgba8())
    return canvas.convert("RGBA")


def render_population(polygons: Sequence[Polygon], width: int, height: int,
                      background: tuple[int, int, int] = WHITE) -> np.ndarray:
    """Default renderer: composite as a flat ``width * height * 4`` buffer."""
    img = render_image(polygons, width, height, background)
    return np.asarray(img, dtype=np.uint8).reshape(-1)


def to_image(buffer, width: int, height: int) -> Image.Image:
    """Wrap a flat RGBA buffer (composite or difference overlay) as an image."""
    arr = np.asarray(buffer, dtype=np.uint8).reshape(-1)
    if arr.size != width * height * 4:
        raise DimensionMismatch(
            f"buffer of {arr.size} bytes does not fit a {width}x{height} RGBA image"
        )
    return Image.fromarray(arr.reshape(height, width, 4), "RGBA")


def to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
