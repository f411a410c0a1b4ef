"""Raw pixel-difference scoring between two RGBA buffers.

Buffers are flat sequences of interleaved RGBA bytes (``width * height * 4``
entries).  Only the R, G and B channels are scored; alpha is ignored.
"""

from __future__ import annotations

import numpy as np

from polyapprox.errors import DimensionMismatch, InvalidArgument

SCORED_CHANNELS = 3
CHANNEL_MAX = 255
# Largest per-pixel difference over the scored channels.
PIXEL_MAX = SCORED_CHANNELS * CHANNEL_MAX


def _as_flat(buffer) -> np.ndarray:
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return np.frombuffer(buffer, dtype=np.uint8)
    return np.asarray(buffer).reshape(-1)


def _channel_deltas(target_buffer, rendered_buffer) -> np.ndarray:
    target = _as_flat(target_buffer)
    rendered = _as_flat(rendered_buffer)
    if target.size != rendered.size:
        raise DimensionMismatch(
            f"buffer lengths differ: target {target.size} vs rendered {rendered.size}"
        )
    if target.size % 4:
        raise InvalidArgument(f"buffer length {target.size} is not a whole number of RGBA pixels")
    target = target.astype(np.int32).reshape(-1, 4)
    rendered = rendered.astype(np.int32).reshape(-1, 4)
    return np.abs(target[:, :SCORED_CHANNELS] - rendered[:, :SCORED_CHANNELS])


def max_difference(width: int, height: int) -> int:
    """Worst-case total difference for an image of this size."""
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"image dimensions must be positive, got {width}x{height}")
    return width * height * PIXEL_MAX


def pixel_difference(target_buffer, rendered_buffer) -> int:
    """Sum of |dR| + |dG| + |dB| over every pixel."""
    return int(_channel_deltas(target_buffer, rendered_buffer).sum())


def match_percentage(difference: int, max_diff: int) -> float:
    """Normalized similarity: 100 means identical on the scored channels.

    ``max_diff`` is a normalization constant, not a bound, so the result
    can go negative for out-of-range inputs.
    """
    if max_diff <= 0:
        raise InvalidArgument(f"max difference must be positive, got {max_diff}")
    return 100.0 * (1.0 - difference / max_diff)


def visualize(target_buffer, rendered_buffer) -> np.ndarray:
    """Diagnostic overlay: black pixels whose alpha grows with local similarity.

    alpha = (765 - dR - dG - dB) / 3, rounded half to even as an 8-bit
    clamped array would store it.
    """
    per_pixel = _channel_deltas(target_buffer, rendered_buffer).sum(axis=1)
    out = np.zeros((per_pixel.size, 4), dtype=np.uint8)
    alpha = np.rint((PIXEL_MAX - per_pixel) / SCORED_CHANNELS)
    out[:, 3] = np.clip(alpha, 0, CHANNEL_MAX).astype(np.uint8)
    return out.reshape(-1)
