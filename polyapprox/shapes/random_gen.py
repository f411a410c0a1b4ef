"""Random vertex and color generation.

All entropy comes from the module-level ``random`` source, so a single
``random.seed(...)`` makes a whole run reproducible.
"""

from __future__ import annotations

import random

from polyapprox.errors import InvalidArgument
from polyapprox.shapes.primitives import Color, Point


def random_point(max_x: int, max_y: int) -> Point:
    """Uniform point with x in [0, max_x) and y in [0, max_y)."""
    if max_x <= 0 or max_y <= 0:
        raise InvalidArgument(f"canvas bounds must be positive, got {max_x}x{max_y}")
    return Point(random.randrange(max_x), random.randrange(max_y))


def random_points(count: int, max_x: int, max_y: int) -> list[Point]:
    """Return ``count`` points in generation order.

    The points are not sorted into convex position, so self-intersecting
    polygons are expected.
    """
    if count < 1:
        raise InvalidArgument(f"point count must be positive, got {count}")
    return [random_point(max_x, max_y) for _ in range(count)]


def random_color() -> Color:
    return Color(
        r=random.randint(0, 255),
        g=random.randint(0, 255),
        b=random.randint(0, 255),
        a=random.random(),
    )
