import random

import pytest

from polyapprox.image_source import TargetImage
from polyapprox.shapes.polygon import Polygon
from polyapprox.shapes.primitives import Color, Point


@pytest.fixture(autouse=True)
def seeded_random():
    random.seed(1234)
    yield


@pytest.fixture
def triangle() -> Polygon:
    return Polygon([Point(0, 0), Point(5, 0), Point(0, 5)], Color(10, 20, 30, 0.5))


@pytest.fixture
def flat_target() -> TargetImage:
    return TargetImage.solid(10, 10, (200, 40, 90, 255))
