import numpy as np
import pytest
from PIL import Image

from polyapprox.errors import DimensionMismatch, ImageLoadError, InvalidArgument
from polyapprox.image_source import TargetImage, load_target
from polyapprox.shapes.polygon import Polygon
from polyapprox.shapes.primitives import Color, Point
from polyapprox.shapes.renderer import render_population, to_image

COVER_ALL = [Point(0, 0), Point(200, 0), Point(0, 200)]


def _pixels(buf) -> np.ndarray:
    return np.asarray(buf).reshape(-1, 4)


def test_empty_population_renders_white() -> None:
    buf = render_population([], 6, 4)
    assert buf.dtype == np.uint8
    assert buf.shape == (6 * 4 * 4,)
    assert (buf == 255).all()


def test_opaque_polygon_covers_canvas() -> None:
    buf = render_population([Polygon(COVER_ALL, Color(255, 0, 0, 1.0))], 10, 10)
    assert (_pixels(buf) == [255, 0, 0, 255]).all()


def test_later_polygons_paint_over_earlier() -> None:
    polys = [
        Polygon(COVER_ALL, Color(255, 0, 0, 1.0)),
        Polygon(COVER_ALL, Color(0, 0, 255, 1.0)),
    ]
    buf = render_population(polys, 5, 5)
    assert (_pixels(buf) == [0, 0, 255, 255]).all()


def test_translucent_fill_blends_and_stays_opaque() -> None:
    buf = render_population([Polygon(COVER_ALL, Color(0, 0, 0, 0.5))], 4, 4)
    px = _pixels(buf)
    assert (px[:, 3] == 255).all()
    assert (px[:, 0] > 115).all() and (px[:, 0] < 140).all()


def test_invisible_polygon_changes_nothing() -> None:
    buf = render_population([Polygon(COVER_ALL, Color(0, 0, 0, 0.0))], 4, 4)
    assert (buf == 255).all()


def test_render_rejects_bad_dimensions() -> None:
    with pytest.raises(InvalidArgument):
        render_population([], 0, 4)


def test_to_image_checks_size() -> None:
    img = to_image(np.zeros(2 * 3 * 4, dtype=np.uint8), 2, 3)
    assert img.size == (2, 3)
    assert img.mode == "RGBA"
    with pytest.raises(DimensionMismatch):
        to_image(np.zeros(10, dtype=np.uint8), 2, 3)


def test_target_image_validates_length() -> None:
    with pytest.raises(DimensionMismatch):
        TargetImage(2, 2, np.zeros(15, dtype=np.uint8))
    with pytest.raises(InvalidArgument):
        TargetImage(0, 2, np.zeros(0, dtype=np.uint8))


def test_target_pixels_are_read_only(flat_target) -> None:
    assert flat_target.byte_length == 10 * 10 * 4
    with pytest.raises(ValueError):
        flat_target.pixels[0] = 1


def test_load_target_converts_to_rgba(tmp_path) -> None:
    path = tmp_path / "target.png"
    Image.new("RGB", (8, 5), (1, 2, 3)).save(path)
    target = load_target(path)
    assert (target.width, target.height) == (8, 5)
    assert (_pixels(target.pixels) == [1, 2, 3, 255]).all()


def test_load_target_downscales(tmp_path) -> None:
    path = tmp_path / "big.png"
    Image.new("RGB", (200, 100), (9, 9, 9)).save(path)
    target = load_target(path, max_size=50)
    assert (target.width, target.height) == (50, 25)


def test_load_target_missing_file(tmp_path) -> None:
    with pytest.raises(ImageLoadError):
        load_target(tmp_path / "nope.png")


def test_load_target_not_an_image(tmp_path) -> None:
    path = tmp_path / "junk.png"
    path.write_bytes(b"definitely not a png")
    with pytest.raises(ImageLoadError):
        load_target(path)
