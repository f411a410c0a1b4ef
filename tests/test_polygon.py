import pytest

from polyapprox.errors import InvalidArgument, NoSnapshot
from polyapprox.shapes.polygon import Polygon, PolygonState
from polyapprox.shapes.primitives import Color, Point
from polyapprox.shapes.random_gen import random_color, random_points


def test_random_points_within_bounds() -> None:
    pts = random_points(500, 7, 3)
    assert len(pts) == 500
    assert all(0 <= p.x < 7 and 0 <= p.y < 3 for p in pts)


def test_random_points_rejects_bad_bounds() -> None:
    with pytest.raises(InvalidArgument):
        random_points(3, 0, 10)
    with pytest.raises(InvalidArgument):
        random_points(0, 10, 10)


def test_random_color_channels_in_range() -> None:
    for _ in range(200):
        c = random_color()
        assert all(0 <= v <= 255 for v in (c.r, c.g, c.b))
        assert 0.0 <= c.a <= 1.0


def test_color_rejects_out_of_range() -> None:
    with pytest.raises(InvalidArgument):
        Color(256, 0, 0, 0.5)
    with pytest.raises(InvalidArgument):
        Color(0, 0, 0, 1.5)


def test_color_to_rgba8_scales_alpha() -> None:
    assert Color(1, 2, 3, 1.0).to_rgba8() == (1, 2, 3, 255)
    assert Color(1, 2, 3, 0.0).to_rgba8() == (1, 2, 3, 0)


def test_polygon_rejects_too_few_vertices() -> None:
    with pytest.raises(InvalidArgument):
        Polygon([], Color(0, 0, 0))
    with pytest.raises(InvalidArgument):
        Polygon([Point(0, 0), Point(1, 1)], Color(0, 0, 0))


def test_stash_mutate_pop_restores_exactly(triangle) -> None:
    p0, c0 = triangle.points, triangle.color
    for _ in range(50):
        triangle.stash()
        triangle.mutate(100, 100)
        triangle.pop()
        assert triangle.points == p0
        assert triangle.color == c0
        assert triangle.state is PolygonState.CLEAN


def test_pop_reverts_several_mutations(triangle) -> None:
    p0, c0 = triangle.points, triangle.color
    triangle.stash()
    for _ in range(10):
        triangle.mutate(100, 100)
    triangle.pop()
    assert (triangle.points, triangle.color) == (p0, c0)


def test_mutate_without_stash_raises(triangle) -> None:
    with pytest.raises(NoSnapshot):
        triangle.mutate(10, 10)


def test_pop_without_stash_raises(triangle) -> None:
    with pytest.raises(NoSnapshot):
        triangle.pop()


def test_pop_after_commit_raises(triangle) -> None:
    triangle.stash()
    triangle.mutate(10, 10)
    triangle.commit()
    assert triangle.state is PolygonState.CLEAN
    with pytest.raises(NoSnapshot):
        triangle.pop()


def test_commit_keeps_mutation(triangle) -> None:
    triangle.stash()
    triangle.mutate(1000, 1000, color_rate=1.0)
    mutated = triangle.color
    triangle.commit()
    assert triangle.color == mutated


def test_second_stash_overwrites_snapshot(triangle) -> None:
    triangle.stash()
    triangle.mutate(1000, 1000, color_rate=1.0)
    after_first = (triangle.points, triangle.color)
    triangle.stash()
    triangle.mutate(1000, 1000)
    triangle.pop()
    assert (triangle.points, triangle.color) == after_first


def test_mutate_changes_only_color_when_color_rate_is_one(triangle) -> None:
    p0 = triangle.points
    triangle.stash()
    triangle.mutate(1000, 1000, color_rate=1.0)
    assert triangle.points == p0


def test_mutate_changes_at_most_one_vertex(triangle) -> None:
    for _ in range(50):
        before = triangle.points
        c0 = triangle.color
        triangle.stash()
        triangle.mutate(1000, 1000, color_rate=0.0)
        changed = sum(a != b for a, b in zip(before, triangle.points))
        assert changed <= 1
        assert triangle.color == c0
        assert triangle.vertex_count == 3
        triangle.commit()


def test_mutate_rejects_bad_color_rate(triangle) -> None:
    triangle.stash()
    with pytest.raises(InvalidArgument):
        triangle.mutate(10, 10, color_rate=1.5)


def test_dict_round_trip(triangle) -> None:
    assert Polygon.from_dict(triangle.to_dict()) == triangle


def test_random_polygon_has_requested_vertices() -> None:
    poly = Polygon.create_random(5, 20, 30)
    assert poly.vertex_count == 5
    assert all(p.x < 20 and p.y < 30 for p in poly.points)
