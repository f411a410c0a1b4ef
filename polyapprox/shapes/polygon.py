"""Mutable polygon with a single-slot stash for speculative mutation.

Lifecycle of one trial::

    CLEAN --stash()--> PENDING --mutate()*--> PENDING --pop()----> CLEAN (reverted)
                                                      `-commit()-> CLEAN (kept)

``mutate``, ``pop`` and ``commit`` outside ``PENDING`` raise ``NoSnapshot``.
A second ``stash`` while ``PENDING`` simply replaces the snapshot.
"""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass

from polyapprox.errors import InvalidArgument, NoSnapshot
from polyapprox.shapes.primitives import Color, Point
from polyapprox.shapes.random_gen import random_color, random_point, random_points

MIN_VERTICES = 3


class PolygonState(enum.Enum):
    CLEAN = "clean"
    PENDING = "pending"


@dataclass(frozen=True)
class _Snapshot:
    points: tuple[Point, ...]
    color: Color


class Polygon:
    def __init__(self, points, color: Color):
        points = tuple(points)
        if len(points) < MIN_VERTICES:
            raise InvalidArgument(
                f"a polygon needs at least {MIN_VERTICES} vertices, got {len(points)}"
            )
        self._points: list[Point] = list(points)
        self.color: Color = color
        self._snapshot: _Snapshot | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    @property
    def vertex_count(self) -> int:
        return len(self._points)

    @property
    def state(self) -> PolygonState:
        return PolygonState.CLEAN if self._snapshot is None else PolygonState.PENDING

    def xy(self) -> list[tuple[int, int]]:
        """Vertex list in the form ImageDraw.polygon expects."""
        return [(p.x, p.y) for p in self._points]

    # ------------------------------------------------------------------
    # Trial protocol
    # ------------------------------------------------------------------

    def stash(self) -> None:
        self._snapshot = _Snapshot(tuple(self._points), self.color)

    def mutate(self, max_x: int, max_y: int, color_rate: float | None = None) -> None:
        """Apply exactly one random change: replace one vertex or the color.

        By default each of the ``N + 1`` slots (N vertices, one color) is
        equally likely.  ``color_rate`` fixes the probability of the color
        slot instead; the vertices share the rest evenly.
        """
        if self._snapshot is None:
            raise NoSnapshot("mutate() called without a prior stash()")

        if color_rate is None:
            color_rate = 1.0 / (len(self._points) + 1)
        elif not 0.0 <= color_rate <= 1.0:
            raise InvalidArgument(f"color_rate must be in [0, 1], got {color_rate}")

        if random.random() < color_rate:
            self.color = random_color()
        else:
            idx = random.randrange(len(self._points))
            self._points[idx] = random_point(max_x, max_y)

    def pop(self) -> None:
        """Restore the stashed snapshot, discarding every change since."""
        if self._snapshot is None:
            raise NoSnapshot("pop() called without a prior stash()")
        self._points = list(self._snapshot.points)
        self.color = self._snapshot.color
        self._snapshot = None

    def commit(self) -> None:
        """Keep the current state and drop the snapshot."""
        if self._snapshot is None:
            raise NoSnapshot("commit() called without a prior stash()")
        self._snapshot = None

    # ------------------------------------------------------------------
    # Construction / serialization
    # ------------------------------------------------------------------

    @classmethod
    def create_random(cls, vertex_count: int, max_x: int, max_y: int) -> Polygon:
        return cls(random_points(vertex_count, max_x, max_y), random_color())

    def copy(self) -> Polygon:
        return Polygon(self._points, self.color)

    def to_dict(self) -> dict:
        return {
            "points": [p.to_list() for p in self._points],
            "color": self.color.to_list(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Polygon:
        return cls(
            points=[Point.from_list(p) for p in d["points"]],
            color=Color.from_list(d["color"]),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Polygon):
            return NotImplemented
        return self._points == other._points and self.color == other.color

    def __repr__(self) -> str:
        return f"Polygon(points={self.points!r}, color={self.color!r}, state={self.state.value})"
