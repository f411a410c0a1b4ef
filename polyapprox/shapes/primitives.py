"""Immutable geometric and color primitives.

A vertex is never edited in place: mutation swaps a whole ``Point`` (or
``Color``) for a fresh one, so snapshots can share instances safely.
"""

from __future__ import annotations

from dataclasses import dataclass

from polyapprox.errors import InvalidArgument


@dataclass(frozen=True)
class Point:
    x: int
    y: int

    def __post_init__(self) -> None:
        if self.x < 0 or self.y < 0:
            raise InvalidArgument(f"point coordinates must be non-negative, got ({self.x}, {self.y})")

    def to_list(self) -> list[int]:
        return [self.x, self.y]

    @classmethod
    def from_list(cls, xy) -> Point:
        x, y = xy
        return cls(int(x), int(y))


@dataclass(frozen=True)
class Color:
    """Uniform fill: r, g, b in [0, 255], alpha in [0, 1] like CSS rgba()."""

    r: int
    g: int
    b: int
    a: float = 1.0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            v = getattr(self, name)
            if not 0 <= v <= 255:
                raise InvalidArgument(f"channel {name} out of range [0, 255]: {v}")
        if not 0.0 <= self.a <= 1.0:
            raise InvalidArgument(f"alpha out of range [0, 1]: {self.a}")

    def to_rgba8(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, int(round(self.a * 255)))

    def css(self) -> str:
        return f"rgba({self.r},{self.g},{self.b},{self.a})"

    def to_list(self) -> list:
        return [self.r, self.g, self.b, self.a]

    @classmethod
    def from_list(cls, rgba) -> Color:
        r, g, b, a = rgba
        return cls(int(r), int(g), int(b), float(a))
