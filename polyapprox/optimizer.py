"""Stochastic hill-climbing over a fixed population of polygons.

Each round picks the next polygon round-robin, stashes and mutates it,
renders the whole population, scores the composite against the target,
and keeps the mutation only if the match strictly improves.  The best
match (``last_match``) therefore never decreases.

One ``Optimizer`` instance is one run; start a new instance for a new
target image.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

import numpy as np

from polyapprox.errors import InvalidArgument
from polyapprox.image_source import TargetImage
from polyapprox.scoring.difference import (
    match_percentage,
    max_difference,
    pixel_difference,
    visualize,
)
from polyapprox.shapes.polygon import MIN_VERTICES, Polygon
from polyapprox.shapes.renderer import Renderer, render_population

logger = logging.getLogger(__name__)

# (match, breakthroughs, mutations)
StatsSink = Callable[[float, int, int], None]

DEFAULT_CONFIG = {
    "polygon_count": 100,
    "vertex_count": 3,
    # Probability that a mutation replaces the color instead of a vertex
    # (None = uniform over vertices + color).
    "color_rate": None,

    # Stopping policy (None = disabled)
    "max_rounds": None,
    "target_match": None,
    "stagnation_rounds": None,
}

_LOG_EVERY_BREAKTHROUGHS = 100


class StopReason(enum.Enum):
    MAX_ROUNDS = "max_rounds"
    TARGET_MATCH = "target_match"
    STAGNATION = "stagnation"


@dataclass(frozen=True)
class RoundResult:
    index: int
    match: float
    accepted: bool
    last_match: float
    mutations: int
    breakthroughs: int


def _validate_config(cfg: dict) -> None:
    if cfg["polygon_count"] < 1:
        raise InvalidArgument(f"polygon_count must be >= 1, got {cfg['polygon_count']}")
    if cfg["vertex_count"] < MIN_VERTICES:
        raise InvalidArgument(
            f"vertex_count must be >= {MIN_VERTICES}, got {cfg['vertex_count']}"
        )
    rate = cfg["color_rate"]
    if rate is not None and not 0.0 <= rate <= 1.0:
        raise InvalidArgument(f"color_rate must be in [0, 1], got {rate}")
    for key in ("max_rounds", "stagnation_rounds"):
        if cfg[key] is not None and cfg[key] < 1:
            raise InvalidArgument(f"{key} must be >= 1, got {cfg[key]}")


class Optimizer:
    def __init__(
        self,
        target: TargetImage,
        config: dict | None = None,
        renderer: Renderer = render_population,
        stats_sink: StatsSink | None = None,
        polygons: Sequence[Polygon] | None = None,
    ):
        unknown = set(config or {}) - set(DEFAULT_CONFIG)
        if unknown:
            raise InvalidArgument(f"unknown config keys: {sorted(unknown)}")
        self.config = {**DEFAULT_CONFIG, **(config or {})}

        self.target = target
        self.width = target.width
        self.height = target.height
        self.renderer = renderer
        self.stats_sink = stats_sink

        if polygons is not None:
            polygons = list(polygons)
            if not polygons:
                raise InvalidArgument("cannot resume from an empty polygon list")
            self.config["polygon_count"] = len(polygons)
            self.config["vertex_count"] = polygons[0].vertex_count
            if any(p.vertex_count != self.config["vertex_count"] for p in polygons):
                raise InvalidArgument("all polygons must have the same vertex count")
        _validate_config(self.config)

        self.polygon_count: int = self.config["polygon_count"]
        self.vertex_count: int = self.config["vertex_count"]
        self.max_difference: int = max_difference(self.width, self.height)

        self.last_match: float = 0.0
        self.next_mutable: int = 0
        self.mutations: int = 0
        self.breakthroughs: int = 0
        self.stale_rounds: int = 0

        if polygons is not None:
            self.polygons: list[Polygon] = [p.copy() for p in polygons]
            # A resumed population already has a score; climbing continues from it.
            self.last_match = self.current_match()
        else:
            self.polygons = self._generate_initial_polygons()

        logger.debug(
            "optimizer ready: %d polygons x %d vertices on %dx%d target",
            self.polygon_count, self.vertex_count, self.width, self.height,
        )

    def _generate_initial_polygons(self) -> list[Polygon]:
        return [
            Polygon.create_random(self.vertex_count, self.width, self.height)
            for _ in range(self.polygon_count)
        ]

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def render(self) -> np.ndarray:
        return self.renderer(self.polygons, self.width, self.height)

    def _score(self, rendered) -> float:
        diff = pixel_difference(self.target.pixels, rendered)
        return match_percentage(diff, self.max_difference)

    def current_match(self) -> float:
        """Score the population as it stands, without mutating anything."""
        return self._score(self.render())

    def difference_map(self) -> np.ndarray:
        return visualize(self.target.pixels, self.render())

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def step(self) -> RoundResult:
        """Run one select -> mutate -> render -> score -> accept/reject round.

        If rendering or scoring raises, the mutation is reverted, no
        counter moves, and the error propagates.
        """
        index = self.next_mutable
        poly = self.polygons[index]
        poly.stash()
        try:
            poly.mutate(self.width, self.height, self.config["color_rate"])
            match = self._score(self.render())
        except BaseException:
            # Ctrl-C included: never leave an unscored mutation applied.
            poly.pop()
            raise

        accepted = match > self.last_match
        if accepted:
            poly.commit()
            self.last_match = match
            self.breakthroughs += 1
            self.stale_rounds = 0
            if self.breakthroughs % _LOG_EVERY_BREAKTHROUGHS == 0:
                logger.info(
                    "breakthrough %d at mutation %d: match %.4f%%",
                    self.breakthroughs, self.mutations + 1, match,
                )
        else:
            poly.pop()
            self.stale_rounds += 1

        self.mutations += 1
        self.next_mutable = (index + 1) % self.polygon_count

        if self.stats_sink is not None:
            self.stats_sink(self.last_match, self.breakthroughs, self.mutations)

        return RoundResult(
            index=index,
            match=match,
            accepted=accepted,
            last_match=self.last_match,
            mutations=self.mutations,
            breakthroughs=self.breakthroughs,
        )

    def stop_reason(self) -> StopReason | None:
        cfg = self.config
        if cfg["max_rounds"] is not None and self.mutations >= cfg["max_rounds"]:
            return StopReason.MAX_ROUNDS
        if cfg["target_match"] is not None and self.last_match >= cfg["target_match"]:
            return StopReason.TARGET_MATCH
        if (cfg["stagnation_rounds"] is not None
                and self.stale_rounds >= cfg["stagnation_rounds"]):
            return StopReason.STAGNATION
        return None

    def run(self, rounds: int | None = None) -> StopReason | None:
        """Step until the stopping policy fires or ``rounds`` rounds have run.

        Returns the stop reason, or None when the round budget ran out
        first.  With neither configured this loops until interrupted.
        """
        if rounds is not None and rounds < 0:
            raise InvalidArgument(f"rounds must be non-negative, got {rounds}")
        done = 0
        while True:
            reason = self.stop_reason()
            if reason is not None:
                logger.info(
                    "stopped (%s) after %d mutations, match %.4f%%",
                    reason.value, self.mutations, self.last_match,
                )
                return reason
            if rounds is not None and done >= rounds:
                return None
            self.step()
            done += 1

    # ------------------------------------------------------------------
    # Stats / serialization
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        return {
            "match": self.last_match,
            "breakthroughs": self.breakthroughs,
            "mutations": self.mutations,
            "next_mutable": self.next_mutable,
            "stale_rounds": self.stale_rounds,
            "polygon_count": self.polygon_count,
            "vertex_count": self.vertex_count,
            "width": self.width,
            "height": self.height,
        }

    def save_polygons(self, path: str | Path) -> None:
        path = Path(path)
        data = {
            "width": self.width,
            "height": self.height,
            "polygons": [p.to_dict() for p in self.polygons],
        }
        path.write_text(json.dumps(data, indent=2))

    @staticmethod
    def load_polygons(path: str | Path, width: int | None = None,
                      height: int | None = None) -> list[Polygon]:
        """Read a saved population.

        When ``width``/``height`` are given they must match the canvas the
        population was saved from.
        """
        path = Path(path)
        data = json.loads(path.read_text())
        saved = (data.get("width"), data.get("height"))
        if width is not None and height is not None and saved != (width, height):
            raise InvalidArgument(
                f"saved polygons are for a {saved[0]}x{saved[1]} canvas, "
                f"target is {width}x{height}"
            )
        return [Polygon.from_dict(d) for d in data["polygons"]]
