#!/usr/bin/env python3
"""Polygon image approximation -- CLI Interface.

Hill-climbing loop:
1. Mutates one polygon of the population (round-robin)
2. Renders the composite and scores it against the target
3. Keeps the mutation only if the match improved
4. Repeat until a stopping condition fires or Ctrl-C

Usage:
    python -m polyapprox.main IMAGE [--polygons N] [--vertices N] [--max-rounds N] ...
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path

from polyapprox.errors import PolyApproxError
from polyapprox.image_source import load_target
from polyapprox.optimizer import Optimizer
from polyapprox.shapes.renderer import to_image

OUTPUT_DIR = Path("output")


def parse_args(argv: list[str] | None = None):
    p = argparse.ArgumentParser(description="Approximate an image with semi-transparent polygons")
    p.add_argument("image", type=Path, help="Target image file")
    p.add_argument("--polygons", type=int, default=100, help="Population size (default: 100)")
    p.add_argument("--vertices", type=int, default=3, help="Vertices per polygon (default: 3)")
    p.add_argument("--max-rounds", type=int, default=None, help="Stop after N mutations")
    p.add_argument("--target-match", type=float, default=None,
                   help="Stop once the match reaches this percentage")
    p.add_argument("--stagnation", type=int, default=None,
                   help="Stop after N consecutive rejected mutations")
    p.add_argument("--color-rate", type=float, default=None,
                   help="Probability a mutation changes the color (default: uniform)")
    p.add_argument("--max-size", type=int, default=None,
                   help="Downscale the target so neither side exceeds this (px)")
    p.add_argument("--seed", type=int, default=None, help="Random seed")
    p.add_argument("--report-every", type=int, default=1000,
                   help="Print progress every N rounds (default: 1000)")
    p.add_argument("--output", type=Path, default=OUTPUT_DIR, help="Output directory")
    p.add_argument("--resume", type=Path, default=None,
                   help="Path to a saved polygons JSON to continue from")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _build_config(args) -> dict:
    return {
        "polygon_count": args.polygons,
        "vertex_count": args.vertices,
        "color_rate": args.color_rate,
        "max_rounds": args.max_rounds,
        "target_match": args.target_match,
        "stagnation_rounds": args.stagnation,
    }


def _save_outputs(opt: Optimizer, output: Path) -> None:
    output.mkdir(parents=True, exist_ok=True)
    final_path = output / "final.png"
    diff_path = output / "difference.png"
    poly_path = output / "polygons.json"

    to_image(opt.render(), opt.width, opt.height).save(final_path)
    to_image(opt.difference_map(), opt.width, opt.height).save(diff_path)
    opt.save_polygons(poly_path)

    print(f"  Composite saved to: {final_path}")
    print(f"  Difference map saved to: {diff_path}")
    print(f"  Polygons saved to: {poly_path}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.seed is not None:
        random.seed(args.seed)

    try:
        target = load_target(args.image, max_size=args.max_size)
        polygons = None
        if args.resume:
            polygons = Optimizer.load_polygons(args.resume, target.width, target.height)
        opt = Optimizer(target, _build_config(args), polygons=polygons)
    except PolyApproxError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: could not read saved polygons: {e}", file=sys.stderr)
        return 1

    print("=== Polygon Approximation ===")
    print(f"Target: {args.image} ({opt.width}x{opt.height})")
    if args.resume:
        print(f"Resumed from: {args.resume} (--polygons/--vertices ignored)")
    print(f"Polygons: {opt.polygon_count} | Vertices: {opt.vertex_count}")
    print()

    report_every = max(1, args.report_every)
    reason = None
    try:
        while reason is None:
            reason = opt.run(rounds=report_every)
            print(f"  mutations {opt.mutations:>9d} | breakthroughs {opt.breakthroughs:>7d} "
                  f"| match {opt.last_match:.4f}%")
    except KeyboardInterrupt:
        print("\nInterrupted.")
    except PolyApproxError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if reason is not None:
        print(f"Stopped: {reason.value}")
    _save_outputs(opt, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
