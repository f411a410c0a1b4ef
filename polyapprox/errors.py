"""Exception types raised by the polygon approximation engine."""

from __future__ import annotations


class PolyApproxError(Exception):
    """Base class for all polyapprox errors."""


class InvalidArgument(PolyApproxError, ValueError):
    """Malformed construction input (too few vertices, bad dimensions...)."""


class DimensionMismatch(PolyApproxError, ValueError):
    """Two pixel buffers that must line up do not have the same size."""


class NoSnapshot(PolyApproxError, RuntimeError):
    """A polygon was asked to mutate, restore or commit without a stash."""


class ImageLoadError(PolyApproxError, OSError):
    """The target image could not be read or decoded."""
