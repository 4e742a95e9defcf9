"""
Kernel Errors
=============
The three failure kinds of the drafting kernel.

- InvalidGeometry: non-positive or physically impossible dimensions. Fatal
  to the call that raised it; the caller recovers by supplying valid input.
- OutOfBounds: a cell address outside the current grid. Raised before any
  state is touched, so the grid and its contours stay consistent.
- UnresolvedCollision: dimension layout could not be fully de-overlapped
  within the iteration cap. Never raised; attached to the layout result
  as a warning.
"""
from __future__ import annotations


class KernelError(Exception):
    """Base class for all drafting kernel errors."""


class InvalidGeometry(KernelError, ValueError):
    """Dimensions that cannot produce a valid beam drawing."""


class OutOfBounds(KernelError, IndexError):
    """A grid cell address outside the current grid extents."""

    def __init__(self, row: int, col: int, is_flange: bool, extents: tuple[int, int]) -> None:
        self.row = row
        self.col = col
        self.is_flange = is_flange
        self.extents = extents
        region = "flange" if is_flange else "web"
        super().__init__(
            f"{region} cell ({row}, {col}) is outside the grid extents {extents[0]}x{extents[1]}"
        )


class UnresolvedCollision(KernelError, UserWarning):
    """Dimension placements that still overlap after the last layout pass."""

    def __init__(self, iterations: int, pairs: list[tuple[int, int]]) -> None:
        self.iterations = iterations
        self.pairs = pairs
        super().__init__(
            f"{len(pairs)} dimension pair(s) still overlap after {iterations} layout iteration(s)"
        )
