"""
Condition Grid
==============
The inspection grid laid over the beam elevation: a rows x cols matrix of web
cells plus one strip of cells along each flange. Every cell carries a
condition state that cycles Intact -> Corroded -> SectionLoss -> Perforated
-> Intact on each advance.

Storage is arena-indexed: one flat int8 array for the web (index
row * cols + col) and a (2, n) array for the flanges (row 0 = top,
row 1 = bottom).

Observers registered on the grid are notified synchronously after every
state change and after every reinitialisation, so anything derived from the
grid (contours, telemetry) is consistent by the time a call returns.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import logging
import math
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Protocol

import numpy as np

from beamsketch.config import (
    DEFAULT_FLANGE_CELL_SIZE,
    DEFAULT_WEB_CELL_SIZE,
    FLANGE_CELL_SIZE_RANGE,
    SPAN_LENGTH,
    WEB_CELL_SIZE_RANGE,
)
from beamsketch.errors import InvalidGeometry, OutOfBounds

if TYPE_CHECKING:
    import numpy.typing as npt
    from beamsketch.model.geometry import GeometryModel

logger = logging.getLogger(__name__)

TOP_FLANGE = 0
BOTTOM_FLANGE = 1


class ConditionState(IntEnum):
    """Condition of one grid cell, in advancement order."""
    INTACT = 0
    CORRODED = 1
    SECTION_LOSS = 2
    PERFORATED = 3

    def next(self) -> ConditionState:
        return ConditionState((self.value + 1) % len(ConditionState))

    @property
    def is_damage(self) -> bool:
        """States that are grouped into contours."""
        return self in (ConditionState.SECTION_LOSS, ConditionState.PERFORATED)

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class GridCell:
    row: int
    col: int
    is_flange: bool
    state: ConditionState = ConditionState.INTACT

    @property
    def key(self) -> tuple[int, int, bool]:
        return (self.row, self.col, self.is_flange)


class CellObserver(Protocol):
    """Receives grid notifications. Implemented by ContourTracer and by telemetry hooks."""

    def cell_changed(self, row: int, col: int, is_flange: bool, state: ConditionState) -> None: ...

    def grid_reset(self, grid: ConditionGrid) -> None: ...


class ConditionGrid:
    """Mutable inspection grid of one open sketch."""

    def __init__(
        self,
        length: float = SPAN_LENGTH,
        observers: Optional[Iterable[CellObserver]] = None,
    ) -> None:
        self.length = length
        self.rows: int = 0
        self.cols: int = 0
        self.web_cell_size: float = DEFAULT_WEB_CELL_SIZE
        self.flange_cell_size: float = DEFAULT_FLANGE_CELL_SIZE

        self._web: npt.NDArray[np.int8] = np.zeros(0, dtype=np.int8)
        self._flanges: npt.NDArray[np.int8] = np.zeros((2, 0), dtype=np.int8)
        self._observers: list[CellObserver] = list(observers or [])

    @classmethod
    def for_geometry(
        cls,
        geometry: GeometryModel,
        web_cell_size: float = DEFAULT_WEB_CELL_SIZE,
        flange_cell_size: float = DEFAULT_FLANGE_CELL_SIZE,
        observers: Optional[Iterable[CellObserver]] = None,
    ) -> ConditionGrid:
        """Grid sized to the clear web height and span of the given beam."""
        grid = cls(length=geometry.length, observers=observers)
        rows, cols = geometry.grid_extents(web_cell_size)
        grid.reinitialize(rows, cols, web_cell_size, flange_cell_size)
        return grid

    # --------------------------------------------------------------------------
    # Observers
    # --------------------------------------------------------------------------
    def add_observer(self, observer: CellObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: CellObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # --------------------------------------------------------------------------
    # Mutation
    # --------------------------------------------------------------------------
    def reinitialize(self, rows: int, cols: int, web_cell_size: float, flange_cell_size: float) -> None:
        """
        Replace the grid wholesale with all-Intact cells.

        Any markup is lost; there is no partial resize.
        """
        if rows < 0 or cols < 0:
            raise InvalidGeometry(f"Grid extents must be non-negative, got {rows}x{cols}")
        if web_cell_size <= 0 or flange_cell_size <= 0:
            raise InvalidGeometry(
                f"Cell sizes must be positive, got web={web_cell_size}, flange={flange_cell_size}"
            )
        WEB_CELL_SIZE_RANGE.check(web_cell_size)
        FLANGE_CELL_SIZE_RANGE.check(flange_cell_size)

        flange_count = math.ceil(self.length / flange_cell_size - 1e-9)

        self.rows = int(rows)
        self.cols = int(cols)
        self.web_cell_size = web_cell_size
        self.flange_cell_size = flange_cell_size
        self._web = np.zeros(self.rows * self.cols, dtype=np.int8)
        self._flanges = np.zeros((2, flange_count), dtype=np.int8)

        logger.info(
            f"Grid reinitialized: {self.rows}x{self.cols} web cells @ {web_cell_size:g}\", "
            f"{flange_count} flange cells @ {flange_cell_size:g}\""
        )
        for observer in self._observers:
            observer.grid_reset(self)

    def advance_cell(self, row: int, col: int, is_flange: bool = False) -> ConditionState:
        """Move a cell one step along the condition cycle and return its new state."""
        if is_flange:
            self._check_flange(row, col)
            new_state = ConditionState(int(self._flanges[row, col])).next()
            self._flanges[row, col] = new_state
        else:
            idx = self._web_index(row, col)
            new_state = ConditionState(int(self._web[idx])).next()
            self._web[idx] = new_state

        logger.debug(f"Cell ({row}, {col}, flange={is_flange}) -> {new_state.name}")
        for observer in self._observers:
            observer.cell_changed(row, col, is_flange, new_state)
        return new_state

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------
    @property
    def flange_length(self) -> int:
        return self._flanges.shape[1]

    def contains(self, row: int, col: int, is_flange: bool = False) -> bool:
        if is_flange:
            return row in (TOP_FLANGE, BOTTOM_FLANGE) and 0 <= col < self.flange_length
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get_state(self, row: int, col: int, is_flange: bool = False) -> ConditionState:
        if is_flange:
            self._check_flange(row, col)
            return ConditionState(int(self._flanges[row, col]))
        return ConditionState(int(self._web[self._web_index(row, col)]))

    def web_states(self) -> npt.NDArray[np.int8]:
        """Copy of the web states as a (rows, cols) matrix."""
        return self._web.reshape(self.rows, self.cols).copy()

    def flange_states(self, row: int) -> npt.NDArray[np.int8]:
        """Copy of one flange strip (0 = top, 1 = bottom)."""
        if row not in (TOP_FLANGE, BOTTOM_FLANGE):
            raise OutOfBounds(row, 0, True, (2, self.flange_length))
        return self._flanges[row].copy()

    def cells(self) -> Iterator[GridCell]:
        """Every cell, web first in row-major order, then top and bottom flange."""
        for idx, value in enumerate(self._web):
            row, col = divmod(idx, self.cols)
            yield GridCell(row, col, False, ConditionState(int(value)))
        for row in (TOP_FLANGE, BOTTOM_FLANGE):
            for col, value in enumerate(self._flanges[row]):
                yield GridCell(row, col, True, ConditionState(int(value)))

    def damaged_cells(self) -> list[GridCell]:
        return [cell for cell in self.cells() if cell.state != ConditionState.INTACT]

    def condition_summary(self) -> dict[ConditionState, int]:
        """Number of cells per state, web and flanges together."""
        counts = np.bincount(
            np.concatenate([self._web, self._flanges.ravel()]).astype(np.int64),
            minlength=len(ConditionState),
        )
        return {state: int(counts[state]) for state in ConditionState}

    def is_all_intact(self) -> bool:
        return not self._web.any() and not self._flanges.any()

    # --------------------------------------------------------------------------
    # Helpers
    # --------------------------------------------------------------------------
    def _web_index(self, row: int, col: int) -> int:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise OutOfBounds(row, col, False, (self.rows, self.cols))
        return row * self.cols + col

    def _check_flange(self, row: int, col: int) -> None:
        if not self.contains(row, col, is_flange=True):
            raise OutOfBounds(row, col, True, (2, self.flange_length))
