"""Shared fixtures for the drafting kernel tests."""

import pytest

from beamsketch.model.contours import ContourTracer
from beamsketch.model.geometry import GeometryModel
from beamsketch.model.grid import ConditionGrid, ConditionState
from beamsketch.model.profiles import get_beam


class RecordingObserver:
    """Grid observer that remembers every notification."""

    def __init__(self):
        self.changes = []
        self.resets = []

    def cell_changed(self, row, col, is_flange, state):
        self.changes.append((row, col, is_flange, state))

    def grid_reset(self, grid):
        self.resets.append((grid.rows, grid.cols, grid.flange_length))


@pytest.fixture
def beam():
    return get_beam("W14x43")


@pytest.fixture
def geometry(beam):
    """Unit scale, so drawing coordinates are inches."""
    return GeometryModel(beam=beam, scale=1.0)


@pytest.fixture
def recorder():
    return RecordingObserver()


@pytest.fixture
def grid():
    g = ConditionGrid(length=60.0)
    g.reinitialize(rows=10, cols=60, web_cell_size=1.0, flange_cell_size=2.0)
    return g


@pytest.fixture
def traced_grid(geometry):
    """A 10x60 grid with a contour tracer attached."""
    tracer = ContourTracer(geometry)
    g = ConditionGrid(length=60.0, observers=[tracer])
    g.reinitialize(rows=10, cols=60, web_cell_size=1.0, flange_cell_size=2.0)
    return g, tracer


@pytest.fixture
def mark():
    """Advance a cell until it reaches the requested state."""

    def _mark(grid, row, col, state=ConditionState.SECTION_LOSS, is_flange=False):
        while grid.get_state(row, col, is_flange) != state:
            grid.advance_cell(row, col, is_flange)

    return _mark
