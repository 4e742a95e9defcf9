"""Tests for the condition grid state machine."""

import logging

import numpy as np
import pytest

from beamsketch.errors import InvalidGeometry, OutOfBounds
from beamsketch.model.geometry import GeometryModel
from beamsketch.model.grid import BOTTOM_FLANGE, TOP_FLANGE, ConditionGrid, ConditionState


class TestConditionState:
    """Test the four-state cycle."""

    def test_cycle_order(self):
        assert ConditionState.INTACT.next() == ConditionState.CORRODED
        assert ConditionState.CORRODED.next() == ConditionState.SECTION_LOSS
        assert ConditionState.SECTION_LOSS.next() == ConditionState.PERFORATED
        assert ConditionState.PERFORATED.next() == ConditionState.INTACT

    def test_damage_states(self):
        """Only section loss and perforation count as damage."""
        assert [s for s in ConditionState if s.is_damage] == [
            ConditionState.SECTION_LOSS,
            ConditionState.PERFORATED,
        ]
        assert ConditionState.SECTION_LOSS.label == "Section Loss"


class TestReinitialize:
    """Test wholesale grid replacement."""

    def test_extents_and_all_intact(self, grid):
        """10x60 web and 30-cell flanges, all Intact."""
        assert grid.web_states().shape == (10, 60)
        assert grid.flange_states(TOP_FLANGE).shape == (30,)
        assert grid.flange_states(BOTTOM_FLANGE).shape == (30,)
        assert grid.is_all_intact()
        assert grid.condition_summary()[ConditionState.INTACT] == 10 * 60 + 2 * 30

    def test_flange_count_rounds_up(self):
        g = ConditionGrid(length=60.0)
        g.reinitialize(4, 60, 1.0, 3.5)
        assert g.flange_length == 18

    def test_markup_is_discarded(self, grid):
        grid.advance_cell(3, 3)
        grid.advance_cell(0, 5, is_flange=True)
        grid.reinitialize(10, 60, 1.0, 2.0)
        assert grid.is_all_intact()

    def test_non_positive_cell_size(self, grid):
        with pytest.raises(InvalidGeometry):
            grid.reinitialize(10, 60, 0.0, 2.0)
        # Rejected before anything changed
        assert grid.web_states().shape == (10, 60)

    def test_out_of_range_cell_size_warns(self, grid, caplog):
        """Sizes outside the slider range still work but are logged."""
        with caplog.at_level(logging.WARNING, logger="beamsketch"):
            grid.reinitialize(2, 10, 5.0, 2.0)
        assert grid.web_states().shape == (2, 10)
        assert "outside the documented range" in caplog.text

    def test_for_geometry(self, beam):
        g = ConditionGrid.for_geometry(GeometryModel(beam=beam, scale=10.0))
        assert (g.rows, g.cols, g.flange_length) == (12, 60, 30)


class TestAdvanceCell:
    """Test single-step advancement."""

    def test_four_steps_return_to_intact(self, grid):
        states = [grid.advance_cell(4, 7) for _ in range(4)]
        assert states == [
            ConditionState.CORRODED,
            ConditionState.SECTION_LOSS,
            ConditionState.PERFORATED,
            ConditionState.INTACT,
        ]
        assert grid.is_all_intact()

    def test_only_target_cell_changes(self, grid):
        grid.advance_cell(2, 3)
        web = grid.web_states()
        assert web[2, 3] == ConditionState.CORRODED
        assert np.count_nonzero(web) == 1
        assert grid.get_state(2, 4) == ConditionState.INTACT

    def test_flange_cells(self, grid):
        grid.advance_cell(BOTTOM_FLANGE, 29, is_flange=True)
        assert grid.get_state(BOTTOM_FLANGE, 29, is_flange=True) == ConditionState.CORRODED
        assert grid.get_state(TOP_FLANGE, 29, is_flange=True) == ConditionState.INTACT
        assert grid.web_states().sum() == 0

    @pytest.mark.parametrize("row, col, is_flange", [
        (10, 0, False),
        (0, 60, False),
        (-1, 0, False),
        (2, 0, True),
        (0, 30, True),
        (1, -1, True),
    ])
    def test_out_of_bounds(self, grid, recorder, row, col, is_flange):
        """Out-of-range addresses raise and leave the grid untouched."""
        grid.add_observer(recorder)
        with pytest.raises(OutOfBounds):
            grid.advance_cell(row, col, is_flange)
        assert grid.is_all_intact()
        assert recorder.changes == []

    def test_out_of_bounds_is_index_error(self, grid):
        with pytest.raises(IndexError):
            grid.get_state(0, 99)

    def test_damaged_cells(self, grid, mark):
        mark(grid, 1, 1, ConditionState.PERFORATED)
        mark(grid, 0, 3, ConditionState.CORRODED, is_flange=True)
        damaged = {(c.row, c.col, c.is_flange, c.state) for c in grid.damaged_cells()}
        assert damaged == {
            (1, 1, False, ConditionState.PERFORATED),
            (0, 3, True, ConditionState.CORRODED),
        }


class TestObservers:
    """Test synchronous notification."""

    def test_change_notified_before_return(self, grid, recorder):
        grid.add_observer(recorder)
        grid.advance_cell(5, 5)
        grid.advance_cell(5, 5)
        assert recorder.changes == [
            (5, 5, False, ConditionState.CORRODED),
            (5, 5, False, ConditionState.SECTION_LOSS),
        ]

    def test_reset_notified(self, recorder):
        g = ConditionGrid(length=60.0, observers=[recorder])
        g.reinitialize(10, 60, 1.0, 2.0)
        assert recorder.resets == [(10, 60, 30)]

    def test_remove_observer(self, grid, recorder):
        grid.add_observer(recorder)
        grid.add_observer(recorder)
        grid.remove_observer(recorder)
        grid.advance_cell(0, 0)
        assert recorder.changes == []
