"""Tests for incremental damage contour tracing."""

import numpy as np
import pytest

from beamsketch.errors import OutOfBounds
from beamsketch.model.contours import ContourTracer, ContourType, trace_cell_loops
from beamsketch.model.geometry_utils import as_array, is_simple_polygon, polygon_signed_area
from beamsketch.model.grid import BOTTOM_FLANGE, TOP_FLANGE, ConditionGrid, ConditionState

TF = 0.53  # W14x43 flange thickness


class TestTraceCellLoops:
    """Test edge-cancellation boundary tracing on the lattice."""

    def test_single_square(self):
        loops = trace_cell_loops([(0, 0)])
        assert loops == [[(0, 0), (1, 0), (1, 1), (0, 1)]]

    def test_row_of_squares_drops_collinear_vertices(self):
        loops = trace_cell_loops([(0, 0), (1, 0), (2, 0)])
        assert len(loops) == 1
        assert sorted(loops[0]) == [(0, 0), (0, 1), (3, 0), (3, 1)]

    def test_ring_has_outer_loop_and_hole(self):
        squares = [(x, y) for x in range(3) for y in range(3) if (x, y) != (1, 1)]
        loops = trace_cell_loops(squares)
        areas = sorted(polygon_signed_area(np.array(loop, dtype=float)) for loop in loops)
        assert areas == [-1.0, 9.0]

    def test_diagonal_pinch_is_one_loop(self):
        """Squares touching at a corner give one loop through the pinch vertex."""
        loops = trace_cell_loops([(0, 0), (1, 1)])
        assert len(loops) == 1
        assert len(loops[0]) == 8
        assert loops[0].count((1, 1)) == 2


class TestMerging:
    """Test joining adjacent damaged cells."""

    def test_adjacent_cells_share_a_contour(self, traced_grid, mark):
        """(r,c) and (r,c+1) join; (r,c+5) stays separate."""
        grid, tracer = traced_grid
        mark(grid, 4, 10)
        mark(grid, 4, 11)
        assert len(tracer) == 1
        assert tracer.contour_id_for(4, 10) == tracer.contour_id_for(4, 11)

        mark(grid, 4, 15)
        assert len(tracer) == 2
        assert tracer.contour_id_for(4, 15) != tracer.contour_id_for(4, 10)

    def test_diagonal_neighbours_merge(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 2, 2)
        mark(grid, 3, 3)
        assert len(tracer) == 1
        contour = tracer.contours()[0]
        assert contour.area == pytest.approx(2.0)
        assert contour.holes == ()

    def test_bridge_cell_merges_into_oldest(self, traced_grid, mark):
        """A cell touching two contours merges them under the older id."""
        grid, tracer = traced_grid
        mark(grid, 0, 0)
        mark(grid, 0, 2)
        first = tracer.contour_id_for(0, 0)
        assert len(tracer) == 2

        mark(grid, 0, 1)
        assert len(tracer) == 1
        assert tracer.contour_id_for(0, 2) == first
        assert tracer.get(first).area == pytest.approx(3.0)

    def test_types_are_kept_apart(self, traced_grid, mark):
        """Section loss and perforation never share a contour."""
        grid, tracer = traced_grid
        mark(grid, 5, 5, ConditionState.SECTION_LOSS)
        mark(grid, 5, 6, ConditionState.PERFORATED)
        assert len(tracer) == 2
        assert len(tracer.contours(ContourType.SECTION_LOSS)) == 1
        assert len(tracer.contours(ContourType.PERFORATION)) == 1

    def test_corroded_cells_are_ignored(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 5, 5, ConditionState.CORRODED)
        assert len(tracer) == 0

    def test_web_and_flange_do_not_merge(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 0, 0)
        mark(grid, TOP_FLANGE, 0, is_flange=True)
        assert len(tracer) == 2

    def test_flanges_do_not_merge_with_each_other(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, TOP_FLANGE, 3, is_flange=True)
        mark(grid, TOP_FLANGE, 4, is_flange=True)
        mark(grid, BOTTOM_FLANGE, 3, is_flange=True)
        assert len(tracer) == 2
        assert tracer.contour_id_for(TOP_FLANGE, 3, True) == tracer.contour_id_for(TOP_FLANGE, 4, True)


class TestRemoval:
    """Test leaving and splitting contours."""

    def test_last_cell_removes_contour(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 1, 1)
        contour_id = tracer.contour_id_for(1, 1)
        assert len(tracer) == 1

        mark(grid, 1, 1, ConditionState.INTACT)
        assert len(tracer) == 0
        assert tracer.contour_id_for(1, 1) is None
        with pytest.raises(KeyError):
            tracer.get(contour_id)

    def test_reverted_cell_leaves_contour(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 1, 1)
        mark(grid, 1, 2)
        mark(grid, 1, 2, ConditionState.INTACT)
        assert len(tracer) == 1
        assert tracer.contours()[0].area == pytest.approx(1.0)

    def test_removal_splits_contour(self, traced_grid, mark):
        """Removing the middle of a bar leaves two contours; the left keeps the id."""
        grid, tracer = traced_grid
        for col in range(3):
            mark(grid, 0, col)
        original = tracer.contour_id_for(0, 0)

        # Section loss -> perforation moves the middle cell to its own contour
        grid.advance_cell(0, 1)
        assert len(tracer.contours(ContourType.SECTION_LOSS)) == 2
        assert len(tracer.contours(ContourType.PERFORATION)) == 1
        assert tracer.contour_id_for(0, 0) == original
        assert tracer.contour_id_for(0, 2) != original

    def test_out_of_bounds_leaves_contours_alone(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 0, 0)
        before = tracer.contours()
        with pytest.raises(OutOfBounds):
            grid.advance_cell(0, 60)
        assert tracer.contours() == before

    def test_malformed_reference_is_ignored(self, traced_grid):
        _, tracer = traced_grid
        tracer.cell_changed(5, 0, True, ConditionState.SECTION_LOSS)
        assert len(tracer) == 0

    def test_grid_reset_clears_contours(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 0, 0)
        grid.reinitialize(10, 60, 1.0, 2.0)
        assert len(tracer) == 0


class TestBoundary:
    """Test boundary polygons in drawing coordinates."""

    def test_single_web_cell(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 2, 7)
        contour = tracer.contours()[0]
        assert len(contour.boundary) == 4
        xs = sorted(p.x for p in contour.boundary)
        ys = sorted(p.y for p in contour.boundary)
        assert xs == pytest.approx([7.0, 7.0, 8.0, 8.0])
        assert ys == pytest.approx([TF + 2, TF + 2, TF + 3, TF + 3])

    def test_concave_shape_is_simple(self, traced_grid, mark):
        """An L-shaped region traces to a simple six-vertex polygon."""
        grid, tracer = traced_grid
        for row, col in [(0, 0), (1, 0), (2, 0), (2, 1), (2, 2)]:
            mark(grid, row, col)
        contour = tracer.contours()[0]
        assert len(contour.boundary) == 6
        assert is_simple_polygon(as_array(contour.boundary))
        assert contour.area == pytest.approx(5.0)

    def test_u_shape_is_simple(self, traced_grid, mark):
        grid, tracer = traced_grid
        cells = [(0, 0), (1, 0), (2, 0), (2, 1), (2, 2), (1, 2), (0, 2)]
        for row, col in cells:
            mark(grid, row, col)
        contour = tracer.contours()[0]
        assert len(contour.boundary) == 8
        assert is_simple_polygon(as_array(contour.boundary))
        assert contour.holes == ()

    def test_ring_reports_hole(self, traced_grid, mark):
        grid, tracer = traced_grid
        for row in range(3, 6):
            for col in range(10, 13):
                if (row, col) != (4, 11):
                    mark(grid, row, col)
        contour = tracer.contours()[0]
        assert len(contour.holes) == 1
        assert len(contour.boundary) == 4
        assert contour.area == pytest.approx(8.0)

    def test_boundary_scales_with_geometry(self, beam, mark):
        from beamsketch.model.geometry import GeometryModel

        tracer = ContourTracer(GeometryModel(beam=beam, scale=10.0))
        grid = ConditionGrid(length=60.0, observers=[tracer])
        grid.reinitialize(10, 60, 1.0, 2.0)
        mark(grid, 0, 0)
        contour = tracer.contours()[0]
        assert max(p.x for p in contour.boundary) == pytest.approx(10.0)
        assert min(p.y for p in contour.boundary) == pytest.approx(TF * 10.0)
        assert contour.area == pytest.approx(1.0)

    def test_top_flange_cells_span_flange_thickness(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, TOP_FLANGE, 3, is_flange=True)
        mark(grid, TOP_FLANGE, 4, is_flange=True)
        contour = tracer.contours()[0]
        assert contour.is_flange
        assert sorted(p.x for p in contour.boundary) == pytest.approx([6.0, 6.0, 10.0, 10.0])
        assert sorted(p.y for p in contour.boundary) == pytest.approx([0.0, 0.0, TF, TF])
        assert contour.area == pytest.approx(4.0 * TF)

    def test_bottom_flange_cells(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, BOTTOM_FLANGE, 0, ConditionState.PERFORATED, is_flange=True)
        contour = tracer.contours()[0]
        assert contour.type == ContourType.PERFORATION
        assert sorted(p.y for p in contour.boundary) == pytest.approx([13.7 - TF, 13.7 - TF, 13.7, 13.7])

    def test_last_flange_cell_is_clipped_to_span(self, geometry, mark):
        tracer = ContourTracer(geometry)
        grid = ConditionGrid(length=60.0, observers=[tracer])
        grid.reinitialize(10, 60, 1.0, 3.5)
        mark(grid, TOP_FLANGE, grid.flange_length - 1, is_flange=True)
        contour = tracer.contours()[0]
        assert max(p.x for p in contour.boundary) == pytest.approx(60.0)

    def test_to_dict(self, traced_grid, mark):
        grid, tracer = traced_grid
        mark(grid, 0, 0)
        data = tracer.contours()[0].to_dict()
        assert data["id"].startswith("contour-")
        assert data["type"] == "section_loss"
        assert data["cells"] == [[0, 0, False]]
        assert len(data["boundary"]) == 4
