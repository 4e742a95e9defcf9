"""
Damage Contours
===============
Groups contiguous damaged cells of the condition grid into reportable regions.

A contour holds cells of one damage class (section loss or perforation) that
are 8-connected to each other. Web cells connect to web cells, and flange
cells connect to neighbouring cells of the same flange only.

The tracer listens to the grid and updates incrementally:
  1. a changed cell leaves the contour holding it; the contour is dropped if
     empty, or split if the removal disconnected it;
  2. a newly damaged cell joins the adjacent contour of its class (merging
     several adjacent contours into the oldest) or starts a new one;
  3. the boundary of every touched contour is re-traced.

Boundaries are traced on the cell union: each cell contributes its four
directed edges, edges shared by two member cells cancel, and the remaining
edges are walked into closed loops. The walk takes the turn away from the
region at pinch vertices, so cells linked only diagonally stay in one loop.
The loop with positive area is the outline; loops with negative area are
holes (intact cells enclosed by damage).
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
import itertools
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from beamsketch.model.geometry_primitives import Point
from beamsketch.model.geometry_utils import as_array, drop_collinear, polygon_signed_area
from beamsketch.model.grid import BOTTOM_FLANGE, TOP_FLANGE, ConditionState, GridCell

if TYPE_CHECKING:
    from beamsketch.model.geometry import GeometryModel
    from beamsketch.model.grid import ConditionGrid

logger = logging.getLogger(__name__)

CellKey = tuple[int, int, bool]
Vertex = tuple[int, int]
Edge = tuple[Vertex, Vertex]


class ContourType(StrEnum):
    SECTION_LOSS = "section_loss"
    PERFORATION = "perforation"

    @staticmethod
    def from_state(state: ConditionState) -> Optional[ContourType]:
        match state:
            case ConditionState.SECTION_LOSS:
                return ContourType.SECTION_LOSS
            case ConditionState.PERFORATED:
                return ContourType.PERFORATION
            case _:
                return None

    @property
    def state(self) -> ConditionState:
        if self is ContourType.PERFORATION:
            return ConditionState.PERFORATED
        return ConditionState.SECTION_LOSS


@dataclass(frozen=True)
class Contour:
    """Snapshot of one damage region, ready for overlay rendering or report export."""
    id: str
    type: ContourType
    cells: frozenset[GridCell]
    boundary: tuple[Point, ...]
    holes: tuple[tuple[Point, ...], ...] = ()
    area: float = 0.0  # square inches

    @property
    def is_flange(self) -> bool:
        return next(iter(self.cells)).is_flange

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "cells": sorted([c.row, c.col, c.is_flange] for c in self.cells),
            "boundary": [p.to_tuple() for p in self.boundary],
            "holes": [[p.to_tuple() for p in hole] for hole in self.holes],
            "area": round(self.area, 4),
        }


@dataclass
class _ContourRecord:
    id: str
    type: ContourType
    cells: set[CellKey] = field(default_factory=set)
    boundary: tuple[Point, ...] = ()
    holes: tuple[tuple[Point, ...], ...] = ()
    area: float = 0.0


class ContourTracer:
    """
    Maintains the contour set of one condition grid.

    Register it as an observer of the grid; it never mutates the grid.
    """

    def __init__(self, geometry: GeometryModel) -> None:
        self.geometry = geometry
        self.rows: int = 0
        self.cols: int = 0
        self.flange_length: int = 0
        self.web_cell_size: float = 1.0
        self.flange_cell_size: float = 1.0

        self._contours: dict[str, _ContourRecord] = {}
        self._owner: dict[CellKey, str] = {}
        self._ids = itertools.count(1)

    # --------------------------------------------------------------------------
    # Grid notifications
    # --------------------------------------------------------------------------
    def grid_reset(self, grid: ConditionGrid) -> None:
        self.rows = grid.rows
        self.cols = grid.cols
        self.flange_length = grid.flange_length
        self.web_cell_size = grid.web_cell_size
        self.flange_cell_size = grid.flange_cell_size
        self._contours.clear()
        self._owner.clear()
        logger.debug("Contours cleared after grid reset")

    def cell_changed(self, row: int, col: int, is_flange: bool, state: ConditionState) -> None:
        key: CellKey = (row, col, is_flange)
        if not self._is_valid(key):
            logger.debug(f"Ignoring malformed cell reference {key}")
            return

        touched: set[str] = set()

        # 1. Leave the current contour
        owner_id = self._owner.pop(key, None)
        if owner_id is not None:
            record = self._contours[owner_id]
            record.cells.discard(key)
            if not record.cells:
                del self._contours[owner_id]
                logger.debug(f"Contour {owner_id} removed")
            else:
                touched.update(self._split(record))

        # 2. Join or start a contour of the matching class
        kind = ContourType.from_state(state)
        if kind is not None:
            touched.add(self._join(key, kind))

        # 3. Re-trace what changed
        for contour_id in touched:
            if contour_id in self._contours:
                self._trace(self._contours[contour_id])

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._contours)

    def __iter__(self) -> Iterator[Contour]:
        return iter(self.contours())

    def contours(self, kind: Optional[ContourType] = None) -> list[Contour]:
        """Contours in creation order, optionally filtered by type."""
        return [
            self._snapshot(record)
            for record in self._contours.values()
            if kind is None or record.type == kind
        ]

    def get(self, contour_id: str) -> Contour:
        return self._snapshot(self._contours[contour_id])

    def contour_id_for(self, row: int, col: int, is_flange: bool = False) -> Optional[str]:
        return self._owner.get((row, col, is_flange))

    # --------------------------------------------------------------------------
    # Membership
    # --------------------------------------------------------------------------
    def _is_valid(self, key: CellKey) -> bool:
        row, col, is_flange = key
        if is_flange:
            return row in (TOP_FLANGE, BOTTOM_FLANGE) and 0 <= col < self.flange_length
        return 0 <= row < self.rows and 0 <= col < self.cols

    def _neighbours(self, key: CellKey) -> Iterator[CellKey]:
        row, col, is_flange = key
        if is_flange:
            for dc in (-1, 1):
                nb = (row, col + dc, True)
                if self._is_valid(nb):
                    yield nb
            return
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                nb = (row + dr, col + dc, False)
                if self._is_valid(nb):
                    yield nb

    def _join(self, key: CellKey, kind: ContourType) -> str:
        adjacent: set[str] = set()
        for nb in self._neighbours(key):
            contour_id = self._owner.get(nb)
            if contour_id is not None and self._contours[contour_id].type == kind:
                adjacent.add(contour_id)

        if not adjacent:
            record = _ContourRecord(id=f"contour-{next(self._ids)}", type=kind)
            self._contours[record.id] = record
            logger.debug(f"Contour {record.id} created ({kind.value})")
        else:
            # The oldest adjacent contour absorbs the others
            ordered = [cid for cid in self._contours if cid in adjacent]
            record = self._contours[ordered[0]]
            for other_id in ordered[1:]:
                other = self._contours.pop(other_id)
                for cell in other.cells:
                    self._owner[cell] = record.id
                record.cells.update(other.cells)
                logger.debug(f"Contour {other_id} merged into {record.id}")

        record.cells.add(key)
        self._owner[key] = record.id
        return record.id

    def _split(self, record: _ContourRecord) -> list[str]:
        """Break a contour into its connected components; the first keeps the id."""
        components = self._components(record.cells)
        if len(components) == 1:
            return [record.id]

        components.sort(key=min)
        record.cells = components[0]
        ids = [record.id]
        for component in components[1:]:
            new_record = _ContourRecord(id=f"contour-{next(self._ids)}", type=record.type, cells=component)
            self._contours[new_record.id] = new_record
            for cell in component:
                self._owner[cell] = new_record.id
            ids.append(new_record.id)
        logger.debug(f"Contour {record.id} split into {ids}")
        return ids

    def _components(self, cells: set[CellKey]) -> list[set[CellKey]]:
        remaining = set(cells)
        components = []
        while remaining:
            seed = min(remaining)
            remaining.discard(seed)
            component = {seed}
            queue = deque([seed])
            while queue:
                current = queue.popleft()
                for nb in self._neighbours(current):
                    if nb in remaining:
                        remaining.discard(nb)
                        component.add(nb)
                        queue.append(nb)
            components.append(component)
        return components

    # --------------------------------------------------------------------------
    # Boundary tracing
    # --------------------------------------------------------------------------
    def _trace(self, record: _ContourRecord) -> None:
        loops = trace_cell_loops(self._cell_squares(record.cells))

        outlines: list[tuple[Point, ...]] = []
        holes: list[tuple[Point, ...]] = []
        area = 0.0
        scale_sq = self.geometry.scale ** 2
        row, _, is_flange = next(iter(record.cells))
        for loop in loops:
            points = tuple(self._to_drawing(v, row, is_flange) for v in loop)
            signed = polygon_signed_area(as_array(points))
            area += signed / scale_sq
            # Cell-to-drawing mapping is monotonic in x and y, so lattice orientation is kept
            if signed > 0:
                outlines.append(points)
            else:
                holes.append(points)

        if len(outlines) != 1:
            logger.warning(f"Contour {record.id} traced to {len(outlines)} outlines")
        outlines.sort(key=lambda pts: -polygon_signed_area(as_array(pts)))
        record.boundary = outlines[0] if outlines else ()
        record.holes = tuple(holes)
        record.area = abs(area)

    def _cell_squares(self, cells: set[CellKey]) -> list[Vertex]:
        """Lattice position (x, y) of the top-left corner of every member cell."""
        squares = []
        for row, col, is_flange in cells:
            # A flange strip is one cell deep
            squares.append((col, 0) if is_flange else (col, row))
        return squares

    def _to_drawing(self, vertex: Vertex, row: int, is_flange: bool) -> Point:
        g = self.geometry
        vx, vy = vertex
        tf = g.beam.flange_thickness

        if not is_flange:
            x = vx * self.web_cell_size
            y = tf + vy * self.web_cell_size
        else:
            # The last flange cell is cut off at the end of the span
            x = min(vx * self.flange_cell_size, g.length)
            if row == TOP_FLANGE:
                y = 0.0 if vy == 0 else tf
            else:
                y = g.beam.depth - tf if vy == 0 else g.beam.depth
        return Point(x * g.scale, y * g.scale)

    def _snapshot(self, record: _ContourRecord) -> Contour:
        cells = frozenset(
            GridCell(row, col, is_flange, record.type.state)
            for row, col, is_flange in record.cells
        )
        return Contour(
            id=record.id,
            type=record.type,
            cells=cells,
            boundary=record.boundary,
            holes=record.holes,
            area=record.area,
        )


# Quarter turns relative to the incoming direction, preferred first
def _turn_rank(d_in: Vertex, d_out: Vertex) -> int:
    right = (d_in[1], -d_in[0])
    left = (-d_in[1], d_in[0])
    if d_out == right:
        return 0
    if d_out == d_in:
        return 1
    if d_out == left:
        return 2
    return 3


def trace_cell_loops(squares: list[Vertex]) -> list[list[Vertex]]:
    """
    Closed boundary loops of a union of unit lattice squares.

    Each square (x, y) contributes the directed edges
    (x, y) -> (x+1, y) -> (x+1, y+1) -> (x, y+1) -> (x, y); an edge whose
    reverse is also present is shared by two squares and cancels. The
    surviving edges are chained into loops with collinear vertices removed.
    In the lattice frame outer loops have positive signed area and holes
    negative.
    """
    edges: set[Edge] = set()
    for x, y in squares:
        corners = [(x, y), (x + 1, y), (x + 1, y + 1), (x, y + 1)]
        for a, b in zip(corners, corners[1:] + corners[:1]):
            if (b, a) in edges:
                edges.discard((b, a))
            else:
                edges.add((a, b))

    outgoing: dict[Vertex, list[Vertex]] = {}
    for a, b in edges:
        outgoing.setdefault(a, []).append(b)

    # Each incoming edge has exactly one preferred successor, and no two
    # incoming edges prefer the same one, so every walk closes on its start.
    loops = []
    unused = set(edges)
    while unused:
        start = min(unused)
        unused.discard(start)
        loop = [start[0]]
        prev, cur = start
        while True:
            d_in = (cur[0] - prev[0], cur[1] - prev[1])
            nxt = min(outgoing[cur], key=lambda n: _turn_rank(d_in, (n[0] - cur[0], n[1] - cur[1])))
            if (cur, nxt) == start:
                break
            unused.discard((cur, nxt))
            loop.append(cur)
            prev, cur = cur, nxt
        loops.append(drop_collinear(loop))
    return loops
