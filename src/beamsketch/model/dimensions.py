"""
Dimension Layout
================
Places measurement annotations (dimension line, extension lines, centred
label) next to the geometry they measure, without overlapping each other.

Every request is offset along the unit normal of its start->end segment.
Overlaps are resolved by pairwise relaxation: whenever the padded bounding
boxes of an earlier and a later dimension intersect, the later one is pushed
further out along its normal until the boxes clear. Passes repeat until a
pass moves nothing, or the iteration cap is reached; in the latter case the
best layout so far is returned together with an UnresolvedCollision warning.

Text and arrow sizes are divided by the viewport scale so they keep a
constant size on screen at any zoom.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from beamsketch.config import DIMENSION_SPACING, MAX_LAYOUT_ITERATIONS, ORDINATE_INTERVAL, ZOOM_RANGE
from beamsketch.errors import InvalidGeometry, UnresolvedCollision
from beamsketch.model.geometry_primitives import BoundingBox, Line, Point, Vector

if TYPE_CHECKING:
    from beamsketch.model.geometry import GeometryModel

logger = logging.getLogger(__name__)

_SEPARATION_EPS = 1e-6


class Orientation(StrEnum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    ALIGNED = "aligned"


class DrawingView(StrEnum):
    ELEVATION = "elevation"
    CROSS_SECTION = "cross_section"


# ------------------------------------------------------------------------------
# Styles
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class DimensionStyle:
    arrow_size: float = 2.5
    witness_extension: float = 2.0
    text_gap: float = 6.0
    font_size: float = 10.0
    font_family: str = "Arial, sans-serif"
    char_width: float = 0.6  # average glyph width as a fraction of font size
    scale: float = 1.0

    def scaled(self, factor: float) -> DimensionStyle:
        """Copy with every screen-size quantity multiplied by `factor`."""
        return replace(
            self,
            arrow_size=self.arrow_size * factor,
            witness_extension=self.witness_extension * factor,
            text_gap=self.text_gap * factor,
            font_size=self.font_size * factor,
            scale=self.scale * factor,
        )

    def text_extent(self, label: str) -> tuple[float, float]:
        """Approximate (width, height) of a rendered label."""
        return len(label) * self.font_size * self.char_width, self.font_size


# ANSI/ISO-style presets
BASE_STYLE = DimensionStyle()
ANSI_STYLE = replace(BASE_STYLE, arrow_size=3.0, witness_extension=2.5, text_gap=8.0, font_size=12.0)
ISO_STYLE = replace(BASE_STYLE, arrow_size=2.0, witness_extension=2.0, text_gap=5.0, font_size=10.0)
ARCHITECTURAL_STYLE = replace(BASE_STYLE, arrow_size=2.0, witness_extension=3.0, text_gap=10.0, font_size=9.0)


# ------------------------------------------------------------------------------
# Labels
# ------------------------------------------------------------------------------
def format_inches(value: float) -> str:
    return f"{round(value, 3):g}\""


def format_feet_inches(value: float) -> str:
    """5.5 -> 5.5", 12 -> 1'-0", 30 -> 2'-6"."""
    value = round(value, 3)
    if value < 12:
        return format_inches(value)
    feet = math.floor(value / 12)
    inches = round(value - feet * 12, 3)
    return f"{feet}'-{inches:g}\""


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class DimensionRequest:
    start: Point
    end: Point
    label: str

    @property
    def direction(self) -> Vector:
        return self.end - self.start

    @property
    def orientation(self) -> Orientation:
        d = self.direction
        if abs(d.y) <= 1e-9:
            return Orientation.HORIZONTAL
        if abs(d.x) <= 1e-9:
            return Orientation.VERTICAL
        return Orientation.ALIGNED


@dataclass(frozen=True)
class Dimension:
    """One placed dimension: measured points, offset dimension line and label."""
    start: Point
    end: Point
    offset_distance: float
    label: str
    normal: Vector
    offset_start: Point
    offset_end: Point
    text_position: Point
    bounds: BoundingBox
    orientation: Orientation
    witness_extension: float = 0.0

    @property
    def offset_line(self) -> Line:
        return Line(self.offset_start, self.offset_end, label="dimension")

    @property
    def extension_lines(self) -> tuple[Line, Line]:
        overshoot = self.normal * self.witness_extension
        return (
            Line(self.start, self.offset_start + overshoot, label="extension"),
            Line(self.end, self.offset_end + overshoot, label="extension"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.to_tuple(),
            "end": self.end.to_tuple(),
            "offset_line": [self.offset_start.to_tuple(), self.offset_end.to_tuple()],
            "offset_distance": self.offset_distance,
            "label": self.label,
            "text_position": self.text_position.to_tuple(),
            "bounding_box": self.bounds.to_tuple(),
        }


@dataclass
class DimensionLayout:
    dimensions: List[Dimension] = field(default_factory=list)
    iterations: int = 0
    warning: Optional[UnresolvedCollision] = None

    @property
    def resolved(self) -> bool:
        return self.warning is None


# ------------------------------------------------------------------------------
# Placer
# ------------------------------------------------------------------------------
class DimensionPlacer:
    """Owns the dimension set of one view and keeps it collision free."""

    def __init__(
        self,
        style: DimensionStyle = BASE_STYLE,
        spacing: float = DIMENSION_SPACING,
        max_iterations: int = MAX_LAYOUT_ITERATIONS,
    ) -> None:
        if spacing <= 0:
            raise ValueError(f"Dimension spacing must be positive, got {spacing}")
        if max_iterations < 1:
            raise ValueError(f"At least one layout iteration is required, got {max_iterations}")
        self.base_style = style
        self.base_spacing = spacing
        self.max_iterations = max_iterations
        self.viewport_scale: float = 1.0

        self._requests: list[DimensionRequest] = []
        self._layout = DimensionLayout()

    # --------------------------------------------------------------------------
    # Public API
    # --------------------------------------------------------------------------
    @property
    def style(self) -> DimensionStyle:
        return self.base_style.scaled(1.0 / self.viewport_scale)

    @property
    def spacing(self) -> float:
        return self.base_spacing / self.viewport_scale

    @property
    def layout(self) -> DimensionLayout:
        return self._layout

    @property
    def requests(self) -> list[DimensionRequest]:
        return list(self._requests)

    def dimensions(self) -> list[Dimension]:
        return list(self._layout.dimensions)

    def add_dimension(self, start: Point, end: Point, label: str) -> Dimension:
        """
        Add a measurement and re-run the layout. Adding a request identical to
        an existing one returns the existing placement.
        """
        request = DimensionRequest(start, end, label)
        if request in self._requests:
            return self._layout.dimensions[self._requests.index(request)]
        self._validate(request)
        self._requests.append(request)
        self.relayout()
        return self._layout.dimensions[-1]

    def add_dimensions(self, requests: Iterable[DimensionRequest]) -> DimensionLayout:
        """Add several measurements with a single layout pass."""
        for request in requests:
            if request in self._requests:
                continue
            self._validate(request)
            self._requests.append(request)
        return self.relayout()

    def update_scale(self, scale: float) -> DimensionLayout:
        """Rescale text and arrows for a new zoom level and lay out again from scratch."""
        if scale <= 0:
            raise InvalidGeometry(f"Viewport scale must be positive, got {scale}")
        ZOOM_RANGE.check(scale)
        self.viewport_scale = scale
        return self.relayout()

    def clear(self) -> None:
        self._requests.clear()
        self._layout = DimensionLayout()

    def relayout(self) -> DimensionLayout:
        self._layout = self._resolve()
        return self._layout

    # --------------------------------------------------------------------------
    # Placement
    # --------------------------------------------------------------------------
    @staticmethod
    def _validate(request: DimensionRequest) -> None:
        if request.direction.magnitude <= 1e-9:
            raise InvalidGeometry(f"Dimension '{request.label}' has zero length")

    def _place(self, request: DimensionRequest, offset: float, style: DimensionStyle) -> Dimension:
        normal = request.direction.normal()
        shift = normal * offset
        offset_start = request.start + shift
        offset_end = request.end + shift

        text_position = offset_start.midpoint(offset_end) + normal * style.text_gap
        text_w, text_h = style.text_extent(request.label)
        text_box = BoundingBox(
            text_position.x - text_w / 2, text_position.y - text_h / 2,
            text_position.x + text_w / 2, text_position.y + text_h / 2,
        )
        line_box = BoundingBox.from_points([offset_start, offset_end]).expanded(style.arrow_size / 2)

        return Dimension(
            start=request.start,
            end=request.end,
            offset_distance=offset,
            label=request.label,
            normal=normal,
            offset_start=offset_start,
            offset_end=offset_end,
            text_position=text_position,
            bounds=line_box.union(text_box),
            orientation=request.orientation,
            witness_extension=style.witness_extension,
        )

    def _resolve(self) -> DimensionLayout:
        style = self.style
        spacing = self.spacing
        # Half on each box, so padded boxes that clear are a full spacing apart
        padding = spacing / 2
        requests = self._requests

        offsets = [spacing] * len(requests)
        placed = [self._place(r, spacing, style) for r in requests]

        iterations = 0
        converged = not placed
        while not converged and iterations < self.max_iterations:
            iterations += 1
            moved = False
            for i in range(len(placed)):
                for j in range(i + 1, len(placed)):
                    fixed = placed[i].bounds.expanded(padding)
                    moving = placed[j].bounds.expanded(padding)
                    if not fixed.intersects(moving):
                        continue
                    offsets[j] += _separation(fixed, moving, placed[j].normal) + _SEPARATION_EPS
                    placed[j] = self._place(requests[j], offsets[j], style)
                    moved = True
            logger.debug(f"Layout pass {iterations}: {'moved' if moved else 'stable'}")
            converged = not moved

        warning = None
        if not converged:
            overlapping = _overlapping_pairs(placed, padding)
            if overlapping:
                warning = UnresolvedCollision(iterations, overlapping)
                logger.warning(str(warning))

        return DimensionLayout(dimensions=placed, iterations=iterations, warning=warning)


def _separation(fixed: BoundingBox, moving: BoundingBox, direction: Vector) -> float:
    """Smallest travel along `direction` that takes `moving` clear of `fixed`."""
    candidates = []
    if direction.x > 1e-12:
        candidates.append((fixed.x_max - moving.x_min) / direction.x)
    elif direction.x < -1e-12:
        candidates.append((moving.x_max - fixed.x_min) / -direction.x)
    if direction.y > 1e-12:
        candidates.append((fixed.y_max - moving.y_min) / direction.y)
    elif direction.y < -1e-12:
        candidates.append((moving.y_max - fixed.y_min) / -direction.y)
    return max(0.0, min(candidates)) if candidates else 0.0


def _overlapping_pairs(placed: list[Dimension], padding: float) -> list[tuple[int, int]]:
    pairs = []
    for i in range(len(placed)):
        for j in range(i + 1, len(placed)):
            if placed[i].bounds.expanded(padding).intersects(placed[j].bounds.expanded(padding)):
                pairs.append((i, j))
    return pairs


# ------------------------------------------------------------------------------
# Standard dimension sets
# ------------------------------------------------------------------------------
def standard_dimension_requests(
    geometry: GeometryModel,
    view: DrawingView = DrawingView.ELEVATION,
    ordinate_interval: float = ORDINATE_INTERVAL,
) -> list[DimensionRequest]:
    """
    The dimensions drawn by default for a view, in drawing coordinates.

    Elevation: overall depth and clear web depth on the right, running
    ordinates from the left end along the bottom edge.
    Cross-section: flange width above, overall depth on the left, flange
    thickness on the right, web thickness across the web at mid-height.
    """
    beam = geometry.beam
    s = geometry.scale
    h = geometry.depth
    tf = geometry.flange_thickness

    match view:
        case DrawingView.ELEVATION:
            w = geometry.span
            requests = [
                DimensionRequest(Point(w, h), Point(w, 0.0), format_inches(beam.depth)),
                DimensionRequest(Point(w, h - tf), Point(w, tf), format_inches(beam.web_height)),
            ]
            if ordinate_interval > 0:
                n = math.floor(geometry.length / ordinate_interval + 1e-9)
                for k in range(1, n + 1):
                    x_in = k * ordinate_interval
                    requests.append(
                        DimensionRequest(Point(0.0, h), Point(x_in * s, h), format_feet_inches(x_in))
                    )
            return requests

        case DrawingView.CROSS_SECTION:
            w = geometry.flange_width
            x_left = (w - geometry.web_thickness) / 2
            x_right = (w + geometry.web_thickness) / 2
            return [
                DimensionRequest(Point(w, 0.0), Point(0.0, 0.0), format_inches(beam.flange_width)),
                DimensionRequest(Point(0.0, 0.0), Point(0.0, h), format_inches(beam.depth)),
                DimensionRequest(Point(w, tf), Point(w, 0.0), format_inches(beam.flange_thickness)),
                DimensionRequest(Point(x_left, h / 2), Point(x_right, h / 2), format_inches(beam.web_thickness)),
            ]

        case _:
            raise ValueError(f"Unknown view '{view}'")
