"""
Beam Geometry Model
===================
Derives the drawable outlines of a wide-flange beam from its catalog
dimensions and the view scale.

A GeometryModel is a pure function of (beam, scale): it stores nothing but
its inputs and recomputes every primitive on request. It is replaced, never
mutated, when the beam or the scale changes. Use `geometry_for()` to share
one instance per (beam, scale) pair.

Coordinates are local to the drawing: origin at the top-left corner of the
beam, x to the right, y downward, in pixels.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import logging
import math

from beamsketch.config import FILLET_RADIUS, SPAN_LENGTH
from beamsketch.errors import InvalidGeometry
from beamsketch.model.geometry_primitives import Arc, BoundaryLoop, BoundingBox, Line, Point
from beamsketch.model.profiles import BeamProfile

logger = logging.getLogger(__name__)

# Rounding guard for floor/ceil of cell counts (12.0 / 0.4 is 29.999...)
_COUNT_EPS = 1e-9


@dataclass
class ElevationOutline:
    """Side view of the span: outline rectangle, flange lines, web centreline."""
    outline: BoundaryLoop
    top_flange_line: Line
    bottom_flange_line: Line
    centerline: Line

    @property
    def lines(self) -> list[Line]:
        return [self.top_flange_line, self.bottom_flange_line]


@dataclass
class CrossSectionOutline:
    """I-shaped section with filleted web/flange corners and centrelines."""
    outline: BoundaryLoop
    fillet_radius: float
    vertical_centerline: Line
    horizontal_centerline: Line
    fillet_centers: list[Point] = field(default_factory=list)


@dataclass(frozen=True)
class GeometryModel:
    beam: BeamProfile
    scale: float
    length: float = SPAN_LENGTH

    def __post_init__(self) -> None:
        b = self.beam
        if not math.isfinite(self.scale) or self.scale <= 0:
            raise InvalidGeometry(f"Scale must be positive, got {self.scale}")
        if self.length <= 0:
            raise InvalidGeometry(f"Span length must be positive, got {self.length}")
        for name in ("depth", "flange_width", "web_thickness", "flange_thickness"):
            value = getattr(b, name)
            if value <= 0:
                raise InvalidGeometry(f"{b.designation}: {name} must be positive, got {value}")
        if b.depth <= 2 * b.flange_thickness:
            raise InvalidGeometry(
                f"{b.designation}: depth {b.depth} leaves no web between "
                f"two {b.flange_thickness} flanges"
            )
        if b.flange_width <= b.web_thickness:
            raise InvalidGeometry(
                f"{b.designation}: flange width {b.flange_width} does not exceed "
                f"web thickness {b.web_thickness}"
            )

    # --------------------------------------------------------------------------
    # Scaled dimensions
    # --------------------------------------------------------------------------
    @property
    def span(self) -> float:
        return self.length * self.scale

    @property
    def depth(self) -> float:
        return self.beam.depth * self.scale

    @property
    def flange_width(self) -> float:
        return self.beam.flange_width * self.scale

    @property
    def flange_thickness(self) -> float:
        return self.beam.flange_thickness * self.scale

    @property
    def web_thickness(self) -> float:
        return self.beam.web_thickness * self.scale

    @property
    def web_height(self) -> float:
        return self.beam.web_height * self.scale

    @property
    def fillet_radius(self) -> float:
        """
        Scaled fillet radius.

        The nominal 1/4" radius is reduced to half the thinner plate when it
        exceeds half the web thickness, and never exceeds the flange overhang
        or half the clear web height, so the four fillets cannot overlap.
        """
        b = self.beam
        radius = FILLET_RADIUS
        if radius > b.web_thickness / 2:
            radius = min(b.web_thickness, b.flange_thickness) / 2
        radius = min(radius, b.flange_overhang, b.web_height / 2)
        return radius * self.scale

    # --------------------------------------------------------------------------
    # Outlines
    # --------------------------------------------------------------------------
    def elevation_outline(self) -> ElevationOutline:
        w = self.span
        h = self.depth
        tf = self.flange_thickness

        corners = [Point(0.0, 0.0), Point(w, 0.0), Point(w, h), Point(0.0, h)]
        outline = BoundaryLoop()
        outline.add_entities([
            Line(start=corners[0], end=corners[1], label="top"),
            Line(start=corners[1], end=corners[2], label="right"),
            Line(start=corners[2], end=corners[3], label="bottom"),
        ])
        outline.close_loop()

        return ElevationOutline(
            outline=outline,
            top_flange_line=Line(Point(0.0, tf), Point(w, tf), label="top_flange"),
            bottom_flange_line=Line(Point(0.0, h - tf), Point(w, h - tf), label="bottom_flange"),
            centerline=Line(Point(w / 2, tf), Point(w / 2, h - tf), label="centerline"),
        )

    def cross_section_outline(self) -> CrossSectionOutline:
        """
        Closed outline of the I-section, clockwise on screen starting at the
        top-left corner of the top flange.
        """
        w = self.flange_width
        h = self.depth
        tf = self.flange_thickness
        tw = self.web_thickness
        r = self.fillet_radius

        x_left = (w - tw) / 2
        x_right = (w + tw) / 2
        web_top = tf
        web_bottom = h - tf

        c_tr = Point(x_right + r, web_top + r)
        c_br = Point(x_right + r, web_bottom - r)
        c_bl = Point(x_left - r, web_bottom - r)
        c_tl = Point(x_left - r, web_top + r)

        path = [
            Point(0.0, 0.0),
            Point(w, 0.0),
            Point(w, web_top),
            Point(x_right + r, web_top),
            ("fillet", c_tr, Point(x_right, web_top + r)),
            Point(x_right, web_bottom - r),
            ("fillet", c_br, Point(x_right + r, web_bottom)),
            Point(w, web_bottom),
            Point(w, h),
            Point(0.0, h),
            Point(0.0, web_bottom),
            Point(x_left - r, web_bottom),
            ("fillet", c_bl, Point(x_left, web_bottom - r)),
            Point(x_left, web_top + r),
            ("fillet", c_tl, Point(x_left - r, web_top)),
            Point(0.0, web_top),
        ]

        outline = BoundaryLoop()
        current = path[0]
        for step in path[1:]:
            if isinstance(step, tuple):
                _, center, end = step
                outline.add_entities([Arc(start=current, center=center, end=end, label="fillet")])
                current = end
                continue
            # Clamped fillets can swallow a straight run entirely
            if current.distance_to(step) > 1e-9:
                outline.add_entities([Line(start=current, end=step)])
            current = step
        outline.close_loop()

        return CrossSectionOutline(
            outline=outline,
            fillet_radius=r,
            vertical_centerline=Line(Point(w / 2, -h / 4), Point(w / 2, h + h / 4), label="centerline"),
            horizontal_centerline=Line(Point(-w / 4, h / 2), Point(w + w / 4, h / 2), label="centerline"),
            fillet_centers=[c_tr, c_br, c_bl, c_tl],
        )

    def elevation_bounds(self) -> BoundingBox:
        return BoundingBox(0.0, 0.0, self.span, self.depth)

    def cross_section_bounds(self) -> BoundingBox:
        return BoundingBox(0.0, 0.0, self.flange_width, self.depth)

    # --------------------------------------------------------------------------
    # Inspection grid sizing
    # --------------------------------------------------------------------------
    def grid_extents(self, web_cell_size: float) -> tuple[int, int]:
        """(rows, cols) of web cells that fit the clear web height and the span."""
        if web_cell_size <= 0:
            raise InvalidGeometry(f"Web cell size must be positive, got {web_cell_size}")
        rows = math.floor(self.beam.web_height / web_cell_size + _COUNT_EPS)
        cols = math.floor(self.length / web_cell_size + _COUNT_EPS)
        return rows, cols

    def flange_cell_count(self, flange_cell_size: float) -> int:
        if flange_cell_size <= 0:
            raise InvalidGeometry(f"Flange cell size must be positive, got {flange_cell_size}")
        return math.ceil(self.length / flange_cell_size - _COUNT_EPS)


@lru_cache(maxsize=64)
def geometry_for(beam: BeamProfile, scale: float, length: float = SPAN_LENGTH) -> GeometryModel:
    """Memoized GeometryModel per (beam, scale, length)."""
    logger.debug(f"Building geometry for {beam.designation} at scale {scale:g}")
    return GeometryModel(beam=beam, scale=scale, length=length)
