"""
Sketch State (Data Model)
=========================
This module defines the central data structure for one open beam sketch.

It ties the kernel components together in the order they depend on each
other: the selected BeamProfile and scale give a GeometryModel; the geometry
sizes the ConditionGrid; the ContourTracer listens to the grid; one
DimensionPlacer per view lays out the standard dimension set. Free
annotations (callouts, leaders, measurements) sit beside all of these.

Changing the beam, the drawing scale or the cell sizes rebuilds the geometry
and reinitialises the grid to all-Intact. Inspection markup is lost on such a
change; it is logged, callers should warn the user first.

Classes:
    SketchState: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import itertools
import logging
from typing import Dict, Any, Iterable, Iterator, Optional, Union

from beamsketch.config import (
    DEFAULT_FLANGE_CELL_SIZE,
    DEFAULT_SCALE,
    DEFAULT_WEB_CELL_SIZE,
    SPAN_LENGTH,
)
from beamsketch.model.annotations import Annotation, AnnotationType
from beamsketch.model.contours import Contour, ContourTracer, ContourType
from beamsketch.model.dimensions import (
    BASE_STYLE,
    DimensionLayout,
    DimensionPlacer,
    DimensionStyle,
    DrawingView,
    standard_dimension_requests,
)
from beamsketch.model.geometry import GeometryModel, geometry_for
from beamsketch.model.geometry_primitives import Point
from beamsketch.model.grid import CellObserver, ConditionGrid, ConditionState
from beamsketch.model.profiles import DEFAULT_DESIGNATION, BeamProfile, get_beam

logger = logging.getLogger(__name__)


def _default_beam() -> BeamProfile:
    return get_beam(DEFAULT_DESIGNATION)


@dataclass
class SketchState:
    """
    Holds the entire state of one open sketch.
    Pass this instance to whatever renders or exports the sketch.
    """
    beam: BeamProfile = field(default_factory=_default_beam)
    scale: float = DEFAULT_SCALE
    length: float = SPAN_LENGTH
    web_cell_size: float = DEFAULT_WEB_CELL_SIZE
    flange_cell_size: float = DEFAULT_FLANGE_CELL_SIZE
    zoom: float = 1.0
    style: DimensionStyle = BASE_STYLE

    # Extra grid observers (telemetry, UI refresh); kept across rebuilds
    observers: list[CellObserver] = field(default_factory=list)

    geometry: GeometryModel = field(init=False)
    grid: ConditionGrid = field(init=False)
    tracer: ContourTracer = field(init=False)
    placers: Dict[DrawingView, DimensionPlacer] = field(init=False)
    _annotations: Dict[str, Annotation] = field(init=False, default_factory=dict, repr=False)
    _annotation_ids: Iterator[int] = field(init=False, default_factory=lambda: itertools.count(1), repr=False)

    def __post_init__(self) -> None:
        self._rebuild()

    # --------------------------------------------------------------------------
    # Selection (destructive: grid markup is lost)
    # --------------------------------------------------------------------------
    def select_beam(self, beam: Union[str, BeamProfile]) -> None:
        profile = get_beam(beam) if isinstance(beam, str) else beam
        self._warn_markup_loss("beam change")
        self.beam = profile
        logger.info(f"Beam selected: {profile.designation}")
        self._rebuild()

    def set_scale(self, scale: float) -> None:
        self._warn_markup_loss("scale change")
        self.scale = scale
        self._rebuild()

    def set_cell_sizes(
        self,
        web_cell_size: Optional[float] = None,
        flange_cell_size: Optional[float] = None,
    ) -> None:
        self._warn_markup_loss("cell size change")
        if web_cell_size is not None:
            self.web_cell_size = web_cell_size
        if flange_cell_size is not None:
            self.flange_cell_size = flange_cell_size
        self._rebuild()

    # --------------------------------------------------------------------------
    # Inspection markup
    # --------------------------------------------------------------------------
    def advance_cell(self, row: int, col: int, is_flange: bool = False) -> ConditionState:
        return self.grid.advance_cell(row, col, is_flange)

    def contours(self, kind: Optional[ContourType] = None) -> list[Contour]:
        return self.tracer.contours(kind)

    # --------------------------------------------------------------------------
    # Annotations (kept across rebuilds)
    # --------------------------------------------------------------------------
    def add_annotation(
        self,
        type: Union[str, AnnotationType],
        position: Point,
        text: str,
        points: Iterable[Point] = (),
    ) -> Annotation:
        annotation = Annotation(
            id=f"annotation-{next(self._annotation_ids)}",
            type=AnnotationType(type),
            position=position,
            text=text,
            points=tuple(points),
        )
        self._annotations[annotation.id] = annotation
        logger.debug(f"Annotation added: {annotation.id} ({annotation.type.value})")
        return annotation

    def remove_annotation(self, annotation_id: str) -> Annotation:
        if annotation_id not in self._annotations:
            raise KeyError(f"Unknown annotation '{annotation_id}'")
        return self._annotations.pop(annotation_id)

    def annotations(self, type: Optional[AnnotationType] = None) -> list[Annotation]:
        """Annotations in the order they were added, optionally of one type."""
        return [a for a in self._annotations.values() if type is None or a.type == type]

    # --------------------------------------------------------------------------
    # Dimensions
    # --------------------------------------------------------------------------
    def set_zoom(self, zoom: float) -> None:
        """Keep dimension text and arrows at a constant screen size."""
        for placer in self.placers.values():
            placer.update_scale(zoom)
        self.zoom = zoom

    def dimension_layout(self, view: DrawingView = DrawingView.ELEVATION) -> DimensionLayout:
        return self.placers[view].layout

    # --------------------------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------------------------
    def summary(self) -> Dict[str, Any]:
        bounds = self.geometry.elevation_bounds()
        section = self.geometry.cross_section_bounds()
        return {
            "beam": self.beam.designation,
            "scale": self.scale,
            "elevation_size": (bounds.width, bounds.height),
            "cross_section_size": (section.width, section.height),
            "grid": (self.grid.rows, self.grid.cols, self.grid.flange_length),
            "damaged_cells": len(self.grid.damaged_cells()),
            "contours": len(self.tracer),
            "annotations": len(self._annotations),
            "dimensions": {
                view.value: len(placer.layout.dimensions) for view, placer in self.placers.items()
            },
        }

    def reset(self) -> None:
        """Clear all data for a new sketch"""
        self.beam = _default_beam()
        self.scale = DEFAULT_SCALE
        self.length = SPAN_LENGTH
        self.web_cell_size = DEFAULT_WEB_CELL_SIZE
        self.flange_cell_size = DEFAULT_FLANGE_CELL_SIZE
        self.zoom = 1.0
        self.style = BASE_STYLE
        self._annotations.clear()
        self._annotation_ids = itertools.count(1)
        self._rebuild()
        logger.info("Sketch state has been reset.")

    def _rebuild(self) -> None:
        self.geometry = geometry_for(self.beam, self.scale, self.length)
        self.tracer = ContourTracer(self.geometry)
        self.grid = ConditionGrid.for_geometry(
            self.geometry,
            self.web_cell_size,
            self.flange_cell_size,
            observers=[self.tracer, *self.observers],
        )

        self.placers = {}
        for view in DrawingView:
            placer = DimensionPlacer(style=self.style)
            placer.viewport_scale = self.zoom
            placer.add_dimensions(standard_dimension_requests(self.geometry, view))
            self.placers[view] = placer

    def _warn_markup_loss(self, reason: str) -> None:
        damaged = len(self.grid.damaged_cells())
        if damaged:
            logger.warning(f"{reason.capitalize()} discards inspection markup on {damaged} cell(s)")
