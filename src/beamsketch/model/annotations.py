"""
Sketch Annotations
==================
Free annotations an inspector places on the drawing: callouts, leaders and
ad-hoc measurements. They live in drawing coordinates next to the geometry
and are independent of the condition grid, so they survive a beam, scale or
cell size change.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Dict

from beamsketch.model.geometry_primitives import Point


class AnnotationType(StrEnum):
    CALLOUT = "callout"
    LEADER = "leader"
    MEASUREMENT = "measurement"


@dataclass(frozen=True)
class Annotation:
    """
    One placed annotation.

    `position` anchors the text; `points` is the optional leader or
    measurement polyline.
    """
    id: str
    type: AnnotationType
    position: Point
    text: str
    points: tuple[Point, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "position": self.position.to_tuple(),
            "text": self.text,
        }
        if self.points:
            data["points"] = [p.to_tuple() for p in self.points]
        return data
