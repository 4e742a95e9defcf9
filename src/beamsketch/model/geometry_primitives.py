"""
Geometric Primitives for beam outlines, contours and dimensions.

All primitives are planar and live in local drawing coordinates: x runs along
the span (or across the flange in the cross-section), y runs downward from the
top of the beam, units are pixels (inches times the view scale).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Union, TYPE_CHECKING
import numpy as np
import math

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Vector:
    """
    A vector in the drawing plane representing direction and magnitude.
    """
    x: float
    y: float

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> Vector:
        if scalar == 0.0: raise ZeroDivisionError
        return Vector(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y)

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def normalize(self) -> Vector:
        mag = self.magnitude
        if mag == 0.0: return Vector(0.0, 0.0)
        return self / mag

    def normal(self) -> Vector:
        """Unit normal, the direction rotated a quarter turn (-y, x)."""
        return Vector(-self.y, self.x).normalize()


@dataclass(frozen=True)
class Point:
    """A point in the drawing plane."""
    x: float
    y: float

    def __add__(self, other: Vector) -> Point:
        # Point + Vector = Point (Translation)
        if isinstance(other, Vector):
            return Point(self.x + other.x, self.y + other.y)
        raise TypeError("Can only add a Vector to a Point.")

    def __sub__(self, other: Union[Vector, Point]) -> Union[Vector, Point]:
        # Point - Point = Vector (Direction)
        if isinstance(other, Point):
            return Vector(self.x - other.x, self.y - other.y)
        # Point - Vector = Point (Inverse translation)
        if isinstance(other, Vector):
            return Point(self.x - other.x, self.y - other.y)
        raise TypeError("Can only subtract a Vector or Point from a Point.")

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def midpoint(self, other: Point) -> Point:
        return Point((self.x + other.x) / 2, (self.y + other.y) / 2)

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y])


@dataclass(frozen=True)
class Line:
    """A straight line between two points."""
    start: Point
    end: Point
    label: Optional[str] = None

    def discretize(self, max_length: Optional[float] = None) -> npt.NDArray[np.float64]:
        if max_length is None or self.length == 0.0:
            return np.array([self.start.to_array(), self.end.to_array()])

        resolution = max(2, math.ceil(self.length / max_length) + 1)
        return np.linspace(self.start.to_array(), self.end.to_array(), resolution)

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)


@dataclass(frozen=True)
class Arc:
    """A circular arc defined by start, center and end (shortest sweep)."""
    start: Point
    center: Point
    end: Point
    label: Optional[str] = None

    @property
    def radius(self) -> float:
        return (self.start - self.center).magnitude

    @property
    def sweep(self) -> float:
        """Signed sweep angle in radians, normalised to (-pi, pi]."""
        v_s = self.start - self.center
        v_e = self.end - self.center
        diff = math.atan2(v_e.y, v_e.x) - math.atan2(v_s.y, v_s.x)
        while diff <= -math.pi:
            diff += 2 * math.pi
        while diff > math.pi:
            diff -= 2 * math.pi
        return diff

    @property
    def length(self) -> float:
        return self.radius * abs(self.sweep)

    def discretize(self, max_length: Optional[float] = None) -> npt.NDArray[np.float64]:
        """
        Generates points along the arc from `start` to `end` around `center`,
        taking the shorter way round.
        """
        if max_length is not None:
            resolution = self._get_number_of_points(max_length=max_length)
        else:
            resolution = 16

        c = self.center.to_array()
        v_s = self.start.to_array() - c
        radius = float(np.linalg.norm(v_s))
        ang_s = np.arctan2(v_s[1], v_s[0])

        angles = np.linspace(ang_s, ang_s + self.sweep, resolution)
        pts = np.column_stack((c[0] + radius * np.cos(angles), c[1] + radius * np.sin(angles)))

        # Pin the ends so consecutive entities share exact vertices
        pts[0] = self.start.to_array()
        pts[-1] = self.end.to_array()
        return pts

    def _get_number_of_points(self, max_length: float) -> int:
        """Helper to calculate number of points based on max distance."""
        return max(2, math.ceil(self.length / max_length) + 1)


GeometricEntity = Union[Line, Arc]


@dataclass
class BoundaryLoop:
    """
    A single closed loop built from consecutive lines and arcs, e.g. the
    I-shaped cross-section outline.
    """
    entities: List[GeometricEntity] = field(default_factory=list)

    def add_entities(self, new_entities: List[GeometricEntity]) -> None:
        self.entities.extend(new_entities)

    def close_loop(self) -> None:
        """
        Adds a line from the last point back to the first point
        if they are not coincident.
        """
        if not self.entities:
            return

        first_point = self.entities[0].start
        last_point = self.entities[-1].end

        if first_point.distance_to(last_point) > 1e-6:
            self.entities.append(Line(start=last_point, end=first_point))

    @property
    def is_closed(self) -> bool:
        if not self.entities:
            return False
        return self.entities[0].start.distance_to(self.entities[-1].end) <= 1e-6

    @property
    def arcs(self) -> List[Arc]:
        return [e for e in self.entities if isinstance(e, Arc)]

    def vertices(self) -> List[Point]:
        """Start point of every entity, in loop order."""
        return [e.start for e in self.entities]

    def to_polyline(self, max_length: Optional[float] = None) -> npt.NDArray[np.float64]:
        """
        Flatten the loop into an (N, 2) array of vertices without repeating
        the first vertex at the end.
        """
        chunks = [entity.discretize(max_length)[:-1] for entity in self.entities]
        if not chunks:
            return np.empty((0, 2))
        return np.vstack(chunks)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box, min/max corners in drawing coordinates."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @staticmethod
    def from_points(points: List[Point]) -> BoundingBox:
        if not points:
            raise ValueError("Cannot bound an empty point set.")
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return BoundingBox(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def union(self, other: BoundingBox) -> BoundingBox:
        return BoundingBox(
            min(self.x_min, other.x_min), min(self.y_min, other.y_min),
            max(self.x_max, other.x_max), max(self.y_max, other.y_max),
        )

    def expanded(self, padding: float) -> BoundingBox:
        return BoundingBox(
            self.x_min - padding, self.y_min - padding,
            self.x_max + padding, self.y_max + padding,
        )

    def intersects(self, other: BoundingBox) -> bool:
        """Strict overlap; boxes that only touch do not intersect."""
        return (
            self.x_min < other.x_max and other.x_min < self.x_max
            and self.y_min < other.y_max and other.y_min < self.y_max
        )

    def to_tuple(self) -> tuple[float, float, float, float]:
        return (self.x_min, self.y_min, self.x_max, self.y_max)
