"""
Configuration & Kernel Constants
================================
Central registry for the drafting constants and the documented ranges of the
user controls (cell-size sliders, zoom).

Exports:
    SPAN_LENGTH (float): Length of the drawn beam segment in inches.
    FILLET_RADIUS (float): Nominal web/flange fillet radius in inches.
    DIMENSION_SPACING (float): Default dimension offset and collision padding.
    MAX_LAYOUT_ITERATIONS (int): Cap on dimension collision passes.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlRange:
    """Inclusive range of a user control."""
    name: str
    minimum: float
    maximum: float

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum

    def clamp(self, value: float) -> float:
        return min(max(value, self.minimum), self.maximum)

    def check(self, value: float) -> bool:
        """Log a warning for values outside the documented range. The value is still usable."""
        if self.contains(value):
            return True
        logger.warning(
            f"{self.name} = {value:g} is outside the documented range "
            f"[{self.minimum:g}, {self.maximum:g}]"
        )
        return False


# Geometry
SPAN_LENGTH: float = 60.0  # 5 ft of beam, inches
FILLET_RADIUS: float = 0.25  # inches
DEFAULT_SCALE: float = 10.0  # pixels per inch

# Inspection grid
DEFAULT_WEB_CELL_SIZE: float = 1.0  # inches
DEFAULT_FLANGE_CELL_SIZE: float = 2.0  # inches

# Dimensions
DIMENSION_SPACING: float = 10.0
MAX_LAYOUT_ITERATIONS: int = 10
ORDINATE_INTERVAL: float = 12.0  # inches

# User controls
WEB_CELL_SIZE_RANGE = ControlRange("web cell size", 0.5, 3.0)
FLANGE_CELL_SIZE_RANGE = ControlRange("flange cell size", 1.0, 6.0)
ZOOM_RANGE = ControlRange("zoom", 0.1, 5.0)
