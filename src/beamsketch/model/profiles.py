"""Predefined Wide-Flange Beam Profiles (Catalog) - AISC W14 shapes."""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class BeamProfile:
    """
    Structural dimensions of one beam size.
    Lengths in inches, weight in lbs per foot.
    """
    designation: str
    depth: float
    flange_width: float
    web_thickness: float
    flange_thickness: float
    weight: float

    @property
    def web_height(self) -> float:
        """Clear height of the web between the flanges."""
        return self.depth - 2 * self.flange_thickness

    @property
    def flange_overhang(self) -> float:
        """Flange width on one side of the web."""
        return (self.flange_width - self.web_thickness) / 2

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> BeamProfile:
        return BeamProfile(
            designation=str(data["designation"]),
            depth=float(data["depth"]),
            flange_width=float(data["flange_width"]),
            web_thickness=float(data["web_thickness"]),
            flange_thickness=float(data["flange_thickness"]),
            weight=float(data["weight"]),
        )


# ------------------------------------------------------------------------------
# Catalog
# ------------------------------------------------------------------------------
W14_PROFILES: Dict[str, BeamProfile] = {
    "W14x43": BeamProfile(
        designation="W14x43",
        depth=13.7,
        flange_width=7.995,
        web_thickness=0.305,
        flange_thickness=0.53,
        weight=43,
    ),
    "W14x48": BeamProfile(
        designation="W14x48",
        depth=13.8,
        flange_width=8.03,
        web_thickness=0.34,
        flange_thickness=0.595,
        weight=48,
    ),
    "W14x53": BeamProfile(
        designation="W14x53",
        depth=13.9,
        flange_width=8.06,
        web_thickness=0.37,
        flange_thickness=0.66,
        weight=53,
    ),
    "W14x61": BeamProfile(
        designation="W14x61",
        depth=14.0,
        flange_width=8.24,
        web_thickness=0.375,
        flange_thickness=0.645,
        weight=61,
    ),
    "W14x68": BeamProfile(
        designation="W14x68",
        depth=14.0,
        flange_width=8.385,
        web_thickness=0.415,
        flange_thickness=0.72,
        weight=68,
    ),
    "W14x74": BeamProfile(
        designation="W14x74",
        depth=14.1,
        flange_width=10.1,
        web_thickness=0.45,
        flange_thickness=0.785,
        weight=74,
    ),
    "W14x82": BeamProfile(
        designation="W14x82",
        depth=14.3,
        flange_width=10.1,
        web_thickness=0.51,
        flange_thickness=0.855,
        weight=82,
    ),
    "W14x90": BeamProfile(
        designation="W14x90",
        depth=14.0,
        flange_width=14.5,
        web_thickness=0.44,
        flange_thickness=0.71,
        weight=90,
    ),
}

# Flat Dictionary for Lookup
STANDARD_BEAMS: Dict[str, BeamProfile] = {
    **W14_PROFILES,
}

DEFAULT_DESIGNATION = "W14x43"


def get_beam(designation: str) -> BeamProfile:
    """Look up a catalog beam by designation (case-insensitive)."""
    key = designation.strip().upper().replace("X", "x")
    if key not in STANDARD_BEAMS:
        raise KeyError(f"Unknown beam designation '{designation}'")
    return STANDARD_BEAMS[key]
