# rigsim/deflection.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple
import math

from .advisories import Advisory, AdvisoryKind, messages
from .config import GRAVITY
from .errors import InvalidInputError

# Young's modulus (Pa) and density (kg/m^3)
MATERIAL_PROPERTIES: Dict[str, Dict[str, float]] = {
    "aluminum": {"youngs_modulus": 69e9, "density": 2700.0},
    "steel": {"youngs_modulus": 200e9, "density": 7850.0},
}

# Approximate values for common square trusses, smallest first
CROSS_SECTIONS: Dict[str, Dict[str, float]] = {
    "F34": {"moment_of_inertia": 1.2e-5, "weight": 6.0},    # m^4, kg/m (290 mm)
    "F44": {"moment_of_inertia": 3.5e-5, "weight": 12.0},   # 400 mm
    "F54": {"moment_of_inertia": 8.0e-5, "weight": 18.0},   # 500 mm
}

CRITICAL_RATIO = 150.0
WARNING_RATIO = 200.0
ACCEPTABLE_RATIO = 300.0
RECOMMEND_RATIO = 250.0
VISIBLE_SAG_M = 0.05


@dataclass(frozen=True)
class TrussProperties:
    length: float               # m, simply supported span
    material: str = "aluminum"
    cross_section: str = "F34"

    def __post_init__(self):
        if not self.length > 0:
            raise InvalidInputError(f"Truss length must be positive, got {self.length}")
        if self.material not in MATERIAL_PROPERTIES:
            raise InvalidInputError(f"Unknown truss material: {self.material}",
                                    {"known": sorted(MATERIAL_PROPERTIES)})
        if self.cross_section not in CROSS_SECTIONS:
            raise InvalidInputError(f"Unknown truss cross-section: {self.cross_section}",
                                    {"known": list(CROSS_SECTIONS)})

    @property
    def stiffness(self) -> float:
        """E * I in N m^2."""
        return (MATERIAL_PROPERTIES[self.material]["youngs_modulus"]
                * CROSS_SECTIONS[self.cross_section]["moment_of_inertia"])

    @property
    def self_weight(self) -> float:
        """kg/m"""
        return CROSS_SECTIONS[self.cross_section]["weight"]

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "TrussProperties":
        return cls(float(d["length"]), str(d.get("material", "aluminum")),
                   str(d.get("cross_section", d.get("crossSection", "F34"))))


@dataclass(frozen=True)
class DeflectionResult:
    max_deflection: float       # m at midspan
    safety_ok: bool
    deflection_ratio: float     # L / deflection
    advisories: List[Advisory] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return messages(self.advisories)


def evaluate_deflection(deflection: float, length: float) -> DeflectionResult:
    ratio = math.inf if deflection <= 0 else length / deflection
    advisories: List[Advisory] = []
    safety_ok = True

    if ratio < CRITICAL_RATIO:
        safety_ok = False
        advisories.append(Advisory(AdvisoryKind.DEFLECTION, f"CRITICAL: Excessive deflection (L/{ratio:.0f})"))
        advisories.append(Advisory(AdvisoryKind.DEFLECTION, "Truss may fail or be visibly sagging"))
    elif ratio < WARNING_RATIO:
        advisories.append(Advisory(AdvisoryKind.DEFLECTION, f"Warning: High deflection (L/{ratio:.0f})"))
        advisories.append(Advisory(AdvisoryKind.DEFLECTION, "Consider using larger truss or reducing load"))
    elif ratio < ACCEPTABLE_RATIO:
        advisories.append(Advisory(AdvisoryKind.DEFLECTION, f"Acceptable deflection (L/{ratio:.0f})"))

    if deflection > VISIBLE_SAG_M:
        advisories.append(Advisory(AdvisoryKind.VISIBLE_SAG,
                                   f"Visible sag: {deflection * 100:.1f}cm at midpoint"))

    return DeflectionResult(deflection, safety_ok, ratio, advisories)


def uniform_load_deflection(truss: TrussProperties, uniform_load: float) -> float:
    """5 w L^4 / 384 E I, uniform_load in kg/m."""
    w = uniform_load * GRAVITY
    return 5.0 * w * truss.length ** 4 / (384.0 * truss.stiffness)


def point_load_deflection(truss: TrussProperties, point_load: float) -> float:
    """P L^3 / 48 E I for a load at midspan, point_load in kg."""
    p = point_load * GRAVITY
    return p * truss.length ** 3 / (48.0 * truss.stiffness)


def calculate_uniform_load_deflection(truss: TrussProperties, uniform_load: float) -> DeflectionResult:
    return evaluate_deflection(uniform_load_deflection(truss, uniform_load), truss.length)


def calculate_point_load_deflection(truss: TrussProperties, point_load: float) -> DeflectionResult:
    return evaluate_deflection(point_load_deflection(truss, point_load), truss.length)


def calculate_combined_deflection(truss: TrussProperties, uniform_load: float,
                                  point_loads: Sequence[float] = ()) -> DeflectionResult:
    """Superposition; every point load is treated as acting at midspan."""
    total = uniform_load_deflection(truss, uniform_load)
    total += sum(point_load_deflection(truss, p) for p in point_loads)
    return evaluate_deflection(total, truss.length)


def recommend_truss_size(span: float, total_load: float, material: str = "aluminum") -> Tuple[str, str]:
    """(cross_section, reason): smallest section with L/d above 250 for a midspan load."""
    for name in CROSS_SECTIONS:
        result = calculate_point_load_deflection(TrussProperties(span, material, name), total_load)
        if result.safety_ok and result.deflection_ratio > RECOMMEND_RATIO:
            return name, f"L/{result.deflection_ratio:.0f} deflection ratio"
    return "F54", "Maximum size recommended - consider reducing span or load"
