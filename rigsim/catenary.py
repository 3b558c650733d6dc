"""
Cable sag under self weight plus a suspended load.

Uses the parabolic approximation of the catenary, accurate to about 1 % for
sag below span/8, which covers practical rigging spans. Horizontal tension
is estimated as half of the total weight force.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple
import math

from .advisories import Advisory, AdvisoryKind, messages
from .config import CRITICAL_SAFETY_FACTOR, GRAVITY, MIN_SAFETY_FACTOR
from .errors import InvalidInputError

CURVE_POINTS = 21


@dataclass(frozen=True)
class CatenaryParams:
    span: float                 # m between supports
    weight: float               # kg suspended
    cable_weight: float         # kg/m
    height_diff: float = 0.0    # m, right support minus left support
    max_sag: Optional[float] = None

    def __post_init__(self):
        if not self.span > 0:
            raise InvalidInputError(f"Span must be positive, got {self.span}")
        if self.weight < 0 or self.cable_weight < 0:
            raise InvalidInputError("Weights must not be negative")
        if self.weight == 0 and self.cable_weight == 0:
            raise InvalidInputError("Cable carries no weight; sag is undefined")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CatenaryParams":
        max_sag = d.get("max_sag", d.get("maxSag"))
        return cls(
            span=float(d["span"]),
            weight=float(d["weight"]),
            cable_weight=float(d.get("cable_weight", d.get("cableWeight", 0.0))),
            height_diff=float(d.get("height_diff", d.get("heightDiff", 0.0))),
            max_sag=None if max_sag is None else float(max_sag),
        )


@dataclass(frozen=True)
class CatenaryResult:
    sag: float                  # m at midspan
    cable_length: float         # m
    max_tension: float          # N at the supports
    min_tension: float          # N at the low point (horizontal)
    curve: List[Tuple[float, float]]   # (x, y), x centered on midspan, left support at y=0
    sag_ok: bool = True


def calculate_catenary(params: CatenaryParams) -> CatenaryResult:
    span = params.span
    density = params.cable_weight + params.weight / span     # kg/m
    w = density * GRAVITY                                    # N/m

    h_tension = (params.weight + params.cable_weight * span) * GRAVITY * 0.5
    sag = w * span ** 2 / (8.0 * h_tension)
    cable_length = span * math.sqrt(1.0 + 8.0 * (sag / span) ** 2 / 3.0)

    v_tension = w * span / 2.0
    max_tension = math.hypot(h_tension, v_tension)

    half = span / 2.0
    curve: List[Tuple[float, float]] = []
    for i in range(CURVE_POINTS):
        x = i / (CURVE_POINTS - 1) * span - half
        y = sag * (x / half) ** 2 - sag
        curve.append((x, y + params.height_diff * (x / span + 0.5)))

    sag_ok = params.max_sag is None or sag <= params.max_sag
    return CatenaryResult(sag, cable_length, max_tension, h_tension, curve, sag_ok)


def calculate_required_cable_strength(max_tension: float, safety_factor: float = MIN_SAFETY_FACTOR) -> float:
    return max_tension * safety_factor


@dataclass(frozen=True)
class CableSafetyResult:
    safe: bool
    actual_safety_factor: float
    advisories: List[Advisory] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return messages(self.advisories)


def validate_cable_safety(breaking_load: float, max_tension: float,
                          required_safety_factor: float = MIN_SAFETY_FACTOR) -> CableSafetyResult:
    """Breaking load and tension in newtons."""
    if max_tension <= 0:
        return CableSafetyResult(True, math.inf)
    factor = breaking_load / max_tension
    advisories: List[Advisory] = []
    if factor < required_safety_factor:
        advisories.append(Advisory(
            AdvisoryKind.LOW_SAFETY_FACTOR,
            f"Safety factor {factor:.2f}:1 is below required {required_safety_factor:g}:1"))
    if factor < CRITICAL_SAFETY_FACTOR:
        advisories.append(Advisory(
            AdvisoryKind.LOW_SAFETY_FACTOR,
            f"CRITICAL: Safety factor below {CRITICAL_SAFETY_FACTOR:g}:1 - immediate failure risk"))
    return CableSafetyResult(factor >= required_safety_factor, factor, advisories)
