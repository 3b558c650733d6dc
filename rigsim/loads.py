# rigsim/loads.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import math

import numpy as np

from .advisories import Advisory, AdvisoryKind, messages
from .config import (
    CRITICAL_ANGLE_DEG,
    DYNAMIC_FACTOR,
    GRAVITY,
    MIN_SAFETY_FACTOR,
    NEAR_CAPACITY_PCT,
    STEEP_ANGLE_DEG,
    WLL_DESIGN_FACTOR,
)
from .errors import InvalidInputError
from .geometry import Vec3, angle_from_vertical
from .physics import as_vec3, to_tuple, unit

logger = logging.getLogger(__name__)


class RiggingPointKind(Enum):
    MOTOR = "motor"
    TRUSS = "truss"
    FIXED = "fixed"


@dataclass(frozen=True)
class RiggingPoint:
    id: str
    position: Vec3
    kind: RiggingPointKind = RiggingPointKind.MOTOR
    capacity: Optional[float] = None      # kg, working load limit

    def __post_init__(self):
        object.__setattr__(self, "position", to_tuple(self.position))
        object.__setattr__(self, "kind", RiggingPointKind(self.kind))
        if self.capacity is not None and self.capacity <= 0:
            object.__setattr__(self, "capacity", None)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "RiggingPoint":
        return cls(str(d["id"]), tuple(d["position"]), RiggingPointKind(d.get("kind", d.get("type", "motor"))),
                   d.get("capacity"))


@dataclass(frozen=True)
class SuspendedLoad:
    id: str
    weight: float                          # kg
    position: Vec3
    attached_to: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.weight < 0:
            raise InvalidInputError(f"Load {self.id} has negative weight {self.weight}")
        object.__setattr__(self, "position", to_tuple(self.position))
        object.__setattr__(self, "attached_to", tuple(str(a) for a in self.attached_to))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "SuspendedLoad":
        return cls(str(d["id"]), float(d["weight"]), tuple(d["position"]),
                   tuple(d.get("attached_to", d.get("attachedTo", ()))))


@dataclass(frozen=True)
class LoadDistributionParams:
    rigging_points: Sequence[RiggingPoint]
    loads: Sequence[SuspendedLoad]

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "LoadDistributionParams":
        points = d.get("rigging_points", d.get("riggingPoints", ()))
        return cls(tuple(RiggingPoint.from_dict(p) for p in points),
                   tuple(SuspendedLoad.from_dict(l) for l in d.get("loads", ())))


@dataclass(frozen=True)
class PointLoadResult:
    point_id: str
    static_load: float       # kg
    dynamic_load: float      # kg, static x dynamic factor
    tension: float           # N, with dynamic factor
    utilization: float       # % of capacity, 0 when capacity unknown
    angle: float             # worst attachment angle from vertical (deg)


@dataclass(frozen=True)
class LoadDistributionResult:
    point_loads: List[PointLoadResult]
    total_weight: float
    max_utilization: float
    safety_factor: float
    safe: bool
    advisories: List[Advisory] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return messages(self.advisories)

    def point(self, point_id: str) -> PointLoadResult:
        for p in self.point_loads:
            if p.point_id == point_id:
                return p
        raise KeyError(point_id)

# -----------------------------
# Angle checks & tension vectors
# -----------------------------

@dataclass(frozen=True)
class AngleCheck:
    safe: bool
    advisory: Optional[Advisory] = None


def tension_multiplier(angle_deg: float) -> float:
    c = math.cos(math.radians(angle_deg))
    return math.inf if c <= 1e-12 else 1.0 / c


def validate_rigging_angle(angle: float, subject_id: Optional[str] = None) -> AngleCheck:
    prefix = f"{subject_id}: " if subject_id else ""
    if angle > CRITICAL_ANGLE_DEG:
        return AngleCheck(False, Advisory(
            AdvisoryKind.CRITICAL_ANGLE,
            f"{prefix}CRITICAL angle {angle:.1f}° from vertical (>{CRITICAL_ANGLE_DEG:g}°)", subject_id))
    if angle > STEEP_ANGLE_DEG:
        return AngleCheck(True, Advisory(
            AdvisoryKind.STEEP_ANGLE,
            f"{prefix}Steep angle {angle:.1f}° increases tension by {tension_multiplier(angle):.2f}x", subject_id))
    return AngleCheck(True)


@dataclass(frozen=True)
class TensionVector:
    magnitude: float          # N
    direction: Vec3           # load -> rigging point
    angle: float              # deg from vertical
    horizontal_component: float
    vertical_component: float


def calculate_tension_vector(rigging_point, load_point, load_weight: float,
                             num_attachments: int = 1) -> TensionVector:
    """Cable tension T = (W/n) g / cos(angle) for an equal share of the load."""
    d = as_vec3(rigging_point) - as_vec3(load_point)
    angle = angle_from_vertical(load_point, rigging_point)
    force = load_weight / max(int(num_attachments), 1) * GRAVITY
    magnitude = force * tension_multiplier(angle)
    rad = math.radians(angle)
    return TensionVector(
        magnitude=magnitude,
        direction=to_tuple(unit(d)),
        angle=angle,
        horizontal_component=force * math.tan(rad) if math.isfinite(magnitude) else math.inf,
        vertical_component=force,
    )


@dataclass(frozen=True)
class ResultantForce:
    total_force: float
    direction: Vec3
    tension_vectors: List[TensionVector]


def calculate_resultant_force(rigging_point, loads: Sequence[Tuple[Any, float]]) -> ResultantForce:
    """Vector sum of the cable pulls at one point; loads are (position, weight) pairs."""
    vectors = [calculate_tension_vector(rigging_point, pos, weight, 1) for pos, weight in loads]
    total = np.zeros(3, dtype=float)
    for v in vectors:
        total += as_vec3(v.direction) * v.magnitude
    return ResultantForce(float(np.linalg.norm(total)), to_tuple(unit(total)), vectors)

# -----------------------------
# Load distribution
# -----------------------------

def calculate_load_distribution(params: LoadDistributionParams) -> LoadDistributionResult:
    """
    Share every load equally across its rigging points and rate each point
    against its working load limit (BGV-C1: dynamic factor 1.5, 5:1 safety).
    """
    points = list(params.rigging_points)
    by_id: Dict[str, RiggingPoint] = {p.id: p for p in points}
    acc = {p.id: {"static": 0.0, "tension": 0.0, "angle": 0.0} for p in points}
    advisories: List[Advisory] = []
    total_weight = 0.0

    for load in params.loads:
        if not load.attached_to:
            advisories.append(Advisory(AdvisoryKind.INVALID_TOPOLOGY,
                                       f"Load {load.id} ({load.weight:g}kg) has no rigging points", load.id))
            logger.warning("Skipping load %s: no rigging points", load.id)
            continue
        unknown = [a for a in load.attached_to if a not in by_id]
        attached = [by_id[a] for a in dict.fromkeys(load.attached_to) if a in by_id]
        if unknown:
            advisories.append(Advisory(AdvisoryKind.INVALID_TOPOLOGY,
                                       f"Load {load.id} references unknown rigging points: {', '.join(unknown)}",
                                       load.id))
        if not attached:
            logger.warning("Skipping load %s: no valid rigging point references", load.id)
            continue

        total_weight += load.weight
        share = load.weight / len(attached)
        for point in attached:
            angle = angle_from_vertical(load.position, point.position)
            a = acc[point.id]
            a["static"] += share
            a["tension"] += share * GRAVITY * tension_multiplier(angle)
            a["angle"] = max(a["angle"], angle)
            check = validate_rigging_angle(angle, point.id)
            if check.advisory is not None:
                advisories.append(check.advisory)

    results: List[PointLoadResult] = []
    max_utilization = 0.0
    for point in points:
        a = acc[point.id]
        dynamic = a["static"] * DYNAMIC_FACTOR
        utilization = 0.0
        if point.capacity:
            utilization = dynamic / point.capacity * 100.0
            max_utilization = max(max_utilization, utilization)
            if utilization > 100.0:
                advisories.append(Advisory(AdvisoryKind.OVERLOAD,
                                           f"{point.id} OVERLOADED: {utilization:.1f}% capacity", point.id))
            elif utilization > NEAR_CAPACITY_PCT:
                advisories.append(Advisory(AdvisoryKind.NEAR_CAPACITY,
                                           f"{point.id} near capacity: {utilization:.1f}%", point.id))
        results.append(PointLoadResult(point.id, a["static"], dynamic, a["tension"] * DYNAMIC_FACTOR,
                                       utilization, a["angle"]))

    rated = [(by_id[r.point_id].capacity, r.dynamic_load) for r in results if by_id[r.point_id].capacity]
    if not rated:
        safety_factor = 0.0
        if results:
            advisories.append(Advisory(AdvisoryKind.LOW_SAFETY_FACTOR,
                                       "No rigging point has a rated capacity; safety factor cannot be verified"))
    else:
        max_load = max(load for _, load in rated)
        safety_factor = math.inf if max_load <= 0 else WLL_DESIGN_FACTOR * min(cap for cap, _ in rated) / max_load
        if safety_factor < MIN_SAFETY_FACTOR:
            advisories.append(Advisory(
                AdvisoryKind.LOW_SAFETY_FACTOR,
                f"Overall safety factor {safety_factor:.2f}:1 below BGV-C1 requirement ({MIN_SAFETY_FACTOR:g}:1)"))

    safe = safety_factor >= MIN_SAFETY_FACTOR and max_utilization <= 100.0
    return LoadDistributionResult(results, total_weight, max_utilization, safety_factor, safe, advisories)
