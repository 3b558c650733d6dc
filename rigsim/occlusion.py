"""
Obstacle occlusion.

Obstacles are axis-aligned boxes. A box shadows a listener when the direct
ray from the source enters it before reaching the listener; the depth of the
shadow comes from how much of the first Fresnel zone at the hit point the
obstacle covers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from .config import OCCLUSION_BAND_FACTOR, REFERENCE_BAND, SPEED_OF_SOUND
from .geometry import Box, Vec3, fresnel_radius, ray_box_intersection, segment_hits_box
from .physics import as_vec3, to_tuple, unit

FULL_SHADOW_DB = 20.0


class ObstacleCategory(Enum):
    STAGE = "stage"
    TRUSS = "truss"
    SCENERY = "scenery"
    WALL = "wall"
    OTHER = "other"


class ShadowType(Enum):
    NONE = "none"
    EDGE = "edge"
    PARTIAL = "partial"
    FULL = "full"


@dataclass(frozen=True)
class Obstacle:
    id: str
    category: ObstacleCategory
    position: Vec3
    dimensions: Vec3          # width (x), height (y), depth (z)

    def __post_init__(self):
        object.__setattr__(self, "category", ObstacleCategory(self.category))
        object.__setattr__(self, "position", to_tuple(self.position))
        object.__setattr__(self, "dimensions", to_tuple(np.abs(as_vec3(self.dimensions))))

    @property
    def bounds(self) -> Box:
        return Box.from_center(self.position, self.dimensions)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Obstacle":
        dims = d["dimensions"]
        if isinstance(dims, Mapping):
            dims = (dims["w"], dims["h"], dims["d"])
        return cls(str(d["id"]), ObstacleCategory(d.get("category", d.get("type", "other"))),
                   tuple(d["position"]), tuple(dims))


def create_obstacle(id: str, category, position, dimensions) -> Obstacle:
    return Obstacle(id, ObstacleCategory(category), tuple(position), tuple(dimensions))


@dataclass(frozen=True)
class OcclusionResult:
    is_occluded: bool
    attenuation_db: float
    diffraction_possible: bool
    fresnel_zone_blocked: float       # 0 = clear, 1 = fully blocked
    shadow_type: ShadowType
    obstacle_id: Optional[str] = None


NO_OCCLUSION = OcclusionResult(False, 0.0, False, 0.0, ShadowType.NONE)


def check_occlusion(source, listener, obstacle: Obstacle, band: int = REFERENCE_BAND,
                    c: float = SPEED_OF_SOUND) -> OcclusionResult:
    s = as_vec3(source)
    l = as_vec3(listener)
    total = float(np.linalg.norm(l - s))
    if total == 0.0:
        return NO_OCCLUSION

    direction = unit(l - s)
    hit = ray_box_intersection(s, direction, obstacle.bounds)
    if not hit.intersects or hit.distance >= total:
        return NO_OCCLUSION

    point = s + direction * hit.distance
    radius = fresnel_radius(s, l, point, band, c)
    obstacle_radius = min(obstacle.dimensions[0], obstacle.dimensions[1]) / 2.0
    blocked = 1.0 if radius <= 0.0 else min(1.0, obstacle_radius / radius)

    if blocked > 0.9:
        return OcclusionResult(True, FULL_SHADOW_DB, False, blocked, ShadowType.FULL, obstacle.id)
    if blocked > 0.3:
        return OcclusionResult(True, 6.0 + 14.0 * blocked, True, blocked, ShadowType.PARTIAL, obstacle.id)
    return OcclusionResult(True, 6.0 * blocked, True, blocked, ShadowType.EDGE, obstacle.id)


def check_multiple_obstacles(source, listener, obstacles: Iterable[Obstacle],
                             band: int = REFERENCE_BAND, c: float = SPEED_OF_SOUND) -> OcclusionResult:
    """Worst single obstacle; attenuations are not accumulated."""
    worst = NO_OCCLUSION
    for obstacle in obstacles:
        result = check_occlusion(source, listener, obstacle, band, c)
        if result.attenuation_db > worst.attenuation_db:
            worst = result
    return worst


def apply_occlusion(base_spl: float, occlusion: OcclusionResult) -> float:
    if not occlusion.is_occluded:
        return base_spl
    return max(0.0, base_spl - occlusion.attenuation_db)


def get_frequency_dependent_occlusion(base_attenuation: float, band: int) -> float:
    """Scale a 1 kHz attenuation to another band (low bands diffract around more)."""
    return base_attenuation * OCCLUSION_BAND_FACTOR[int(band)]


def has_line_of_sight(source, listener, obstacles: Iterable[Obstacle]) -> bool:
    for obstacle in obstacles:
        if segment_hits_box(source, listener, obstacle.bounds).intersects:
            return False
    return True


@dataclass(frozen=True)
class ShadowZone:
    point: Vec3
    shadow_level: float


def find_shadow_zones(sources: Sequence, points: Sequence, obstacles: Sequence[Obstacle],
                      band: int = REFERENCE_BAND) -> List[ShadowZone]:
    """Measurement points where some source's Fresnel zone is more than 30 % blocked."""
    zones: List[ShadowZone] = []
    for point in points:
        level = 0.0
        for source in sources:
            level = max(level, check_multiple_obstacles(source, point, obstacles, band).fresnel_zone_blocked)
        if level > 0.3:
            zones.append(ShadowZone(to_tuple(point), level))
    return zones
