# rigsim/reflections.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import logging
import math

import numpy as np
import trimesh

from .config import (
    DEFAULT_SURFACE_AREA_M2,
    EARLY_REFLECTION_WINDOW_MS,
    MAX_REVERB_TIME_S,
    OCTAVE_BANDS,
    REFERENCE_BAND,
    SPEED_OF_SOUND,
)
from .errors import InvalidInputError
from .geometry import Plane, Vec3, coplanar_patches
from .materials import get_material
from .physics import as_vec3, db_to_power, power_to_db, to_tuple

logger = logging.getLogger(__name__)


class SurfaceKind(Enum):
    FLOOR = "floor"
    WALL = "wall"
    CEILING = "ceiling"


@dataclass(frozen=True)
class ReflectionSurface:
    id: str
    kind: SurfaceKind
    plane: Plane
    material: str
    absorption: Mapping[int, float]      # band -> alpha in [0, 1]
    area: Optional[float] = None         # m^2, when known

    def __post_init__(self):
        object.__setattr__(self, "kind", SurfaceKind(self.kind))
        for band, alpha in self.absorption.items():
            if not 0.0 <= float(alpha) <= 1.0:
                raise InvalidInputError(
                    f"Absorption coefficient {alpha} at {band} Hz outside [0, 1] on surface {self.id}")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ReflectionSurface":
        plane = d["plane"]
        material = str(d.get("material", "concrete"))
        absorption = d.get("absorption") or get_material(material).alpha
        return cls(str(d["id"]), SurfaceKind(d.get("kind", d.get("type", "wall"))),
                   Plane(tuple(plane["normal"]), float(plane.get("constant", 0.0))),
                   material, {int(b): float(a) for b, a in absorption.items()}, d.get("area"))


def make_surface(id: str, kind, plane: Plane, material: str = "concrete",
                 area: Optional[float] = None) -> ReflectionSurface:
    return ReflectionSurface(id, SurfaceKind(kind), plane, material, dict(get_material(material).alpha), area)


@dataclass(frozen=True)
class Reflection:
    surface_id: str
    mirror_source: Vec3
    reflection_point: Vec3
    direct_path: float         # source -> reflection point
    reflected_path: float      # reflection point -> listener
    total_path: float
    delay_ms: float            # relative to the direct sound
    attenuation: Dict[int, float]   # band -> absorption loss (dB)

    def loss(self, band: int) -> float:
        return self.attenuation.get(int(band), 0.0)

# -----------------------------
# Rooms
# -----------------------------

def create_default_room(width: float = 40.0, depth: float = 40.0, height: float = 10.0,
                        floor_material: str = "concrete", wall_material: str = "concrete",
                        ceiling_material: str = "concrete") -> List[ReflectionSurface]:
    """Shoebox room: floor at y=0, centered on x=z=0, normals facing inward."""
    w, d, h = float(width), float(depth), float(height)
    return [
        make_surface("floor", SurfaceKind.FLOOR, Plane((0, 1, 0), 0.0), floor_material, w * d),
        make_surface("ceiling", SurfaceKind.CEILING, Plane((0, -1, 0), h), ceiling_material, w * d),
        make_surface("wall-front", SurfaceKind.WALL, Plane((0, 0, 1), d / 2), wall_material, w * h),
        make_surface("wall-back", SurfaceKind.WALL, Plane((0, 0, -1), d / 2), wall_material, w * h),
        make_surface("wall-left", SurfaceKind.WALL, Plane((1, 0, 0), w / 2), wall_material, d * h),
        make_surface("wall-right", SurfaceKind.WALL, Plane((-1, 0, 0), w / 2), wall_material, d * h),
    ]


def surfaces_from_mesh(mesh: "trimesh.Trimesh", material: str = "concrete",
                       materials: Optional[Mapping[SurfaceKind, str]] = None) -> List[ReflectionSurface]:
    """
    One surface per planar patch of a closed venue mesh (Y up). Patches
    facing up are floors, facing down are ceilings, the rest walls.
    """
    out: List[ReflectionSurface] = []
    counts: Dict[SurfaceKind, int] = {}
    for patch in coplanar_patches(mesh):
        ny = patch.plane.normal[1]
        kind = SurfaceKind.FLOOR if ny > 0.9 else SurfaceKind.CEILING if ny < -0.9 else SurfaceKind.WALL
        i = counts.get(kind, 0)
        counts[kind] = i + 1
        mat = (materials or {}).get(kind, material)
        out.append(make_surface(f"{kind.value}-{i}", kind, patch.plane, mat, patch.area))
    logger.debug("Mesh with %d faces -> %d reflection surfaces", len(mesh.faces), len(out))
    return out


def room_volume(mesh: "trimesh.Trimesh") -> float:
    return abs(float(mesh.volume))

# -----------------------------
# Mirror-image reflections
# -----------------------------

def reflection_loss_db(alpha: float) -> float:
    if alpha >= 1.0:
        return math.inf
    return -10.0 * math.log10(1.0 - alpha)


def calculate_reflection(source, listener, surface: ReflectionSurface,
                         bands: Sequence[int] = OCTAVE_BANDS,
                         c: float = SPEED_OF_SOUND) -> Optional[Reflection]:
    """First-order specular reflection; None when the geometry admits none."""
    s = as_vec3(source)
    l = as_vec3(listener)
    # source and listener must share a side of the plane
    if surface.plane.distance_to_point(s) * surface.plane.distance_to_point(l) < 0:
        return None
    mirror = surface.plane.mirror_point(s)
    point = surface.plane.ray_intersection(mirror, l - mirror)
    if point is None:
        return None

    direct_path = float(np.linalg.norm(point - s))
    reflected_path = float(np.linalg.norm(l - point))
    total = direct_path + reflected_path
    direct_distance = float(np.linalg.norm(l - s))
    delay_ms = (total - direct_distance) / c * 1000.0

    attenuation = {int(b): reflection_loss_db(float(surface.absorption[int(b)]))
                   for b in bands if int(b) in surface.absorption}

    return Reflection(
        surface_id=surface.id,
        mirror_source=to_tuple(mirror),
        reflection_point=to_tuple(point),
        direct_path=direct_path,
        reflected_path=reflected_path,
        total_path=total,
        delay_ms=delay_ms,
        attenuation=attenuation,
    )


def calculate_all_reflections(source, listener, surfaces: Iterable[ReflectionSurface],
                              max_delay_ms: float = EARLY_REFLECTION_WINDOW_MS,
                              bands: Sequence[int] = OCTAVE_BANDS,
                              c: float = SPEED_OF_SOUND) -> List[Reflection]:
    """Early reflections within max_delay_ms, earliest first."""
    out: List[Reflection] = []
    for surface in surfaces:
        r = calculate_reflection(source, listener, surface, bands, c)
        if r is not None and r.delay_ms <= max_delay_ms:
            out.append(r)
    out.sort(key=lambda r: r.delay_ms)
    return out


def combine_direct_and_reflected_spl(direct_spl: float, reflections: Iterable[Reflection],
                                     band: int = REFERENCE_BAND) -> float:
    total = db_to_power(direct_spl)
    for r in reflections:
        reflected = direct_spl - r.loss(band)
        if reflected > 0:
            total += db_to_power(reflected)
    return power_to_db(total)


def estimate_reverb_time(room_volume_m3: float, surfaces: Iterable[ReflectionSurface],
                         band: int = REFERENCE_BAND) -> float:
    """Sabine T60 = 0.161 V / A, capped at 5 s. Surfaces without an area count as 100 m^2."""
    absorption = 0.0
    for s in surfaces:
        area = DEFAULT_SURFACE_AREA_M2 if s.area is None else float(s.area)
        absorption += area * float(s.absorption[int(band)])
    if absorption <= 0:
        return 0.0
    return min(0.161 * float(room_volume_m3) / absorption, MAX_REVERB_TIME_S)
