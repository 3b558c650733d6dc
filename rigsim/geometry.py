# rigsim/geometry.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import math

import numpy as np
import trimesh

from .config import SPEED_OF_SOUND
from .errors import InvalidInputError
from .physics import as_vec3, to_tuple, unit

Vec3 = Tuple[float, float, float]

# Unrotated speaker axis (scene convention: Y up, speakers face -Z)
FORWARD: Vec3 = (0.0, 0.0, -1.0)


# -----------------------------
# Primitives
# -----------------------------

@dataclass(frozen=True)
class RayHit:
    intersects: bool
    distance: float = math.inf


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box."""
    min: Vec3
    max: Vec3

    @classmethod
    def from_center(cls, center, size) -> "Box":
        c = as_vec3(center)
        h = 0.5 * np.abs(as_vec3(size))
        return cls(to_tuple(c - h), to_tuple(c + h))

    @property
    def center(self) -> Vec3:
        return to_tuple(0.5 * (as_vec3(self.min) + as_vec3(self.max)))

    @property
    def size(self) -> Vec3:
        return to_tuple(as_vec3(self.max) - as_vec3(self.min))


@dataclass(frozen=True)
class Plane:
    """Plane n.x + constant = 0 with unit normal n."""
    normal: Vec3
    constant: float = 0.0

    def __post_init__(self):
        n = as_vec3(self.normal)
        length = float(np.linalg.norm(n))
        if length == 0.0:
            raise InvalidInputError("Plane normal must be non-zero")
        object.__setattr__(self, "normal", to_tuple(n / length))
        object.__setattr__(self, "constant", float(self.constant) / length)

    @classmethod
    def from_normal_and_point(cls, normal, point) -> "Plane":
        n = unit(as_vec3(normal))
        return cls(to_tuple(n), -float(np.dot(n, as_vec3(point))))

    def distance_to_point(self, p) -> float:
        return float(np.dot(as_vec3(self.normal), as_vec3(p))) + self.constant

    def mirror_point(self, p) -> np.ndarray:
        q = as_vec3(p)
        return q - 2.0 * self.distance_to_point(q) * as_vec3(self.normal)

    def ray_intersection(self, origin, direction) -> Optional[np.ndarray]:
        """Forward hit of a ray with the plane; None when parallel or behind."""
        o = as_vec3(origin)
        d = as_vec3(direction)
        if float(np.linalg.norm(d)) == 0.0:
            return None
        d = unit(d)
        n = as_vec3(self.normal)
        denom = float(np.dot(n, d))
        if abs(denom) < 1e-4:
            return None
        t = -(float(np.dot(n, o)) + self.constant) / denom
        if t < 0:
            return None
        return o + d * t


# -----------------------------
# Ray tests
# -----------------------------

def ray_box_intersection(origin, direction, box: Box) -> RayHit:
    """
    Slab test. The distance is to the entry point, or to the exit point when
    the origin is inside the box.
    """
    o = as_vec3(origin)
    d = as_vec3(direction)
    if float(np.linalg.norm(d)) == 0.0:
        return RayHit(False)
    d = unit(d)
    lo = as_vec3(box.min)
    hi = as_vec3(box.max)

    t_near, t_far = -math.inf, math.inf
    for i in range(3):
        if abs(d[i]) < 1e-12:
            if o[i] < lo[i] or o[i] > hi[i]:
                return RayHit(False)
            continue
        t1 = (lo[i] - o[i]) / d[i]
        t2 = (hi[i] - o[i]) / d[i]
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far:
            return RayHit(False)
    if t_far < 0:
        return RayHit(False)
    return RayHit(True, float(t_near if t_near >= 0 else t_far))


def segment_hits_box(a, b, box: Box) -> RayHit:
    """Ray-box test restricted to the segment a->b (hit strictly before b)."""
    length = float(np.linalg.norm(as_vec3(b) - as_vec3(a)))
    hit = ray_box_intersection(a, as_vec3(b) - as_vec3(a), box)
    if not hit.intersects or hit.distance >= length:
        return RayHit(False)
    return hit


# -----------------------------
# Angles & Fresnel zone
# -----------------------------

def angle_from_vertical(a, b) -> float:
    """Angle (deg) between the Y axis and the vector a->b."""
    d = as_vec3(b) - as_vec3(a)
    horizontal = math.hypot(float(d[0]), float(d[2]))
    return math.degrees(math.atan2(horizontal, abs(float(d[1]))))


def fresnel_radius(source, listener, obstacle_point, frequency: float,
                   c: float = SPEED_OF_SOUND) -> float:
    """First Fresnel zone radius: sqrt(lambda*d1*d2/(d1+d2))."""
    lam = c / float(frequency)
    p = as_vec3(obstacle_point)
    d1 = float(np.linalg.norm(p - as_vec3(source)))
    d2 = float(np.linalg.norm(as_vec3(listener) - p))
    total = d1 + d2
    if total == 0.0:
        return 0.0
    return math.sqrt(lam * d1 * d2 / total)


def rotation_matrix(rotation: Sequence[float]) -> np.ndarray:
    """XYZ Euler angles (radians) -> 3x3 matrix, Rx @ Ry @ Rz."""
    rx, ry, rz = (float(r) for r in rotation)
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    Rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]], dtype=float)
    Ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]], dtype=float)
    Rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]], dtype=float)
    return Rx @ Ry @ Rz


def forward_vector(rotation: Sequence[float] = (0.0, 0.0, 0.0)) -> np.ndarray:
    return unit(rotation_matrix(rotation) @ as_vec3(FORWARD))


def angle_between(u, v) -> float:
    a = unit(as_vec3(u))
    b = unit(as_vec3(v))
    return math.degrees(math.acos(float(np.clip(np.dot(a, b), -1.0, 1.0))))


# -----------------------------
# Room meshes
# -----------------------------

@dataclass(frozen=True)
class PlanarPatch:
    plane: Plane          # inward-facing
    area: float
    centroid: Vec3


def build_trimesh_from_arrays(V: np.ndarray, F: np.ndarray) -> "trimesh.Trimesh":
    V = np.asarray(V, dtype=float)
    F = np.asarray(F, dtype=np.int64)
    return trimesh.Trimesh(vertices=V, faces=F, process=False)


def box_room_mesh(width: float, depth: float, height: float) -> "trimesh.Trimesh":
    """Closed shoebox with the floor at y=0, centered on x=z=0."""
    mesh = trimesh.creation.box(extents=[float(width), float(height), float(depth)])
    mesh.apply_translation([0.0, float(height) / 2.0, 0.0])
    return mesh


def coplanar_patches(mesh: "trimesh.Trimesh", decimals: int = 6) -> List[PlanarPatch]:
    """
    Group faces of a closed, outward-wound mesh into planar patches.
    Normals are flipped so each patch plane faces into the room.
    """
    F = int(mesh.faces.shape[0])
    if F == 0:
        return []
    normals = np.asarray(mesh.face_normals, dtype=float)
    centers = np.asarray(mesh.triangles_center, dtype=float)
    areas = np.asarray(mesh.area_faces, dtype=float)
    offsets = np.einsum("ij,ij->i", normals, centers)

    key = np.round(np.column_stack([normals, offsets]), decimals) + 0.0
    _, inverse = np.unique(key, axis=0, return_inverse=True)
    inverse = np.asarray(inverse).reshape(-1)

    patches: List[PlanarPatch] = []
    for g in range(int(inverse.max()) + 1):
        idx = np.nonzero(inverse == g)[0]
        area = float(areas[idx].sum())
        if area <= 0:
            continue
        centroid = (centers[idx] * areas[idx, None]).sum(axis=0) / area
        inward = -unit(normals[idx].mean(axis=0))
        patches.append(PlanarPatch(
            plane=Plane.from_normal_and_point(inward, centroid),
            area=area,
            centroid=to_tuple(centroid),
        ))
    return patches
