# rigsim/caching.py
from __future__ import annotations

from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence
import hashlib
import json

import numpy as np
import streamlit as st

from .config import EngineConfig
from .coverage import CoverageGrid, CoverageGridParams
from .errors import RigSimError
from .geometry import build_trimesh_from_arrays
from .occlusion import Obstacle
from .propagation import SourceSpec
from .reflections import ReflectionSurface, SurfaceKind, room_volume, surfaces_from_mesh
from .worker import CalculationType, CalculationWorker, CoverageJob


# ------------ Helpers / hashing ------------

def _plain(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return _plain(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _plain(v) for k, v in sorted(obj.items(), key=lambda kv: str(kv[0]))}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    return obj


def scene_hash(*parts: Any) -> str:
    """Stable key for engine inputs (dataclasses, enums, mappings, arrays)."""
    h = hashlib.sha1()
    for part in parts:
        h.update(json.dumps(_plain(part), sort_keys=True, default=str).encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()


def mesh_hash_from_arrays(V: np.ndarray, F: np.ndarray) -> str:
    h = hashlib.sha1()
    h.update(np.asarray(V, dtype=np.float32).tobytes())
    h.update(np.asarray(F, dtype=np.int32).tobytes())
    return h.hexdigest()


# ------------ Caching primitives ------------

@st.cache_data(show_spinner=False)
def room_surfaces_cached(V: np.ndarray, F: np.ndarray, floor: str = "concrete", wall: str = "concrete",
                         ceiling: str = "concrete") -> List[ReflectionSurface]:
    mesh = build_trimesh_from_arrays(V, F)
    materials = {SurfaceKind.FLOOR: floor, SurfaceKind.WALL: wall, SurfaceKind.CEILING: ceiling}
    return surfaces_from_mesh(mesh, wall, materials)


@st.cache_data(show_spinner=False)
def room_volume_cached(V: np.ndarray, F: np.ndarray) -> float:
    return room_volume(build_trimesh_from_arrays(V, F))


@st.cache_resource(show_spinner=False)
def calculation_worker() -> CalculationWorker:
    return CalculationWorker()


# ------------ Main cached grid ------------

@st.cache_data(show_spinner=True)
def coverage_grid_cached(
    scene_key: str,
    _params: CoverageGridParams,
    _sources: Sequence[SourceSpec],
    _obstacles: Sequence[Obstacle] = (),
    _surfaces: Sequence[ReflectionSurface] = (),
    _cfg: Optional[EngineConfig] = None,
) -> CoverageGrid:
    """
    Coverage grid memoised on scene_key and computed on the shared worker.
    Underscored arguments are not hashed by Streamlit; scene_key must be
    derived from them with scene_hash.
    """
    job = CoverageJob(_params, tuple(_sources), tuple(_obstacles), tuple(_surfaces))
    worker = calculation_worker()
    response = worker.calculate(CalculationType.COVERAGE_GRID, job, request_id=scene_key, cfg=_cfg)
    if not response.ok:
        raise RigSimError(f"Coverage grid failed: {response.error}", {"request_id": response.id})
    return response.result
