# rigsim/coverage.py
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence
import json
import logging
import math
import time

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import InvalidInputError
from .geometry import Vec3
from .occlusion import Obstacle
from .propagation import SourceSpec
from .reflections import ReflectionSurface
from .spl import CoverageQuality, SPLResult, calculate_total_spl, evaluate_coverage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageBounds:
    min_x: float
    max_x: float
    min_z: float
    max_z: float


@dataclass(frozen=True)
class CoverageGridParams:
    bounds: CoverageBounds
    resolution: float = 1.0          # m between points
    height: float = 1.2              # listening height (y)
    frequency: float = 0.0           # Hz; <= 0 for A-weighted composite
    show_reflections: bool = True
    show_occlusion: bool = True

    def __post_init__(self):
        b = self.bounds
        if not self.resolution > 0:
            raise InvalidInputError(f"Grid resolution must be positive, got {self.resolution}")
        if b.max_x < b.min_x or b.max_z < b.min_z:
            raise InvalidInputError("Grid bounds have max < min", {"bounds": b})

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CoverageGridParams":
        b = d["bounds"]
        bounds = CoverageBounds(float(b.get("min_x", b.get("minX"))), float(b.get("max_x", b.get("maxX"))),
                                float(b.get("min_z", b.get("minZ"))), float(b.get("max_z", b.get("maxZ"))))
        return cls(
            bounds=bounds,
            resolution=float(d.get("resolution", 1.0)),
            height=float(d.get("height", 1.2)),
            frequency=float(d.get("frequency", 0.0)),
            show_reflections=bool(d.get("show_reflections", d.get("showReflections", True))),
            show_occlusion=bool(d.get("show_occlusion", d.get("showOcclusion", True))),
        )


@dataclass(frozen=True)
class CoveragePoint:
    position: Vec3
    spl: float
    quality: CoverageQuality
    result: SPLResult

    @property
    def color(self) -> str:
        return self.quality.color


@dataclass(frozen=True)
class CoverageGrid:
    points: List[CoveragePoint]      # x-major: index = ix * depth + iz
    width: int                       # points along x
    depth: int                       # points along z
    avg_spl: float
    min_spl: float
    max_spl: float
    coverage: Dict[CoverageQuality, float]   # percent of points per quality

    def spl_matrix(self) -> np.ndarray:
        """SPL as a (depth, width) array: rows follow z, columns follow x."""
        return np.asarray([p.spl for p in self.points], dtype=float).reshape(self.width, self.depth).T

    def axes(self):
        xs = np.asarray([self.points[i * self.depth].position[0] for i in range(self.width)])
        zs = np.asarray([self.points[j].position[2] for j in range(self.depth)])
        return xs, zs


def _steps(span: float, resolution: float) -> int:
    # tolerate float noise such as 10 / 0.1 = 100.00000000000001
    return int(math.ceil(span / resolution - 1e-9))


def generate_coverage_grid(params: CoverageGridParams, sources: Sequence[SourceSpec],
                           obstacles: Sequence[Obstacle] = (),
                           surfaces: Sequence[ReflectionSurface] = (),
                           cfg: Optional[EngineConfig] = None) -> CoverageGrid:
    """Sample the XZ rectangle at params.height and classify every point."""
    t0 = time.perf_counter()
    cfg = replace(cfg or DEFAULT_CONFIG,
                  show_reflections=params.show_reflections,
                  show_occlusion=params.show_occlusion)
    b = params.bounds
    nx = _steps(b.max_x - b.min_x, params.resolution)
    nz = _steps(b.max_z - b.min_z, params.resolution)

    points: List[CoveragePoint] = []
    counts = {q: 0 for q in CoverageQuality}
    for ix in range(nx + 1):
        for iz in range(nz + 1):
            pos = (b.min_x + ix * params.resolution, float(params.height), b.min_z + iz * params.resolution)
            result = calculate_total_spl(pos, sources, params.frequency, obstacles, surfaces, cfg)
            quality = evaluate_coverage(result.total_spl)
            counts[quality] += 1
            points.append(CoveragePoint(pos, result.total_spl, quality, result))

    spls = np.asarray([p.spl for p in points], dtype=float)
    n = len(points)
    grid = CoverageGrid(
        points=points,
        width=nx + 1,
        depth=nz + 1,
        avg_spl=float(spls.mean()),
        min_spl=float(spls.min()),
        max_spl=float(spls.max()),
        coverage={q: counts[q] / n * 100.0 for q in CoverageQuality},
    )
    logger.debug("Coverage grid %dx%d, %d sources in %.3fs (avg %.1f dB)",
                 grid.width, grid.depth, len(sources), time.perf_counter() - t0, grid.avg_spl)
    return grid


def generate_quick_grid(params: CoverageGridParams, sources: Sequence[SourceSpec],
                        obstacles: Sequence[Obstacle] = (),
                        surfaces: Sequence[ReflectionSurface] = (),
                        cfg: Optional[EngineConfig] = None) -> CoverageGrid:
    """Preview grid at half the point density along each axis."""
    return generate_coverage_grid(replace(params, resolution=params.resolution * 2.0),
                                  sources, obstacles, surfaces, cfg)


def find_interference_zones(grid: CoverageGrid) -> List[CoveragePoint]:
    return [p for p in grid.points if p.result.has_interference]


def export_grid_data(grid: CoverageGrid) -> str:
    points = [{
        "x": round(p.position[0], 2),
        "y": round(p.position[1], 2),
        "z": round(p.position[2], 2),
        "spl": round(p.spl, 1),
        "quality": p.quality.value,
    } for p in grid.points]
    return json.dumps({
        "metadata": {
            "width": grid.width,
            "depth": grid.depth,
            "avg_spl": round(grid.avg_spl, 1),
            "min_spl": round(grid.min_spl, 1),
            "max_spl": round(grid.max_spl, 1),
            "coverage": {q.value: pct for q, pct in grid.coverage.items()},
        },
        "points": points,
    }, indent=2)
