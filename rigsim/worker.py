"""
Background calculation worker.

Callers send a CalculationRequest {id, type, payload} and receive one
CalculationResponse {id, type, result | error} per request. Engine functions
hold no state, so a superseded request is dropped by simply ignoring its
response.

Usage:
    with CalculationWorker() as worker:
        future = worker.submit(CalculationRequest(new_request_id(), CalculationType.CATENARY,
                                                  {"span": 10, "weight": 500, "cable_weight": 2}))
        response = future.result()
"""

from __future__ import annotations

import concurrent.futures
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from .catenary import CatenaryParams, calculate_catenary
from .config import REFERENCE_BAND, EngineConfig
from .coverage import CoverageGridParams, generate_coverage_grid
from .deflection import TrussProperties, calculate_combined_deflection
from .errors import UnknownCalculationError
from .loads import LoadDistributionParams, calculate_load_distribution
from .occlusion import Obstacle
from .propagation import SourceSpec
from .reflections import ReflectionSurface
from .spl import calculate_total_spl

logger = logging.getLogger(__name__)


class CalculationType(Enum):
    CATENARY = "catenary"
    LOAD_DISTRIBUTION = "loadDistribution"
    COVERAGE_GRID = "coverageGrid"
    DEFLECTION = "deflection"
    SPL = "spl"


@dataclass(frozen=True)
class CalculationRequest:
    id: str
    type: CalculationType
    payload: Any = None


@dataclass(frozen=True)
class CalculationResponse:
    id: str
    type: str
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def new_request_id() -> str:
    return uuid.uuid4().hex

# -----------------------------
# Payloads
# -----------------------------

def _scene(d: Mapping[str, Any]):
    sources = tuple(s if isinstance(s, SourceSpec) else SourceSpec.from_dict(s) for s in d.get("sources", ()))
    obstacles = tuple(o if isinstance(o, Obstacle) else Obstacle.from_dict(o) for o in d.get("obstacles", ()))
    surfaces = tuple(s if isinstance(s, ReflectionSurface) else ReflectionSurface.from_dict(s)
                     for s in d.get("surfaces", ()))
    return sources, obstacles, surfaces


@dataclass(frozen=True)
class CoverageJob:
    params: CoverageGridParams
    sources: Sequence[SourceSpec]
    obstacles: Sequence[Obstacle] = ()
    surfaces: Sequence[ReflectionSurface] = ()

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CoverageJob":
        params = d["params"]
        if not isinstance(params, CoverageGridParams):
            params = CoverageGridParams.from_dict(params)
        return cls(params, *_scene(d))


@dataclass(frozen=True)
class SPLJob:
    target: Sequence[float]
    sources: Sequence[SourceSpec]
    frequency: float = REFERENCE_BAND
    obstacles: Sequence[Obstacle] = ()
    surfaces: Sequence[ReflectionSurface] = ()

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "SPLJob":
        sources, obstacles, surfaces = _scene(d)
        return cls(tuple(d["target"]), sources, float(d.get("frequency", REFERENCE_BAND)), obstacles, surfaces)


@dataclass(frozen=True)
class DeflectionJob:
    truss: TrussProperties
    uniform_load: float = 0.0                 # kg/m
    point_loads: Sequence[float] = ()         # kg
    include_self_weight: bool = False

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "DeflectionJob":
        truss = d["truss"]
        if not isinstance(truss, TrussProperties):
            truss = TrussProperties.from_dict(truss)
        return cls(truss, float(d.get("uniform_load", d.get("uniformLoad", 0.0))),
                   tuple(float(p) for p in d.get("point_loads", d.get("pointLoads", ()))),
                   bool(d.get("include_self_weight", False)))


def _typed(payload: Any, cls):
    return payload if isinstance(payload, cls) else cls.from_dict(payload)

# -----------------------------
# Handlers
# -----------------------------

def _run_catenary(payload, cfg):
    return calculate_catenary(_typed(payload, CatenaryParams))


def _run_loads(payload, cfg):
    return calculate_load_distribution(_typed(payload, LoadDistributionParams))


def _run_coverage(payload, cfg):
    job = _typed(payload, CoverageJob)
    return generate_coverage_grid(job.params, job.sources, job.obstacles, job.surfaces, cfg)


def _run_deflection(payload, cfg):
    job = _typed(payload, DeflectionJob)
    uniform = job.uniform_load + (job.truss.self_weight if job.include_self_weight else 0.0)
    return calculate_combined_deflection(job.truss, uniform, job.point_loads)


def _run_spl(payload, cfg):
    job = _typed(payload, SPLJob)
    return calculate_total_spl(job.target, job.sources, job.frequency, job.obstacles, job.surfaces, cfg)


HANDLERS: Dict[CalculationType, Callable[[Any, Optional[EngineConfig]], Any]] = {
    CalculationType.CATENARY: _run_catenary,
    CalculationType.LOAD_DISTRIBUTION: _run_loads,
    CalculationType.COVERAGE_GRID: _run_coverage,
    CalculationType.DEFLECTION: _run_deflection,
    CalculationType.SPL: _run_spl,
}


def handle_request(request: CalculationRequest, cfg: Optional[EngineConfig] = None) -> CalculationResponse:
    """Run one request. Never raises: failures come back as ``error``."""
    type_name = request.type.value if isinstance(request.type, CalculationType) else str(request.type)
    try:
        try:
            calc_type = CalculationType(request.type)
        except ValueError:
            raise UnknownCalculationError(request.type) from None
        result = HANDLERS[calc_type](request.payload, cfg)
    except Exception as e:
        logger.warning("Calculation %s (%s) failed: %s", request.id, type_name, e)
        return CalculationResponse(request.id, type_name, error=str(e) or type(e).__name__)
    return CalculationResponse(request.id, type_name, result=result)


class CalculationWorker:
    """Runs requests off the calling thread.

    One worker thread by default, so requests complete in submission order.
    """

    def __init__(self, max_workers: int = 1, cfg: Optional[EngineConfig] = None):
        self.cfg = cfg
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="rigsim-worker")

    def submit(self, request: CalculationRequest,
               cfg: Optional[EngineConfig] = None) -> "concurrent.futures.Future[CalculationResponse]":
        """cfg overrides the worker default for this request only."""
        return self._executor.submit(handle_request, request, cfg or self.cfg)

    def calculate(self, calc_type, payload: Any, request_id: Optional[str] = None,
                  cfg: Optional[EngineConfig] = None) -> CalculationResponse:
        """Submit and wait."""
        request = CalculationRequest(request_id or new_request_id(), calc_type, payload)
        return self.submit(request, cfg).result()

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "CalculationWorker":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
