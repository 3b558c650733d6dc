"""
Multi-source SPL at a listening position.

Sources are combined per octave band by energetic summation; the composite
(A-weighted, or a single requested band) is taken from the combined band
levels. A coarse phase heuristic then nudges the composite: sources arriving
on average within 45 degrees of each other add 0.5 dB, sources on average
more than 135 degrees apart lose 3 dB. This is an approximation standing in
for full complex summation and is kept for compatibility with existing
coverage plots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

from .bands import calculate_a_weighted_spl, combine_band_maps, nearest_band
from .config import DEFAULT_CONFIG, OCTAVE_BANDS, REFERENCE_BAND, EngineConfig
from .occlusion import (
    NO_OCCLUSION,
    Obstacle,
    check_multiple_obstacles,
    get_frequency_dependent_occlusion,
)
from .propagation import SourceSpec, calculate_multi_band_spl
from .physics import arrival_phase_deg
from .reflections import ReflectionSurface, calculate_all_reflections, combine_direct_and_reflected_spl

CONSTRUCTIVE_GAIN_DB = 0.5
DESTRUCTIVE_LOSS_DB = 3.0
# Sources occluded by this much or more get no reflected energy
REFLECTION_OCCLUSION_LIMIT_DB = 10.0


class InterferenceType(Enum):
    NONE = "none"
    CONSTRUCTIVE = "constructive"
    DESTRUCTIVE = "destructive"


class CoverageQuality(Enum):
    POOR = "poor"
    ACCEPTABLE = "acceptable"
    GOOD = "good"
    EXCELLENT = "excellent"
    EXCESSIVE = "excessive"

    @property
    def color(self) -> str:
        return _QUALITY_COLORS[self]

    @property
    def message(self) -> str:
        return _QUALITY_MESSAGES[self]


_QUALITY_COLORS = {
    CoverageQuality.POOR: "#ef4444",
    CoverageQuality.ACCEPTABLE: "#f59e0b",
    CoverageQuality.GOOD: "#22c55e",
    CoverageQuality.EXCELLENT: "#10b981",
    CoverageQuality.EXCESSIVE: "#dc2626",
}

_QUALITY_MESSAGES = {
    CoverageQuality.POOR: "Insufficient coverage",
    CoverageQuality.ACCEPTABLE: "Marginal coverage",
    CoverageQuality.GOOD: "Good coverage",
    CoverageQuality.EXCELLENT: "Excellent coverage",
    CoverageQuality.EXCESSIVE: "Excessive SPL - hearing risk",
}


def evaluate_coverage(spl: float) -> CoverageQuality:
    if spl < 85:
        return CoverageQuality.POOR
    if spl < 90:
        return CoverageQuality.ACCEPTABLE
    if spl < 100:
        return CoverageQuality.GOOD
    if spl < 105:
        return CoverageQuality.EXCELLENT
    return CoverageQuality.EXCESSIVE


@dataclass(frozen=True)
class SPLContribution:
    source_id: str
    spl: float              # composite of this source alone
    distance: float
    arrival_time: float     # s
    phase: float            # deg, 0..360
    is_occluded: bool = False
    reflection_gain: float = 0.0
    bands: Dict[int, float] = field(default_factory=dict)


@dataclass(frozen=True)
class SPLResult:
    total_spl: float
    bands: Dict[int, float]
    contributions: List[SPLContribution]
    has_interference: bool = False
    interference_type: InterferenceType = InterferenceType.NONE


def analyze_phase_interference(phases: Sequence[float]) -> Tuple[bool, InterferenceType]:
    if len(phases) < 2:
        return False, InterferenceType.NONE
    diffs = []
    for a, b in combinations(phases, 2):
        diff = abs(a - b)
        if diff > 180:
            diff = 360 - diff
        diffs.append(diff)
    avg = sum(diffs) / len(diffs)
    if avg < 45:
        return True, InterferenceType.CONSTRUCTIVE
    if avg > 135:
        return True, InterferenceType.DESTRUCTIVE
    return False, InterferenceType.NONE


def apply_interference_correction(total_spl: float, interference: InterferenceType) -> float:
    if interference is InterferenceType.CONSTRUCTIVE:
        return total_spl + CONSTRUCTIVE_GAIN_DB
    if interference is InterferenceType.DESTRUCTIVE:
        return max(0.0, total_spl - DESTRUCTIVE_LOSS_DB)
    return total_spl


def _composite(levels: Dict[int, float], band: Optional[int]) -> float:
    if band is None:
        return calculate_a_weighted_spl(levels)
    return levels.get(band, 0.0)


def source_contribution(source: SourceSpec, target, band: Optional[int] = None,
                        obstacles: Sequence[Obstacle] = (),
                        surfaces: Sequence[ReflectionSurface] = (),
                        cfg: Optional[EngineConfig] = None) -> SPLContribution:
    """
    Band levels at target from one source: direct sound, less occlusion
    (evaluated at 1 kHz and scaled per band), plus early reflections.
    ``band=None`` means all octave bands with an A-weighted composite.
    """
    cfg = cfg or DEFAULT_CONFIG
    bands = OCTAVE_BANDS if band is None else [band]
    direct = calculate_multi_band_spl(source, target, bands, cfg)

    occlusion = NO_OCCLUSION
    if cfg.show_occlusion and obstacles:
        occlusion = check_multiple_obstacles(source.position, target, obstacles, REFERENCE_BAND, cfg.c)

    levels: Dict[int, float] = {}
    for b in bands:
        spl = direct.bands[b]
        if occlusion.is_occluded:
            spl = max(0.0, spl - get_frequency_dependent_occlusion(occlusion.attenuation_db, b))
        levels[b] = spl
    before = _composite(levels, band)

    if cfg.show_reflections and surfaces and (
            not occlusion.is_occluded or occlusion.attenuation_db < REFLECTION_OCCLUSION_LIMIT_DB):
        reflections = calculate_all_reflections(source.position, target, surfaces,
                                                cfg.early_reflection_ms, bands, cfg.c)
        if reflections:
            levels = {b: combine_direct_and_reflected_spl(levels[b], reflections, b) for b in bands}
    after = _composite(levels, band)

    return SPLContribution(
        source_id=source.id,
        spl=after,
        distance=direct.distance,
        arrival_time=direct.distance / cfg.c,
        phase=arrival_phase_deg(direct.distance, REFERENCE_BAND if band is None else band, cfg.c),
        is_occluded=occlusion.is_occluded,
        reflection_gain=after - before,
        bands=levels,
    )


def calculate_total_spl(target, sources: Sequence[SourceSpec], frequency: float = REFERENCE_BAND,
                        obstacles: Sequence[Obstacle] = (),
                        surfaces: Sequence[ReflectionSurface] = (),
                        cfg: Optional[EngineConfig] = None) -> SPLResult:
    """
    Combined SPL at target. ``frequency <= 0`` requests the A-weighted
    composite; otherwise the nearest octave band is reported.
    """
    cfg = cfg or DEFAULT_CONFIG
    band = None if frequency <= 0 else nearest_band(frequency)
    contributions = [source_contribution(s, target, band, obstacles, surfaces, cfg) for s in sources]
    if not contributions:
        return SPLResult(0.0, {}, [])

    combined = combine_band_maps([c.bands for c in contributions], OCTAVE_BANDS if band is None else [band])
    total = _composite(combined, band)

    has_interference, interference = analyze_phase_interference([c.phase for c in contributions])
    if cfg.phase_correction and has_interference:
        total = apply_interference_correction(total, interference)

    return SPLResult(total, combined, contributions, has_interference, interference)


def calculate_frequency_response(target, sources: Sequence[SourceSpec],
                                 bands: Sequence[int] = OCTAVE_BANDS,
                                 obstacles: Sequence[Obstacle] = (),
                                 surfaces: Sequence[ReflectionSurface] = (),
                                 cfg: Optional[EngineConfig] = None) -> Dict[int, float]:
    return {int(b): calculate_total_spl(target, sources, b, obstacles, surfaces, cfg).total_spl
            for b in bands}
