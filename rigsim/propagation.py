# rigsim/propagation.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from .bands import calculate_a_weighted_spl, calculate_linear_spl
from .config import OCTAVE_BANDS, REFERENCE_BAND, SPEED_OF_SOUND, EngineConfig
from .directivity import (
    DirectivityPattern,
    DirectivityTable,
    calculate_off_axis_attenuation,
    get_interpolated_directivity,
)
from .errors import InvalidInputError
from .geometry import Vec3, angle_between, forward_vector
from .physics import (
    air_absorption,
    arrival_phase_deg,
    as_vec3,
    distance as _distance,
    spreading_loss_db,
    to_tuple,
    unit,
)


@dataclass(frozen=True)
class SourceSpec:
    """
    Loudspeaker as seen by the engine. Rotation is XYZ Euler (radians);
    unrotated speakers face -Z.
    """
    position: Vec3
    rotation: Vec3 = (0.0, 0.0, 0.0)
    max_spl: float = 120.0                       # dB @ 1 m
    dispersion: DirectivityPattern = field(default_factory=DirectivityPattern)
    power: float = 1000.0                        # W
    frequency_response: Optional[Mapping[int, float]] = None
    directivity: Optional[DirectivityTable] = None
    id: str = ""

    def __post_init__(self):
        object.__setattr__(self, "position", to_tuple(self.position))
        object.__setattr__(self, "rotation", to_tuple(self.rotation))
        if self.directivity is not None and not isinstance(self.directivity, DirectivityTable):
            object.__setattr__(self, "directivity", DirectivityTable.from_mapping(self.directivity))
        if self.frequency_response is not None:
            object.__setattr__(self, "frequency_response",
                               {int(b): float(v) for b, v in self.frequency_response.items()})

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "SourceSpec":
        disp = d.get("dispersion") or {}
        return cls(
            position=tuple(d["position"]),
            rotation=tuple(d.get("rotation", (0.0, 0.0, 0.0))),
            max_spl=float(d.get("max_spl", d.get("maxSPL", 120.0))),
            dispersion=DirectivityPattern(float(disp.get("horizontal", 90.0)), float(disp.get("vertical", 60.0))),
            power=float(d.get("power", 1000.0)),
            frequency_response=d.get("frequency_response", d.get("frequencyResponse")),
            directivity=d.get("directivity", d.get("directivityByFreq")),
            id=str(d.get("id", "")),
        )

    def band_output(self, band: int) -> float:
        """dB @ 1 m for a band; missing bands fall back to 1 kHz, then max_spl."""
        fr = self.frequency_response
        if not fr:
            return float(self.max_spl)
        return float(fr.get(int(band), fr.get(REFERENCE_BAND, self.max_spl)))

    def dispersion_at(self, frequency: float) -> DirectivityPattern:
        return get_interpolated_directivity(frequency, self.directivity, self.dispersion)

    def off_axis_angle(self, target) -> float:
        d = as_vec3(target) - as_vec3(self.position)
        if float(np.linalg.norm(d)) == 0.0:
            return 0.0
        return angle_between(d, forward_vector(self.rotation))


@dataclass(frozen=True)
class AcousticRay:
    origin: Vec3
    direction: Vec3
    intensity: float      # dB SPL
    distance: float       # m
    frequency: float      # Hz
    angle: float          # deg off-axis


@dataclass(frozen=True)
class BandResponse:
    frequency: int
    spl: float
    phase: float          # deg
    distance: float


@dataclass(frozen=True)
class MultiBandSPL:
    bands: Dict[int, float]
    a_weighted: float
    linear: float
    responses: List[BandResponse]
    distance: float = 0.0
    angle: float = 0.0

    @property
    def composite(self) -> float:
        return self.a_weighted


def calculate_frequency_dependent_spl(distance: float, max_spl: float, band: int, angle: float = 0.0,
                                      dispersion: DirectivityPattern = DirectivityPattern(),
                                      cfg: Optional[EngineConfig] = None) -> float:
    """
    Direct-sound SPL of one band:
      max_spl - 20*log10(d) - air(band)*d - off_axis(angle, dispersion)
    floored at 0 dB. Distances below 1 cm are treated as 1 cm.
    """
    d = max(float(distance), 0.01)
    spl = float(max_spl) - spreading_loss_db(d) - air_absorption(band, cfg) * d
    spl -= calculate_off_axis_attenuation(angle, dispersion.mean)
    return max(spl, 0.0)


def cast_acoustic_ray(source: SourceSpec, target, frequency: float = REFERENCE_BAND) -> AcousticRay:
    if frequency <= 0:
        raise InvalidInputError(f"Frequency must be positive, got {frequency}")
    o = as_vec3(source.position)
    t = as_vec3(target)
    dist = float(np.linalg.norm(t - o))
    angle = source.off_axis_angle(t)
    dispersion = source.dispersion_at(frequency)
    intensity = float(source.max_spl) - spreading_loss_db(dist)
    intensity -= calculate_off_axis_attenuation(angle, dispersion.mean)
    return AcousticRay(
        origin=source.position,
        direction=to_tuple(unit(t - o)),
        intensity=max(intensity, 0.0),
        distance=dist,
        frequency=float(frequency),
        angle=angle,
    )


def cast_ray_pattern(source: SourceSpec, target, ray_count: int = 5,
                     offset: float = 0.1) -> List[AcousticRay]:
    """Direct ray plus rays to points on a small horizontal ring around target."""
    t = as_vec3(target)
    rays = [cast_acoustic_ray(source, t)]
    n = max(int(ray_count) - 1, 0)
    for i in range(n):
        a = (i / n) * 2.0 * np.pi
        rays.append(cast_acoustic_ray(source, t + np.array([np.cos(a) * offset, 0.0, np.sin(a) * offset])))
    return rays


def is_within_coverage(source: SourceSpec, target) -> bool:
    return source.off_axis_angle(target) <= source.dispersion.mean / 2.0


def calculate_arrival_time(source: SourceSpec, target, c: float = SPEED_OF_SOUND) -> float:
    return _distance(source.position, target) / c


def calculate_multi_band_spl(source: SourceSpec, target, bands: Sequence[int] = OCTAVE_BANDS,
                             cfg: Optional[EngineConfig] = None) -> MultiBandSPL:
    """Per-band direct SPL at target from one source, with A-weighted and flat composites."""
    c = float(getattr(cfg, "c", SPEED_OF_SOUND))
    dist = _distance(source.position, target)
    angle = source.off_axis_angle(target)

    band_spls: Dict[int, float] = {}
    responses: List[BandResponse] = []
    for band in bands:
        spl = calculate_frequency_dependent_spl(
            dist, source.band_output(band), band, angle, source.dispersion_at(band), cfg)
        band_spls[int(band)] = spl
        responses.append(BandResponse(int(band), spl, arrival_phase_deg(dist, band, c), dist))

    return MultiBandSPL(
        bands=band_spls,
        a_weighted=calculate_a_weighted_spl(band_spls),
        linear=calculate_linear_spl(band_spls),
        responses=responses,
        distance=dist,
        angle=angle,
    )
