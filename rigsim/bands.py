# rigsim/bands.py
from __future__ import annotations
from typing import Dict, Iterable, Mapping, Sequence, Tuple

import numpy as np

from .config import A_WEIGHTING, OCTAVE_BANDS
from .physics import db_to_power, power_to_db

BandLevels = Dict[int, float]


def nearest_band(frequency: float, bands: Sequence[int] = OCTAVE_BANDS) -> int:
    """Closest band on a log-frequency axis."""
    f = max(float(frequency), 1e-9)
    lf = np.log(np.asarray(bands, float))
    return int(bands[int(np.abs(lf - np.log(f)).argmin())])

def interp_log_frequency(src_freqs: Sequence[float], src_vals: Sequence[float], freq: float) -> float:
    """
    Linear interpolation on a log-frequency axis; clamps to the table edges.
    """
    sf = np.asarray(src_freqs, float)
    sv = np.asarray(src_vals, float)
    return float(np.interp(np.log(float(freq)), np.log(sf), sv, left=sv[0], right=sv[-1]))

def resample_bands(src_freqs: np.ndarray, src_vals: np.ndarray, dst_freqs: np.ndarray) -> np.ndarray:
    """
    Log-frequency interpolation of a per-band array from one set of centers
    to another. Clamps at ends.
    """
    sf = np.asarray(src_freqs, float); df = np.asarray(dst_freqs, float)
    sv = np.asarray(src_vals, float)
    return np.interp(np.log(df), np.log(sf), sv, left=sv[0], right=sv[-1])

# -----------------------------
# Weighting & composites
# -----------------------------

def a_weighting(band: int) -> float:
    return A_WEIGHTING[int(band)]

def calculate_a_weighted_spl(band_spls: Mapping[int, float]) -> float:
    total = 0.0
    for band, spl in band_spls.items():
        total += db_to_power(spl + a_weighting(band))
    return power_to_db(total)

def calculate_linear_spl(band_spls: Mapping[int, float]) -> float:
    total = 0.0
    for spl in band_spls.values():
        total += db_to_power(spl)
    return power_to_db(total)

def combine_band_maps(maps: Iterable[Mapping[int, float]],
                      bands: Sequence[int] = OCTAVE_BANDS) -> BandLevels:
    """
    Energetic per-band sum of several band maps. Non-positive levels count as
    silence; a band with no audible contribution is left out.
    """
    maps = list(maps)
    out: BandLevels = {}
    for band in bands:
        vals = [m.get(band, 0.0) for m in maps]
        vals = [v for v in vals if v > 0.0]
        if vals:
            out[band] = power_to_db(sum(db_to_power(v) for v in vals))
    return out

def combine_multi_band_spl(maps: Sequence[Mapping[int, float]]) -> Tuple[BandLevels, float, float]:
    """
    Merge several sources' band maps, then weight once.
    Returns (combined bands, A-weighted composite, linear composite).
    """
    if not maps:
        return {}, 0.0, 0.0
    if len(maps) == 1:
        combined = dict(maps[0])
    else:
        combined = combine_band_maps(maps)
    return combined, calculate_a_weighted_spl(combined), calculate_linear_spl(combined)


def recommended_bands(system_type: str) -> Tuple[int, ...]:
    system_type = str(system_type).lower()
    if system_type == "sub":
        return (125, 250, 500)
    if system_type == "mid-high":
        return (1000, 2000, 4000, 8000)
    return tuple(OCTAVE_BANDS)
