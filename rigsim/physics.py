# rigsim/physics.py
from __future__ import annotations
import math
from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from .config import (
    AIR_ABSORPTION_DB_PER_M,
    MIN_DISTANCE_M,
    OCTAVE_BANDS,
    SPEED_OF_SOUND,
    EngineConfig,
)

# -----------------------------
# Vector math helpers
# -----------------------------

def as_vec3(v) -> np.ndarray:
    a = np.asarray(v, dtype=float).reshape(3)
    return a

def unit(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=float)
    n = np.linalg.norm(v, axis=-1, keepdims=True)
    n = np.where(n == 0, 1.0, n)
    return v / n

def distance(a, b) -> float:
    return float(np.linalg.norm(as_vec3(b) - as_vec3(a)))

def to_tuple(v) -> tuple:
    a = as_vec3(v)
    return (float(a[0]), float(a[1]), float(a[2]))

# -----------------------------
# Spreading & level arithmetic
# -----------------------------

def wavelength(frequency_hz: float, c: float = SPEED_OF_SOUND) -> float:
    return c / float(frequency_hz)

def spreading_loss_db(distance_m: float) -> float:
    # inverse-square law re 1 m (clipped)
    r = max(float(distance_m), MIN_DISTANCE_M)
    return 20.0 * math.log10(r)

def db_to_power(level_db: float) -> float:
    return 10.0 ** (float(level_db) / 10.0)

def power_to_db(power: float) -> float:
    if power <= 0.0:
        return 0.0
    return 10.0 * math.log10(power)

def db_sum(levels_db: Iterable[float]) -> float:
    """Energetic sum 10*log10(sum 10^(L/10)); 0 dB for an empty input."""
    total = 0.0
    for level in levels_db:
        total += db_to_power(level)
    return power_to_db(total)

def arrival_phase_deg(distance_m: float, frequency_hz: float, c: float = SPEED_OF_SOUND) -> float:
    lam = wavelength(frequency_hz, c)
    return ((float(distance_m) % lam) / lam) * 360.0

# -----------------------------
# Air absorption
# -----------------------------

def _saturation_pressure_hPa(T):
    # Buck equation (good 0-50C)
    return 6.1121 * math.exp((18.678 - T/234.5) * (T/(257.14 + T)))

def air_db_per_m_iso9613(freqs_hz: np.ndarray, T_c: float, RH_pct: float, p_kPa: float) -> np.ndarray:
    """
    ISO 9613-1 atmospheric absorption in dB/m for arbitrary frequencies.
    """
    T = T_c + 273.15                      # K
    p = p_kPa * 10.0                      # kPa -> hPa
    RH = max(0.0, min(100.0, RH_pct)) / 100.0

    # Molar concentration of water vapor h
    Ps = _saturation_pressure_hPa(T_c)    # hPa
    h = RH * Ps / p

    # Relaxation frequencies (Hz)
    frO = (24.0 + 4.04e4*h*(0.02 + h)/(0.391 + h)) * (p/1013.0) * ((293.15/T)**0.5)
    frN = (T/293.15)**(-0.5) * (9.0 + 280.0*h * math.exp(-4.17*((T/293.15)**(-1.0/3.0) - 1.0)))

    f = np.asarray(freqs_hz, dtype=float)
    f2 = f*f

    term0 = 1.84e-11 * (1.0/(p/1013.0)) * ((T/293.15)**0.5)
    termO = 0.01275 * math.exp(-2239.1/T) / (frO + (f2/frO))
    termN = 0.10680 * math.exp(-3352.0/T) / (frN + (f2/frN))
    alpha = 8.686 * f2 * (term0 + ((T/293.15)**(-2.5)) * (termO + termN))
    return np.maximum(alpha, 0.0)

def air_absorption_table(cfg: Optional[EngineConfig] = None,
                         bands: Sequence[int] = OCTAVE_BANDS) -> Dict[int, float]:
    """Per-band dB/m according to the configured air model."""
    air_model = str(getattr(cfg, "air_model", "table"))
    if air_model == "iso9613":
        vals = air_db_per_m_iso9613(
            np.asarray(bands, float),
            float(getattr(cfg, "air_temp_c", 20.0)),
            float(getattr(cfg, "air_rh_pct", 50.0)),
            float(getattr(cfg, "air_pressure_kpa", 101.325)),
        )
        return {int(b): float(v) for b, v in zip(bands, vals)}
    return {int(b): AIR_ABSORPTION_DB_PER_M.get(int(b), 0.0) for b in bands}

def air_absorption(band: int, cfg: Optional[EngineConfig] = None) -> float:
    if cfg is None or str(cfg.air_model) != "iso9613":
        return AIR_ABSORPTION_DB_PER_M[int(band)]
    return air_absorption_table(cfg, [int(band)])[int(band)]
