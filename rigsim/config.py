# rigsim/config.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

# Physical constants
SPEED_OF_SOUND: float = 343.0      # m/s at 20 C
GRAVITY: float = 9.81              # m/s^2
MIN_DISTANCE_M: float = 0.01       # source/listener distances are clamped to this

# Standard octave centers used everywhere in the engine
OCTAVE_BANDS: List[int] = [125, 250, 500, 1000, 2000, 4000, 8000]
REFERENCE_BAND: int = 1000

# A-weighting per octave band (dB, 0 at 1 kHz)
A_WEIGHTING: Dict[int, float] = {
    125: -16.1,
    250: -8.6,
    500: -3.2,
    1000: 0.0,
    2000: 1.2,
    4000: 1.0,
    8000: -1.1,
}

# ISO 9613-1 simplified, 20 C / 50 % RH (dB/m)
AIR_ABSORPTION_DB_PER_M: Dict[int, float] = {
    125: 0.0011,
    250: 0.0027,
    500: 0.0059,
    1000: 0.0116,
    2000: 0.0283,
    4000: 0.0816,
    8000: 0.2422,
}

# Occluder attenuation scaling relative to 1 kHz
OCCLUSION_BAND_FACTOR: Dict[int, float] = {
    125: 0.5,
    250: 0.6,
    500: 0.7,
    1000: 1.0,
    2000: 1.2,
    4000: 1.4,
    8000: 1.6,
}

# Rigging rules (BGV-C1)
DYNAMIC_FACTOR: float = 1.5
MIN_SAFETY_FACTOR: float = 5.0
CRITICAL_SAFETY_FACTOR: float = 3.0
STEEP_ANGLE_DEG: float = 45.0
CRITICAL_ANGLE_DEG: float = 60.0
NEAR_CAPACITY_PCT: float = 80.0
# Rated working load limits already include this factor over breaking load
WLL_DESIGN_FACTOR: float = 5.0

# Room acoustics
EARLY_REFLECTION_WINDOW_MS: float = 50.0
DEFAULT_SURFACE_AREA_M2: float = 100.0
MAX_REVERB_TIME_S: float = 5.0


@dataclass
class EngineConfig:
    # Core acoustics
    c: float = SPEED_OF_SOUND

    # Air absorption
    air_model: str = "table"              # "table" | "iso9613"
    air_temp_c: float = 20.0
    air_rh_pct: float = 50.0
    air_pressure_kpa: float = 101.325

    # Room / scene effects
    early_reflection_ms: float = EARLY_REFLECTION_WINDOW_MS
    show_reflections: bool = True
    show_occlusion: bool = True

    # Coarse interference correction on composite levels
    phase_correction: bool = True


DEFAULT_CONFIG = EngineConfig()
