# rigsim/materials.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence
import json
import pathlib

import numpy as np

from .bands import resample_bands
from .config import OCTAVE_BANDS
from .errors import InvalidInputError


@dataclass(frozen=True)
class Material:
    name: str
    alpha: Mapping[int, float]     # band (Hz) -> absorption coefficient, 0..1

    def coefficient(self, band: int) -> float:
        return float(self.alpha[int(band)])

    def clamp01(self) -> "Material":
        return Material(self.name, {int(b): float(np.clip(a, 0.0, 1.0)) for b, a in self.alpha.items()})


def _mk(name: str, centers: Sequence[float], alpha_vals: Sequence[float],
        bands: Sequence[int] = OCTAVE_BANDS) -> Material:
    if list(centers) == list(bands):
        a = np.asarray(alpha_vals, float)
    else:
        a = resample_bands(np.asarray(centers, float), np.asarray(alpha_vals, float), np.asarray(bands, float))
    return Material(name, {int(b): float(v) for b, v in zip(bands, a)}).clamp01()


_SIX = [125, 250, 500, 1000, 2000, 4000]


def builtin_library() -> Dict[str, Material]:
    """Seed library on the engine's octave bands; values are typical published figures."""
    lib: Dict[str, Material] = {}

    # --- Venue defaults ---
    lib["concrete"] = _mk("concrete", OCTAVE_BANDS, [0.01, 0.01, 0.02, 0.02, 0.02, 0.03, 0.03])
    lib["wood"] = _mk("wood", OCTAVE_BANDS, [0.15, 0.11, 0.10, 0.07, 0.06, 0.07, 0.07])
    lib["carpet"] = _mk("carpet", OCTAVE_BANDS, [0.08, 0.24, 0.57, 0.69, 0.71, 0.73, 0.73])
    lib["curtain"] = _mk("curtain", OCTAVE_BANDS, [0.03, 0.04, 0.11, 0.17, 0.24, 0.35, 0.35])
    lib["glass"] = _mk("glass", OCTAVE_BANDS, [0.35, 0.25, 0.18, 0.12, 0.07, 0.04, 0.04])

    # --- Six-band tables (8 kHz held at the 4 kHz value) ---
    lib["brick"] = _mk("brick", _SIX, [0.01, 0.01, 0.02, 0.02, 0.03, 0.04])
    lib["plaster"] = _mk("plaster", _SIX, [0.01, 0.015, 0.02, 0.02, 0.03, 0.04])
    lib["acoustic tile"] = _mk("acoustic tile", _SIX, [0.40, 0.60, 0.70, 0.75, 0.80, 0.85])
    return lib


BUILTIN_MATERIALS: Dict[str, Material] = builtin_library()


def get_material(name: str, library: Optional[Mapping[str, Material]] = None) -> Material:
    lib = BUILTIN_MATERIALS if library is None else library
    try:
        return lib[str(name)]
    except KeyError:
        raise InvalidInputError(f"Unknown material: {name}", {"known": sorted(lib)}) from None


def absorption_coefficient(material: str, band: int) -> float:
    return get_material(material).coefficient(band)

# -------- External libraries (JSON) --------

def load_json_library(path: str | pathlib.Path) -> Dict[str, Material]:
    """
    JSON schema list/dict:
      {"name":"Velour","freq":[...],"alpha":[...]}
    Tables are resampled onto the engine's octave bands.
    """
    p = pathlib.Path(path)
    if not p.exists(): return {}
    data = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(data, dict): data = list(data.values())
    out: Dict[str, Material] = {}
    for row in data:
        name = str(row["name"])
        out[name] = _mk(name, [float(f) for f in row["freq"]], [float(a) for a in row["alpha"]])
    return out


def merge_libraries(*libs: Mapping[str, Material]) -> Dict[str, Material]:
    merged: Dict[str, Material] = {}
    for lib in libs:
        merged.update(lib)
    return merged


def material_names(library: Optional[Mapping[str, Material]] = None) -> List[str]:
    return sorted(BUILTIN_MATERIALS if library is None else library)
