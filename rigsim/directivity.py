"""
Speaker directivity.

Dispersion angles are full coverage angles in degrees, measured between the
-6 dB points. A source either carries a measured per-frequency table
(``DirectivityTable``) or relies on its nominal dispersion, which is widened
towards low frequencies by ``sqrt(1000 / f)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple, Union
import math

import numpy as np

from .bands import interp_log_frequency
from .config import REFERENCE_BAND, SPEED_OF_SOUND
from .errors import InvalidInputError
from .geometry import Vec3, rotation_matrix
from .physics import as_vec3, to_tuple, unit

MAX_OFF_AXIS_DB = 30.0
MAX_DISPERSION_DEG = 180.0


@dataclass(frozen=True)
class DirectivityPattern:
    horizontal: float = 90.0
    vertical: float = 60.0

    @property
    def mean(self) -> float:
        return 0.5 * (self.horizontal + self.vertical)


@dataclass(frozen=True)
class DirectivityTable:
    """Measured dispersion per frequency, sorted ascending."""
    entries: Tuple[Tuple[float, DirectivityPattern], ...]

    def __post_init__(self):
        if not self.entries:
            raise InvalidInputError("Directivity table must have at least one entry")
        object.__setattr__(self, "entries", tuple(sorted(self.entries, key=lambda e: e[0])))

    @classmethod
    def from_mapping(cls, table: Mapping[float, object]) -> "DirectivityTable":
        rows = []
        for freq, pattern in table.items():
            if not isinstance(pattern, DirectivityPattern):
                if isinstance(pattern, Mapping):
                    pattern = DirectivityPattern(float(pattern["horizontal"]), float(pattern["vertical"]))
                else:
                    h, v = pattern
                    pattern = DirectivityPattern(float(h), float(v))
            rows.append((float(freq), pattern))
        return cls(tuple(rows))

    @property
    def frequencies(self) -> List[float]:
        return [f for f, _ in self.entries]

    def get(self, freq: float) -> Optional[DirectivityPattern]:
        for f, pattern in self.entries:
            if f == float(freq):
                return pattern
        return None


TableLike = Union[DirectivityTable, Mapping[float, object], None]


def _as_table(table: TableLike) -> Optional[DirectivityTable]:
    if table is None or isinstance(table, DirectivityTable):
        return table
    return DirectivityTable.from_mapping(table)


def get_interpolated_directivity(freq: float, table: TableLike,
                                 nominal: DirectivityPattern) -> DirectivityPattern:
    if freq <= 0:
        raise InvalidInputError(f"Frequency must be positive, got {freq}")
    tbl = _as_table(table)
    if tbl is None:
        ratio = math.sqrt(REFERENCE_BAND / float(freq))
        return DirectivityPattern(
            min(MAX_DISPERSION_DEG, nominal.horizontal * ratio),
            min(MAX_DISPERSION_DEG, nominal.vertical * ratio),
        )

    exact = tbl.get(freq)
    if exact is not None:
        return exact

    freqs = tbl.frequencies
    return DirectivityPattern(
        interp_log_frequency(freqs, [p.horizontal for _, p in tbl.entries], freq),
        interp_log_frequency(freqs, [p.vertical for _, p in tbl.entries], freq),
    )


def calculate_off_axis_attenuation(angle: float, nominal_dispersion: float) -> float:
    """6*(angle/half_angle)^2 dB, so the coverage edge sits at -6 dB; capped at 30 dB."""
    if angle <= 0:
        return 0.0
    half = float(nominal_dispersion) / 2.0
    if half <= 0:
        return MAX_OFF_AXIS_DB
    u = float(angle) / half
    return min(6.0 * u * u, MAX_OFF_AXIS_DB)


def calculate_line_array_coupling(num_boxes: int, box_height: float, frequency: float,
                                  c: float = SPEED_OF_SOUND) -> float:
    """
    Low-frequency coupling gain of a line array.

    Full 10*log10(n) below the transition frequency c/(n*h), losing 3 dB per
    octave above it and vanishing beyond four times the transition.
    """
    if num_boxes <= 1:
        return 0.0
    if box_height <= 0 or frequency <= 0:
        raise InvalidInputError("Box height and frequency must be positive")
    transition = c / (num_boxes * float(box_height))
    if frequency > 4.0 * transition:
        return 0.0
    max_gain = 10.0 * math.log10(num_boxes)
    if frequency <= transition:
        return max_gain
    octaves_above = math.log2(frequency / transition)
    return max(0.0, max_gain - 3.0 * octaves_above)


def off_axis_angles(target, source_position, rotation: Sequence[float] = (0.0, 0.0, 0.0)) -> Tuple[float, float]:
    """(horizontal, vertical) angles in degrees of target relative to the source axis."""
    d = as_vec3(target) - as_vec3(source_position)
    if float(np.linalg.norm(d)) == 0.0:
        return 0.0, 0.0
    local = rotation_matrix(rotation).T @ unit(d)
    v_angle = math.degrees(math.asin(float(np.clip(abs(local[1]), 0.0, 1.0))))
    h_angle = math.degrees(math.atan2(abs(float(local[0])), -float(local[2])))
    return h_angle, v_angle


def calculate_directional_attenuation(target, source_position, rotation: Sequence[float],
                                      frequency: float, nominal: DirectivityPattern,
                                      table: TableLike = None) -> float:
    """Elliptical combination of horizontal and vertical off-axis losses."""
    dispersion = get_interpolated_directivity(frequency, table, nominal)
    h_angle, v_angle = off_axis_angles(target, source_position, rotation)
    att_h = calculate_off_axis_attenuation(h_angle, dispersion.horizontal)
    att_v = calculate_off_axis_attenuation(v_angle, dispersion.vertical)
    return math.sqrt(att_h * att_h + att_v * att_v)

# -----------------------------
# Line array layout
# -----------------------------

@dataclass(frozen=True)
class ArrayElement:
    index: int
    position: Vec3
    rotation: Vec3      # radians, about X


def line_array_layout(box_count: int, box_height: float, splay_angles: Sequence[float] = (),
                      site_angle: float = 0.0) -> List[ArrayElement]:
    """
    Hang positions of a line array below its bumper at the origin.

    Each box hangs from the bottom edge of the one above; ``splay_angles[i]``
    (deg) is the downward inter-box angle after box i, ``site_angle`` (deg)
    tilts the whole array, positive aiming up.
    """
    if box_height <= 0:
        raise InvalidInputError("Box height must be positive")
    items: List[ArrayElement] = []
    pos = np.zeros(3, dtype=float)
    angle = math.radians(float(site_angle))
    for i in range(int(box_count)):
        items.append(ArrayElement(i, to_tuple(pos), (angle, 0.0, 0.0)))
        # next box hangs along this box's rotated -Y axis
        pos = pos + np.array([0.0, -box_height * math.cos(angle), -box_height * math.sin(angle)])
        splay = float(splay_angles[i]) if i < len(splay_angles) else 0.0
        angle -= math.radians(splay)
    return items
