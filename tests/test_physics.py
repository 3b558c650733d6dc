"""Tests for level arithmetic and air absorption."""

import math

import pytest

from rigsim.config import AIR_ABSORPTION_DB_PER_M, OCTAVE_BANDS, EngineConfig
from rigsim.physics import (
    air_absorption,
    air_absorption_table,
    arrival_phase_deg,
    db_sum,
    spreading_loss_db,
    unit,
)


class TestLevels:
    """Decibel helpers."""

    def test_db_sum_equal_levels(self):
        assert db_sum([90.0, 90.0]) == pytest.approx(90.0 + 10 * math.log10(2))

    def test_db_sum_empty(self):
        assert db_sum([]) == 0.0

    def test_spreading_clamped(self):
        assert spreading_loss_db(10.0) == pytest.approx(20.0)
        assert spreading_loss_db(0.0) == pytest.approx(20 * math.log10(0.01))

    def test_arrival_phase_range(self):
        assert 0.0 <= arrival_phase_deg(12.3, 500.0) < 360.0
        assert arrival_phase_deg(0.1715, 1000.0) == pytest.approx(180.0)

    def test_unit_of_zero(self):
        assert list(unit([0.0, 0.0, 0.0])) == [0.0, 0.0, 0.0]


class TestAirAbsorption:
    """Table and ISO 9613-1 air models."""

    def test_table_default(self):
        for band in OCTAVE_BANDS:
            assert air_absorption(band) == AIR_ABSORPTION_DB_PER_M[band]

    def test_iso_increases_with_frequency(self):
        table = air_absorption_table(EngineConfig(air_model="iso9613"))
        values = [table[b] for b in OCTAVE_BANDS]
        assert all(v > 0 for v in values)
        assert all(a < b for a, b in zip(values, values[1:]))

    def test_iso_single_band_matches_table(self):
        cfg = EngineConfig(air_model="iso9613")
        assert air_absorption(4000, cfg) == pytest.approx(air_absorption_table(cfg)[4000])

    def test_iso_magnitude_at_1k(self):
        value = air_absorption(1000, EngineConfig(air_model="iso9613"))
        assert 0.002 < value < 0.01
