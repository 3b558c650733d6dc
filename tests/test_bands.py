"""Tests for octave bands and weighting."""

import math

import pytest

from rigsim.bands import (
    a_weighting,
    calculate_a_weighted_spl,
    calculate_linear_spl,
    combine_band_maps,
    combine_multi_band_spl,
    interp_log_frequency,
    nearest_band,
    recommended_bands,
)
from rigsim.config import OCTAVE_BANDS

THREE_DB = 10 * math.log10(2)


class TestWeighting:
    """A-weighting and composite levels."""

    def test_reference_band_is_unweighted(self):
        assert a_weighting(1000) == 0.0
        assert calculate_a_weighted_spl({1000: 100.0}) == pytest.approx(100.0)

    def test_low_band_is_weighted_down(self):
        assert calculate_a_weighted_spl({125: 100.0}) == pytest.approx(100.0 - 16.1)

    def test_linear_sum_of_equal_bands(self):
        assert calculate_linear_spl({1000: 100.0, 2000: 100.0}) == pytest.approx(100.0 + THREE_DB)

    def test_empty_map_is_silent(self):
        assert calculate_linear_spl({}) == 0.0


class TestCombination:
    """Per-band merging of several sources."""

    def test_two_equal_sources_add_three_db(self):
        combined, a_weighted, linear = combine_multi_band_spl([{1000: 90.0}, {1000: 90.0}])
        assert combined[1000] == pytest.approx(90.0 + THREE_DB)
        assert a_weighted == pytest.approx(90.0 + THREE_DB)
        assert linear == pytest.approx(90.0 + THREE_DB)

    def test_weighting_applied_once_after_merge(self):
        combined, a_weighted, _ = combine_multi_band_spl([{125: 90.0}, {125: 90.0}])
        assert a_weighted == pytest.approx(combined[125] - 16.1)

    def test_silent_levels_ignored(self):
        assert combine_band_maps([{1000: 0.0}, {1000: 90.0}])[1000] == pytest.approx(90.0)

    def test_band_without_contribution_left_out(self):
        assert 125 not in combine_band_maps([{1000: 90.0}])

    def test_no_maps(self):
        assert combine_multi_band_spl([]) == ({}, 0.0, 0.0)


class TestFrequencyAxis:
    """Band lookup and log-frequency interpolation."""

    def test_nearest_band(self):
        assert nearest_band(1100) == 1000
        assert nearest_band(150) == 125
        assert nearest_band(20000) == 8000

    def test_interp_midpoint_on_log_axis(self):
        assert interp_log_frequency([1000, 2000], [10, 20], 1000 * math.sqrt(2)) == pytest.approx(15.0)

    def test_interp_clamps(self):
        assert interp_log_frequency([1000, 2000], [10, 20], 100) == pytest.approx(10.0)
        assert interp_log_frequency([1000, 2000], [10, 20], 9000) == pytest.approx(20.0)

    def test_recommended_bands(self):
        assert recommended_bands("sub") == (125, 250, 500)
        assert recommended_bands("full-range") == tuple(OCTAVE_BANDS)
