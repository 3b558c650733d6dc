"""Tests for multi-source SPL combination."""

import math

import pytest

from rigsim.config import EngineConfig
from rigsim.occlusion import create_obstacle
from rigsim.propagation import SourceSpec, calculate_multi_band_spl
from rigsim.reflections import create_default_room
from rigsim.spl import (
    CoverageQuality,
    InterferenceType,
    analyze_phase_interference,
    apply_interference_correction,
    calculate_frequency_response,
    calculate_total_spl,
    evaluate_coverage,
    source_contribution,
)

THREE_DB = 10 * math.log10(2)
TARGET = (0.0, 1.2, -20.0)


def _source(id="s1", x=0.0):
    return SourceSpec((x, 1.2, 0.0), max_spl=125.0, id=id)


class TestCoverageQuality:
    """Quality bands."""

    @pytest.mark.parametrize("spl, quality", [
        (60.0, CoverageQuality.POOR),
        (84.9, CoverageQuality.POOR),
        (85.0, CoverageQuality.ACCEPTABLE),
        (90.0, CoverageQuality.GOOD),
        (99.9, CoverageQuality.GOOD),
        (100.0, CoverageQuality.EXCELLENT),
        (105.0, CoverageQuality.EXCESSIVE),
    ])
    def test_thresholds(self, spl, quality):
        assert evaluate_coverage(spl) is quality

    def test_display_attributes(self):
        assert CoverageQuality.GOOD.color.startswith("#")
        assert "hearing" in CoverageQuality.EXCESSIVE.message


class TestPhaseInterference:
    """Average pairwise phase heuristic."""

    def test_single_source(self):
        assert analyze_phase_interference([10.0]) == (False, InterferenceType.NONE)

    def test_constructive(self):
        assert analyze_phase_interference([0.0, 10.0]) == (True, InterferenceType.CONSTRUCTIVE)

    def test_wraps_around(self):
        assert analyze_phase_interference([355.0, 5.0]) == (True, InterferenceType.CONSTRUCTIVE)

    def test_destructive(self):
        assert analyze_phase_interference([0.0, 180.0]) == (True, InterferenceType.DESTRUCTIVE)

    def test_neutral(self):
        assert analyze_phase_interference([0.0, 90.0]) == (False, InterferenceType.NONE)

    def test_corrections(self):
        assert apply_interference_correction(90.0, InterferenceType.CONSTRUCTIVE) == pytest.approx(90.5)
        assert apply_interference_correction(90.0, InterferenceType.DESTRUCTIVE) == pytest.approx(87.0)
        assert apply_interference_correction(2.0, InterferenceType.DESTRUCTIVE) == 0.0
        assert apply_interference_correction(90.0, InterferenceType.NONE) == 90.0


class TestTotalSPL:
    """Combination of several sources at one listener."""

    def test_no_sources(self):
        result = calculate_total_spl(TARGET, [])
        assert result.total_spl == 0.0
        assert result.contributions == []

    def test_single_source_matches_direct_band(self):
        result = calculate_total_spl(TARGET, [_source()], 1000)
        direct = calculate_multi_band_spl(_source(), TARGET)
        assert result.total_spl == pytest.approx(direct.bands[1000])
        assert not result.has_interference

    def test_nearest_band_is_used(self):
        a = calculate_total_spl(TARGET, [_source()], 1100)
        b = calculate_total_spl(TARGET, [_source()], 1000)
        assert a.total_spl == pytest.approx(b.total_spl)

    def test_colocated_sources_without_phase_correction(self):
        cfg = EngineConfig(phase_correction=False)
        one = calculate_total_spl(TARGET, [_source()], 1000, cfg=cfg)
        two = calculate_total_spl(TARGET, [_source("a"), _source("b")], 1000, cfg=cfg)
        assert two.total_spl == pytest.approx(one.total_spl + THREE_DB)

    def test_colocated_sources_are_constructive(self):
        one = calculate_total_spl(TARGET, [_source()], 1000)
        two = calculate_total_spl(TARGET, [_source("a"), _source("b")], 1000)
        assert two.interference_type is InterferenceType.CONSTRUCTIVE
        assert two.total_spl == pytest.approx(one.total_spl + THREE_DB + 0.5)

    def test_a_weighted_composite(self):
        result = calculate_total_spl(TARGET, [_source()], 0)
        direct = calculate_multi_band_spl(_source(), TARGET)
        assert result.total_spl == pytest.approx(direct.a_weighted)
        assert sorted(result.bands) == sorted(direct.bands)

    def test_occlusion_lowers_level(self):
        wall = create_obstacle("wall", "wall", (0.0, 1.2, -10.0), (6.0, 6.0, 0.5))
        clear = calculate_total_spl(TARGET, [_source()], 1000)
        blocked = calculate_total_spl(TARGET, [_source()], 1000, obstacles=[wall])
        assert blocked.contributions[0].is_occluded
        assert blocked.total_spl == pytest.approx(clear.total_spl - 20.0)

    def test_occlusion_can_be_disabled(self):
        wall = create_obstacle("wall", "wall", (0.0, 1.2, -10.0), (6.0, 6.0, 0.5))
        cfg = EngineConfig(show_occlusion=False)
        clear = calculate_total_spl(TARGET, [_source()], 1000)
        result = calculate_total_spl(TARGET, [_source()], 1000, obstacles=[wall], cfg=cfg)
        assert result.total_spl == pytest.approx(clear.total_spl)

    def test_reflections_add_energy(self):
        room = create_default_room(40, 60, 10)
        contribution = source_contribution(_source(), TARGET, 1000, surfaces=room)
        assert contribution.reflection_gain > 0.0

    def test_idempotent(self):
        room = create_default_room(30, 30, 8)
        sources = [_source("a", -3.0), _source("b", 3.0)]
        first = calculate_total_spl((1.0, 1.2, -12.0), sources, 0, surfaces=room)
        second = calculate_total_spl((1.0, 1.2, -12.0), sources, 0, surfaces=room)
        assert first == second

    def test_frequency_response(self):
        response = calculate_frequency_response(TARGET, [_source()], [125, 1000, 8000])
        assert sorted(response) == [125, 1000, 8000]
        assert response[8000] < response[125]
