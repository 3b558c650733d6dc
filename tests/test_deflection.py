"""Tests for truss deflection checks."""

import math

import pytest

from rigsim.advisories import AdvisoryKind, of_kind
from rigsim.deflection import (
    TrussProperties,
    calculate_combined_deflection,
    calculate_point_load_deflection,
    calculate_uniform_load_deflection,
    point_load_deflection,
    recommend_truss_size,
    uniform_load_deflection,
)
from rigsim.errors import InvalidInputError

TRUSS = TrussProperties(8.0, "aluminum", "F34")
EI = 69e9 * 1.2e-5


class TestFormulas:
    """Beam deflection for a simply supported span."""

    def test_point_load(self):
        expected = 100.0 * 9.81 * 8.0 ** 3 / (48.0 * EI)
        result = calculate_point_load_deflection(TRUSS, 100.0)
        assert result.max_deflection == pytest.approx(expected)
        assert result.deflection_ratio == pytest.approx(8.0 / expected)
        assert result.safety_ok
        assert result.warnings == []

    def test_uniform_load(self):
        expected = 5.0 * 10.0 * 9.81 * 8.0 ** 4 / (384.0 * EI)
        assert uniform_load_deflection(TRUSS, 10.0) == pytest.approx(expected)
        assert calculate_uniform_load_deflection(TRUSS, 10.0).max_deflection == pytest.approx(expected)

    def test_combined_is_superposition(self):
        combined = calculate_combined_deflection(TRUSS, 10.0, [50.0, 75.0])
        expected = (uniform_load_deflection(TRUSS, 10.0)
                    + point_load_deflection(TRUSS, 50.0)
                    + point_load_deflection(TRUSS, 75.0))
        assert combined.max_deflection == pytest.approx(expected)

    def test_steel_is_stiffer(self):
        steel = TrussProperties(8.0, "steel", "F34")
        assert point_load_deflection(steel, 100.0) < point_load_deflection(TRUSS, 100.0)

    def test_larger_section_is_stiffer(self):
        assert TrussProperties(8.0, cross_section="F44").stiffness > TRUSS.stiffness
        assert TrussProperties(8.0, cross_section="F44").self_weight == 12.0

    def test_zero_load(self):
        result = calculate_point_load_deflection(TRUSS, 0.0)
        assert math.isinf(result.deflection_ratio)
        assert result.safety_ok


class TestThresholds:
    """Deflection ratio bands."""

    def test_ratio_monotonic_and_flips(self):
        ratios, oks = [], []
        for load in (100.0, 200.0, 300.0, 600.0, 1000.0):
            result = calculate_point_load_deflection(TRUSS, load)
            ratios.append(result.deflection_ratio)
            oks.append(result.safety_ok)
        assert all(a > b for a, b in zip(ratios, ratios[1:]))
        assert oks[0] is True
        assert oks[-1] is False

    def test_acceptable_band(self):
        result = calculate_point_load_deflection(TRUSS, 300.0)
        assert 200.0 <= result.deflection_ratio < 300.0
        assert result.safety_ok
        assert result.warnings[0].startswith("Acceptable")

    def test_critical_band(self):
        result = calculate_point_load_deflection(TRUSS, 600.0)
        assert not result.safety_ok
        assert len(of_kind(result.advisories, AdvisoryKind.DEFLECTION)) == 2
        assert "CRITICAL" in result.warnings[0]

    def test_visible_sag(self):
        result = calculate_point_load_deflection(TRUSS, 600.0)
        assert result.max_deflection > 0.05
        assert of_kind(result.advisories, AdvisoryKind.VISIBLE_SAG)

    def test_deterministic(self):
        assert calculate_point_load_deflection(TRUSS, 250.0) == calculate_point_load_deflection(TRUSS, 250.0)


class TestTrussProperties:
    """Validation and parsing."""

    @pytest.mark.parametrize("kw", [
        dict(length=0.0),
        dict(length=-2.0),
        dict(length=6.0, material="wood"),
        dict(length=6.0, cross_section="F99"),
    ])
    def test_invalid(self, kw):
        with pytest.raises(InvalidInputError):
            TrussProperties(**kw)

    def test_from_dict(self):
        truss = TrussProperties.from_dict({"length": 6, "material": "steel", "crossSection": "F44"})
        assert truss == TrussProperties(6.0, "steel", "F44")


class TestRecommendation:
    """Smallest adequate cross-section."""

    def test_light_load_gets_smallest(self):
        name, reason = recommend_truss_size(8.0, 100.0)
        assert name == "F34"
        assert reason.startswith("L/")

    def test_heavier_load_steps_up(self):
        name, _ = recommend_truss_size(8.0, 400.0)
        assert name == "F44"

    def test_fallback(self):
        name, reason = recommend_truss_size(12.0, 5000.0)
        assert name == "F54"
        assert "Maximum size" in reason
