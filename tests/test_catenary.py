"""Tests for cable sag and cable safety checks."""

import math

import pytest

from rigsim.advisories import AdvisoryKind
from rigsim.catenary import (
    CURVE_POINTS,
    CatenaryParams,
    calculate_catenary,
    calculate_required_cable_strength,
    validate_cable_safety,
)
from rigsim.errors import InvalidInputError


def _basic(**kw):
    base = dict(span=10.0, weight=500.0, cable_weight=2.0)
    base.update(kw)
    return calculate_catenary(CatenaryParams(**base))


class TestCatenary:
    """Sag, length and tension for a loaded span."""

    def test_sag_positive(self):
        result = _basic()
        assert result.sag > 0
        assert result.sag == pytest.approx(2.5)

    def test_cable_longer_than_span(self):
        result = _basic()
        assert result.cable_length > 10.0
        assert result.cable_length == pytest.approx(10.0 * math.sqrt(1 + 8 * 0.25 ** 2 / 3))

    def test_tensions(self):
        result = _basic()
        assert result.min_tension == pytest.approx(2550.6)
        assert result.max_tension > result.min_tension
        assert result.max_tension == pytest.approx(2550.6 * math.sqrt(2), rel=1e-6)

    def test_curve_shape(self):
        result = _basic()
        assert len(result.curve) == CURVE_POINTS
        assert result.curve[0] == pytest.approx((-5.0, 0.0))
        assert result.curve[-1] == pytest.approx((5.0, 0.0))
        mid = result.curve[CURVE_POINTS // 2]
        assert mid == pytest.approx((0.0, -result.sag))
        assert all(y <= 1e-12 for _, y in result.curve)

    def test_height_difference(self):
        result = _basic(height_diff=1.0)
        assert result.curve[0][1] == pytest.approx(0.0)
        assert result.curve[-1][1] == pytest.approx(1.0)

    def test_cable_weight_only(self):
        result = _basic(weight=0.0)
        assert result.sag > 0
        assert math.isfinite(result.max_tension)

    def test_max_sag_check(self):
        assert _basic(max_sag=3.0).sag_ok
        assert not _basic(max_sag=1.0).sag_ok
        assert _basic().sag_ok

    def test_deterministic(self):
        assert _basic() == _basic()


class TestCatenaryValidation:
    """Non-physical inputs are rejected."""

    @pytest.mark.parametrize("span", [0.0, -3.0])
    def test_bad_span(self, span):
        with pytest.raises(InvalidInputError):
            CatenaryParams(span=span, weight=100.0, cable_weight=1.0)

    def test_negative_weight(self):
        with pytest.raises(InvalidInputError):
            CatenaryParams(span=5.0, weight=-1.0, cable_weight=1.0)

    def test_weightless(self):
        with pytest.raises(InvalidInputError):
            CatenaryParams(span=5.0, weight=0.0, cable_weight=0.0)

    def test_from_dict_camel_case(self):
        p = CatenaryParams.from_dict({"span": 8, "weight": 200, "cableWeight": 1.5, "maxSag": 0.5})
        assert p.cable_weight == 1.5
        assert p.max_sag == 0.5
        assert p.height_diff == 0.0


class TestCableSafety:
    """Breaking load against working tension."""

    def test_required_strength(self):
        assert calculate_required_cable_strength(1000.0) == pytest.approx(5000.0)
        assert calculate_required_cable_strength(1000.0, 8.0) == pytest.approx(8000.0)

    def test_safe_cable(self):
        result = validate_cable_safety(50000.0, 5000.0)
        assert result.safe
        assert result.actual_safety_factor == pytest.approx(10.0)
        assert result.warnings == []

    def test_below_required(self):
        result = validate_cable_safety(20000.0, 5000.0)
        assert not result.safe
        assert result.actual_safety_factor == pytest.approx(4.0)
        assert len(result.advisories) == 1
        assert result.advisories[0].kind is AdvisoryKind.LOW_SAFETY_FACTOR

    def test_critical(self):
        result = validate_cable_safety(10000.0, 5000.0)
        assert not result.safe
        assert len(result.advisories) == 2
        assert "CRITICAL" in result.warnings[1]

    def test_no_tension(self):
        result = validate_cable_safety(10000.0, 0.0)
        assert result.safe
        assert math.isinf(result.actual_safety_factor)
