"""Tests for speaker directivity."""

import math

import pytest

from rigsim.directivity import (
    DirectivityPattern,
    DirectivityTable,
    calculate_directional_attenuation,
    calculate_line_array_coupling,
    calculate_off_axis_attenuation,
    get_interpolated_directivity,
    line_array_layout,
    off_axis_angles,
)
from rigsim.errors import InvalidInputError
from rigsim.geometry import forward_vector

NOMINAL = DirectivityPattern(90.0, 60.0)


class TestInterpolatedDirectivity:
    """Per-frequency dispersion lookup."""

    def setup_method(self):
        self.table = DirectivityTable.from_mapping({2000: (80, 40), 1000: (90, 60)})

    def test_table_is_sorted(self):
        assert self.table.frequencies == [1000.0, 2000.0]

    def test_exact_entry(self):
        assert get_interpolated_directivity(1000, self.table, NOMINAL) == DirectivityPattern(90, 60)

    def test_log_interpolation_between_entries(self):
        p = get_interpolated_directivity(1000 * math.sqrt(2), self.table, NOMINAL)
        assert p.horizontal == pytest.approx(85.0)
        assert p.vertical == pytest.approx(50.0)

    def test_clamps_outside_table(self):
        assert get_interpolated_directivity(100, self.table, NOMINAL) == DirectivityPattern(90, 60)

    def test_nominal_widens_at_low_frequency(self):
        p = get_interpolated_directivity(250, None, NOMINAL)
        assert p.horizontal == pytest.approx(180.0)
        assert p.vertical == pytest.approx(120.0)

    def test_nominal_at_reference_band(self):
        assert get_interpolated_directivity(1000, None, NOMINAL) == NOMINAL

    def test_mapping_rows_accepted(self):
        p = get_interpolated_directivity(1000, {1000: {"horizontal": 70, "vertical": 30}}, NOMINAL)
        assert p == DirectivityPattern(70, 30)

    def test_non_positive_frequency_rejected(self):
        with pytest.raises(InvalidInputError):
            get_interpolated_directivity(0, self.table, NOMINAL)


class TestOffAxisAttenuation:
    """Quadratic off-axis roll-off."""

    def test_on_axis_is_zero(self):
        assert calculate_off_axis_attenuation(0, 90) == 0.0

    def test_coverage_edge_is_six_db(self):
        assert calculate_off_axis_attenuation(45, 90) == pytest.approx(6.0)

    def test_capped(self):
        assert calculate_off_axis_attenuation(170, 60) == pytest.approx(30.0)

    def test_monotonic(self):
        values = [calculate_off_axis_attenuation(a, 90) for a in range(0, 90, 5)]
        assert values == sorted(values)

    def test_directional_on_axis(self):
        att = calculate_directional_attenuation((0, 0, -10), (0, 0, 0), (0, 0, 0), 1000, NOMINAL)
        assert att == pytest.approx(0.0)

    def test_directional_behind_speaker(self):
        h, v = off_axis_angles((0, 0, 10), (0, 0, 0))
        assert h == pytest.approx(180.0)
        att = calculate_directional_attenuation((0, 0, 10), (0, 0, 0), (0, 0, 0), 1000, NOMINAL)
        assert att == pytest.approx(30.0)


class TestLineArray:
    """Line-array coupling and hang layout."""

    def test_single_box_has_no_gain(self):
        assert calculate_line_array_coupling(1, 0.5, 100) == 0.0

    def test_full_gain_below_transition(self):
        # transition = 343 / (4 * 0.5) = 171.5 Hz
        assert calculate_line_array_coupling(4, 0.5, 100) == pytest.approx(10 * math.log10(4))

    def test_three_db_per_octave_above_transition(self):
        gain = calculate_line_array_coupling(4, 0.5, 343.0)
        assert gain == pytest.approx(10 * math.log10(4) - 3.0)

    def test_no_gain_far_above_transition(self):
        assert calculate_line_array_coupling(4, 0.5, 1000) == 0.0

    @pytest.mark.parametrize("freq", [50, 100, 200, 400, 686, 1000, 4000])
    def test_gain_bounded(self, freq):
        gain = calculate_line_array_coupling(8, 0.4, freq)
        assert 0.0 <= gain <= 10 * math.log10(8) + 1e-12

    def test_layout_straight_hang(self):
        boxes = line_array_layout(3, 0.5)
        assert [b.position[1] for b in boxes] == pytest.approx([0.0, -0.5, -1.0])

    def test_layout_splay_accumulates(self):
        boxes = line_array_layout(3, 0.5, [2.0, 3.0], site_angle=-1.0)
        assert [math.degrees(b.rotation[0]) for b in boxes] == pytest.approx([-1.0, -3.0, -6.0])

    def test_layout_splay_aims_lower_boxes_down(self):
        boxes = line_array_layout(6, 0.35, [2.0] * 6, site_angle=-5.0)
        ys = [forward_vector(b.rotation)[1] for b in boxes]
        assert ys[-1] < ys[0]
        assert all(a > b for a, b in zip(ys, ys[1:]))

    def test_layout_down_aimed_boxes_swing_back(self):
        boxes = line_array_layout(4, 0.35, [3.0] * 4, site_angle=0.0)
        zs = [b.position[2] for b in boxes]
        assert zs[0] == pytest.approx(0.0)
        assert all(a <= b for a, b in zip(zs, zs[1:]))
        assert zs[-1] > 0.0

    def test_layout_rejects_bad_box_height(self):
        with pytest.raises(InvalidInputError):
            line_array_layout(3, 0.0)
