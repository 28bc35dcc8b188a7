"""Tests for the yeast percentage model."""
from __future__ import annotations

import math
import unittest

from schemas.dough_schemas import AVPN_DEFAULTS
from tools.yeast_calculator import (
    MAX_YEAST_PERCENT,
    MIN_YEAST_PERCENT,
    compute_yeast_percentage,
    effective_fermentation_hours,
    yeast_calculator_tool,
)


def _config(**overrides):
    return AVPN_DEFAULTS.model_copy(update=overrides)


class TestAnchorPoint(unittest.TestCase):

    def test_defaults_give_canonical_point_fifteen_percent(self):
        self.assertEqual(compute_yeast_percentage(AVPN_DEFAULTS), 0.15)

    def test_half_the_time_doubles_the_yeast(self):
        self.assertAlmostEqual(compute_yeast_percentage(_config(room_time=4)), 0.30)

    def test_tool_wrapper_matches_function(self):
        result = yeast_calculator_tool.func({"room_time": 4, "room_temp": 23})
        self.assertAlmostEqual(result, 0.30)


class TestFridgeRetard(unittest.TestCase):

    def test_fridge_hours_count_at_twelve_percent(self):
        config = _config(use_fridge=True, fridge_time=24)
        self.assertAlmostEqual(effective_fermentation_hours(config), 8 + 24 * 0.12)
        self.assertAlmostEqual(compute_yeast_percentage(config), 0.15 * 8 / 10.88)

    def test_fridge_hours_ignored_when_disabled(self):
        config = _config(use_fridge=False, fridge_time=72)
        self.assertEqual(effective_fermentation_hours(config), 8)
        self.assertEqual(compute_yeast_percentage(config), 0.15)

    def test_fridge_temperature_does_not_change_the_model(self):
        cold = _config(use_fridge=True, fridge_temp=2)
        warm = _config(use_fridge=True, fridge_temp=8)
        self.assertEqual(compute_yeast_percentage(cold), compute_yeast_percentage(warm))


class TestYeastForm(unittest.TestCase):

    def test_dry_is_fresh_times_point_three_three(self):
        for room_time, room_temp, use_fridge in [(8, 23, False), (12, 20, True), (24, 30, True)]:
            fresh = compute_yeast_percentage(_config(room_time=room_time, room_temp=room_temp,
                                                     use_fridge=use_fridge, yeast_type="fresh"))
            dry = compute_yeast_percentage(_config(room_time=room_time, room_temp=room_temp,
                                                   use_fridge=use_fridge, yeast_type="dry"))
            self.assertAlmostEqual(dry, fresh * 0.33)


class TestMonotonicity(unittest.TestCase):

    def test_non_increasing_in_hours(self):
        values = [compute_yeast_percentage(_config(room_time=h)) for h in range(1, 49)]
        for earlier, later in zip(values, values[1:]):
            self.assertGreaterEqual(earlier, later)

    def test_non_increasing_in_fridge_hours(self):
        values = [compute_yeast_percentage(_config(use_fridge=True, fridge_time=h))
                  for h in range(1, 121, 5)]
        for earlier, later in zip(values, values[1:]):
            self.assertGreaterEqual(earlier, later)

    def test_non_increasing_in_temperature(self):
        values = [compute_yeast_percentage(_config(room_temp=t)) for t in range(15, 36)]
        for earlier, later in zip(values, values[1:]):
            self.assertGreaterEqual(earlier, later)


class TestClamping(unittest.TestCase):

    def test_always_within_bounds_for_positive_inputs(self):
        for room_time in (0.01, 0.5, 1, 8, 48, 500, 1e6):
            for room_temp in (0.1, 1, 15, 23, 35, 90, 1e4):
                for yeast_type in ("fresh", "dry"):
                    pct = compute_yeast_percentage(
                        _config(room_time=room_time, room_temp=room_temp, yeast_type=yeast_type)
                    )
                    self.assertGreaterEqual(pct, MIN_YEAST_PERCENT)
                    self.assertLessEqual(pct, MAX_YEAST_PERCENT)

    def test_very_short_cold_schedule_hits_upper_bound(self):
        self.assertEqual(compute_yeast_percentage(_config(room_time=0.1, room_temp=5)), 1.5)

    def test_very_long_warm_schedule_hits_lower_bound(self):
        self.assertEqual(compute_yeast_percentage(_config(room_time=1000, room_temp=35)), 0.005)

    def test_zero_hours_gives_upper_clamp_instead_of_raising(self):
        self.assertEqual(compute_yeast_percentage(_config(room_time=0)), MAX_YEAST_PERCENT)

    def test_zero_temperature_gives_upper_clamp_instead_of_raising(self):
        self.assertEqual(compute_yeast_percentage(_config(room_temp=0)), MAX_YEAST_PERCENT)

    def test_negative_temperature_gives_upper_clamp(self):
        self.assertEqual(compute_yeast_percentage(_config(room_temp=-5)), MAX_YEAST_PERCENT)

    def test_nan_propagates(self):
        self.assertTrue(math.isnan(compute_yeast_percentage(_config(room_temp=math.nan))))
        self.assertTrue(math.isnan(compute_yeast_percentage(_config(room_time=math.nan))))
