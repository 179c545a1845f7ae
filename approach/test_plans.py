#!/usr/bin/env python3
"""
Tests for per-agent conflict plans and the all-stop phase machine.
"""

from __future__ import annotations

import unittest

from approach.car_following import IDM
from approach.plans import ConflictPlans, StopPhase
from scene.parameters import DriverParameters
from scene.perception import SpeedLimitInfo
from scene.types import TurnIndicator


class StopPhaseTests(unittest.TestCase):
    def test_phases_follow_approach_yield_run(self) -> None:
        plans = ConflictPlans()
        self.assertIsNone(plans.stop_phase("sl"))
        self.assertTrue(plans.set_stop_phase_approach("sl"))
        self.assertTrue(plans.set_stop_phase_yield("sl"))
        result = plans.set_stop_phase_run("sl")
        self.assertTrue(result.ok)
        self.assertIs(result.phase, StopPhase.RUN)
        self.assertTrue(plans.is_stop_phase_run("sl"))

    def test_yield_requires_prior_approach(self) -> None:
        plans = ConflictPlans()
        result = plans.set_stop_phase_yield("sl")
        self.assertFalse(result)
        self.assertIsNone(result.phase)
        self.assertIn("sl", result.reason)
        self.assertIsNone(plans.stop_phase("sl"))

    def test_run_cannot_skip_yield(self) -> None:
        plans = ConflictPlans()
        plans.set_stop_phase_approach("sl")
        result = plans.set_stop_phase_run("sl")
        self.assertFalse(result.ok)
        self.assertIs(result.phase, StopPhase.APPROACH)
        self.assertTrue(plans.is_stop_phase_approach("sl"))

    def test_stop_lines_are_independent(self) -> None:
        plans = ConflictPlans()
        plans.set_stop_phase_approach("a")
        plans.set_stop_phase_yield("a")
        plans.set_stop_phase_approach("b")
        self.assertTrue(plans.is_stop_phase_yield("a"))
        self.assertTrue(plans.is_stop_phase_approach("b"))

    def test_phases_survive_clean_plans(self) -> None:
        plans = ConflictPlans()
        plans.set_stop_phase_approach("sl")
        plans.clean_plans()
        self.assertTrue(plans.is_stop_phase_approach("sl"))


class IndicatorIntentTests(unittest.TestCase):
    def test_nearest_object_determines_intent(self) -> None:
        plans = ConflictPlans()
        plans.set_indicator_intent(TurnIndicator.LEFT, 40.0)
        plans.set_indicator_intent(TurnIndicator.RIGHT, 20.0)
        plans.set_indicator_intent(TurnIndicator.LEFT, 30.0)
        self.assertIs(plans.indicator_intent, TurnIndicator.RIGHT)
        self.assertEqual(plans.indicator_object_distance, 20.0)

    def test_clean_plans_resets_intent(self) -> None:
        plans = ConflictPlans()
        plans.set_indicator_intent(TurnIndicator.LEFT, 40.0)
        plans.anomaly = True
        plans.clean_plans()
        self.assertIs(plans.indicator_intent, TurnIndicator.NONE)
        self.assertIsNone(plans.indicator_object_distance)
        self.assertFalse(plans.anomaly)


class IDMTests(unittest.TestCase):
    def test_free_acceleration_vanishes_at_desired_speed(self) -> None:
        params = DriverParameters()
        sli = SpeedLimitInfo(20.0)
        self.assertAlmostEqual(IDM().free_acceleration(params, 20.0, sli), 0.0)
        self.assertAlmostEqual(IDM().free_acceleration(params, 0.0, sli), params.a)

    def test_stop_is_following_a_standing_leader(self) -> None:
        params = DriverParameters()
        sli = SpeedLimitInfo(20.0)
        self.assertEqual(IDM().stop(params, 10.0, sli, 30.0),
                         IDM().follow_single_leader(params, 10.0, sli, 30.0, 0.0))
        self.assertLess(IDM().stop(params, 10.0, sli, 10.0), IDM().stop(params, 10.0, sli, 30.0))


if __name__ == "__main__":
    unittest.main()
