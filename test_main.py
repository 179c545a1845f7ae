#!/usr/bin/env python3
"""
test_main.py
============
Smoke test for the scripted demo scenario.

Usage::

    python -m unittest test_main
"""

from __future__ import annotations

import math
import unittest

from main import build_network, build_scene, run
from scene.parameters import DriverParameters


class DemoScenarioTests(unittest.TestCase):
    def test_run_produces_one_row_per_step(self) -> None:
        rows = run(duration=5.0, dt=0.5)
        self.assertEqual(len(rows), 10)
        self.assertEqual(rows[0][0], 0.0)

    def test_speed_never_negative(self) -> None:
        for _, _, v, a in run(duration=20.0, dt=0.5):
            self.assertGreaterEqual(v, 0.0)
            self.assertTrue(math.isfinite(a))

    def test_anchor_limits_view_on_northern_approach(self) -> None:
        network, visibility = build_network()
        scene = build_scene(network, visibility, DriverParameters(), 100.0, 10.0, 40.0, 13.9, 13.9)
        conflict = scene.conflicts[0]
        self.assertLess(conflict.conflicting_visibility, DriverParameters().look_ahead)
        self.assertGreater(conflict.conflicting_visibility, 0.0)


if __name__ == "__main__":
    unittest.main()
