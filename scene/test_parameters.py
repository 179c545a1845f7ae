#!/usr/bin/env python3
"""
Tests for driver parameters and their environment overrides.
"""

from __future__ import annotations

import unittest

from config import parameters_from_env
from scene.errors import ConfigurationError, ParameterError
from scene.parameters import DriverParameters


class DriverParametersTests(unittest.TestCase):
    def test_defaults(self) -> None:
        params = DriverParameters()
        self.assertEqual(params.require("s0"), 3.0)
        self.assertEqual(params.require("look_ahead"), 295.0)
        self.assertAlmostEqual(params.td_ego + params.td_oth, 1.0 - 0.175)

    def test_absent_parameter_raises(self) -> None:
        params = DriverParameters(b_crit=None)
        with self.assertRaises(ParameterError) as ctx:
            params.require("b_crit")
        self.assertIsInstance(ctx.exception, ConfigurationError)

    def test_unknown_parameter_raises(self) -> None:
        with self.assertRaises(ParameterError):
            DriverParameters().require("does_not_exist")

    def test_constraints_are_validated(self) -> None:
        with self.assertRaises(ParameterError):
            DriverParameters(b=-1.0)
        with self.assertRaises(ParameterError):
            DriverParameters(time_factor=0.9)
        with self.assertRaises(ParameterError):
            DriverParameters(tau_min=1.5, tau_max=1.0)

    def test_conflict_stopping_swaps_s0_without_mutation(self) -> None:
        params = DriverParameters(s0=3.0, s0_conf=1.5)
        conf = params.with_conflict_stopping()
        self.assertEqual(conf.s0, 1.5)
        self.assertEqual(params.s0, 3.0)

    def test_desired_speed_is_capped(self) -> None:
        params = DriverParameters(f_speed=1.1, v_max=20.0)
        self.assertAlmostEqual(params.desired_speed(10.0), 11.0)
        self.assertAlmostEqual(params.desired_speed(30.0), 20.0)

    def test_from_mapping_rejects_bad_values(self) -> None:
        self.assertEqual(DriverParameters.from_mapping({"s0": "2.5"}).s0, 2.5)
        with self.assertRaises(ParameterError):
            DriverParameters.from_mapping({"s0": "abc"})
        with self.assertRaises(ParameterError):
            DriverParameters.from_mapping({"bogus": 1.0})
        with self.assertRaises(ParameterError):
            DriverParameters.from_mapping({"s0": float("nan")})


class EnvironmentOverrideTests(unittest.TestCase):
    def test_overrides_by_prefix(self) -> None:
        params = parameters_from_env(environ={"DRIVER_S0": "2.0", "DRIVER_B_CRIT": "none",
                                              "HOME": "/root"})
        self.assertEqual(params.s0, 2.0)
        self.assertIsNone(params.b_crit)
        self.assertEqual(params.b, DriverParameters().b)

    def test_no_overrides_returns_base(self) -> None:
        base = DriverParameters(s0=4.0)
        self.assertIs(parameters_from_env(environ={}, base=base), base)

    def test_unknown_override_raises(self) -> None:
        with self.assertRaises(ParameterError):
            parameters_from_env(environ={"DRIVER_SPEED": "3"})

    def test_bad_value_raises(self) -> None:
        with self.assertRaises(ParameterError):
            parameters_from_env(environ={"DRIVER_S0": "fast"})


if __name__ == "__main__":
    unittest.main()
