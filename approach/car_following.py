"""
approach/car_following.py
=========================
Car-following collaborator used by the conflict approach engine.

The engine only relies on the :class:`CarFollowingModel` protocol.
:class:`IDM` is the default Intelligent Driver Model implementation.
"""

from __future__ import annotations

import math
from typing import Protocol

from scene.parameters import DriverParameters
from scene.perception import SpeedLimitInfo


class CarFollowingModel(Protocol):
    """Single-leader car-following primitive."""

    def free_acceleration(self, parameters: DriverParameters, speed: float,
                          speed_limit_info: SpeedLimitInfo) -> float:
        ...

    def follow_single_leader(self, parameters: DriverParameters, speed: float,
                             speed_limit_info: SpeedLimitInfo, headway: float,
                             leader_speed: float) -> float:
        ...

    def stop(self, parameters: DriverParameters, speed: float,
             speed_limit_info: SpeedLimitInfo, distance: float) -> float:
        ...


class IDM:
    """Intelligent Driver Model.

    ``a * (1 - (v/v0)^delta - (s*/s)^2)`` with
    ``s* = s0 + max(0, v*T + v*dv / (2*sqrt(a*b)))``.
    """

    min_headway = 1e-3

    def desired_gap(self, parameters: DriverParameters, speed: float, leader_speed: float) -> float:
        a = parameters.require("a")
        b = parameters.require("b")
        dv = speed - leader_speed
        dynamic = speed * parameters.require("t") + speed * dv / (2.0 * math.sqrt(a * b))
        return parameters.require("s0") + max(0.0, dynamic)

    def free_acceleration(self, parameters: DriverParameters, speed: float,
                          speed_limit_info: SpeedLimitInfo) -> float:
        v0 = parameters.desired_speed(speed_limit_info.speed_limit)
        return parameters.require("a") * (1.0 - (speed / v0) ** parameters.require("delta"))

    def follow_single_leader(self, parameters: DriverParameters, speed: float,
                             speed_limit_info: SpeedLimitInfo, headway: float,
                             leader_speed: float) -> float:
        s_star = self.desired_gap(parameters, speed, leader_speed)
        s = max(headway, self.min_headway)
        free = self.free_acceleration(parameters, speed, speed_limit_info)
        return free - parameters.require("a") * (s_star / s) ** 2

    def stop(self, parameters: DriverParameters, speed: float,
             speed_limit_info: SpeedLimitInfo, distance: float) -> float:
        """Acceleration to come to a stand-still at *distance*."""
        return self.follow_single_leader(parameters, speed, speed_limit_info, distance, 0.0)
