#!/usr/bin/env python3
"""
scene/physics.py
================
Low-level kinematic helpers used by :mod:`approach.conflicts` and
:mod:`attention.tasks`.

Times are in seconds, distances in metres, speeds in m/s.
"""

from __future__ import annotations

import math
from typing import Any, NamedTuple

INF = math.inf

FREE_ACCELERATION_TIME_STEP = 0.5
"""Integration step (s) for free-acceleration anticipation."""

_MAX_STEPS = 2000


class Anticipation(NamedTuple):
    """Anticipated time to cover a distance and the speed at that moment."""

    duration: float
    end_speed: float


def stopping_distance(speed: float, decel: float) -> float:
    """Distance needed to reach zero speed under constant deceleration.

    Parameters
    ----------
    speed : float
        Current speed in m/s.
    decel : float
        Deceleration magnitude in m/s².
    """
    v = max(0.0, float(speed))
    return (v * v) / (2.0 * max(0.1, decel))


def time_to(distance: float, speed: float) -> float:
    """Time to cover *distance* at constant *speed*; infinite at stand-still."""
    if distance <= 0.0:
        return 0.0
    if speed <= 0.0:
        return INF
    return distance / speed


def anticipate_movement(distance: float, speed: float, acceleration: float) -> Anticipation:
    """Time and end speed to cover *distance* under constant *acceleration*.

    The duration is infinite when the vehicle stops before covering the
    distance.
    """
    if distance <= 0.0:
        return Anticipation(0.0, speed)
    if acceleration == 0.0:
        if speed > 0.0:
            return Anticipation(distance / speed, speed)
        return Anticipation(INF, 0.0)
    # solve parabolic path s = v*t + .5*a*t*t
    disc = speed * speed + 2.0 * acceleration * distance
    if disc < 0.0:
        return Anticipation(INF, 0.0)
    root = math.sqrt(disc)
    t = (root - speed) / acceleration
    if t < 0.0:
        return Anticipation(INF, 0.0)
    return Anticipation(t, speed + acceleration * t)


def anticipate_movement_free_acceleration(
    distance: float,
    speed: float,
    parameters: Any,
    car_following_model: Any,
    speed_limit_info: Any,
    time_step: float = FREE_ACCELERATION_TIME_STEP,
) -> Anticipation:
    """Time and end speed to cover *distance* accelerating freely.

    The free acceleration of *car_following_model* is re-evaluated every
    *time_step* seconds and held constant in between.
    """
    if distance <= 0.0:
        return Anticipation(0.0, speed)
    t = 0.0
    x = 0.0
    v = speed
    for _ in range(_MAX_STEPS):
        a = car_following_model.free_acceleration(parameters, v, speed_limit_info)
        step = anticipate_movement(distance - x, v, a)
        if step.duration <= time_step:
            return Anticipation(t + step.duration, step.end_speed)
        if v + a * time_step <= 0.0:
            # comes to a halt within this step and will not move on
            return Anticipation(INF, 0.0)
        x += v * time_step + 0.5 * a * time_step * time_step
        v += a * time_step
        t += time_step
    return Anticipation(INF, v)
