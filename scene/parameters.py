#!/usr/bin/env python3
"""
scene/parameters.py
===================
Tunable driver parameters for conflict approach and attention allocation.
Every constant lives in the frozen :class:`DriverParameters` dataclass so
that experiments can swap driver profiles without touching code.

A parameter set to ``None`` counts as *absent*.  Reading a required
parameter through :meth:`DriverParameters.require` then raises
:class:`~scene.errors.ParameterError`; the engines never substitute a
silent default for it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from scene.errors import ParameterError

_TD_SHARE = 1.0 - 0.175


@dataclass(frozen=True)
class DriverParameters:
    """Immutable bag of every tunable driver parameter (SI units).

    Groups: car-following, conflicts, perception / task demand,
    mental capacity.
    """

    # ── Car-following ─────────────────────────────────────────────────────
    a: Optional[float] = 1.25
    """Maximum desired acceleration (m/s²)."""

    b: Optional[float] = 2.09
    """Comfortable deceleration (m/s²)."""

    b_crit: Optional[float] = 3.5
    """Critical deceleration (m/s²)."""

    s0: Optional[float] = 3.0
    """Stopping distance behind a standing leader (m)."""

    t: Optional[float] = 1.2
    """Desired time headway (s)."""

    t_max: Optional[float] = 1.2
    """Maximum (relaxed) time headway (s)."""

    delta: Optional[float] = 4.0
    """Free-acceleration exponent."""

    f_speed: Optional[float] = 1.0
    """Factor on the speed limit giving the desired speed."""

    v_max: Optional[float] = 50.0
    """Maximum vehicle speed (m/s)."""

    # ── Conflicts ─────────────────────────────────────────────────────────
    s0_conf: Optional[float] = 1.5
    """Stopping distance in front of a conflict (m)."""

    time_factor: Optional[float] = 1.25
    """Safety multiplier on estimated times (at least 1)."""

    min_gap: Optional[float] = 1e-6
    """Minimum time gap between events at a conflict (s)."""

    stop_area: Optional[float] = 4.0
    """Area before a stop line where one counts as arrived (m)."""

    # ── Perception / task demand ──────────────────────────────────────────
    look_ahead: Optional[float] = 295.0
    """Look-ahead distance x0 (m)."""

    x0_d: Optional[float] = 120.0
    """Distance discount range for signal task demand (m)."""

    td_signal: Optional[float] = 0.2
    """Task demand of a brake light or turn indicator at zero distance."""

    h_exp: Optional[float] = 4.0
    """Exponential time scale of car-following and conflict urgency (s)."""

    h_conf: Optional[float] = 2.49
    """Exponential time scale of conflicting approach time (s)."""

    td_ego: Optional[float] = _TD_SHARE * 0.42 / (0.42 + 0.11)
    """Maximum task demand due to ego distance to an intersection."""

    td_oth: Optional[float] = _TD_SHARE * 0.11 / (0.42 + 0.11)
    """Maximum task demand due to conflicting vehicle time to conflict."""

    x_ego: Optional[float] = 32.5
    """Exponential distance scale of ego intersection task demand (m)."""

    td_scan: Optional[float] = 0.02
    """Constant scanning demand per conflict-group channel."""

    # ── Mental capacity ───────────────────────────────────────────────────
    task_capacity: Optional[float] = 1.0
    """Total task capacity shared by all channels."""

    tau_min: Optional[float] = 0.32
    """Perception delay of a fully attended channel (s)."""

    tau_max: Optional[float] = 1.0
    """Perception delay of an unattended channel (s)."""

    def __post_init__(self) -> None:
        for name in _POSITIVE:
            value = getattr(self, name)
            if value is not None and not value > 0.0:
                raise ParameterError(f"Parameter {name} must be positive, got {value}.")
        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if value is not None and value < 0.0:
                raise ParameterError(f"Parameter {name} must not be negative, got {value}.")
        if self.time_factor is not None and self.time_factor < 1.0:
            raise ParameterError(f"Parameter time_factor must be at least 1, got {self.time_factor}.")
        if (self.tau_min is not None and self.tau_max is not None
                and self.tau_max < self.tau_min):
            raise ParameterError("Parameter tau_max must not be below tau_min.")

    # ── access ────────────────────────────────────────────────────────────

    def require(self, name: str) -> float:
        """Value of parameter *name*; raises :class:`ParameterError` if absent."""
        try:
            value = getattr(self, name)
        except AttributeError:
            raise ParameterError(f"Unknown parameter {name}.") from None
        if value is None:
            raise ParameterError(f"Parameter {name} is not defined.")
        return float(value)

    def with_conflict_stopping(self) -> "DriverParameters":
        """Copy in which ``s0`` is replaced by the conflict stopping distance."""
        return replace(self, s0=self.require("s0_conf"))

    def desired_speed(self, speed_limit: float) -> float:
        """Desired speed given the local *speed_limit*."""
        return min(self.require("v_max"), self.require("f_speed") * speed_limit)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DriverParameters":
        """Build parameters from a name → value mapping; unknown names raise."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ParameterError(f"Unknown parameters: {', '.join(sorted(unknown))}.")
        kwargs: Dict[str, Optional[float]] = {}
        for name, value in values.items():
            if value is None:
                kwargs[name] = None
                continue
            try:
                kwargs[name] = float(value)
            except (TypeError, ValueError):
                raise ParameterError(f"Parameter {name} is not numeric: {value!r}.") from None
            if math.isnan(kwargs[name]):
                raise ParameterError(f"Parameter {name} is NaN.")
        return cls(**kwargs)


_POSITIVE = (
    "a", "b", "b_crit", "t", "t_max", "delta", "f_speed", "v_max", "s0_conf",
    "min_gap", "stop_area", "look_ahead", "x0_d", "h_exp", "h_conf", "x_ego",
    "task_capacity",
)

_NON_NEGATIVE = (
    "s0", "td_signal", "td_ego", "td_oth", "td_scan", "tau_min", "tau_max",
)
