"""
approach/plans.py
=================
Per-agent conflict plans kept across decision cycles.

A plan made in one cycle (yield here, block there) must survive the noise
of the next cycle's geometry.  :class:`ConflictPlans` holds the blocking
flag, the indicator intent and the all-stop phase of each stop line.  One
instance belongs to exactly one agent.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from scene.types import TurnIndicator


class StopPhase(Enum):
    """Phases of navigating an all-stop intersection."""
    APPROACH = "approach"
    YIELD = "yield"
    RUN = "run"


# phase → phases it may move to
_TRANSITIONS = {
    None: (StopPhase.APPROACH,),
    StopPhase.APPROACH: (StopPhase.APPROACH, StopPhase.YIELD),
    StopPhase.YIELD: (StopPhase.YIELD, StopPhase.RUN),
    StopPhase.RUN: (StopPhase.RUN,),
}


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a stop-phase transition request."""

    ok: bool
    phase: Optional[StopPhase]
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


class ConflictPlans:
    """Tactical plans of one driver considering conflicts.

    Attributes
    ----------
    blocking : bool
        Whether the agent stands on a crossing it has no priority over.
    anomaly : bool
        Set when the last cycle produced an implausibly strong deceleration
        that was discarded.

    Notes
    -----
    The indicator intent is written by the caller, e.g. a lane change or
    bus stop model, after :func:`~approach.conflicts.approach_conflicts`
    cleared it for the cycle.  The nearest triggering object wins.
    """

    def __init__(self) -> None:
        self._stop_phases: Dict[str, StopPhase] = {}
        self._arrival_times: Dict[Tuple[str, str], float] = {}
        self._own_arrivals: Dict[str, float] = {}
        self._indicator_intent = TurnIndicator.NONE
        self._indicator_object_distance: Optional[float] = None
        self.blocking = False
        self.anomaly = False

    def clean_plans(self) -> None:
        """Reset the per-cycle fields; stop phases persist."""
        self._indicator_intent = TurnIndicator.NONE
        self._indicator_object_distance = None
        self.anomaly = False

    # ── indicator ─────────────────────────────────────────────────────────

    @property
    def indicator_intent(self) -> TurnIndicator:
        return self._indicator_intent

    @property
    def indicator_object_distance(self) -> Optional[float]:
        return self._indicator_object_distance

    def set_indicator_intent(self, intent: TurnIndicator, distance: float) -> None:
        """Set an intent unless a nearer object already determined one."""
        if self._indicator_object_distance is None or self._indicator_object_distance > distance:
            self._indicator_intent = intent
            self._indicator_object_distance = distance

    # ── all-stop phases ───────────────────────────────────────────────────

    def stop_phase(self, stop_line: str) -> Optional[StopPhase]:
        return self._stop_phases.get(stop_line)

    def _transition(self, stop_line: str, phase: StopPhase) -> TransitionResult:
        current = self._stop_phases.get(stop_line)
        if phase not in _TRANSITIONS[current]:
            name = current.value if current else "none"
            return TransitionResult(False, current,
                                    f"cannot move stop line {stop_line} from {name} to {phase.value}")
        self._stop_phases[stop_line] = phase
        return TransitionResult(True, phase)

    def set_stop_phase_approach(self, stop_line: str) -> TransitionResult:
        return self._transition(stop_line, StopPhase.APPROACH)

    def set_stop_phase_yield(self, stop_line: str) -> TransitionResult:
        """Requires the stop line to be in the approach phase."""
        return self._transition(stop_line, StopPhase.YIELD)

    def set_stop_phase_run(self, stop_line: str) -> TransitionResult:
        """Requires the stop line to be in the yield phase."""
        return self._transition(stop_line, StopPhase.RUN)

    def is_stop_phase_approach(self, stop_line: str) -> bool:
        return self._stop_phases.get(stop_line) is StopPhase.APPROACH

    def is_stop_phase_yield(self, stop_line: str) -> bool:
        return self._stop_phases.get(stop_line) is StopPhase.YIELD

    def is_stop_phase_run(self, stop_line: str) -> bool:
        return self._stop_phases.get(stop_line) is StopPhase.RUN

    # ── arrival times ─────────────────────────────────────────────────────

    def set_arrival_time(self, stop_line: str, vehicle_id: str, time: float) -> None:
        """Time at which *vehicle_id* was first seen waiting at *stop_line*."""
        self._arrival_times[(stop_line, vehicle_id)] = time

    def get_arrival_time(self, stop_line: str, vehicle_id: str) -> Optional[float]:
        return self._arrival_times.get((stop_line, vehicle_id))

    def forget_arrivals(self, stop_line: str) -> None:
        """Drop all arrival times recorded at *stop_line*, own arrival included."""
        for key in [key for key in self._arrival_times if key[0] == stop_line]:
            del self._arrival_times[key]
        self._own_arrivals.pop(stop_line, None)

    def set_own_arrival(self, stop_line: str, time: float) -> None:
        """Time at which this agent came to a stand-still at *stop_line*."""
        self._own_arrivals[stop_line] = time

    def own_arrival(self, stop_line: str) -> Optional[float]:
        return self._own_arrivals.get(stop_line)

    def __repr__(self) -> str:
        return (f"ConflictPlans(blocking={self.blocking}, "
                f"indicator={self._indicator_intent.value}, phases={len(self._stop_phases)})")
