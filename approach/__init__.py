"""
approach — Conflict approach engine
===================================

Modules
-------
conflicts
    :func:`approach_conflicts`, the per-cycle acceleration bound.
plans
    :class:`ConflictPlans` kept by one agent across cycles.
car_following
    :class:`CarFollowingModel` protocol and the :class:`IDM` default.
"""

from .car_following import IDM, CarFollowingModel
from .plans import ConflictPlans, StopPhase, TransitionResult
from .conflicts import approach_conflicts, available_space, conflicting_vehicles

__all__ = [
    "IDM",
    "CarFollowingModel",
    "ConflictPlans",
    "StopPhase",
    "TransitionResult",
    "approach_conflicts",
    "available_space",
    "conflicting_vehicles",
]
