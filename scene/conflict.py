"""
scene/conflict.py
=================
Perceived intersection conflicts.

A :class:`Conflict` is one side of a crossing, merge or split between the
ego lane and a conflicting lane.  Non-split conflicts are paired with the
conflict on the other approach through :func:`pair`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from scene.errors import SceneError
from scene.network import Link
from scene.types import ConflictRule, ConflictType
from scene.vehicles import PerceivedVehicle


@dataclass(eq=False)
class Conflict:
    """A conflict ahead of (or under) the ego vehicle.

    Attributes
    ----------
    id : str
        Unique identifier of this side of the conflict.
    conflict_type : ConflictType
        Crossing, merge or split.
    rule : ConflictRule
        Priority rule for the approach this conflict lies on.
    distance : float
        Distance (m) from the ego front to the conflict start; negative once
        the ego vehicle is on the conflict.
    length : float
        Length (m) of the conflict zone along this lane.
    link, position : Link, float
        Link the conflict lies on and the longitudinal position (m) of its
        start on that link.
    upstream_vehicles : tuple of PerceivedVehicle
        Conflicting vehicles upstream of or on the conflict, nearest first.
        Distances are towards the conflict start.
    downstream_vehicles : tuple of PerceivedVehicle
        Conflicting vehicles on or beyond the conflict start, nearest first.
    conflicting_length : float
        Length of the conflict zone along the conflicting lane.
    conflicting_speed_limit : float
        Speed limit (m/s) on the conflicting approach.
    conflicting_visibility : float
        Sight distance (m) upstream along the conflicting approach.
    conflicting_signal_distance : float or None
        Distance (m) upstream of the conflict to a signal controlling the
        conflicting approach.
    width : float
        Width (m) of the conflict area, used on splits.
    stop_line : str or None
        Stop line identity for all-stop conflicts.
    other : Conflict or None
        The paired conflict on the conflicting approach.
    """

    id: str
    conflict_type: ConflictType
    rule: ConflictRule
    distance: float
    length: float
    link: Link
    position: float = 0.0
    upstream_vehicles: Tuple[PerceivedVehicle, ...] = ()
    downstream_vehicles: Tuple[PerceivedVehicle, ...] = ()
    conflicting_length: Optional[float] = None
    conflicting_speed_limit: float = 50.0 / 3.6
    conflicting_visibility: float = math.inf
    conflicting_signal_distance: Optional[float] = None
    width: float = 3.5
    stop_line: Optional[str] = None
    other: Optional["Conflict"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.conflicting_length is None:
            self.conflicting_length = self.length
        self.upstream_vehicles = tuple(self.upstream_vehicles)
        self.downstream_vehicles = tuple(self.downstream_vehicles)

    @property
    def is_crossing(self) -> bool:
        return self.conflict_type.is_crossing

    @property
    def is_merge(self) -> bool:
        return self.conflict_type.is_merge

    @property
    def is_split(self) -> bool:
        return self.conflict_type.is_split

    @property
    def counterpart(self) -> "Conflict":
        """The paired conflict; raises :class:`SceneError` when missing."""
        if self.other is None:
            raise SceneError(f"Conflict {self.id} ({self.conflict_type.value}) has no counterpart.")
        return self.other

    @property
    def conflicting_link(self) -> Link:
        return self.counterpart.link

    def __repr__(self) -> str:
        return (f"Conflict({self.id!r}, {self.conflict_type.value}, {self.rule.value}, "
                f"distance={self.distance:.1f})")


def pair(first: Conflict, second: Conflict) -> Tuple[Conflict, Conflict]:
    """Link two conflicts as each other's counterpart."""
    if first.conflict_type is not second.conflict_type:
        raise SceneError(f"Cannot pair {first.conflict_type.value} conflict {first.id} "
                         f"with {second.conflict_type.value} conflict {second.id}.")
    first.other = second
    second.other = first
    return first, second


def validate(conflicts: Tuple[Conflict, ...]) -> None:
    """Check that non-split conflicts are paired and ordered by distance."""
    previous = -math.inf
    for conflict in conflicts:
        if conflict.is_split:
            continue
        if conflict.other is None:
            raise SceneError(f"Conflict {conflict.id} has no counterpart.")
        if conflict.distance < previous:
            raise SceneError(f"Conflict {conflict.id} is out of order.")
        previous = conflict.distance
