"""
scene/vehicles.py
=================
Perceived neighbour vehicles.

A conflicting vehicle is either *observed* (:class:`PerceivedVehicle`) or
*inferred* (:class:`GhostVehicle`, a stand-in at the visibility boundary
driving at the speed limit).  ``None`` means no conflicting traffic at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

from scene.network import Link
from scene.types import TurnIndicator


@dataclass(frozen=True)
class PerceivedVehicle:
    """A vehicle as perceived by the ego driver.

    Attributes
    ----------
    id : str
        Unique identifier.
    distance : float
        Distance (m) to the reference object, the ego vehicle for leaders or
        the conflict start for conflicting vehicles.  Meaningless while the
        vehicle is parallel.
    speed, acceleration : float
        Current speed (m/s) and acceleration (m/s²).
    length, width : float
        Vehicle dimensions (m).
    overlap_front, overlap, overlap_rear : float or None
        Set when the vehicle is *parallel* to the reference object (on a
        conflict).  ``overlap_rear`` is the signed distance of the rear
        beyond the start of the reference object.
    route : tuple of node ids or None
        Known route of the vehicle; ``None`` when unknown.
    parameters, car_following, speed_limit_info : optional
        Behavioural model of the vehicle, used for free-acceleration
        anticipation.  Missing ⇒ constant-acceleration anticipation.
    braking_lights : bool
        Brake lights on.
    turn_indicator : TurnIndicator
        Indicator status.
    """

    id: str
    distance: float
    speed: float
    acceleration: float = 0.0
    length: float = 4.0
    width: float = 2.0
    overlap_front: Optional[float] = None
    overlap: Optional[float] = None
    overlap_rear: Optional[float] = None
    route: Optional[Tuple[str, ...]] = None
    parameters: Any = None
    car_following: Any = None
    speed_limit_info: Any = None
    braking_lights: bool = False
    turn_indicator: TurnIndicator = TurnIndicator.NONE

    @property
    def is_parallel(self) -> bool:
        return self.overlap is not None

    @property
    def is_ahead(self) -> bool:
        return self.overlap is None

    @property
    def has_behaviour(self) -> bool:
        return (self.parameters is not None and self.car_following is not None
                and self.speed_limit_info is not None)


@dataclass(frozen=True)
class GhostVehicle:
    """Synthetic conflicting vehicle at the visibility boundary."""

    distance: float
    speed: float
    length: float = 4.0
    width: float = 2.0
    acceleration: float = 0.0

    id = "ghost"
    route = None
    is_parallel = False
    is_ahead = True


ConflictingVehicle = Union[PerceivedVehicle, GhostVehicle]


def is_on_route(conflicting_link: Link, vehicle: ConflictingVehicle) -> bool:
    """Whether *conflicting_link* lies on the route of *vehicle*.

    Both end nodes must be on the route and adjacent.  An unknown route is
    assumed to pass the link, the vehicle being upstream of the conflict.
    """
    route: Optional[Sequence[str]] = vehicle.route
    if route is None:
        return True
    start, end = conflicting_link.start.id, conflicting_link.end.id
    if start not in route or end not in route:
        return False
    return abs(list(route).index(end) - list(route).index(start)) == 1
