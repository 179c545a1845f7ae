"""
scene/perception.py
===================
Immutable per-cycle input snapshot of one agent.

:class:`PerceivedScene` bundles the ego state, neighbours, upcoming
conflicts and the static network structures.  Task providers are pure
functions of a scene; nothing in a scene is mutated during a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from scene.conflict import Conflict
from scene.network import Link, Network
from scene.parameters import DriverParameters
from scene.types import RelativeLane
from scene.vehicles import PerceivedVehicle


@dataclass(frozen=True)
class SpeedLimitInfo:
    """Local speed limit (m/s)."""

    speed_limit: float


@dataclass(frozen=True)
class EgoState:
    """The perceiving vehicle.

    Attributes
    ----------
    id : str
        Agent identifier.
    speed, acceleration : float
        Current speed (m/s) and acceleration (m/s²).
    desired_speed : float
        Desired speed v0 (m/s).
    length, width : float
        Vehicle dimensions (m).
    link : Link or None
        Link of the reference position.
    x, y : float
        World location of the observer.
    parameters : DriverParameters
        Driver parameters.
    """

    id: str
    speed: float
    desired_speed: float
    parameters: DriverParameters = field(default_factory=DriverParameters)
    acceleration: float = 0.0
    length: float = 4.0
    width: float = 2.0
    link: Optional[Link] = None
    x: float = 0.0
    y: float = 0.0

    @property
    def location(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class PerceivedScene:
    """Everything one agent perceives in one cycle.

    Attributes
    ----------
    ego : EgoState
        The perceiving vehicle.
    leaders : dict
        ``RelativeLane`` → leaders on that lane, nearest first, with distance
        towards the ego vehicle.
    conflicts : tuple of Conflict
        Conflicts on the current lane, nearest first.
    network : Network or None
        Static topology; ``None`` disables upstream grouping.
    visibility : Visibility or None
        Static anchor index; ``None`` means visibility is not limiting.
    speed_limit_info : SpeedLimitInfo
        Local speed limit.
    """

    ego: EgoState
    leaders: Dict[RelativeLane, Tuple[PerceivedVehicle, ...]] = field(default_factory=dict)
    conflicts: Tuple[Conflict, ...] = ()
    network: Optional[Network] = None
    visibility: Any = None
    speed_limit_info: SpeedLimitInfo = SpeedLimitInfo(50.0 / 3.6)

    @property
    def parameters(self) -> DriverParameters:
        return self.ego.parameters

    def leaders_on(self, lane: RelativeLane) -> Tuple[PerceivedVehicle, ...]:
        return tuple(self.leaders.get(lane, ()))
