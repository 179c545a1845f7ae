"""
scene — Shared, read-only scene description
============================================

Modules
-------
types
    Conflict / rule / lane enums and the :class:`Channel` identifier.
network
    :class:`Node`, :class:`Link` and :class:`Network` topology.
vehicles
    :class:`PerceivedVehicle` and the synthetic :class:`GhostVehicle`.
conflict
    :class:`Conflict` and counterpart pairing.
perception
    :class:`PerceivedScene` per-cycle snapshot.
parameters
    :class:`DriverParameters` tunable constants.
physics
    Kinematic anticipation helpers.
errors
    Configuration error hierarchy.
"""

from .errors import ConfigurationError, ParameterError, SceneError, UnsupportedConflictRuleError
from .types import (
    Channel,
    ChannelKind,
    ConflictRule,
    ConflictType,
    Direction,
    RelativeLane,
    TurnIndicator,
    FRONT,
    LEFT,
    RIGHT,
    REAR,
)
from .network import Link, Network, Node, straight_link
from .vehicles import ConflictingVehicle, GhostVehicle, PerceivedVehicle, is_on_route
from .conflict import Conflict, pair, validate
from .parameters import DriverParameters
from .perception import EgoState, PerceivedScene, SpeedLimitInfo

__all__ = [
    "ConfigurationError",
    "ParameterError",
    "SceneError",
    "UnsupportedConflictRuleError",
    "Channel",
    "ChannelKind",
    "ConflictRule",
    "ConflictType",
    "Direction",
    "RelativeLane",
    "TurnIndicator",
    "FRONT",
    "LEFT",
    "RIGHT",
    "REAR",
    "Link",
    "Network",
    "Node",
    "straight_link",
    "ConflictingVehicle",
    "GhostVehicle",
    "PerceivedVehicle",
    "is_on_route",
    "Conflict",
    "pair",
    "validate",
    "DriverParameters",
    "EgoState",
    "PerceivedScene",
    "SpeedLimitInfo",
]
