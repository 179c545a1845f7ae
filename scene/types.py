"""
scene/types.py
==============
Enumerations and the :class:`Channel` identifier used throughout the core.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConflictType(Enum):
    """Geometric relation between two lanes."""
    CROSSING = "crossing"
    MERGE = "merge"
    SPLIT = "split"

    @property
    def is_crossing(self) -> bool:
        return self is ConflictType.CROSSING

    @property
    def is_merge(self) -> bool:
        return self is ConflictType.MERGE

    @property
    def is_split(self) -> bool:
        return self is ConflictType.SPLIT


class ConflictRule(Enum):
    """Priority rule that applies to the ego approach of a conflict."""
    PRIORITY = "priority"
    YIELD = "yield"
    STOP = "stop"
    ALL_STOP = "all_stop"
    SPLIT = "split"


class RelativeLane(Enum):
    """Lane relative to the ego lane."""
    LEFT = -1
    CURRENT = 0
    RIGHT = 1


class TurnIndicator(Enum):
    """Turn indicator status of a perceived vehicle, or an indicator intent."""
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"
    HAZARD = "hazard"

    @property
    def is_left_or_both(self) -> bool:
        return self in (TurnIndicator.LEFT, TurnIndicator.HAZARD)

    @property
    def is_right_or_both(self) -> bool:
        return self in (TurnIndicator.RIGHT, TurnIndicator.HAZARD)


class Direction(Enum):
    """The four fixed perceptual directions."""
    FRONT = "front"
    LEFT = "left"
    RIGHT = "right"
    REAR = "rear"


class ChannelKind(Enum):
    DIRECTION = "direction"
    CONFLICT = "conflict"
    OBJECT = "object"


@dataclass(frozen=True)
class Channel:
    """Where attention is directed.

    A tagged variant: a fixed :class:`Direction`, a conflict (group) or a
    tracked object.  Equality and hashing use the ``(kind, key)`` pair only,
    so channels can be used directly as dictionary keys.

    Attributes
    ----------
    kind : ChannelKind
        Variant tag.
    key : str
        Direction value, conflict id or object id.
    """

    kind: ChannelKind
    key: str

    @classmethod
    def direction(cls, direction: Direction) -> "Channel":
        return cls(ChannelKind.DIRECTION, direction.value)

    @classmethod
    def conflict(cls, conflict_id: str) -> "Channel":
        return cls(ChannelKind.CONFLICT, str(conflict_id))

    @classmethod
    def object(cls, object_id: str) -> "Channel":
        return cls(ChannelKind.OBJECT, str(object_id))

    @property
    def is_direction(self) -> bool:
        return self.kind is ChannelKind.DIRECTION

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.key}"


FRONT = Channel.direction(Direction.FRONT)
LEFT = Channel.direction(Direction.LEFT)
RIGHT = Channel.direction(Direction.RIGHT)
REAR = Channel.direction(Direction.REAR)

DIRECTIONAL_CHANNELS = (FRONT, LEFT, RIGHT, REAR)
