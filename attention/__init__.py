"""
attention — Attention allocation model
======================================

Modules
-------
visibility
    :class:`Visibility` anchor index and occlusion-limited sight distance.
grouping
    Union of conflicts over shared upstream nodes.
tasks
    :class:`ChannelTask` and the task providers.
mental
    :class:`ChannelMental` per-agent attention state.
"""

from .visibility import Visibility, visibility_for
from .grouping import find_conflict_groups, upstream_nodes
from .tasks import (
    DEFAULT_PROVIDERS,
    ChannelTask,
    IntersectionTaskGroup,
    acceleration_tasks,
    conflict_tasks,
    intersection_tasks,
    signal_tasks,
)
from .mental import ChannelMental, attention_summary, proportional_allocation

__all__ = [
    "Visibility",
    "visibility_for",
    "find_conflict_groups",
    "upstream_nodes",
    "DEFAULT_PROVIDERS",
    "ChannelTask",
    "IntersectionTaskGroup",
    "acceleration_tasks",
    "conflict_tasks",
    "intersection_tasks",
    "signal_tasks",
    "ChannelMental",
    "attention_summary",
    "proportional_allocation",
]
