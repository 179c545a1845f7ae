"""
attention/mental.py
===================
Attention allocation over perceptual channels.

:class:`ChannelMental` is the persistent per-agent state of the attention
model.  Every cycle :meth:`ChannelMental.update` gathers the tasks of all
providers, sums their demand per channel and converts it into attention and
a perception delay.  The object → channel map (conflicts perceived through
their group's channel, splits through FRONT) is rebuilt from scratch on every
update.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from attention.tasks import DEFAULT_PROVIDERS, ChannelTask, TaskProvider
from scene.conflict import Conflict
from scene.parameters import DriverParameters
from scene.perception import PerceivedScene
from scene.types import DIRECTIONAL_CHANNELS, Channel
from scene.vehicles import PerceivedVehicle

log = logging.getLogger("mental")

Allocator = Callable[[Mapping[Channel, float], float], Dict[Channel, float]]


def proportional_allocation(demands: Mapping[Channel, float], capacity: float) -> Dict[Channel, float]:
    """Attention in proportion to demand, scaled down only when over capacity.

    ``attention_i = d_i / max(sum(d), capacity)``
    """
    total = sum(demands.values())
    scale = max(total, capacity)
    if scale <= 0.0:
        return {channel: 0.0 for channel in demands}
    return {channel: demand / scale for channel, demand in demands.items()}


class ChannelMental:
    """Per-agent channel attention.

    Parameters
    ----------
    providers : sequence of callables
        Task providers invoked every update.
    allocator : callable, optional
        ``(demand per channel, task capacity) -> attention per channel``.
        Defaults to :func:`proportional_allocation`.
    """

    def __init__(self, providers: Sequence[TaskProvider] = DEFAULT_PROVIDERS,
                 allocator: Optional[Allocator] = None) -> None:
        self.providers = tuple(providers)
        self.allocator = allocator or proportional_allocation
        self.tasks: List[ChannelTask] = []
        self._demand: Dict[Channel, float] = {channel: 0.0 for channel in DIRECTIONAL_CHANNELS}
        self._attention: Dict[Channel, float] = {channel: 0.0 for channel in DIRECTIONAL_CHANNELS}
        self._mapping: Dict[str, Channel] = {}
        defaults = DriverParameters()
        self._tau_min = defaults.require("tau_min")
        self._tau_max = defaults.require("tau_max")

    # ── update ────────────────────────────────────────────────────────────

    def update(self, scene: PerceivedScene) -> None:
        """Recompute demand, attention and channel mapping for *scene*."""
        parameters = scene.parameters
        capacity = parameters.require("task_capacity")
        self._tau_min = parameters.require("tau_min")
        self._tau_max = parameters.require("tau_max")

        self._mapping.clear()
        self.tasks = [task for provider in self.providers for task in provider(scene)]
        demand: Dict[Channel, float] = {channel: 0.0 for channel in DIRECTIONAL_CHANNELS}
        for task in self.tasks:
            demand[task.channel] = demand.get(task.channel, 0.0) + max(0.0, task.demand)
            for key in task.represents:
                self.map_to_channel(key, task.channel)
        self._demand = demand

        attention = self.allocator(demand, capacity)
        self._attention = {channel: min(1.0, max(0.0, attention.get(channel, 0.0)))
                           for channel in demand}
        log.debug("%s: demand %.3f over %d channels", scene.ego.id, self.total_demand,
                  len(self._demand))

    # ── channel map ───────────────────────────────────────────────────────

    def map_to_channel(self, obj: Union[str, Conflict, PerceivedVehicle], channel: Channel) -> None:
        """Let *obj* be perceived through *channel*; repeated calls are harmless."""
        self._mapping[_key(obj)] = channel

    def _resolve(self, obj: Union[str, Conflict, PerceivedVehicle, Channel]) -> Channel:
        if isinstance(obj, Channel):
            if obj.is_direction:
                return obj
            return self._mapping.get(obj.key, obj)
        key = _key(obj)
        if isinstance(obj, PerceivedVehicle):
            # tracked objects have their own channel unless grouped
            return self._mapping.get(key, Channel.object(key))
        return self._mapping.get(key, Channel.conflict(key))

    # ── queries ───────────────────────────────────────────────────────────

    def get_channels(self) -> Set[Channel]:
        return set(self._demand)

    def get_demand(self, obj: Union[str, Conflict, PerceivedVehicle, Channel]) -> float:
        return self._demand.get(self._resolve(obj), 0.0)

    @property
    def total_demand(self) -> float:
        return sum(self._demand.values())

    def get_attention(self, obj: Union[str, Conflict, PerceivedVehicle, Channel]) -> float:
        """Attention in [0, 1]; 0 for a channel unknown this cycle."""
        return self._attention.get(self._resolve(obj), 0.0)

    def get_perception_delay(self, obj: Union[str, Conflict, PerceivedVehicle, Channel]) -> float:
        """Perception delay (s); the maximum delay for an unattended channel."""
        attention = self.get_attention(obj)
        return self._tau_min + (self._tau_max - self._tau_min) * (1.0 - attention)

    def channel_map(self) -> Dict[str, Channel]:
        """Copy of the object id → representative channel map."""
        return dict(self._mapping)

    def __repr__(self) -> str:
        return f"ChannelMental(channels={len(self._demand)}, demand={self.total_demand:.3f})"


def _key(obj: Union[str, Conflict, PerceivedVehicle]) -> str:
    return obj.id if isinstance(obj, (Conflict, PerceivedVehicle)) else str(obj)


def attention_summary(mental: ChannelMental, channels: Iterable[Channel]) -> Dict[str, float]:
    """Attention per channel keyed by channel name, for logging."""
    return {str(channel): round(mental.get_attention(channel), 3) for channel in channels}
