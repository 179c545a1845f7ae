"""
attention/tasks.py
==================
Channel task providers.

A provider is a pure function ``(PerceivedScene) -> list[ChannelTask]``.
:class:`~attention.mental.ChannelMental` calls every registered provider
once per cycle and sums the demand per channel.

Providers
---------
acceleration_tasks
    Demand of pulling up behind leaders that drive away (FRONT).
signal_tasks
    Brake lights ahead and indicators on adjacent lanes (FRONT/LEFT/RIGHT).
conflict_tasks
    One urgency task per conflict group.
intersection_tasks
    Intersection demand split over conflict groups by salience, plus a
    scanning task per group.

Splits are never given conflict demand; the first vehicle on the other
branch becomes a car-following task on FRONT instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from attention.grouping import find_conflict_groups
from attention.visibility import visibility_for
from scene.conflict import Conflict
from scene.perception import PerceivedScene
from scene.physics import INF, time_to
from scene.types import FRONT, LEFT, RIGHT, Channel, RelativeLane
from scene.vehicles import PerceivedVehicle


@dataclass(frozen=True)
class ChannelTask:
    """Demand attributed to one channel in one cycle.

    Attributes
    ----------
    id : str
        Task identifier, unique within a cycle.
    channel : Channel
        Channel the demand is attributed to.
    demand : float
        Task demand, non-negative.
    represents : tuple of str
        Ids of objects perceived through *channel*: conflicts and the
        conflicting vehicles approaching them.
    """

    id: str
    channel: Channel
    demand: float
    represents: Tuple[str, ...] = ()


TaskProvider = Callable[[PerceivedScene], List[ChannelTask]]


def _headway(distance: float, speed: float) -> float:
    """Time to cover *distance* at *speed*, signed for negative distances."""
    if speed > 0.0:
        return distance / speed
    if distance == 0.0:
        return 0.0
    return math.copysign(INF, distance)


# ── Acceleration ──────────────────────────────────────────────────────────────

def acceleration_tasks(scene: PerceivedScene) -> List[ChannelTask]:
    """Demand of keeping up with leaders on the current lane that pull away."""
    x0 = scene.parameters.require("look_ahead")
    v = scene.ego.speed
    v0 = scene.ego.desired_speed
    td = 0.0
    if v0 <= 0.0:
        return [ChannelTask("acceleration", FRONT, td)]
    for leader in scene.leaders_on(RelativeLane.CURRENT):
        td = max(td, (leader.speed - v) * (1.0 - leader.distance / x0) / v0)
    return [ChannelTask("acceleration", FRONT, td)]


# ── Signals ───────────────────────────────────────────────────────────────────

_SIGNALS: Tuple[Tuple[Channel, RelativeLane, Callable[[PerceivedVehicle], bool]], ...] = (
    (LEFT, RelativeLane.LEFT, lambda vehicle: vehicle.turn_indicator.is_right_or_both),
    (RIGHT, RelativeLane.RIGHT, lambda vehicle: vehicle.turn_indicator.is_left_or_both),
    (FRONT, RelativeLane.CURRENT, lambda vehicle: vehicle.braking_lights),
)


def signal_tasks(scene: PerceivedScene) -> List[ChannelTask]:
    """Brake lights ahead, and indicators towards the ego lane on either side."""
    tasks = []
    for channel, lane, signalling in _SIGNALS:
        demand = 0.0
        for leader in scene.leaders_on(lane):
            if signalling(leader):
                x0 = scene.parameters.require("x0_d")
                td_signal = scene.parameters.require("td_signal")
                demand = max(0.0, td_signal * (1.0 - leader.distance / x0))
                break
        tasks.append(ChannelTask(f"signal ({channel})", channel, demand))
    return tasks


# ── Splits ────────────────────────────────────────────────────────────────────

def split_car_following_task(scene: PerceivedScene, conflict: Conflict) -> ChannelTask:
    """Car-following task on FRONT for the first vehicle beyond a split."""
    demand = 0.0
    leader = _first_within(conflict.downstream_vehicles, conflict.conflicting_length)
    if leader is not None:
        distance = conflict.distance + (leader.distance if leader.is_ahead else 0.0)
        headway = _headway(max(0.0, distance), scene.ego.speed)
        demand = math.exp(-headway / scene.parameters.require("h_exp"))
    return ChannelTask(f"car-following ({conflict.id})", FRONT, demand, (conflict.id,))


def _without_splits(scene: PerceivedScene, group: Sequence[Conflict],
                    tasks: List[ChannelTask]) -> List[Conflict]:
    remaining = []
    for conflict in group:
        if conflict.is_split:
            tasks.append(split_car_following_task(scene, conflict))
        else:
            remaining.append(conflict)
    return remaining


def _represented(group: Sequence[Conflict]) -> Tuple[str, ...]:
    """Ids of the conflicts in *group* and of the vehicles approaching them."""
    ids = [conflict.id for conflict in group]
    for conflict in group:
        for vehicle in conflict.upstream_vehicles:
            if vehicle.id not in ids:
                ids.append(vehicle.id)
    return tuple(ids)


def _first_within(vehicles: Sequence[PerceivedVehicle], distance: float) -> Optional[PerceivedVehicle]:
    """First vehicle on or within *distance* upstream of a conflict."""
    for vehicle in vehicles:
        if vehicle.is_parallel or vehicle.distance <= distance:
            return vehicle
        break
    return None


# ── Single conflict (group) urgency ───────────────────────────────────────────

def conflict_tasks(scene: PerceivedScene) -> List[ChannelTask]:
    """One urgency task per conflict group.

    Urgency is driven by whichever is more pressing: the nearest conflicting
    vehicle, or the ego vehicle reaching the first conflict of the group.
    """
    parameters = scene.parameters
    x0 = parameters.require("look_ahead")
    h = parameters.require("h_exp")
    tasks: List[ChannelTask] = []
    for group in find_conflict_groups(scene.conflicts, scene.network, x0):
        group = _without_splits(scene, group, tasks)
        if not group:
            continue
        conflict_headway = INF
        for conflict in group:
            vehicle = _first_within(conflict.upstream_vehicles, x0)
            if vehicle is not None:
                t = 0.0 if vehicle.is_parallel else _headway(vehicle.distance, vehicle.speed)
                conflict_headway = min(conflict_headway, t)
        first = group[0]
        headway = max(conflict_headway, _headway(first.distance, scene.ego.speed))
        tasks.append(ChannelTask(first.id, Channel.conflict(first.id), math.exp(-headway / h),
                                 _represented(group)))
    return tasks


# ── Intersection ──────────────────────────────────────────────────────────────

class IntersectionTaskGroup:
    """Salience weights of the intersection tasks of one cycle.

    The ego-distance part of intersection demand is divided over the
    conflict groups in proportion to their weight.  The FRONT task (key
    ``None``) receives it all when no group carries weight.
    """

    def __init__(self) -> None:
        self.weights: Dict[Optional[str], float] = {}
        self.total_weight = 0.0

    def add_task(self, key: Optional[str], weight: float) -> None:
        self.weights[key] = weight
        self.total_weight += weight

    def weighted_factor(self, key: Optional[str]) -> float:
        if key is None:
            return 1.0 if self.total_weight == 0.0 else 0.0
        if self.total_weight == 0.0:
            return 0.0
        return self.weights.get(key, 0.0) / self.total_weight


def conflicting_task_demand(scene: PerceivedScene, group: Sequence[Conflict]) -> Tuple[float, float]:
    """Demand due to conflicting traffic of a group, and its largest visibility.

    A ghost vehicle at the visibility boundary driving the speed limit of the
    conflicting approach stands in when no vehicle is seen.
    """
    parameters = scene.parameters
    x0 = parameters.require("look_ahead")
    time_to_conflict = INF
    max_visibility = 0.0
    for conflict in group:
        if conflict.distance < 0.0:
            continue
        if scene.visibility is not None:
            visibility = visibility_for(scene, conflict.counterpart)
        else:
            visibility = min(x0, conflict.conflicting_visibility)
        max_visibility = max(max_visibility, visibility)
        vehicle = _first_within(conflict.upstream_vehicles, min(visibility, x0))
        if vehicle is None:
            t = time_to(visibility, conflict.conflicting_speed_limit)
        elif vehicle.is_parallel:
            t = 0.0
        else:
            t = _headway(vehicle.distance, vehicle.speed)
        time_to_conflict = min(time_to_conflict, t)
    td = parameters.require("td_oth") * math.exp(-time_to_conflict / parameters.require("h_conf"))
    return td, max_visibility


def intersection_tasks(scene: PerceivedScene) -> List[ChannelTask]:
    """Intersection demand per conflict group, scan tasks and split following."""
    parameters = scene.parameters
    x0 = parameters.require("look_ahead")
    x_ego = parameters.require("x_ego")
    groups = find_conflict_groups(scene.conflicts, scene.network, x0)
    if not groups:
        return []
    # groups are ordered as perception returns conflicts, near to far
    first = groups[0][0]

    task_group = IntersectionTaskGroup()
    task_group.add_task(None, 0.0)
    split_tasks: List[ChannelTask] = []
    scored = []
    for group in groups:
        remaining = _without_splits(scene, group, split_tasks)
        if not remaining:
            continue
        td, max_visibility = conflicting_task_demand(scene, remaining)
        task_group.add_task(remaining[0].id, td * (1.0 - math.exp(-max_visibility / x_ego)))
        scored.append((remaining, td))

    ego_term = parameters.require("td_ego") * math.exp(-max(0.0, first.distance) / x_ego)
    tasks = [ChannelTask("intersection", FRONT, task_group.weighted_factor(None) * ego_term)]
    tasks.extend(split_tasks)
    td_scan = parameters.require("td_scan")
    for group, td in scored:
        key = group[0].id
        channel = Channel.conflict(key)
        demand = task_group.weighted_factor(key) * ego_term + td
        tasks.append(ChannelTask(f"intersection ({key})", channel, demand, _represented(group)))
        tasks.append(ChannelTask(f"scan ({key})", channel, td_scan))
    return tasks


DEFAULT_PROVIDERS: Tuple[TaskProvider, ...] = (acceleration_tasks, signal_tasks, intersection_tasks)
