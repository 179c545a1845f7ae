"""
approach/conflicts.py
=====================
Conflict approach engine.

:func:`approach_conflicts` turns the ordered list of upcoming conflicts into
one bounded acceleration.  Conflicts are handled nearest first:

* crossings bound the acceleration to avoid a vehicle occupying the zone,
* merges and splits follow a conflicting vehicle already on the conflict,
* the priority rule decides whether to stop,
* a stop is moved upstream to the first conflict that leaves enough space
  behind it, so that a chain of back-to-back conflicts is never blocked.

The returned value is ``math.inf`` when the conflicts impose no constraint.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from approach.car_following import CarFollowingModel
from approach.plans import ConflictPlans
from scene.conflict import Conflict
from scene.errors import SceneError, UnsupportedConflictRuleError
from scene.parameters import DriverParameters
from scene.perception import SpeedLimitInfo
from scene.physics import (
    INF,
    Anticipation,
    anticipate_movement,
    anticipate_movement_free_acceleration,
    stopping_distance,
)
from scene.types import ConflictRule
from scene.vehicles import ConflictingVehicle, GhostVehicle, PerceivedVehicle, is_on_route

log = logging.getLogger("approach")

MAX_PLAUSIBLE_DECELERATION = 6.0
"""Decelerations stronger than this (m/s²) are discarded as inconsistent."""

ANOMALY_MIN_SPEED = 5.0 / 3.6
"""Speed (m/s) above which the deceleration plausibility check applies."""

MERGE_SAFE_GAP = 3.0
"""Time margin (s) of the merge collision check during lane-change evaluation."""

DEFAULT_LEADER_S0 = 3.0
"""Stopping distance assumed for a leader without known parameters."""

STANDSTILL_SPEED = 0.01

# Cross standing vehicles on crossings, prevents dead-locks.
CROSS_STANDING = True


def approach_conflicts(
    parameters: DriverParameters,
    conflicts: Sequence[Conflict],
    leaders: Sequence[PerceivedVehicle],
    car_following_model: CarFollowingModel,
    vehicle_length: float,
    vehicle_width: float,
    speed: float,
    acceleration: float,
    speed_limit_info: SpeedLimitInfo,
    plans: ConflictPlans,
    *,
    current_lane: bool = True,
    time: Optional[float] = None,
) -> float:
    """Acceleration appropriate for approaching *conflicts*.

    Parameters
    ----------
    parameters : DriverParameters
        Driver parameters; required ones missing raise ``ParameterError``.
    conflicts : sequence of Conflict
        Conflicts on the evaluated lane, nearest first.
    leaders : sequence of PerceivedVehicle
        Leaders on the evaluated lane, nearest first.
    car_following_model : CarFollowingModel
        Single-leader following primitive.
    vehicle_length, vehicle_width : float
        Ego dimensions (m).
    speed, acceleration : float
        Ego speed (m/s) and acceleration (m/s²).
    speed_limit_info : SpeedLimitInfo
        Local speed limit.
    plans : ConflictPlans
        Plans of this agent; mutated.
    current_lane : bool
        ``False`` when the lane is a prospective lane-change target.  Merge
        collision checks then apply for priority merges, and blocking is not
        recorded.
    time : float, optional
        Simulation time, used to order arrivals at all-stop intersections.

    Returns
    -------
    float
        Acceleration (m/s²), ``math.inf`` if unconstrained.

    Raises
    ------
    UnsupportedConflictRuleError
        A conflict carries an unknown priority rule.
    """
    plans.clean_plans()
    blocking = False
    conflicts = list(conflicts)
    leaders = list(leaders)

    # ignore conflicts if we are beyond a stopping distance
    a = INF
    b = parameters.require("b")
    stopping = parameters.require("s0") + vehicle_length + stopping_distance(speed, b)
    if not conflicts or conflicts[0].distance > stopping:
        plans.blocking = blocking
        return a

    # info per conflict to keep crossings clear when stopping further on
    prev_starts: List[float] = []
    prev_ends: List[float] = []

    passable = passable_distance(vehicle_length, parameters)
    space = available_space(leaders) - passable

    for conflict in conflicts:
        # adjust acceleration for situations where stopping might not be required
        if conflict.is_crossing:
            a = min(a, avoid_crossing_collision(parameters, conflict, car_following_model,
                                                speed, speed_limit_info))
        else:
            if conflict.is_merge and not current_lane and conflict.rule is ConflictRule.PRIORITY:
                a = min(a, avoid_merge_collision(parameters, conflict, car_following_model,
                                                 speed, speed_limit_info))
            a = min(a, follow_conflicting_leader_on_merge_or_split(
                conflict, parameters, car_following_model, speed, speed_limit_info, vehicle_width))

        # on splits, we only follow, but never stop for the conflict itself
        if conflict.is_split:
            continue

        # blocking and ignoring
        if conflict.distance < 0.0 and current_lane:
            if conflict.is_crossing and conflict.rule is not ConflictRule.PRIORITY:
                blocking = True
            continue

        # determine if we need to stop
        dist = conflict.distance + conflict.length if conflict.is_crossing else conflict.distance
        stop = conflict.is_crossing and space < dist
        if not stop:
            rule = conflict.rule
            if rule is ConflictRule.PRIORITY:
                stop = stop_for_priority_conflict(conflict, plans)
            elif rule is ConflictRule.YIELD or rule is ConflictRule.STOP:
                decide = stop_for_give_way_conflict if rule is ConflictRule.YIELD else stop_for_stop_conflict
                stop = decide(conflict, leaders, speed, acceleration, vehicle_length, parameters,
                              speed_limit_info, car_following_model,
                              "b_crit" if blocking else "b")
            elif rule is ConflictRule.ALL_STOP:
                stop = stop_for_all_stop_conflict(conflict, plans, speed, parameters, time)
            elif rule is ConflictRule.SPLIT:
                continue
            else:
                raise UnsupportedConflictRuleError(
                    f"Unsupported conflict rule {rule!r} on conflict {conflict.id}.")

        # stop if required, account for upstream conflicts to keep clear
        if stop:
            prev_starts.append(conflict.distance)
            log.debug("stop for %s, %d crossing(s) to keep clear", conflict, len(prev_ends))
            j = _upstream_stop_index(prev_starts, prev_ends, passable)
            if blocking and j == 0:
                # do not stop more upstream than the conflict that forces the stop
                j = len(prev_starts) - 1
            a = min(a, _stop_for_conflict(j, prev_starts, parameters, car_following_model,
                                          speed, speed_limit_info))
            break

        # remember info to keep conflict clear (when stopping for another conflict)
        if conflict.is_crossing:
            prev_starts.append(conflict.distance)
            prev_ends.append(conflict.distance + conflict.length)

    plans.blocking = blocking

    if a < -MAX_PLAUSIBLE_DECELERATION and speed > ANOMALY_MIN_SPEED:
        log.warning("deceleration from conflicts %.2f m/s^2 stronger than %.1f m/s^2 at %.1f m/s, "
                    "discarded", a, MAX_PLAUSIBLE_DECELERATION, speed)
        plans.anomaly = True
        return INF
    return a


def _upstream_stop_index(prev_starts: List[float], prev_ends: List[float], passable: float) -> int:
    """Index of the most upstream conflict without passable space behind it.

    ``prev_starts`` holds one more entry than ``prev_ends``: the conflict
    that forces the stop.
    """
    for i in range(len(prev_ends) - 1, -1, -1):  # downstream to upstream
        if prev_starts[i + 1] - prev_ends[i] > passable:
            return i + 1
    return 0


def _stop_for_conflict(
    j: int,
    prev_starts: List[float],
    parameters: DriverParameters,
    car_following_model: CarFollowingModel,
    speed: float,
    speed_limit_info: SpeedLimitInfo,
) -> float:
    """Stop for the j'th conflict, or a later one if that is too harsh."""
    conf_parameters = parameters.with_conflict_stopping()
    s0_conf = parameters.require("s0_conf")
    b_crit = -parameters.require("b_crit")
    a_cf = -math.inf
    while a_cf < b_crit and j < len(prev_starts):
        if prev_starts[j] < s0_conf:
            a_cf = max(a_cf, b_crit)
        else:
            a_stop = car_following_model.stop(conf_parameters, speed, speed_limit_info, prev_starts[j])
            a_cf = max(a_cf, a_stop)
        j += 1
    return a_cf


# ── Collision avoidance ───────────────────────────────────────────────────────

def follow_conflicting_leader_on_merge_or_split(
    conflict: Conflict,
    parameters: DriverParameters,
    car_following_model: CarFollowingModel,
    speed: float,
    speed_limit_info: SpeedLimitInfo,
    vehicle_width: float,
) -> float:
    """Acceleration for following conflicting vehicles *on* a merge or split."""
    downstream = conflict.downstream_vehicles
    # ignore if no conflicting vehicles, or if first is downstream of conflict
    if not downstream or downstream[0].is_ahead:
        return INF

    leader: Optional[PerceivedVehicle] = None
    virtual_headway = 0.0
    if conflict.distance > 0.0:
        leader = downstream[0]
        virtual_headway = conflict.distance + (leader.overlap_rear or 0.0)
    else:
        for vehicle in downstream:
            if vehicle.is_ahead:
                # completely downstream of conflict, regular car-following
                return INF
            virtual_headway = conflict.distance + (vehicle.overlap_rear or 0.0)
            if virtual_headway > 0.0:
                if conflict.is_split:
                    # side by side on the split if the conflict is wide enough
                    if conflict.width > vehicle.width + vehicle_width:
                        continue
                leader = vehicle
                break
    if leader is None:
        # conflicting vehicle downstream of start of conflict, but upstream of us
        return INF

    a = car_following_model.follow_single_leader(parameters, speed, speed_limit_info,
                                                 virtual_headway, leader.speed)
    # stop for the conflict rather than follow the tail of a vehicle that is
    # still partially upstream of the merge
    if conflict.is_merge and virtual_headway < conflict.distance:
        a_stop = car_following_model.stop(parameters.with_conflict_stopping(), speed,
                                          speed_limit_info, conflict.distance)
        a = max(a, a_stop)
    return a


def avoid_crossing_collision(
    parameters: DriverParameters,
    conflict: Conflict,
    car_following_model: CarFollowingModel,
    speed: float,
    speed_limit_info: SpeedLimitInfo,
) -> float:
    """Acceleration required to avoid a collision with vehicles *on* a crossing."""
    # first upstream vehicle on route to this conflict, and all vehicles on it
    relevant: List[PerceivedVehicle] = []
    for vehicle in conflict.upstream_vehicles:
        if conflict.conflicting_visibility < vehicle.distance:
            break
        if _on_route(conflict, vehicle):
            relevant.append(vehicle)
            break
    for vehicle in conflict.downstream_vehicles:
        if not vehicle.is_parallel:
            # vehicles beyond conflict are not a threat
            break
        relevant.append(vehicle)
    if not relevant:
        return INF

    a = INF
    for vehicle in relevant:
        if vehicle.is_parallel:
            tte_cz = Anticipation(0.0, vehicle.speed)
            distance = (abs(vehicle.overlap_rear or 0.0) + vehicle.overlap
                        + abs(vehicle.overlap_front or 0.0))
        else:
            tte_cz = anticipate_movement(vehicle.distance, vehicle.speed, 0.0)
            distance = vehicle.distance + conflict.length + vehicle.length
        # time till clear, conflicting vehicle, no acceleration
        ttc_cz = anticipate_movement(distance, vehicle.speed, 0.0)
        # time till enter, own vehicle, free acceleration
        tte_oa = anticipate_movement_free_acceleration(conflict.distance, speed, parameters,
                                                       car_following_model, speed_limit_info)
        # enter before cleared
        if tte_cz.duration < tte_oa.duration < ttc_cz.duration:
            if vehicle.speed > 0.0 or not CROSS_STANDING:
                # parabolic speed profile s = v*t + .5*a*t*t
                t = ttc_cz.duration
                acc = 2.0 * (conflict.distance - speed * t) / (t * t)
                if acc < 0.0 and speed / -acc > t:
                    a = min(a, acc)
                else:
                    # will reach zero speed ourselves
                    a = min(a, car_following_model.stop(parameters, speed, speed_limit_info,
                                                        conflict.distance))
    return a


def avoid_merge_collision(
    parameters: DriverParameters,
    conflict: Conflict,
    car_following_model: CarFollowingModel,
    speed: float,
    speed_limit_info: SpeedLimitInfo,
) -> float:
    """Avoid collision at a merge where the ego vehicle has priority."""
    upstream = conflict.upstream_vehicles
    if not upstream or upstream[0].is_parallel:
        return INF
    vehicle = upstream[0]
    tte_c = vehicle.distance / vehicle.speed if vehicle.speed > 0.0 else INF
    own = conflict.distance / speed if speed > 0.0 else INF
    if tte_c < own + MERGE_SAFE_GAP:
        return car_following_model.stop(parameters, speed, speed_limit_info, conflict.distance)
    return INF


# ── Stop decisions per rule ───────────────────────────────────────────────────

def stop_for_priority_conflict(conflict: Conflict, plans: ConflictPlans) -> bool:
    """Priority conflicts are never stopped for; courtesy yielding is not modelled."""
    return False


def stop_for_give_way_conflict(
    conflict: Conflict,
    leaders: Sequence[PerceivedVehicle],
    speed: float,
    acceleration: float,
    vehicle_length: float,
    parameters: DriverParameters,
    speed_limit_info: SpeedLimitInfo,
    car_following_model: CarFollowingModel,
    b_name: str = "b",
) -> bool:
    """Whether to stop for a give-way conflict.

    Parameters
    ----------
    b_name : str
        Name of the deceleration parameter a merging follower is assumed to
        apply, ``"b_crit"`` while blocking another conflict.
    """
    vehicles = conflicting_vehicles(conflict)
    if vehicles is None:
        return False

    b = -parameters.require(b_name)
    f = parameters.require("time_factor")
    gap = parameters.require("min_gap")
    passable = passable_distance(vehicle_length, parameters)
    distance = conflict.distance + vehicle_length
    if conflict.is_crossing:
        distance += conflict.length  # merge is cleared at start, crossing at end

    # time till clear (rear leaves conflict), own vehicle, free acceleration
    ttc_oa = anticipate_movement_free_acceleration(distance, speed, parameters,
                                                   car_following_model, speed_limit_info)

    first = True
    for vehicle in vehicles:
        if not _on_route(conflict, vehicle):
            continue
        # do not stop if first conflicting vehicle is standing still
        if first and vehicle.speed == 0.0 and vehicle.is_ahead:
            return False

        tte_ca = _time_till_enter(vehicle)

        if conflict.is_merge:
            # The conflicting vehicle becomes our follower.  It may only see
            # us once we cleared the conflict, then decelerates at b.
            v_self = ttc_oa.end_speed
            speed_diff = max(0.0, vehicle.speed - v_self)
            additional = speed_diff / -b
            if vehicle.is_ahead:
                follower_front = (vehicle.speed * (ttc_oa.duration + additional)
                                  - vehicle.distance + 0.5 * b * additional * additional)
            else:
                follower_front = 0.0
            own_rear = v_self * additional
            t_max = parameters.require("t_max")
            s0 = parameters.require("s0")
            # 1) will clear the conflict after the conflict vehicle enters
            # 2) conflict vehicle will be too near after adjusting speed
            if (ttc_oa.duration * f + gap > tte_ca.duration
                    or (math.isfinite(tte_ca.duration) and tte_ca.duration > 0.0
                        and own_rear < (follower_front + (t_max + gap) * v_self + s0) * f)):
                log.debug("yield at merge %s for %s", conflict.id, vehicle.id)
                return True
        elif conflict.is_crossing:
            # time till passable, downstream, zero acceleration
            if leaders:
                leader = leaders[0]
                space = conflict.distance - leader.distance + conflict.length + passable
                ttp_dz = anticipate_movement(space, leader.speed, 0.0)
            else:
                ttp_dz = Anticipation(0.0, 0.0)
            # 1) downstream vehicle must supply space before conflict vehicle enters
            # 2) must clear the conflict before the conflict vehicle enters
            if (ttp_dz.duration * f + gap > tte_ca.duration
                    or ttc_oa.duration * f + gap > tte_ca.duration):
                log.debug("yield at crossing %s for %s", conflict.id, vehicle.id)
                return True
        else:
            raise SceneError(f"Conflict {conflict.id} is of type {conflict.conflict_type.value}, "
                             "which is not a merge nor a crossing.")
        first = False

    return False


def stop_for_stop_conflict(
    conflict: Conflict,
    leaders: Sequence[PerceivedVehicle],
    speed: float,
    acceleration: float,
    vehicle_length: float,
    parameters: DriverParameters,
    speed_limit_info: SpeedLimitInfo,
    car_following_model: CarFollowingModel,
    b_name: str = "b",
) -> bool:
    """Whether to stop for a stop conflict; same policy as give-way."""
    return stop_for_give_way_conflict(conflict, leaders, speed, acceleration, vehicle_length,
                                      parameters, speed_limit_info, car_following_model, b_name)


def stop_for_all_stop_conflict(
    conflict: Conflict,
    plans: ConflictPlans,
    speed: float,
    parameters: DriverParameters,
    time: Optional[float] = None,
) -> bool:
    """Whether to stop for an all-stop conflict.

    Drives the stop-line phase: approach when first seen, yield once standing
    within the stop area, run once no conflicting vehicle has precedence.
    Only the run phase allows passing.
    """
    stop_line = conflict.stop_line or conflict.id
    if plans.is_stop_phase_run(stop_line):
        return False
    if plans.stop_phase(stop_line) is None:
        plans.set_stop_phase_approach(stop_line)

    stop_area = parameters.require("stop_area") + parameters.require("s0_conf")
    waiting = _waiting_vehicles(conflict, stop_area)
    if time is not None:
        # arrival order counts from the first cycle a vehicle is seen waiting
        for vehicle in waiting:
            if plans.get_arrival_time(stop_line, vehicle.id) is None:
                plans.set_arrival_time(stop_line, vehicle.id, time)

    if plans.is_stop_phase_approach(stop_line):
        if speed > STANDSTILL_SPEED or conflict.distance > stop_area:
            return True
        plans.set_stop_phase_yield(stop_line)
        if time is not None:
            plans.set_own_arrival(stop_line, time)

    # yield phase: who else is waiting, and who is on the conflict
    if any(vehicle.is_parallel for vehicle in conflict.upstream_vehicles):
        return True
    own_arrival = plans.own_arrival(stop_line)
    for vehicle in waiting:
        if time is None or own_arrival is None:
            return True
        if plans.get_arrival_time(stop_line, vehicle.id) < own_arrival:
            return True
    if any(vehicle.is_parallel for vehicle in conflict.downstream_vehicles):
        return True
    result = plans.set_stop_phase_run(stop_line)
    log.debug("all-stop %s: %s", stop_line, result.phase.value if result.phase else None)
    if result.ok:
        plans.forget_arrivals(stop_line)
    return not result.ok


def _waiting_vehicles(conflict: Conflict, stop_area: float) -> List[PerceivedVehicle]:
    """Conflicting vehicles standing still within *stop_area* of the conflict."""
    waiting = []
    for vehicle in conflict.upstream_vehicles:
        if vehicle.is_parallel:
            continue
        if vehicle.distance > stop_area:
            break
        if vehicle.speed <= STANDSTILL_SPEED:
            waiting.append(vehicle)
    return waiting


# ── Helpers ───────────────────────────────────────────────────────────────────

def conflicting_vehicles(conflict: Conflict) -> Optional[Sequence[ConflictingVehicle]]:
    """Conflicting traffic to consider at a give-way conflict.

    Returns the observed upstream vehicles, a ghost vehicle at the
    visibility boundary when none is observed and no signal controls the
    conflicting approach, or ``None`` when no conflicting traffic applies.
    """
    upstream = conflict.upstream_vehicles
    signal = conflict.conflicting_signal_distance
    if not upstream:
        if signal is None:
            # none within visibility, assume one just outside at the speed limit
            return (GhostVehicle(conflict.conflicting_visibility, conflict.conflicting_speed_limit),)
        return None
    first = upstream[0]
    if (signal is not None and first.is_ahead and signal < first.distance
            and (first.speed == 0.0 or first.acceleration < 0.0)):
        # conflicting traffic held upstream of the signal
        return None
    return upstream


def _time_till_enter(vehicle: ConflictingVehicle) -> Anticipation:
    """Time till a conflicting vehicle enters the conflict."""
    if isinstance(vehicle, GhostVehicle):
        return anticipate_movement(vehicle.distance, vehicle.speed, vehicle.acceleration)
    if not vehicle.is_ahead:
        return Anticipation(0.0, vehicle.speed)
    if vehicle.has_behaviour:
        return anticipate_movement_free_acceleration(vehicle.distance, vehicle.speed,
                                                     vehicle.parameters, vehicle.car_following,
                                                     vehicle.speed_limit_info)
    return anticipate_movement(vehicle.distance, vehicle.speed, vehicle.acceleration)


def _on_route(conflict: Conflict, vehicle: ConflictingVehicle) -> bool:
    if vehicle.route is None:
        return True
    return is_on_route(conflict.conflicting_link, vehicle)


def passable_distance(vehicle_length: float, parameters: DriverParameters) -> float:
    """Distance needed behind a leader to completely pass a conflict."""
    return parameters.require("s0") + vehicle_length


def available_space(leaders: Sequence[PerceivedVehicle]) -> float:
    """Space until the first stand-still leader once all moving leaders stopped.

    Every moving leader in between takes its length plus its stopping
    distance.  Infinite when no leader stands still.
    """
    used = 0.0
    for leader in leaders:
        if leader.speed == 0.0:
            return leader.distance - used
        s0 = DEFAULT_LEADER_S0
        if leader.parameters is not None and leader.parameters.s0 is not None:
            s0 = leader.parameters.s0
        used += leader.length + s0
    return INF
