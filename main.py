#!/usr/bin/env python3
"""
main.py
=======
Scripted demo: one driver approaching a yield-controlled crossing.

The ego vehicle drives west → east, a conflicting vehicle north → south.
Every step the attention model and the conflict approach engine run once
on a fresh scene snapshot and the outcome is logged.  A visibility anchor
at the north-west corner limits the view onto the northern approach.

Driver parameters can be overridden with ``DRIVER_<NAME>`` variables.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from approach import IDM, ConflictPlans, approach_conflicts
from attention import ChannelMental, Visibility, attention_summary, visibility_for
from config import (
    DEFAULT_DURATION_S,
    DEFAULT_EGO_SPEED_MS,
    DEFAULT_SPEED_LIMIT_KMH,
    DEFAULT_TIME_STEP_S,
    parameters_from_env,
)
from logging_setup import setup_logging
from scene import (
    Conflict,
    ConflictRule,
    ConflictType,
    DriverParameters,
    EgoState,
    Network,
    Node,
    PerceivedScene,
    PerceivedVehicle,
    RelativeLane,
    SpeedLimitInfo,
    pair,
    straight_link,
    validate,
)

log = logging.getLogger("main")

CONFLICT_LENGTH = 4.0
CONFLICT_POSITION = 148.0


def build_network() -> Tuple[Network, Visibility]:
    west, east = Node("W", -150.0, 0.0), Node("E", 150.0, 0.0)
    north, south = Node("N", 0.0, 150.0), Node("S", 0.0, -150.0)
    network = Network([straight_link("WE", west, east), straight_link("NS", north, south)])
    visibility = Visibility(network)
    # hedge on the north-west corner
    visibility.add_anchor(network.link("WE"), network.link("NS"), (-12.0, 12.0))
    visibility.add_anchor(network.link("NS"), network.link("WE"), (-12.0, 12.0))
    return network, visibility


def _conflicting_vehicle(position: float, speed: float) -> Tuple[Tuple[PerceivedVehicle, ...],
                                                                 Tuple[PerceivedVehicle, ...]]:
    """Upstream and downstream view of the conflicting vehicle at *position* on NS."""
    length = 4.0
    distance = CONFLICT_POSITION - position
    if distance >= 0.0:
        return (PerceivedVehicle("car-2", distance, speed, length=length),), ()
    rear = -distance - length
    if rear < CONFLICT_LENGTH:
        vehicle = PerceivedVehicle("car-2", 0.0, speed, length=length,
                                   overlap_front=-distance - CONFLICT_LENGTH,
                                   overlap=min(-distance, CONFLICT_LENGTH) - max(0.0, rear),
                                   overlap_rear=rear)
        return (vehicle,), (vehicle,)
    return (), (PerceivedVehicle("car-2", rear - CONFLICT_LENGTH, speed, length=length),)


def build_scene(network: Network, visibility: Visibility, parameters: DriverParameters,
                ego_position: float, ego_speed: float, other_position: float,
                other_speed: float, speed_limit: float) -> PerceivedScene:
    we, ns = network.link("WE"), network.link("NS")
    upstream, downstream = _conflicting_vehicle(other_position, other_speed)
    conflict = Conflict("WE@NS", ConflictType.CROSSING, ConflictRule.YIELD,
                        distance=CONFLICT_POSITION - ego_position, length=CONFLICT_LENGTH,
                        link=we, position=CONFLICT_POSITION,
                        upstream_vehicles=upstream, downstream_vehicles=downstream,
                        conflicting_speed_limit=speed_limit)
    counterpart = Conflict("NS@WE", ConflictType.CROSSING, ConflictRule.PRIORITY,
                           distance=CONFLICT_POSITION - other_position, length=CONFLICT_LENGTH,
                           link=ns, position=CONFLICT_POSITION)
    pair(conflict, counterpart)
    ego = EgoState("ego", ego_speed, parameters.desired_speed(speed_limit), parameters,
                   link=we, x=we.start.x + ego_position, y=0.0)
    scene = PerceivedScene(ego, conflicts=(conflict,), network=network, visibility=visibility,
                           speed_limit_info=SpeedLimitInfo(speed_limit))
    conflict.conflicting_visibility = visibility_for(scene, counterpart)
    validate(scene.conflicts)
    return scene


def run(parameters: Optional[DriverParameters] = None, duration: float = DEFAULT_DURATION_S,
        dt: float = DEFAULT_TIME_STEP_S) -> List[Tuple[float, float, float, float]]:
    """Run the demo scenario; returns ``(time, position, speed, acceleration)`` rows."""
    parameters = parameters or DriverParameters()
    network, visibility = build_network()
    speed_limit = DEFAULT_SPEED_LIMIT_KMH / 3.6
    idm = IDM()
    plans = ConflictPlans()
    mental = ChannelMental()

    x, v = 0.0, DEFAULT_EGO_SPEED_MS
    y, w = 40.0, speed_limit
    rows = []
    steps = int(round(duration / dt))
    for step in range(steps):
        t = step * dt
        scene = build_scene(network, visibility, parameters, x, v, y, w, speed_limit)
        mental.update(scene)
        a = min(idm.free_acceleration(parameters, v, scene.speed_limit_info),
                approach_conflicts(parameters, scene.conflicts, scene.leaders_on(RelativeLane.CURRENT),
                                   idm, scene.ego.length, scene.ego.width, v, 0.0,
                                   scene.speed_limit_info, plans, time=t))
        conflict = scene.conflicts[0]
        log.info("t=%5.1f x=%6.1f v=%5.2f a=%6.2f visibility=%6.1f attention=%.2f delay=%.2f",
                 t, x, v, a, conflict.conflicting_visibility, mental.get_attention(conflict),
                 mental.get_perception_delay(conflict))
        log.debug("attention %s", attention_summary(mental, mental.get_channels()))
        rows.append((t, x, v, a))
        # integrate, no reversing
        if v + a * dt < 0.0:
            x += v * v / (2.0 * -a) if a < 0.0 else 0.0
            v = 0.0
        else:
            x += v * dt + 0.5 * a * dt * dt
            v += a * dt
        y += w * dt
    return rows


def main():
    setup_logging(logging.INFO)
    log.info("Starting conflict approach demo...")
    try:
        rows = run(parameters_from_env())
    except KeyboardInterrupt:
        log.info("Shutting down...")
        return
    t, x, v, _ = rows[-1]
    log.info("Finished at t=%.1f s, x=%.1f m, v=%.2f m/s", t, x, v)


if __name__ == "__main__":
    main()
