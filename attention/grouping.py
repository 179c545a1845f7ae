"""
attention/grouping.py
=====================
Grouping of conflicts that share a conflicting approach.

Conflicts whose conflicting approaches come from the same nodes upstream
are perceived through one channel: a driver watching the approach road for
a crossing also sees the traffic that will merge further on.  Groups are
formed by union over intersecting upstream-node sets.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set, Tuple

from scene.conflict import Conflict
from scene.network import Link, Network

log = logging.getLogger("attention")

ConflictGroup = List[Conflict]


def upstream_nodes(network: Optional[Network], link: Link, position: float, x0: float) -> Set[str]:
    """Ids of nodes within *x0* upstream of *position* on *link*.

    The search follows every upstream branch until the accumulated distance
    exceeds *x0*.  A branch ends at a diverge (another link leaving the same
    start node); the diverge node itself is included.
    """
    nodes: Set[str] = set()
    visited: Set[str] = set()
    stack: List[Tuple[Link, float]] = [(link, link.length * (link.fraction(position) - 1.0))]
    while stack:
        current, distance = stack.pop()
        if current.id in visited:
            continue
        visited.add(current.id)
        next_distance = distance + current.length
        if next_distance > x0:
            continue
        start = current.start
        nodes.add(start.id)
        connected = network.links_at(start) if network is not None else ()
        upstream = []
        diverge = False
        for other in connected:
            if other is current:
                continue
            if other.start.id == start.id:
                diverge = True
                break
            upstream.append(other)
        if diverge:
            continue
        # reversed so that the first upstream link is searched first
        stack.extend((other, next_distance) for other in reversed(upstream))
    return nodes


def _approach_of(conflict: Conflict) -> Conflict:
    """The conflict on the conflicting approach; a split has no pair."""
    return conflict.other if conflict.other is not None else conflict


def find_conflict_groups(conflicts: Sequence[Conflict], network: Optional[Network],
                         x0: float) -> List[ConflictGroup]:
    """Group *conflicts* whose conflicting approaches share upstream nodes.

    Parameters
    ----------
    conflicts : sequence of Conflict
        Conflicts on the current lane, nearest first.
    network : Network or None
        Topology for the upstream search; ``None`` limits each search to the
        start node of the conflicting link.
    x0 : float
        Look-ahead distance (m) bounding the search.

    Returns
    -------
    list of list of Conflict
        Groups in order of their first member, each sorted by distance and
        then id.
    """
    groups: List[Tuple[ConflictGroup, Set[str]]] = []
    for conflict in conflicts:
        approach = _approach_of(conflict)
        nodes = upstream_nodes(network, approach.link, approach.position, x0)
        target: Optional[Tuple[ConflictGroup, Set[str]]] = None
        remaining: List[Tuple[ConflictGroup, Set[str]]] = []
        for group in groups:
            if group[1] & nodes:
                if target is None:
                    group[0].append(conflict)
                    group[1].update(nodes)
                    target = group
                    remaining.append(group)
                else:
                    # this conflict bridges two groups
                    log.debug("conflict %s joins groups of %s and %s", conflict.id,
                              target[0][0].id, group[0][0].id)
                    target[0].extend(group[0])
                    target[1].update(group[1])
            else:
                remaining.append(group)
        if target is None:
            remaining.append(([conflict], set(nodes)))
        groups = remaining
    for members, _ in groups:
        members.sort(key=lambda c: (c.distance, c.id))
    return [members for members, _ in groups]
