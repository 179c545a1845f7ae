"""
attention/visibility.py
=======================
Occlusion-limited sight distance along conflicting approaches.

Visibility anchors are points (building corners, hedges) that can block the
sightline from one link to another.  :meth:`Visibility.add_anchor_in_network`
registers an anchor for every pair of links whose enclosed area contains
it; :meth:`Visibility.get_visibility` then casts a ray from the observer
through each anchor onto the upstream links of an object and reports how far
upstream of that object the observer can see.

The index is built once and only read afterwards.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon
from shapely.validation import make_valid

from scene.network import Link, Network

log = logging.getLogger("visibility")

Point = Tuple[float, float]


class Visibility:
    """Anchor index: observer link → examined link → anchor points."""

    def __init__(self, network: Optional[Network] = None) -> None:
        self.network = network
        self.anchors: Dict[Link, Dict[Link, Set[Point]]] = {}

    def add_anchor(self, from_link: Link, to_link: Link, anchor: Sequence[float]) -> None:
        """Register *anchor* as blocking sight from *from_link* onto *to_link*."""
        point = (float(anchor[0]), float(anchor[1]))
        self.anchors.setdefault(from_link, {}).setdefault(to_link, set()).add(point)

    def add_anchor_in_network(self, network: Network, anchor: Sequence[float]) -> int:
        """Register *anchor* for every link pair whose enclosed area contains it.

        Parameters
        ----------
        network : Network
            Static topology.
        anchor : (x, y)
            Anchor location in world coordinates.

        Returns
        -------
        int
            Number of link pairs the anchor was registered for.
        """
        self.network = network
        point = np.asarray(anchor, dtype=float)
        links = list(network.links.values())
        registered = 0
        for i, link1 in enumerate(links):
            for link2 in links[i:]:
                for polygon in _enclosing_polygons(link1, link2):
                    if point_in_polygon(point, polygon):
                        self.add_anchor(link1, link2, point)
                        self.add_anchor(link2, link1, point)
                        log.debug("Adding anchor (%.2f, %.2f) between links %s and %s.",
                                  point[0], point[1], link1.id, link2.id)
                        registered += 1
                        break
        return registered

    def get_visibility(self, observer, obj, look_ahead: float) -> float:
        """Distance upstream of *obj* the *observer* can see.

        Parameters
        ----------
        observer
            Anything with ``link`` and ``location``, usually an ``EgoState``.
        obj
            Anything with ``link`` and ``position``, usually the counterpart
            of a conflict.
        look_ahead : float
            Look-ahead distance x0 (m), the upper bound of the result.
        """
        from_link = observer.link
        to_map = self.anchors.get(from_link) if from_link is not None else None
        if not to_map:
            return look_ahead
        location = np.asarray(observer.location, dtype=float)

        to: Optional[Link] = obj.link
        cumul = to.length * (to.fraction(obj.position) - 1.0)
        while to is not None and cumul < look_ahead:
            if to in to_map:
                minimum: Optional[float] = None
                for anchor in to_map[to]:
                    value = compute_visibility(location, to, anchor, cumul)
                    if value is not None and value >= 0.0:
                        minimum = value if minimum is None else min(minimum, value)
                if minimum is not None:
                    return min(look_ahead, minimum)
            upstream = self.network.single_upstream_link(to) if self.network is not None else None
            if upstream is None:
                # merge ambiguity or network edge
                break
            cumul += to.length
            to = upstream
        return look_ahead


def visibility_for(scene, obj) -> float:
    """Visibility of *obj* in *scene*; the look-ahead when no index is attached."""
    look_ahead = scene.parameters.require("look_ahead")
    if scene.visibility is None:
        return look_ahead
    return scene.visibility.get_visibility(scene.ego, obj, look_ahead)


def compute_visibility(location: np.ndarray, to: Link, anchor: Point, cumul: float) -> Optional[float]:
    """Visibility over link *to* along the ray from *location* through *anchor*.

    Design line segments are tested from downstream to upstream; the first
    intersected segment determines the result.  ``None`` when the ray misses
    the link.
    """
    line = to.design_line
    target = np.asarray(anchor, dtype=float)
    for i in range(len(line) - 1, 0, -1):
        intersect = _ray_segment_intersection(location, target, line[i - 1], line[i])
        if intersect is not None:
            fraction = to.project_fraction(intersect)
            return cumul + to.length * (1.0 - fraction)
    return None


# ── geometry ──────────────────────────────────────────────────────────────────

def _ray_segment_intersection(origin: np.ndarray, through: np.ndarray,
                              a: np.ndarray, b: np.ndarray) -> Optional[np.ndarray]:
    """Intersection of the ray from *origin* through *through* with segment a-b."""
    r = through - origin
    s = b - a
    denom = r[0] * s[1] - r[1] * s[0]
    if denom == 0.0:
        return None
    q = a - origin
    t = (q[0] * s[1] - q[1] * s[0]) / denom
    u = (q[0] * r[1] - q[1] * r[0]) / denom
    if t < 0.0 or u < 0.0 or u > 1.0:
        return None
    return origin + t * r


def point_in_polygon(point: np.ndarray, polygon: np.ndarray) -> bool:
    """Whether *point* lies inside the area enclosed by the ring *polygon*.

    Self-intersecting rings are split into their simple parts first, so the
    area of a ring that crosses itself is that of each of its loops.
    """
    if len(np.unique(polygon, axis=0)) < 3:
        return False
    location = ShapelyPoint(float(point[0]), float(point[1]))
    area = make_valid(Polygon(polygon))
    return any(part.contains(location) for part in _polygonal_parts(area))


def _polygonal_parts(geometry) -> List[Polygon]:
    if geometry.geom_type == "Polygon":
        return [geometry]
    if hasattr(geometry, "geoms"):
        return [part for sub in geometry.geoms for part in _polygonal_parts(sub)]
    return []


def _enclosing_polygons(link1: Link, link2: Link) -> List[np.ndarray]:
    """Polygon(s) bounding the area between two links."""
    line1 = link1.design_line
    line2 = link2.design_line
    if link1 is link2:
        return [line1]
    if link1.start.id == link2.start.id:
        return [np.vstack((line1, line2[::-1]))[1:]]
    if link1.start.id == link2.end.id:
        return [np.vstack((line1, line2))[1:]]
    if link1.end.id == link2.start.id:
        return [np.vstack((line1[::-1], line2[::-1]))[1:]]
    if link1.end.id == link2.end.id:
        return [np.vstack((line1[::-1], line2))[1:]]
    return [np.vstack((line1, line2)), np.vstack((line1, line2[::-1]))]

