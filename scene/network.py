"""
scene/network.py
================
Static road topology consumed by the visibility model and conflict grouping.

Defines :class:`Node`, :class:`Link` and :class:`Network`, a lightweight
directed graph whose links carry a design polyline in world coordinates.
The core never mutates a network once it is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import LineString, Point


# ── Node ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Node:
    """A network node at world position ``(x, y)``."""

    id: str
    x: float = 0.0
    y: float = 0.0

    @property
    def point(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=float)


# ── Link ──────────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class Link:
    """A directed link from ``start`` to ``end``.

    Parameters
    ----------
    id : str
        Unique identifier.
    start, end : Node
        Upstream and downstream node.
    design_line : sequence of (x, y)
        Polyline from the start node to the end node.  When omitted the
        straight line between both nodes is used.

    Attributes
    ----------
    geometry : shapely.geometry.LineString
        The design line, used for length and projection.

    Links compare by identity; two links with equal geometry are still
    different links.
    """

    id: str
    start: Node
    end: Node
    design_line: np.ndarray = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.design_line is None:
            self.design_line = np.array([[self.start.x, self.start.y],
                                         [self.end.x, self.end.y]], dtype=float)
        else:
            self.design_line = np.asarray(self.design_line, dtype=float).reshape(-1, 2)
        if len(self.design_line) < 2:
            raise ValueError(f"Link {self.id} needs at least two design line points.")
        self.geometry = LineString(self.design_line)

    @property
    def length(self) -> float:
        return float(self.geometry.length)

    def fraction(self, position: float) -> float:
        """Fractional position of a longitudinal *position* on this link."""
        return position / self.length

    def project_fraction(self, point: Sequence[float]) -> float:
        """Fraction along the design line of the point on it nearest to *point*."""
        return self.geometry.project(Point(float(point[0]), float(point[1]))) / self.length


def straight_link(link_id: str, start: Node, end: Node) -> Link:
    """Link with a straight design line between its nodes."""
    return Link(link_id, start, end)


# ── Network ───────────────────────────────────────────────────────────────────

class Network:
    """Directed graph of nodes and links.

    Provides the two topology queries the core needs:

    * **links_at** — every link starting or ending at a node.
    * **upstream_links** — links ending at the start node of a link.
    """

    def __init__(self, links: Iterable[Link]) -> None:
        self.links: Dict[str, Link] = {}
        self.nodes: Dict[str, Node] = {}
        for link in links:
            if link.id in self.links:
                raise ValueError(f"Duplicate link id {link.id}.")
            self.links[link.id] = link
            self.nodes.setdefault(link.start.id, link.start)
            self.nodes.setdefault(link.end.id, link.end)

        # Pre-compute node → links lookup (insertion ordered)
        self._at_node: Dict[str, List[Link]] = {node_id: [] for node_id in self.nodes}
        for link in self.links.values():
            self._at_node[link.start.id].append(link)
            if link.end.id != link.start.id:
                self._at_node[link.end.id].append(link)

    # ── queries ───────────────────────────────────────────────────────────

    def link(self, link_id: str) -> Link:
        return self.links[link_id]

    def links_at(self, node: Node) -> Tuple[Link, ...]:
        """All links connected to *node*, in network insertion order."""
        return tuple(self._at_node.get(node.id, ()))

    def upstream_links(self, link: Link) -> Tuple[Link, ...]:
        """Links that end where *link* starts."""
        return tuple(
            other for other in self.links_at(link.start)
            if other is not link and other.end.id == link.start.id
        )

    def single_upstream_link(self, link: Link) -> Optional[Link]:
        """The only upstream link of *link*, ``None`` at a merge or a dead end."""
        upstream = self.upstream_links(link)
        return upstream[0] if len(upstream) == 1 else None

    def __len__(self) -> int:
        return len(self.links)
