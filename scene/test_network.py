#!/usr/bin/env python3
"""
Tests for network topology, route membership and conflict pairing.
"""

from __future__ import annotations

import unittest

from scene.conflict import Conflict, pair, validate
from scene.errors import SceneError
from scene.network import Link, Network, Node, straight_link
from scene.types import ConflictRule, ConflictType
from scene.vehicles import GhostVehicle, PerceivedVehicle, is_on_route

A, B, C, D = Node("A", 0.0, 0.0), Node("B", 100.0, 0.0), Node("C", 200.0, 0.0), Node("D", 100.0, 100.0)


class LinkTests(unittest.TestCase):
    def test_length_follows_design_line(self) -> None:
        link = Link("bend", A, D, design_line=[(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)])
        self.assertAlmostEqual(link.length, 200.0)
        self.assertAlmostEqual(link.fraction(50.0), 0.25)

    def test_projection_onto_design_line(self) -> None:
        link = straight_link("AB", A, B)
        self.assertAlmostEqual(link.project_fraction((50.0, 10.0)), 0.5)
        self.assertAlmostEqual(link.project_fraction((150.0, 0.0)), 1.0)
        self.assertAlmostEqual(link.project_fraction((-20.0, 3.0)), 0.0)

    def test_projection_follows_bend(self) -> None:
        link = Link("bend", A, D, design_line=[(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)])
        self.assertAlmostEqual(link.project_fraction((100.0, 50.0)), 0.75)
        self.assertAlmostEqual(link.length, link.geometry.length)

    def test_too_short_design_line_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Link("bad", A, B, design_line=[(0.0, 0.0)])


class NetworkTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ab = straight_link("AB", A, B)
        self.bc = straight_link("BC", B, C)
        self.db = straight_link("DB", D, B)
        self.network = Network([self.ab, self.bc, self.db])

    def test_upstream_links(self) -> None:
        self.assertEqual(set(l.id for l in self.network.upstream_links(self.bc)), {"AB", "DB"})
        self.assertEqual(self.network.upstream_links(self.ab), ())

    def test_single_upstream_link_is_none_at_merge(self) -> None:
        self.assertIsNone(self.network.single_upstream_link(self.bc))
        self.assertIsNone(self.network.single_upstream_link(self.ab))

    def test_links_at_node(self) -> None:
        self.assertEqual(len(self.network.links_at(B)), 3)
        self.assertEqual(len(self.network), 3)

    def test_duplicate_link_id_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Network([self.ab, straight_link("AB", B, C)])


class RouteTests(unittest.TestCase):
    def test_unknown_route_is_on_route(self) -> None:
        link = straight_link("AB", A, B)
        self.assertTrue(is_on_route(link, PerceivedVehicle("v", 5.0, 5.0)))
        self.assertTrue(is_on_route(link, GhostVehicle(50.0, 10.0)))

    def test_route_needs_adjacent_nodes(self) -> None:
        link = straight_link("AB", A, B)
        self.assertTrue(is_on_route(link, PerceivedVehicle("v", 5.0, 5.0, route=("A", "B", "C"))))
        self.assertFalse(is_on_route(link, PerceivedVehicle("v", 5.0, 5.0, route=("A", "C", "B"))))
        self.assertFalse(is_on_route(link, PerceivedVehicle("v", 5.0, 5.0, route=("D", "B", "C"))))


class ConflictPairingTests(unittest.TestCase):
    def _conflict(self, conflict_id: str, conflict_type: ConflictType, distance: float) -> Conflict:
        return Conflict(conflict_id, conflict_type, ConflictRule.YIELD, distance, 5.0,
                        straight_link("AB", A, B))

    def test_pairing_links_both_sides(self) -> None:
        first = self._conflict("c1", ConflictType.CROSSING, 10.0)
        second = self._conflict("c2", ConflictType.CROSSING, 20.0)
        pair(first, second)
        self.assertIs(first.counterpart, second)
        self.assertIs(second.counterpart, first)
        self.assertEqual(first.conflicting_length, 5.0)

    def test_pairing_requires_same_type(self) -> None:
        with self.assertRaises(SceneError):
            pair(self._conflict("c1", ConflictType.CROSSING, 10.0),
                 self._conflict("c2", ConflictType.MERGE, 10.0))

    def test_missing_counterpart(self) -> None:
        lonely = self._conflict("c1", ConflictType.MERGE, 10.0)
        with self.assertRaises(SceneError):
            lonely.counterpart
        with self.assertRaises(SceneError):
            validate((lonely,))

    def test_validate_skips_splits_and_checks_order(self) -> None:
        near = self._conflict("c1", ConflictType.CROSSING, 10.0)
        far = self._conflict("c2", ConflictType.CROSSING, 30.0)
        pair(near, self._conflict("o1", ConflictType.CROSSING, 0.0))
        pair(far, self._conflict("o2", ConflictType.CROSSING, 0.0))
        split = self._conflict("s1", ConflictType.SPLIT, 20.0)
        validate((near, split, far))
        with self.assertRaises(SceneError):
            validate((far, near))


if __name__ == "__main__":
    unittest.main()
