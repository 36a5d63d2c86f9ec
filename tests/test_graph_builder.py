"""
Unit tests for graph construction.

Tests direction handling, cost overrides, node identity and input validation.
"""

import math
import unittest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from roadgraph_core.config import GraphConfig
from roadgraph_core.exceptions import GraphError, InvalidCostError, MalformedGeometryError, ValidationError
from roadgraph_core.geo import node_key
from roadgraph_core.graph import Graph, build_graph, segment_edges
from roadgraph_core.types import Direction, Edge, Segment

A = (0.0, 0.0)
B = (0.0, 0.001)
C = (0.001, 0.001)
KA, KB, KC = node_key(A), node_key(B), node_key(C)


class TestSegmentEdges(unittest.TestCase):
    """Test conversion of a single segment into directed edges."""

    def test_bidirectional_segment_makes_two_edges(self):
        """Bidirectional segment gives one edge each way, same id and cost."""
        edges = segment_edges(Segment([A, B], 5.0, "e1"))
        self.assertEqual(len(edges), 2)
        forward, backward = edges
        self.assertEqual((forward.origin, forward.destination), (KA, KB))
        self.assertEqual((backward.origin, backward.destination), (KB, KA))
        self.assertEqual({e.edge_id for e in edges}, {"e1"})
        self.assertEqual({e.cost for e in edges}, {5.0})

    def test_forward_only(self):
        """Forward-only segment never produces a backward edge."""
        edges = segment_edges(Segment([A, B], 5.0, "e1", direction="f"))
        self.assertEqual([(e.origin, e.destination) for e in edges], [(KA, KB)])

    def test_backward_only(self):
        """Backward-only segment never produces a forward edge."""
        edges = segment_edges(Segment([A, B], 5.0, "e1", direction=Direction.BACKWARD))
        self.assertEqual([(e.origin, e.destination) for e in edges], [(KB, KA)])

    def test_cost_overrides(self):
        """Each direction gets its own override cost."""
        segment = Segment([A, B], 5.0, "e1", forward_cost=3.0, backward_cost=7.0)
        forward, backward = segment_edges(segment)
        self.assertEqual(forward.cost, 3.0)
        self.assertEqual(backward.cost, 7.0)

    def test_single_override_falls_back_to_plain_cost(self):
        """A missing override uses the plain cost."""
        forward, backward = segment_edges(Segment([A, B], 5.0, "e1", forward_cost=3.0))
        self.assertEqual(forward.cost, 3.0)
        self.assertEqual(backward.cost, 5.0)

    def test_intermediate_coordinates_are_geometry_only(self):
        """Only endpoints become nodes; backward geometry is reversed."""
        mid = (0.0, 0.0005)
        forward, backward = segment_edges(Segment([A, mid, B], 5.0, "e1"))
        self.assertEqual((forward.origin, forward.destination), (KA, KB))
        self.assertEqual(forward.coordinates, (A, mid, B))
        self.assertEqual(backward.coordinates, (B, mid, A))


class TestSegmentValidation(unittest.TestCase):
    """Test fail-fast rejection of malformed segments."""

    def test_single_coordinate(self):
        with self.assertRaises(MalformedGeometryError) as ctx:
            segment_edges(Segment([A], 5.0, "bad"))
        self.assertEqual(ctx.exception.segment_id, "bad")
        self.assertEqual(ctx.exception.num_coordinates, 1)

    def test_empty_geometry(self):
        with self.assertRaises(MalformedGeometryError):
            build_graph([Segment([], 5.0, "bad")])

    def test_invalid_costs(self):
        """Zero, negative, non-finite and missing costs are rejected."""
        for cost in (0, -1.0, math.inf, math.nan, None, "5"):
            with self.subTest(cost=cost):
                with self.assertRaises(InvalidCostError):
                    build_graph([Segment([A, B], cost, "bad")])

    def test_invalid_override(self):
        with self.assertRaises(InvalidCostError) as ctx:
            segment_edges(Segment([A, B], 5.0, "bad", backward_cost=-2.0))
        self.assertEqual(ctx.exception.field, "backward_cost")

    def test_builder_does_not_mutate_inputs(self):
        segment = Segment([A, B], 5.0, "e1", properties={"name": "Main St"})
        build_graph([segment])
        self.assertEqual(segment.direction, Direction.BOTH)
        self.assertEqual(segment.coordinates, [A, B])
        self.assertEqual(segment.properties, {"name": "Main St"})


class TestBuildGraph(unittest.TestCase):
    """Test the graph as a whole."""

    def setUp(self):
        self.segments = [
            Segment([A, B], 2.0, "x"),
            Segment([B, C], 4.0, "y", direction="f"),
        ]

    def test_counts(self):
        graph = build_graph(self.segments)
        self.assertEqual(graph.node_count, 3)
        self.assertEqual(graph.edge_count, 3)
        self.assertEqual(len(graph), 3)

    def test_outgoing(self):
        graph = build_graph(self.segments)
        self.assertEqual([e.edge_id for e in graph.outgoing(KB)], ["x", "y"])
        self.assertEqual(graph.outgoing(KC), ())
        self.assertEqual(graph.outgoing(node_key((5.0, 5.0))), ())

    def test_outgoing_accepts_coordinates(self):
        graph = build_graph(self.segments)
        self.assertEqual(graph.outgoing(A), graph.outgoing(KA))

    def test_equal_coordinates_share_a_node(self):
        """Float noise below the precision maps to the same node."""
        segments = [
            Segment([A, (0.0, 0.001)], 1.0, "s1"),
            Segment([(0.0000000001, 0.0010000001), C], 1.0, "s2"),
        ]
        graph = build_graph(segments)
        self.assertEqual(graph.node_count, 3)

    def test_coordinates_of(self):
        graph = build_graph(self.segments)
        self.assertEqual(graph.coordinates_of(KC), C)
        with self.assertRaises(ValidationError):
            graph.coordinates_of(node_key((9.0, 9.0)))

    def test_parallel_edges_are_kept(self):
        """The builder itself does not deduplicate."""
        graph = build_graph([Segment([A, B], 5.0, "e1"), Segment([A, B], 3.0, "e2")])
        self.assertEqual(len(graph.edges_between(KA, KB)), 2)

    def test_deduplicate_option(self):
        config = GraphConfig(deduplicate=True)
        graph = build_graph([Segment([A, B], 5.0, "e1"), Segment([A, B], 3.0, "e2")], config)
        self.assertEqual([e.edge_id for e in graph.edges_between(KA, KB)], ["e2"])
        self.assertEqual([e.edge_id for e in graph.edges_between(KB, KA)], ["e2"])

    def test_precision_option(self):
        graph = build_graph([Segment([A, B], 1.0, "e1")], GraphConfig(coordinate_precision=2))
        self.assertEqual(graph.node_count, 1)
        self.assertEqual(graph.nodes(), ["0.00,0.00"])

    def test_graph_is_frozen(self):
        graph = build_graph(self.segments)
        self.assertTrue(graph.frozen)
        with self.assertRaises(GraphError):
            graph.add_edge(Edge(KA, KC, 1.0, "z"))
        with self.assertRaises(GraphError):
            graph.add_node((1.0, 1.0))

    def test_from_edges(self):
        graph = Graph.from_edges([Edge(KA, KB, 2.0, "x")])
        self.assertTrue(graph.frozen)
        self.assertEqual(graph.node_count, 2)
        self.assertTrue(graph.has_node(KB))
        self.assertIn(A, graph)

    def test_from_edges_canonicalizes_keys(self):
        """Short "lon,lat" keys are stored under the canonical key."""
        graph = Graph.from_edges([Edge("0,0", "0,0.001", 2.0, "x")])
        self.assertEqual(graph.nodes(), [KA, KB])
        self.assertEqual(graph.outgoing("0.0,0.0")[0].destination, KB)
        self.assertEqual(graph.key_for("-77,38.9"), "-77.000000,38.900000")
        self.assertEqual(graph.key_for("not a key"), "not a key")
        self.assertNotIn("not a key", graph)

    def test_non_coordinate_key_rejected(self):
        with self.assertRaises(ValidationError):
            Graph.from_edges([Edge("A", "B", 2.0, "x")])

    def test_from_feature(self):
        feature = {
            "type": "Feature",
            "geometry": {"type": "LineString", "coordinates": [[0.0, 0.0], [0.0, 0.001]]},
            "properties": {"_cost": 5.0, "_id": 17, "_direction": "f", "NAME": "Main"},
        }
        segment = Segment.from_feature(feature)
        self.assertEqual(segment.segment_id, 17)
        self.assertEqual(segment.direction, Direction.FORWARD)
        self.assertEqual(segment.properties, {"NAME": "Main"})
        graph = build_graph([segment])
        self.assertEqual(graph.edge_count, 1)


if __name__ == '__main__':
    unittest.main()
