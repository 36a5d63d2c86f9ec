"""
Unit tests for duplicate segment resolution.

Tests minimum-cost survivorship, tie-breaking, per-direction handling and
the mutate_inputs switch.
"""

import unittest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from roadgraph_core.deduplication import (
    DISCARDED_FLAG,
    DeduplicationStats,
    resolve_duplicate_edges,
    resolve_duplicates,
)
from roadgraph_core.exceptions import InvalidCostError, MalformedGeometryError
from roadgraph_core.geo import node_key
from roadgraph_core.graph import build_graph
from roadgraph_core.types import Direction, Edge, Segment

A = (-77.0, 38.9)
B = (-77.001, 38.901)
C = (-77.002, 38.9)
KA, KB = node_key(A), node_key(B)


def ids(segments):
    return [s.segment_id for s in segments]


class TestResolveDuplicates(unittest.TestCase):
    """Test survivorship among segments sharing an ordered node pair."""

    def test_cheaper_duplicate_wins(self):
        """Two bidirectional records for A-B: the cost 3 record survives both ways."""
        segments = [Segment([A, B], 5.0, "e1"), Segment([A, B], 3.0, "e2")]
        survivors = resolve_duplicates(segments)
        self.assertEqual(ids(survivors), ["e2"])

        graph = build_graph(survivors)
        forward = graph.edges_between(KA, KB)
        backward = graph.edges_between(KB, KA)
        self.assertEqual([(e.edge_id, e.cost) for e in forward], [("e2", 3.0)])
        self.assertEqual([(e.edge_id, e.cost) for e in backward], [("e2", 3.0)])

    def test_survivor_is_minimum_of_many(self):
        costs = [7.0, 4.0, 9.0, 2.5, 6.0]
        segments = [Segment([A, B], c, f"s{i}", direction="f") for i, c in enumerate(costs)]
        survivors = resolve_duplicates(segments)
        self.assertEqual(len(survivors), 1)
        self.assertEqual(survivors[0].cost, min(costs))

    def test_tie_keeps_earliest(self):
        segments = [
            Segment([A, B], 4.0, "first"),
            Segment([A, B], 4.0, "second"),
            Segment([A, B], 4.0, "third"),
        ]
        self.assertEqual(ids(resolve_duplicates(segments)), ["first"])

    def test_reversed_geometry_competes(self):
        """A B->A record competes with the A->B record's backward direction."""
        segments = [Segment([A, B], 5.0, "ab"), Segment([B, A], 3.0, "ba", direction="f")]
        survivors = resolve_duplicates(segments)
        self.assertEqual(ids(survivors), ["ab", "ba"])
        self.assertEqual(survivors[0].direction, Direction.FORWARD)
        self.assertEqual(survivors[1].direction, Direction.FORWARD)

        graph = build_graph(survivors)
        self.assertEqual([e.edge_id for e in graph.edges_between(KA, KB)], ["ab"])
        self.assertEqual([e.edge_id for e in graph.edges_between(KB, KA)], ["ba"])

    def test_per_direction_survivorship_with_overrides(self):
        """A segment can win one direction and lose the other."""
        segments = [
            Segment([A, B], 5.0, "s1", forward_cost=2.0, backward_cost=9.0),
            Segment([A, B], 5.0, "s2", forward_cost=6.0, backward_cost=1.0),
        ]
        survivors = resolve_duplicates(segments)
        self.assertEqual(ids(survivors), ["s1", "s2"])
        self.assertEqual(survivors[0].direction, Direction.FORWARD)
        self.assertEqual(survivors[1].direction, Direction.BACKWARD)

        graph = build_graph(survivors)
        self.assertEqual([(e.edge_id, e.cost) for e in graph.edges_between(KA, KB)], [("s1", 2.0)])
        self.assertEqual([(e.edge_id, e.cost) for e in graph.edges_between(KB, KA)], [("s2", 1.0)])

    def test_effective_cost_compared_on_both_sides(self):
        """The retained segment's override is used, not its plain cost."""
        segments = [
            Segment([A, B], 10.0, "override", forward_cost=1.0, direction="f"),
            Segment([A, B], 5.0, "plain", direction="f"),
        ]
        self.assertEqual(ids(resolve_duplicates(segments)), ["override"])

    def test_one_way_segments_do_not_compete_across_directions(self):
        segments = [
            Segment([A, B], 5.0, "fwd", direction="f"),
            Segment([A, B], 1.0, "bwd", direction="b"),
        ]
        self.assertEqual(ids(resolve_duplicates(segments)), ["fwd", "bwd"])

    def test_distinct_pairs_untouched(self):
        segments = [Segment([A, B], 5.0, "ab"), Segment([B, C], 5.0, "bc")]
        survivors = resolve_duplicates(segments)
        self.assertEqual(ids(survivors), ["ab", "bc"])
        self.assertIs(survivors[0], segments[0])

    def test_inputs_untouched_by_default(self):
        segments = [
            Segment([A, B], 5.0, "s1", forward_cost=2.0, backward_cost=9.0),
            Segment([A, B], 5.0, "s2", forward_cost=6.0, backward_cost=1.0),
            Segment([A, B], 8.0, "s3"),
        ]
        survivors = resolve_duplicates(segments)
        self.assertEqual([s.direction for s in segments], [Direction.BOTH] * 3)
        self.assertNotIn(DISCARDED_FLAG, segments[2].properties)
        self.assertIsNot(survivors[0], segments[0])

    def test_mutate_inputs(self):
        segments = [
            Segment([A, B], 5.0, "s1", forward_cost=2.0, backward_cost=9.0),
            Segment([A, B], 5.0, "s2", forward_cost=6.0, backward_cost=1.0),
            Segment([A, B], 8.0, "s3"),
        ]
        survivors = resolve_duplicates(segments, mutate_inputs=True)
        self.assertIs(survivors[0], segments[0])
        self.assertEqual(segments[0].direction, Direction.FORWARD)
        self.assertEqual(segments[1].direction, Direction.BACKWARD)
        self.assertTrue(segments[2].properties[DISCARDED_FLAG])

    def test_stats(self):
        stats = DeduplicationStats()
        segments = [
            Segment([A, B], 5.0, "e1"),
            Segment([A, B], 3.0, "e2"),
            Segment([A, B], 2.0, "e3", direction="f"),
        ]
        survivors = resolve_duplicates(segments, stats=stats)
        self.assertEqual(ids(survivors), ["e2", "e3"])
        self.assertEqual(stats.segments_in, 3)
        self.assertEqual(stats.segments_out, 2)
        self.assertEqual(stats.segments_dropped, 1)
        self.assertEqual(stats.forward_discarded, 2)
        self.assertEqual(stats.backward_discarded, 1)
        self.assertEqual(stats.narrowed, 1)

    def test_invalid_segments_rejected(self):
        with self.assertRaises(MalformedGeometryError):
            resolve_duplicates([Segment([A], 5.0, "bad")])
        with self.assertRaises(InvalidCostError):
            resolve_duplicates([Segment([A, B], None, "bad")])

    def test_many_segments(self):
        """Linear pass over a long chain with a cheaper duplicate for every link."""
        segments = []
        for i in range(2000):
            start, end = (i * 0.001, 0.0), ((i + 1) * 0.001, 0.0)
            segments.append(Segment([start, end], 2.0, f"slow{i}"))
            segments.append(Segment([start, end], 1.0, f"fast{i}"))
        survivors = resolve_duplicates(segments)
        self.assertEqual(len(survivors), 2000)
        self.assertTrue(all(s.segment_id.startswith("fast") for s in survivors))


class TestResolveDuplicateEdges(unittest.TestCase):
    """Test deduplication on a pre-built edge multiset."""

    def test_minimum_cost_survives(self):
        edges = [
            Edge(KA, KB, 5.0, "e1"),
            Edge(KB, KA, 5.0, "e1"),
            Edge(KA, KB, 3.0, "e2"),
            Edge(KB, KA, 3.0, "e2"),
        ]
        survivors = resolve_duplicate_edges(edges)
        self.assertEqual(
            [(e.origin, e.destination, e.edge_id, e.cost) for e in survivors],
            [(KA, KB, "e2", 3.0), (KB, KA, "e2", 3.0)],
        )

    def test_tie_keeps_earliest(self):
        edges = [Edge(KA, KB, 3.0, "first"), Edge(KA, KB, 3.0, "second")]
        self.assertEqual([e.edge_id for e in resolve_duplicate_edges(edges)], ["first"])

    def test_at_most_one_edge_per_pair(self):
        graph = build_graph([
            Segment([A, B], 5.0, "e1"),
            Segment([A, B], 3.0, "e2"),
            Segment([B, A], 4.0, "e3", direction="f"),
        ])
        survivors = resolve_duplicate_edges(graph.edges())
        pairs = [(e.origin, e.destination) for e in survivors]
        self.assertEqual(len(pairs), len(set(pairs)))
        self.assertEqual({e.edge_id for e in survivors}, {"e2"})


if __name__ == '__main__':
    unittest.main()
