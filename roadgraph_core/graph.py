"""
Directed road graph and graph construction from segments.

Each segment becomes one or two directed edges depending on its direction
flag. Only segment endpoints become nodes; node identity is the canonical
coordinate key from geo.node_key.

The graph is built wholesale and then frozen. A frozen graph is safe to share
read-only between worker threads.
"""

import dataclasses
import logging
import math
import numbers
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .config import DEFAULT_CONFIG, GraphConfig
from .exceptions import GraphError, InvalidCostError, MalformedGeometryError, ValidationError
from .geo import DEFAULT_PRECISION, node_key, parse_node_key
from .logging_config import LogTimer, get_logger
from .types import Coordinate, Direction, Edge, NodeKey, Segment

logger = get_logger(__name__)


class Graph:
    """
    Adjacency structure mapping each node to its outgoing edges.

    Outgoing edges are kept in insertion order so that lookups are
    reproducible. Parallel edges between the same ordered node pair are
    allowed; see deduplication.resolve_duplicate_edges to collapse them.
    """

    def __init__(self, precision: int = DEFAULT_PRECISION):
        """Initialize empty graph.

        Args:
            precision: Decimal places used to derive node keys from coordinates
        """
        self.precision = precision
        self._adjacency: Dict[NodeKey, List[Edge]] = {}
        self._coordinates: Dict[NodeKey, Coordinate] = {}
        self._edge_count = 0
        self._frozen = False

    @classmethod
    def from_edges(cls, edges: Iterable[Edge], precision: int = DEFAULT_PRECISION) -> "Graph":
        """Build a frozen graph directly from directed edges."""
        graph = cls(precision)
        for edge in edges:
            graph.add_edge(edge)
        graph.freeze()
        return graph

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _ensure(self, node: NodeKey) -> NodeKey:
        if node not in self._adjacency:
            try:
                coordinate = parse_node_key(node)
            except (AttributeError, ValueError):
                raise ValidationError(f"{node!r} is not a canonical 'lon,lat' node key") from None
            self._adjacency[node] = []
            self._coordinates[node] = coordinate
        return node

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GraphError("Graph is frozen; rebuild it instead of patching")

    def add_node(self, coordinate: Coordinate) -> NodeKey:
        """Ensure the node for a coordinate exists and return its key."""
        self._check_mutable()
        return self._ensure(node_key(coordinate, self.precision))

    def add_edge(self, edge: Edge) -> None:
        """Add a directed edge, registering both of its nodes.

        Endpoint keys are canonicalized to this graph's precision, so an edge
        given as "-77,38.9" is stored under "-77.000000,38.900000".
        """
        self._check_mutable()
        origin, destination = self.key_for(edge.origin), self.key_for(edge.destination)
        if (origin, destination) != (edge.origin, edge.destination):
            edge = dataclasses.replace(edge, origin=origin, destination=destination)
        self._ensure(edge.origin)
        self._ensure(edge.destination)
        self._adjacency[edge.origin].append(edge)
        self._edge_count += 1

    def freeze(self) -> "Graph":
        """Mark the graph read-only. Further add_* calls raise GraphError."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def key_for(self, node: Union[NodeKey, Coordinate]) -> NodeKey:
        """Accept a node key or a (lon, lat) coordinate and return the canonical node key.

        String keys are re-derived at this graph's precision ("-77,38.9" and
        "-77.000000,38.900000" name the same node). Strings that are not
        "lon,lat" pairs are returned unchanged and match no node.
        """
        if isinstance(node, str):
            try:
                node = parse_node_key(node)
            except ValueError:
                return node
        return node_key(node, self.precision)

    def has_node(self, node: Union[NodeKey, Coordinate]) -> bool:
        return self.key_for(node) in self._adjacency

    __contains__ = has_node

    def outgoing(self, node: Union[NodeKey, Coordinate]) -> Tuple[Edge, ...]:
        """List outgoing edges of a node (empty for unknown nodes)."""
        return tuple(self._adjacency.get(self.key_for(node), ()))

    def edges_between(self, origin: NodeKey, destination: NodeKey) -> List[Edge]:
        """All edges from origin to destination, in insertion order."""
        return [e for e in self._adjacency.get(origin, ()) if e.destination == destination]

    def coordinates_of(self, node: NodeKey) -> Coordinate:
        """Canonical (lon, lat) of a node.

        Raises:
            ValidationError: If the node is not in the graph
        """
        try:
            return self._coordinates[node]
        except KeyError:
            raise ValidationError(f"Node {node!r} is not in the graph") from None

    def nodes(self) -> List[NodeKey]:
        return list(self._adjacency)

    def edges(self) -> Iterator[Edge]:
        for outgoing in self._adjacency.values():
            yield from outgoing

    @property
    def node_count(self) -> int:
        return len(self._adjacency)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def __len__(self) -> int:
        return self.node_count

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"Graph(nodes={self.node_count}, edges={self.edge_count}, {state})"


def _checked_cost(segment: Segment, value, field: str) -> float:
    if value is None or isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidCostError(segment.segment_id, value, field)
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidCostError(segment.segment_id, value, field)
    return value


def check_segment(segment: Segment) -> None:
    """
    Reject a segment that would corrupt the graph.

    Raises:
        MalformedGeometryError: Fewer than two coordinates
        InvalidCostError: Plain cost or a present override is missing,
            non-positive or non-finite
    """
    coordinates = segment.coordinates or []
    if len(coordinates) < 2:
        raise MalformedGeometryError(segment.segment_id, len(coordinates))
    _checked_cost(segment, segment.cost, "cost")
    if segment.forward_cost is not None:
        _checked_cost(segment, segment.forward_cost, "forward_cost")
    if segment.backward_cost is not None:
        _checked_cost(segment, segment.backward_cost, "backward_cost")


def segment_edges(segment: Segment, precision: int = DEFAULT_PRECISION) -> List[Edge]:
    """
    Convert one segment into its directed edges.

    Forward edge (start -> end) for forward-only and bidirectional segments,
    backward edge (end -> start) for backward-only and bidirectional segments.
    Each direction costs its override if present, else the plain cost.

    Returns:
        List of one or two edges; backward edges carry reversed geometry
    """
    check_segment(segment)

    start = node_key(segment.start, precision)
    end = node_key(segment.end, precision)
    geometry = tuple(tuple(c) for c in segment.coordinates)

    edges = []
    if segment.direction.allows_forward:
        edges.append(Edge(
            origin=start,
            destination=end,
            cost=float(segment.effective_cost(Direction.FORWARD)),
            edge_id=segment.segment_id,
            coordinates=geometry,
        ))
    if segment.direction.allows_backward:
        edges.append(Edge(
            origin=end,
            destination=start,
            cost=float(segment.effective_cost(Direction.BACKWARD)),
            edge_id=segment.segment_id,
            coordinates=geometry[::-1],
        ))
    return edges


def build_graph(segments: Iterable[Segment], config: Optional[GraphConfig] = None) -> Graph:
    """
    Build a frozen directed graph from road segments.

    Args:
        segments: Segment records; not modified unless config.deduplicate
            and config.mutate_inputs are both set
        config: Build settings (precision, optional deduplication)

    Returns:
        Frozen Graph

    Raises:
        MalformedGeometryError: If any segment has fewer than 2 coordinates
        InvalidCostError: If any segment cost is invalid

    Example:
        >>> graph = build_graph([Segment([(0.0, 0.0), (0.0, 0.001)], 5.0, "e1")])
        >>> graph.node_count, graph.edge_count
        (2, 2)
    """
    config = config or DEFAULT_CONFIG
    segments = list(segments)

    if config.deduplicate:
        from .deduplication import resolve_duplicates

        segments = resolve_duplicates(
            segments,
            mutate_inputs=config.mutate_inputs,
            precision=config.coordinate_precision,
        )

    graph = Graph(precision=config.coordinate_precision)

    with LogTimer(logger, "Graph build", level=logging.DEBUG):
        for segment in segments:
            for edge in segment_edges(segment, config.coordinate_precision):
                graph.add_edge(edge)

    graph.freeze()
    logger.info(
        f"Built graph from {len(segments)} segments: "
        f"{graph.node_count} nodes, {graph.edge_count} edges"
    )
    return graph
