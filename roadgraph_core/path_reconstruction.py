"""
Path reconstruction for shortest path searches.

Two steps turn a search into something a caller can render:

1. reconstruct_node_path walks a predecessor mapping back into a node
   sequence (used by the heap-based finders in search.py).
2. reconstruct_edge_path turns a node sequence into the concrete edges
   traversed and their exact total cost.

Edge ids are returned destination-to-origin: the last edge traversed comes
first. This ordering is fixed and callers rendering a route from origin must
reverse it.
"""

from typing import List, Mapping, Optional, Sequence, Set, Union

from .exceptions import DisconnectedPathError, ValidationError
from .graph import Graph
from .logging_config import get_logger
from .types import Coordinate, Edge, NodeKey, ReconstructedPath

logger = get_logger(__name__)


def reconstruct_node_path(
    predecessors: Mapping[NodeKey, Optional[NodeKey]],
    source: NodeKey,
    target: NodeKey,
    max_iterations: Optional[int] = None
) -> List[NodeKey]:
    """Reconstruct shortest path from a search's predecessor mapping.

    Handles the usual failure modes:
    - missing predecessor entry or None (no path)
    - predecessors[source] = source (self-loop sentinel)
    - cycle detection
    - maximum iteration limits

    Args:
        predecessors: predecessors[n] is the previous node on the path to n
        source: Starting node
        target: Destination node
        max_iterations: Maximum number of steps before giving up.
            If None, uses len(predecessors) + 1 as the limit.

    Returns:
        List of nodes from source to target, or an empty list if no valid
        path could be recovered.

    Example:
        >>> reconstruct_node_path({"a": None, "b": "a", "c": "b"}, "a", "c")
        ['a', 'b', 'c']
    """
    if source == target:
        return [source]

    if max_iterations is None:
        max_iterations = len(predecessors) + 1

    path: List[NodeKey] = []
    current = target
    visited: Set[NodeKey] = set()

    for iteration in range(max_iterations):
        path.append(current)

        if current == source:
            path.reverse()
            logger.debug(f"Path reconstructed: {len(path)} nodes from {source} to {target}")
            return path

        if current in visited:
            logger.warning(
                f"Cycle detected during path reconstruction from {source} to {target} "
                f"at node {current} (iteration {iteration})"
            )
            return []

        visited.add(current)

        predecessor = predecessors.get(current)

        if predecessor is None:
            logger.debug(f"No path exists: no predecessor for {current}")
            return []

        if predecessor == current:
            logger.warning(
                f"Invalid self-loop at node {current} (not source) during path reconstruction"
            )
            return []

        current = predecessor

    logger.warning(
        f"Path reconstruction exceeded maximum iterations ({max_iterations}) "
        f"from {source} to {target}"
    )
    return []


def validate_node_path(path: Sequence[NodeKey], source: NodeKey, target: NodeKey) -> bool:
    """Check that a node path runs from source to target without repeating nodes.

    Example:
        >>> validate_node_path(["a", "b", "c"], "a", "c")
        True
        >>> validate_node_path(["a", "b", "c"], "a", "d")
        False
    """
    if not path:
        logger.debug("Path validation failed: empty path")
        return False

    if path[0] != source:
        logger.debug(f"Path validation failed: starts at {path[0]}, expected {source}")
        return False

    if path[-1] != target:
        logger.debug(f"Path validation failed: ends at {path[-1]}, expected {target}")
        return False

    if len(path) != len(set(path)):
        logger.debug("Path validation failed: contains duplicate nodes")
        return False

    return True


def select_edge(graph: Graph, origin: NodeKey, destination: NodeKey) -> Optional[Edge]:
    """Pick the edge used to step from origin to destination.

    With parallel edges the cheapest one wins; equal costs resolve to the
    first in adjacency (insertion) order. Returns None if no edge matches.
    """
    candidates = graph.edges_between(origin, destination)
    if not candidates:
        return None
    if len(candidates) > 1:
        logger.debug(f"{len(candidates)} parallel edges from {origin} to {destination}")
    return min(candidates, key=lambda e: e.cost)


def reconstruct_edge_path(
    node_sequence: Sequence[Union[NodeKey, Coordinate]],
    graph: Graph
) -> ReconstructedPath:
    """Recover the edges and total cost of a search result.

    Args:
        node_sequence: Nodes visited, origin first. Node keys or (lon, lat)
            coordinates are accepted.
        graph: Graph to resolve hops against

    Returns:
        ReconstructedPath whose edge_ids and edges run destination-to-origin.
        total_cost is the sum of the selected edges' costs accumulated in
        travel order. A single-node sequence yields no edges and cost 0.

    Raises:
        ValidationError: If node_sequence is empty
        DisconnectedPathError: If a consecutive pair has no edge in the graph

    Example:
        >>> graph = Graph.from_edges([
        ...     Edge("0.000000,0.000000", "0.000000,0.001000", 2.0, "x"),
        ...     Edge("0.000000,0.001000", "0.001000,0.001000", 4.0, "y"),
        ... ])
        >>> path = reconstruct_edge_path(["0,0", (0.0, 0.001), "0.001,0.001"], graph)
        >>> path.edge_ids, path.total_cost
        (['y', 'x'], 6.0)
    """
    nodes = [graph.key_for(n) for n in node_sequence]
    if not nodes:
        raise ValidationError("Cannot reconstruct an empty node sequence")

    traversed: List[Edge] = []
    total_cost = 0.0

    for position, (origin, destination) in enumerate(zip(nodes, nodes[1:])):
        edge = select_edge(graph, origin, destination)
        if edge is None:
            raise DisconnectedPathError(origin, destination, position)
        traversed.append(edge)
        total_cost += edge.cost

    traversed.reverse()
    return ReconstructedPath(
        edge_ids=[edge.edge_id for edge in traversed],
        total_cost=total_cost,
        edges=traversed,
    )
