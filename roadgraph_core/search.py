"""
Shortest-path search collaborators.

The core never hard-wires a search algorithm. Anything implementing the
PathFinder interface can be plugged into the consistency validator:

    find(origin, destination, graph) -> [origin, ..., destination]

and raises NoPathFoundError when the destination is unreachable.

Three independent reference implementations are provided:
- DijkstraFinder: heap-based Dijkstra over the Graph adjacency
- AStarFinder: the same search guided by a coordinate heuristic
- NetworkXFinder: networkx's own Dijkstra / A* on an equivalent DiGraph
"""

import heapq
import itertools
from typing import Callable, Dict, List, Optional, Tuple

import networkx as nx

from .exceptions import NoPathFoundError, ValidationError
from .graph import Graph
from .logging_config import get_logger
from .path_reconstruction import reconstruct_node_path
from .types import Coordinate, NodeKey

logger = get_logger(__name__)

Heuristic = Callable[[Coordinate, Coordinate], float]


class PathFinder:
    """Interface for shortest-path search implementations.

    Implementations must return the node sequence in origin-to-destination
    order and must not mutate the graph.
    """

    name = "finder"

    def find(self, origin: NodeKey, destination: NodeKey, graph: Graph) -> List[NodeKey]:
        """Find a least-cost node sequence from origin to destination.

        Raises:
            NoPathFoundError: If destination is unreachable from origin
            ValidationError: If either node is not in the graph
        """
        raise NotImplementedError("PathFinder subclasses must implement find()")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _require_nodes(graph: Graph, *nodes: NodeKey) -> None:
    for node in nodes:
        if not graph.has_node(node):
            raise ValidationError(f"Node {node!r} is not in the graph")


class DijkstraFinder(PathFinder):
    """Best-first search over the graph adjacency.

    With a heuristic this is A*; entries are re-opened when a cheaper route
    is found, so any admissible heuristic yields an optimal path.
    """

    name = "dijkstra"

    def __init__(self, heuristic: Optional[Heuristic] = None, name: Optional[str] = None):
        self.heuristic = heuristic
        if name is not None:
            self.name = name

    def find(self, origin: NodeKey, destination: NodeKey, graph: Graph) -> List[NodeKey]:
        origin = graph.key_for(origin)
        destination = graph.key_for(destination)
        _require_nodes(graph, origin, destination)

        if origin == destination:
            return [origin]

        target_coord = graph.coordinates_of(destination)

        def estimate(node: NodeKey) -> float:
            if self.heuristic is None:
                return 0.0
            return self.heuristic(graph.coordinates_of(node), target_coord)

        dist: Dict[NodeKey, float] = {origin: 0.0}
        prev: Dict[NodeKey, Optional[NodeKey]] = {origin: None}
        counter = itertools.count()  # tie-breaker so node keys are never compared
        h: List[Tuple[float, int, float, NodeKey]] = [(estimate(origin), next(counter), 0.0, origin)]

        while h:
            _, _, d, u = heapq.heappop(h)
            if d > dist[u]:
                continue
            if u == destination:
                break
            for edge in graph.outgoing(u):
                v = edge.destination
                nd = d + edge.cost
                if nd < dist.get(v, float("inf")):
                    dist[v] = nd
                    prev[v] = u
                    heapq.heappush(h, (nd + estimate(v), next(counter), nd, v))

        if destination not in dist:
            raise NoPathFoundError(origin, destination, self.name)

        path = reconstruct_node_path(prev, origin, destination)
        if not path:
            raise NoPathFoundError(origin, destination, self.name)
        return path


class AStarFinder(DijkstraFinder):
    """A* search; the heuristic must never overestimate remaining cost."""

    name = "astar"

    def __init__(self, heuristic: Heuristic, name: Optional[str] = None):
        if heuristic is None:
            raise ValidationError("AStarFinder requires a heuristic")
        super().__init__(heuristic=heuristic, name=name)


def to_networkx(graph: Graph) -> nx.DiGraph:
    """
    Convert a Graph into an equivalent networkx DiGraph.

    Nodes carry ``lon``/``lat`` attributes. Parallel edges are collapsed to
    the cheapest one, which is the only one a least-cost search can use.
    Edge attributes: ``weight`` (cost) and ``edge_id``.
    """
    digraph = nx.DiGraph()
    for node in graph.nodes():
        lon, lat = graph.coordinates_of(node)
        digraph.add_node(node, lon=lon, lat=lat)

    for edge in graph.edges():
        existing = digraph.get_edge_data(edge.origin, edge.destination)
        if existing is not None and existing["weight"] <= edge.cost:
            continue
        digraph.add_edge(edge.origin, edge.destination, weight=edge.cost, edge_id=edge.edge_id)

    logger.debug(
        f"networkx graph: {digraph.number_of_nodes()} nodes, {digraph.number_of_edges()} edges"
    )
    return digraph


class NetworkXFinder(PathFinder):
    """Search delegated to networkx on an equivalent DiGraph.

    The converted graph is cached per Graph object; graphs are frozen once
    built, so the cache never goes stale.
    """

    name = "networkx"

    def __init__(self, heuristic: Optional[Heuristic] = None, name: Optional[str] = None):
        self.heuristic = heuristic
        if name is not None:
            self.name = name
        self._cache: Optional[Tuple[Graph, nx.DiGraph]] = None

    def _digraph(self, graph: Graph) -> nx.DiGraph:
        cached = self._cache
        if cached is not None and cached[0] is graph:
            return cached[1]
        digraph = to_networkx(graph)
        self._cache = (graph, digraph)
        return digraph

    def find(self, origin: NodeKey, destination: NodeKey, graph: Graph) -> List[NodeKey]:
        origin = graph.key_for(origin)
        destination = graph.key_for(destination)
        _require_nodes(graph, origin, destination)

        digraph = self._digraph(graph)
        try:
            if self.heuristic is None:
                return nx.dijkstra_path(digraph, origin, destination, weight="weight")

            def estimate(u: NodeKey, v: NodeKey) -> float:
                return self.heuristic(graph.coordinates_of(u), graph.coordinates_of(v))

            return nx.astar_path(digraph, origin, destination, heuristic=estimate, weight="weight")
        except nx.NetworkXNoPath:
            raise NoPathFoundError(origin, destination, self.name) from None
