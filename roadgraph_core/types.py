"""
Type definitions for the road graph toolkit.

This module provides type aliases and dataclasses for type safety and clarity.
All coordinate operations should use these types for consistency.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

# Type Aliases for clarity
Coordinate = Tuple[float, float]  # (longitude, latitude) in decimal degrees
NodeKey = str  # Canonical "lon,lat" string, see geo.node_key
EdgeId = Any  # Opaque external identifier copied from the segment
Cost = float  # Caller-defined units (travel time, distance, ...)


class Direction(Enum):
    """Permitted travel directions of a segment relative to its geometry."""

    FORWARD = "f"
    BACKWARD = "b"
    BOTH = "all"

    @classmethod
    def parse(cls, value: Union["Direction", str, None]) -> "Direction":
        """Accept an enum member, its code, or None (meaning both directions)."""
        if value is None or value == "":
            return cls.BOTH
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown direction {value!r} (expected 'f', 'b' or 'all')") from None

    @property
    def allows_forward(self) -> bool:
        return self in (Direction.FORWARD, Direction.BOTH)

    @property
    def allows_backward(self) -> bool:
        return self in (Direction.BACKWARD, Direction.BOTH)


@dataclass
class Segment:
    """A raw road record.

    Only the first and last coordinates become routing nodes; intermediate
    coordinates are geometry carried along on the edges.

    Attributes:
        coordinates: Ordered (lon, lat) points, at least two
        cost: Plain traversal cost, used for any direction without an override
        segment_id: Stable external identifier copied onto every edge
        direction: Permitted travel directions (default both)
        forward_cost: Optional cost override for start->end travel
        backward_cost: Optional cost override for end->start travel
        properties: Additional attributes from the source record
    """

    coordinates: List[Coordinate]
    cost: Optional[float]
    segment_id: EdgeId
    direction: Direction = Direction.BOTH
    forward_cost: Optional[float] = None
    backward_cost: Optional[float] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.direction = Direction.parse(self.direction)

    @property
    def start(self) -> Coordinate:
        return tuple(self.coordinates[0])

    @property
    def end(self) -> Coordinate:
        return tuple(self.coordinates[-1])

    def effective_cost(self, direction: Direction) -> Optional[float]:
        """Cost of travelling this segment in one direction.

        Returns the direction-specific override if present, else the plain cost.
        """
        if direction is Direction.FORWARD and self.forward_cost is not None:
            return self.forward_cost
        if direction is Direction.BACKWARD and self.backward_cost is not None:
            return self.backward_cost
        return self.cost

    @classmethod
    def from_feature(cls, feature: Mapping[str, Any]) -> "Segment":
        """Build a segment from a GeoJSON-like LineString feature mapping.

        Reads ``geometry.coordinates`` and the ``_cost``, ``_id``,
        ``_direction``, ``_forward_cost`` and ``_backward_cost`` properties.
        Remaining properties are kept in ``properties``.
        """
        geometry = feature.get("geometry") or {}
        props = dict(feature.get("properties") or {})
        coordinates = [tuple(c[:2]) for c in geometry.get("coordinates") or []]
        return cls(
            coordinates=coordinates,
            cost=props.pop("_cost", None),
            segment_id=props.pop("_id", None),
            direction=props.pop("_direction", None),
            forward_cost=props.pop("_forward_cost", None),
            backward_cost=props.pop("_backward_cost", None),
            properties=props,
        )


@dataclass(frozen=True)
class Edge:
    """A directed, costed relation between two nodes.

    Attributes:
        origin: Node the edge leaves
        destination: Node the edge enters
        cost: Positive finite traversal cost
        edge_id: Identifier of the originating segment
        coordinates: Geometry oriented in the direction of travel
    """

    origin: NodeKey
    destination: NodeKey
    cost: Cost
    edge_id: EdgeId
    coordinates: Tuple[Coordinate, ...] = ()


class ReconstructedPath(NamedTuple):
    """Edge-level view of a search result.

    Attributes:
        edge_ids: Identifiers of traversed edges, destination-to-origin
        total_cost: Sum of the traversed edges' costs
        edges: The traversed edges, in the same order as edge_ids
    """

    edge_ids: List[EdgeId]
    total_cost: Cost
    edges: List[Edge]


class SearchOutcome(NamedTuple):
    """Result of one search implementation for one query.

    Attributes:
        finder_name: Name of the search implementation
        total_cost: Reconstructed path cost, or None when no path was found
        edge_ids: Edge identifiers (destination-to-origin), empty when no path
    """

    finder_name: str
    total_cost: Optional[Cost]
    edge_ids: Tuple[EdgeId, ...] = ()

    @property
    def found(self) -> bool:
        return self.total_cost is not None


class ValidationResult(NamedTuple):
    """Agreement check over several outcomes for the same query.

    Attributes:
        agree: True if all costs lie within tolerance and finders agree on reachability
        spread: max(total_cost) - min(total_cost) over outcomes that found a path
        no_path: Names of finders that reported no path
    """

    agree: bool
    spread: float
    no_path: Tuple[str, ...] = ()
