"""
Custom exceptions for the road graph toolkit.

Provides a clear exception hierarchy for better error handling and debugging.
All exceptions inherit from RoadGraphError for easy catching of all library errors.
"""


class RoadGraphError(Exception):
    """Base exception for all road graph errors."""

    pass


# ==============================================================================
# Input Errors
# ==============================================================================


class ValidationError(RoadGraphError):
    """Raised when input validation fails."""

    pass


class ConfigurationError(RoadGraphError):
    """Raised when configuration is invalid."""

    pass


# ==============================================================================
# Graph Construction Errors
# ==============================================================================


class GraphError(RoadGraphError):
    """Base class for graph-related errors."""

    pass


class GraphBuildError(GraphError):
    """Raised when graph construction fails."""

    def __init__(self, reason: str, segment_id=None):
        self.reason = reason
        self.segment_id = segment_id
        msg = f"Graph construction failed: {reason}"
        if segment_id is not None:
            msg += f" (segment {segment_id!r})"
        super().__init__(msg)


class MalformedGeometryError(GraphBuildError):
    """Raised when a segment has fewer than two coordinates."""

    def __init__(self, segment_id, num_coordinates: int):
        self.num_coordinates = num_coordinates
        super().__init__(
            f"segment geometry needs at least 2 coordinates, got {num_coordinates}",
            segment_id=segment_id,
        )


class InvalidCostError(GraphBuildError):
    """Raised when a segment cost is missing, non-positive or non-finite."""

    def __init__(self, segment_id, cost, field: str = "cost"):
        self.cost = cost
        self.field = field
        super().__init__(
            f"{field} must be a positive finite number, got {cost!r}",
            segment_id=segment_id,
        )


# ==============================================================================
# Routing Errors
# ==============================================================================


class RoutingError(RoadGraphError):
    """Base class for routing-related errors."""

    pass


class NoPathFoundError(RoutingError):
    """Raised by a search when no route connects origin and destination."""

    def __init__(self, origin, destination, finder: str = ""):
        self.origin = origin
        self.destination = destination
        self.finder = finder
        msg = f"No path exists from {origin} to {destination}"
        if finder:
            msg += f" ({finder})"
        super().__init__(msg)


class DisconnectedPathError(RoutingError):
    """Raised when a node sequence contains a hop with no matching edge.

    This signals a mismatch between the graph a search ran on and the graph
    used for reconstruction, or an invalid search result.
    """

    def __init__(self, from_node, to_node, position: int):
        self.from_node = from_node
        self.to_node = to_node
        self.position = position
        super().__init__(
            f"No edge from {from_node} to {to_node} "
            f"(hop {position} of node sequence)"
        )


# ==============================================================================
# Consistency Findings
# ==============================================================================


class ToleranceExceededError(RoadGraphError):
    """Raised on request when path costs disagree beyond tolerance."""

    def __init__(self, num_discrepancies: int, max_spread: float, tolerance: float):
        self.num_discrepancies = num_discrepancies
        self.max_spread = max_spread
        self.tolerance = tolerance
        super().__init__(
            f"{num_discrepancies} quer{'y' if num_discrepancies == 1 else 'ies'} "
            f"exceeded tolerance {tolerance:g} (max spread {max_spread:g})"
        )
