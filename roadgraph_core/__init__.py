"""
Road Graph Core - routable directed graphs from road segment geometry

This package provides:
- Direction-aware graph construction from line-geometry segments
- Duplicate (parallel) segment resolution to the cheapest survivor
- Edge-level path reconstruction with exact aggregate cost
- Cross-validation of independent shortest-path implementations
- Comprehensive error handling and logging

Version: 1.0.0
"""

from .config import DEFAULT_CONFIG, DEFAULT_TOLERANCE, GraphConfig
from .deduplication import DeduplicationStats, resolve_duplicate_edges, resolve_duplicates
from .exceptions import (
    ConfigurationError,
    DisconnectedPathError,
    GraphBuildError,
    GraphError,
    InvalidCostError,
    MalformedGeometryError,
    NoPathFoundError,
    RoadGraphError,
    RoutingError,
    ToleranceExceededError,
    ValidationError,
)
from .geo import haversine, node_key, parse_node_key, snap_coordinate, travel_time_heuristic
from .graph import Graph, build_graph, check_segment, segment_edges
from .logging_config import LogTimer, get_logger, setup_logging
from .path_reconstruction import (
    reconstruct_edge_path,
    reconstruct_node_path,
    select_edge,
    validate_node_path,
)
from .search import AStarFinder, DijkstraFinder, NetworkXFinder, PathFinder, to_networkx
from .types import (
    Coordinate,
    Direction,
    Edge,
    EdgeId,
    NodeKey,
    ReconstructedPath,
    SearchOutcome,
    Segment,
    ValidationResult,
)
from .validation import (
    ConsistencyReport,
    ConsistencyValidator,
    QueryReport,
    estimate_workers,
    sample_node_pairs,
    validate_costs,
)

__all__ = [
    # Types
    "Coordinate",
    "NodeKey",
    "EdgeId",
    "Direction",
    "Segment",
    "Edge",
    "ReconstructedPath",
    "SearchOutcome",
    "ValidationResult",
    # Configuration
    "GraphConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_TOLERANCE",
    # Geographic Utilities
    "node_key",
    "parse_node_key",
    "snap_coordinate",
    "haversine",
    "travel_time_heuristic",
    # Graph Builder
    "Graph",
    "build_graph",
    "check_segment",
    "segment_edges",
    # Duplicate Resolver
    "resolve_duplicates",
    "resolve_duplicate_edges",
    "DeduplicationStats",
    # Path Reconstruction
    "reconstruct_edge_path",
    "reconstruct_node_path",
    "select_edge",
    "validate_node_path",
    # Search
    "PathFinder",
    "DijkstraFinder",
    "AStarFinder",
    "NetworkXFinder",
    "to_networkx",
    # Consistency Validation
    "validate_costs",
    "ConsistencyValidator",
    "ConsistencyReport",
    "QueryReport",
    "sample_node_pairs",
    "estimate_workers",
    # Logging
    "setup_logging",
    "get_logger",
    "LogTimer",
    # Exceptions
    "RoadGraphError",
    "ValidationError",
    "ConfigurationError",
    "GraphError",
    "GraphBuildError",
    "MalformedGeometryError",
    "InvalidCostError",
    "RoutingError",
    "NoPathFoundError",
    "DisconnectedPathError",
    "ToleranceExceededError",
]

__version__ = "1.0.0"
