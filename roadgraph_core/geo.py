"""
Geographic utilities for the road graph toolkit.

Provides node identity canonicalization, distance calculations and
heuristic construction for heuristic-guided search.

All coordinates are (longitude, latitude) in decimal degrees, the GeoJSON
axis order.
"""

import math
from math import asin, cos, radians, sin, sqrt
from typing import Callable

from .types import Coordinate, NodeKey

DEFAULT_PRECISION = 6
EARTH_RADIUS_M = 6371000


def snap_coordinate(lon: float, lat: float, precision: int = DEFAULT_PRECISION) -> Coordinate:
    """
    Snap coordinates to fixed precision to eliminate near-duplicates.

    Args:
        lon: Longitude in decimal degrees
        lat: Latitude in decimal degrees
        precision: Number of decimal places (default: 6)

    Returns:
        Snapped coordinate as (lon, lat) tuple

    Precision guide:
        - precision=4: ~11m accuracy (suitable for city-level routing)
        - precision=5: ~1.1m accuracy (suitable for street-level routing)
        - precision=6: ~0.11m accuracy (recommended, sub-meter)
        - precision=7: ~0.01m accuracy (overkill for most applications)
    """
    return (round(float(lon), precision), round(float(lat), precision))


def node_key(coordinate: Coordinate, precision: int = DEFAULT_PRECISION) -> NodeKey:
    """
    Derive the canonical node identity for a coordinate.

    Coordinates are quantized to ``precision`` decimals before formatting, so
    equal positions always produce the same key regardless of float noise.
    Negative zero is folded to zero.

    Example:
        >>> node_key((-88.0985781, 44.4888319))
        '-88.098578,44.488832'
    """
    lon, lat = snap_coordinate(coordinate[0], coordinate[1], precision)
    return f"{lon + 0.0:.{precision}f},{lat + 0.0:.{precision}f}"


def parse_node_key(key: NodeKey) -> Coordinate:
    """Inverse of node_key: return the (lon, lat) a key was derived from."""
    lon, lat = key.split(",")
    return (float(lon), float(lat))


def haversine(coord1: Coordinate, coord2: Coordinate) -> float:
    """
    Calculate great-circle distance between two points using Haversine formula.

    Args:
        coord1: First coordinate as (longitude, latitude) in decimal degrees
        coord2: Second coordinate as (longitude, latitude) in decimal degrees

    Returns:
        Distance in meters (float)

    Example:
        >>> san_francisco = (-122.4194, 37.7749)
        >>> los_angeles = (-118.2437, 34.0522)
        >>> print(f"{haversine(san_francisco, los_angeles) / 1000:.1f} km")
        559.1 km

    Note:
        Coordinates must be in (lon, lat) format, not (lat, lon).
    """
    lon1, lat1 = coord1
    lon2, lat2 = coord2

    lon1, lat1, lon2, lat2 = map(radians, (lon1, lat1, lon2, lat2))

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(min(1.0, a)))

    return EARTH_RADIUS_M * c


def travel_time_heuristic(
    max_speed_kph: float, minutes: bool = True
) -> Callable[[Coordinate, Coordinate], float]:
    """
    Build an A* heuristic estimating travel time along the straight line.

    For A* the heuristic must never overestimate the true remaining cost, so
    ``max_speed_kph`` should be at least the fastest speed used to derive
    edge costs.

    Args:
        max_speed_kph: Upper bound on travel speed in km/h
        minutes: Return minutes if True, hours otherwise

    Returns:
        Function of two (lon, lat) coordinates returning estimated time

    Raises:
        ValueError: If max_speed_kph is not positive and finite
    """
    if not (max_speed_kph > 0 and math.isfinite(max_speed_kph)):
        raise ValueError(f"max_speed_kph must be positive and finite, got {max_speed_kph!r}")

    scale = 60.0 if minutes else 1.0

    def heuristic(from_coord: Coordinate, to_coord: Coordinate) -> float:
        km = haversine(from_coord, to_coord) / 1000.0
        return km / max_speed_kph * scale

    return heuristic
