"""
Configuration for graph construction and consistency checking.
"""

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping

from .exceptions import ConfigurationError
from .geo import DEFAULT_PRECISION

DEFAULT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class GraphConfig:
    """Settings shared by the builder, resolver and validator.

    Attributes:
        coordinate_precision: Decimal places kept when deriving node keys
        mutate_inputs: Allow the duplicate resolver to narrow and flag the
            caller's Segment objects in place instead of returning copies
        deduplicate: Run the duplicate resolver before building the graph
        tolerance: Maximum cost spread accepted between search implementations
    """

    coordinate_precision: int = DEFAULT_PRECISION
    mutate_inputs: bool = False
    deduplicate: bool = False
    tolerance: float = DEFAULT_TOLERANCE

    def __post_init__(self):
        if not isinstance(self.coordinate_precision, int) or isinstance(self.coordinate_precision, bool):
            raise ConfigurationError(
                f"coordinate_precision must be an integer, got {self.coordinate_precision!r}"
            )
        if not 0 <= self.coordinate_precision <= 12:
            raise ConfigurationError(
                f"coordinate_precision must be between 0 and 12, got {self.coordinate_precision}"
            )
        if not isinstance(self.tolerance, (int, float)) or not math.isfinite(self.tolerance) or self.tolerance < 0:
            raise ConfigurationError(f"tolerance must be a finite number >= 0, got {self.tolerance!r}")

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "GraphConfig":
        """Create a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**values)


DEFAULT_CONFIG = GraphConfig()
