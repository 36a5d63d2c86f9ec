"""
Duplicate segment resolution.

Road networks often contain several records connecting the same pair of
endpoints (divided carriageways digitized twice, overlapping sources, ...).
For routing only the cheapest record per ordered node pair matters, so this
module collapses competitors down to one survivor per direction.

Survivorship is decided per direction: a bidirectional segment can win
start->end and lose end->start. Such a segment is returned with its
direction narrowed to the direction it won, so downstream graph building
only creates the surviving edge.
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .geo import DEFAULT_PRECISION, node_key
from .graph import check_segment
from .logging_config import get_logger
from .types import Direction, Edge, NodeKey, Segment

logger = get_logger(__name__)

DISCARDED_FLAG = "_discarded"


class _Entry(NamedTuple):
    index: int
    direction: Direction
    cost: float


@dataclass
class DeduplicationStats:
    """Counters from one resolve_duplicates run.

    Attributes:
        segments_in: Segments examined
        segments_out: Segments returned
        forward_discarded: Start->end directions that lost to a cheaper competitor
        backward_discarded: End->start directions that lost to a cheaper competitor
        narrowed: Returned segments whose direction was reduced to one side
    """

    segments_in: int = 0
    segments_out: int = 0
    forward_discarded: int = 0
    backward_discarded: int = 0
    narrowed: int = 0

    @property
    def segments_dropped(self) -> int:
        return self.segments_in - self.segments_out


def _pair_key(origin: NodeKey, destination: NodeKey) -> str:
    return f"{origin}|{destination}"


def _narrowed_direction(forward: bool, backward: bool) -> Direction:
    if forward and backward:
        return Direction.BOTH
    return Direction.FORWARD if forward else Direction.BACKWARD


def resolve_duplicates(
    segments: Iterable[Segment],
    mutate_inputs: bool = False,
    precision: int = DEFAULT_PRECISION,
    stats: Optional[DeduplicationStats] = None,
) -> List[Segment]:
    """
    Keep only the cheapest segment per ordered (origin, destination) pair.

    Segments are processed in input order. For each direction a segment
    allows, its effective cost (direction override, else plain cost) competes
    with the currently retained segment for that ordered pair. The strictly
    cheaper one is retained; ties keep the earlier segment.

    Args:
        segments: Segment records
        mutate_inputs: If True, surviving input Segment objects are narrowed
            in place and fully discarded ones get properties["_discarded"] set.
            If False, inputs are never modified and narrowed segments are
            returned as copies.
        precision: Decimal places used for node keys
        stats: Optional DeduplicationStats to fill in

    Returns:
        Surviving segments in input order. A segment that survives in only
        one of its directions comes back with that single direction.

    Raises:
        MalformedGeometryError: If a segment has fewer than 2 coordinates
        InvalidCostError: If a segment cost is invalid

    Example:
        >>> a = Segment([(0.0, 0.0), (1.0, 0.0)], 5.0, "e1")
        >>> b = Segment([(0.0, 0.0), (1.0, 0.0)], 3.0, "e2")
        >>> [s.segment_id for s in resolve_duplicates([a, b])]
        ['e2']
    """
    segments = list(segments)
    stats = stats if stats is not None else DeduplicationStats()
    stats.segments_in = len(segments)

    inventory: Dict[str, _Entry] = {}
    # [forward retained, backward retained] per segment
    retained: List[List[bool]] = []

    def contest(key: str, index: int, direction: Direction, cost: float) -> None:
        current = inventory.get(key)
        if current is None:
            inventory[key] = _Entry(index, direction, cost)
            return
        if cost < current.cost:
            discard(current.index, current.direction)
            inventory[key] = _Entry(index, direction, cost)
        else:
            discard(index, direction)

    def discard(index: int, direction: Direction) -> None:
        if direction is Direction.FORWARD:
            retained[index][0] = False
            stats.forward_discarded += 1
        else:
            retained[index][1] = False
            stats.backward_discarded += 1

    for index, segment in enumerate(segments):
        check_segment(segment)
        retained.append([segment.direction.allows_forward, segment.direction.allows_backward])

        start = node_key(segment.start, precision)
        end = node_key(segment.end, precision)

        if segment.direction.allows_forward:
            contest(_pair_key(start, end), index, Direction.FORWARD,
                    float(segment.effective_cost(Direction.FORWARD)))
        if segment.direction.allows_backward:
            contest(_pair_key(end, start), index, Direction.BACKWARD,
                    float(segment.effective_cost(Direction.BACKWARD)))

    survivors: List[Segment] = []
    for segment, (forward, backward) in zip(segments, retained):
        if not (forward or backward):
            if mutate_inputs:
                segment.properties[DISCARDED_FLAG] = True
            continue

        direction = _narrowed_direction(forward, backward)
        if direction is not segment.direction:
            stats.narrowed += 1
            logger.debug(
                f"Segment {segment.segment_id!r} narrowed from "
                f"{segment.direction.value} to {direction.value}"
            )
            if mutate_inputs:
                segment.direction = direction
            else:
                segment = dataclasses.replace(
                    segment, direction=direction, properties=dict(segment.properties)
                )
        survivors.append(segment)

    stats.segments_out = len(survivors)
    logger.info(
        f"Duplicate resolution: {stats.segments_in} -> {stats.segments_out} segments "
        f"({stats.forward_discarded} forward, {stats.backward_discarded} backward "
        f"directions discarded, {stats.narrowed} narrowed)"
    )
    return survivors


def resolve_duplicate_edges(edges: Iterable[Edge]) -> List[Edge]:
    """
    Collapse parallel edges to the cheapest one per ordered node pair.

    Ties keep the earliest edge. Survivors are returned in input order.

    Example:
        >>> e1 = Edge("A", "B", 5.0, "e1")
        >>> e2 = Edge("A", "B", 3.0, "e2")
        >>> [e.edge_id for e in resolve_duplicate_edges([e1, e2])]
        ['e2']
    """
    edges = list(edges)
    best: Dict[Tuple[NodeKey, NodeKey], int] = {}

    for index, edge in enumerate(edges):
        pair = (edge.origin, edge.destination)
        current = best.get(pair)
        if current is None or edge.cost < edges[current].cost:
            best[pair] = index

    survivors = [e for i, e in enumerate(edges) if best[(e.origin, e.destination)] == i]
    if len(survivors) != len(edges):
        logger.debug(f"Collapsed {len(edges) - len(survivors)} parallel edges")
    return survivors
