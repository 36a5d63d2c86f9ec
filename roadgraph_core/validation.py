"""
Cross-validation of independent shortest-path implementations.

Runs several PathFinders over the same graph for the same origin/destination
pairs, reconstructs each result into an exact edge cost, and reports any
query where the costs disagree by more than a tolerance.

Disagreements are data-quality findings: they are collected into a
ConsistencyReport instead of aborting the run. A finder reporting no path is
recorded by name and never folded into the numeric spread.
"""

import multiprocessing
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import psutil

from .config import DEFAULT_TOLERANCE, GraphConfig
from .exceptions import NoPathFoundError, RoadGraphError, ToleranceExceededError, ValidationError
from .graph import Graph
from .logging_config import LogTimer, get_logger, log_exception
from .path_reconstruction import reconstruct_edge_path, validate_node_path
from .search import PathFinder
from .types import NodeKey, SearchOutcome, ValidationResult

logger = get_logger(__name__)

CostLike = Union[SearchOutcome, float, None]


def validate_costs(results: Sequence[CostLike], tolerance: float = DEFAULT_TOLERANCE) -> ValidationResult:
    """Check that independent results for one query report the same cost.

    Args:
        results: SearchOutcome records, or bare costs with None meaning
            "no path found"
        tolerance: Maximum accepted max-min spread

    Returns:
        ValidationResult. spread is computed over results that found a path
        (0 for fewer than two). agree is False if the spread exceeds the
        tolerance or if only some of the results found a path.

    Raises:
        ValidationError: If results is empty, a cost is NaN, or tolerance is invalid

    Example:
        >>> validate_costs([10.0000001, 10.0, 9.9999999], tolerance=1e-6).agree
        True
        >>> validate_costs([10.0, 10.5, 10.0], tolerance=1e-6).agree
        False
    """
    if not results:
        raise ValidationError("validate_costs needs at least one result")
    if tolerance is None or not np.isfinite(tolerance) or tolerance < 0:
        raise ValidationError(f"tolerance must be a finite number >= 0, got {tolerance!r}")

    costs: List[float] = []
    no_path: List[str] = []
    for index, result in enumerate(results):
        if isinstance(result, SearchOutcome):
            name, cost = result.finder_name, result.total_cost
        else:
            name, cost = f"result_{index}", result
        if cost is None:
            no_path.append(name)
        else:
            costs.append(float(cost))

    values = np.asarray(costs, dtype=float)
    if np.isnan(values).any():
        raise ValidationError("Path costs must not be NaN")

    spread = float(values.max() - values.min()) if values.size else 0.0
    partial_reachability = bool(no_path) and values.size > 0
    agree = spread <= tolerance and not partial_reachability

    return ValidationResult(agree=agree, spread=spread, no_path=tuple(no_path))


@dataclass
class QueryReport:
    """Outcomes of every finder for one origin/destination query."""

    index: int
    origin: NodeKey
    destination: NodeKey
    outcomes: List[SearchOutcome]
    result: ValidationResult

    @property
    def exceeded(self) -> bool:
        return not self.result.agree


@dataclass
class ConsistencyReport:
    """Complete discrepancy report over a batch of queries.

    Attributes:
        tolerance: Tolerance the queries were checked against
        queries: One QueryReport per query, in submission order
        elapsed_seconds: Wall time of the run
    """

    tolerance: float
    queries: List[QueryReport] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def discrepancies(self) -> List[QueryReport]:
        return [q for q in self.queries if q.exceeded]

    @property
    def error_count(self) -> int:
        return len(self.discrepancies)

    @property
    def max_spread(self) -> float:
        return max((q.result.spread for q in self.queries), default=0.0)

    @property
    def all_agree(self) -> bool:
        return self.error_count == 0

    def raise_for_discrepancies(self) -> None:
        """Raise ToleranceExceededError if any query disagreed."""
        if self.error_count:
            raise ToleranceExceededError(self.error_count, self.max_spread, self.tolerance)

    def summary(self) -> str:
        return (
            f"{len(self.queries)} queries, {self.error_count} errors "
            f"(tolerance {self.tolerance:g}, max spread {self.max_spread:g})"
        )


def estimate_workers(num_queries: int) -> int:
    """Recommended worker threads: one per physical core, at most one per query."""
    cores = psutil.cpu_count(logical=False) or multiprocessing.cpu_count()
    return max(1, min(cores, num_queries))


def sample_node_pairs(graph: Graph, count: int, seed: Optional[int] = None) -> List[Tuple[NodeKey, NodeKey]]:
    """Draw random origin/destination node pairs from a graph.

    Args:
        graph: Graph to sample from
        count: Number of pairs
        seed: Seed for numpy's random generator (reproducible runs)

    Raises:
        ValidationError: If count is negative, or positive on an empty graph
    """
    if count < 0:
        raise ValidationError(f"count must be >= 0, got {count}")
    nodes = graph.nodes()
    if count and not nodes:
        raise ValidationError("Cannot sample node pairs from an empty graph")

    rng = np.random.default_rng(seed)
    picks = rng.integers(0, len(nodes), size=(count, 2)) if count else np.empty((0, 2), dtype=int)
    return [(nodes[a], nodes[b]) for a, b in picks]


class ConsistencyValidator:
    """
    Drives several search implementations and compares their costs.

    Each finder's node sequence is reconstructed against the same graph, so
    reported costs are exact edge sums rather than each finder's own
    accumulated distance. DisconnectedPathError from reconstruction is a
    graph/search mismatch and propagates.

    Example:
        >>> validator = ConsistencyValidator([DijkstraFinder(), NetworkXFinder()])
        >>> report = validator.run(graph, sample_node_pairs(graph, 100, seed=1))
        >>> report.error_count
        0
    """

    def __init__(
        self,
        finders: Sequence[PathFinder],
        tolerance: Optional[float] = None,
        config: Optional[GraphConfig] = None,
    ):
        """
        Args:
            finders: Independent search implementations (at least one)
            tolerance: Maximum accepted cost spread per query. Overrides
                config.tolerance when given.
            config: GraphConfig supplying the tolerance when none is passed

        Raises:
            ValidationError: If no finders are given, names collide or the
                tolerance is invalid
        """
        finders = list(finders)
        if not finders:
            raise ValidationError("ConsistencyValidator needs at least one finder")
        names = [f.name for f in finders]
        if len(set(names)) != len(names):
            raise ValidationError(f"Finder names must be unique, got {names}")
        if tolerance is None:
            tolerance = config.tolerance if config is not None else DEFAULT_TOLERANCE
        if not np.isfinite(tolerance) or tolerance < 0:
            raise ValidationError(f"tolerance must be a finite number >= 0, got {tolerance!r}")
        self.finders = finders
        self.tolerance = tolerance

    def _outcome(self, finder: PathFinder, graph: Graph, origin: NodeKey, destination: NodeKey) -> SearchOutcome:
        try:
            nodes = finder.find(origin, destination, graph)
        except NoPathFoundError:
            logger.debug(f"{finder.name}: no path from {origin} to {destination}")
            return SearchOutcome(finder.name, None)

        nodes = [graph.key_for(n) for n in nodes]
        if not validate_node_path(nodes, origin, destination):
            raise ValidationError(
                f"{finder.name} returned a path that does not run from {origin} "
                f"to {destination} without revisiting nodes"
            )
        path = reconstruct_edge_path(nodes, graph)
        return SearchOutcome(finder.name, path.total_cost, tuple(path.edge_ids))

    def run_query(self, graph: Graph, origin: NodeKey, destination: NodeKey, index: int = 0) -> QueryReport:
        """Run every finder for one query and validate the costs."""
        origin = graph.key_for(origin)
        destination = graph.key_for(destination)

        outcomes = [self._outcome(f, graph, origin, destination) for f in self.finders]
        result = validate_costs(outcomes, self.tolerance)

        if not result.agree:
            details = ", ".join(
                f"{o.finder_name}={o.total_cost if o.found else 'no path'}"
                f"({len(o.edge_ids)} edges)"
                for o in outcomes
            )
            logger.warning(
                f"Query {index} {origin} -> {destination} disagrees "
                f"(spread {result.spread:g}): {details}"
            )

        return QueryReport(index, origin, destination, outcomes, result)

    def run(
        self,
        graph: Graph,
        pairs: Iterable[Tuple[NodeKey, NodeKey]],
        num_workers: Optional[int] = 1,
    ) -> ConsistencyReport:
        """
        Validate every origin/destination pair and collect all findings.

        Args:
            graph: Frozen graph shared read-only by all queries
            pairs: (origin, destination) node keys or coordinates
            num_workers: Worker threads; 1 runs sequentially, None picks a
                count from the CPU's physical cores

        Returns:
            ConsistencyReport with queries in submission order

        Raises:
            ValidationError: If the graph is not frozen, or a finder returns a
                path that does not connect the queried nodes
            DisconnectedPathError: If a finder returns a path the graph cannot
                reconstruct
        """
        if not graph.frozen:
            raise ValidationError("Freeze the graph before running queries against it")

        pairs = list(pairs)
        if num_workers is None:
            num_workers = estimate_workers(len(pairs))

        logger.info(
            f"Validating {len(pairs)} queries with {len(self.finders)} finders "
            f"({', '.join(f.name for f in self.finders)}), {num_workers} worker(s)"
        )

        start = time.perf_counter()
        with LogTimer(logger, "Consistency validation"):
            try:
                if num_workers <= 1:
                    queries = []
                    for index, (origin, destination) in enumerate(pairs):
                        queries.append(self.run_query(graph, origin, destination, index))
                        if (index + 1) % 100 == 0:
                            logger.info(f"Progress: {index + 1}/{len(pairs)} queries")
                else:
                    with ThreadPoolExecutor(max_workers=num_workers) as executor:
                        futures = [
                            executor.submit(self.run_query, graph, origin, destination, index)
                            for index, (origin, destination) in enumerate(pairs)
                        ]
                        queries = [future.result() for future in futures]
            except RoadGraphError as e:
                log_exception(logger, "Consistency validation aborted", e)
                raise

        report = ConsistencyReport(
            tolerance=self.tolerance,
            queries=queries,
            elapsed_seconds=time.perf_counter() - start,
        )
        if report.error_count:
            logger.warning(f"Consistency check: {report.summary()}")
        else:
            logger.info(f"Consistency check: {report.summary()}")
        return report
