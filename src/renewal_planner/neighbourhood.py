"""
Budget-bounded neighbourhood search over a pipe network.

The distance to a segment is the smallest sum of segment lengths along any
path from the root, counting both the root and the segment itself. Edges are
free; only segments cost length.
"""
import heapq
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .config import require_positive_budget
from .metrics import CostConfig, ProjectMetrics, cluster_metrics
from .network import Network

logger = logging.getLogger(__name__)


@dataclass
class SearchStep:
    """One recorded step of :func:`trace_neighbourhood`."""

    step: int
    action: str  # init, visit, prune, relax or skip
    segment_id: int
    cum_len: float
    neighbor: Optional[int] = None
    candidate: Optional[float] = None
    previous: Optional[float] = None

    def describe(self) -> str:
        if self.action == "init":
            return f"Initialize: add root {self.segment_id} with cumLen={self.cum_len:.1f}"
        if self.action == "prune":
            return f"Pop {self.segment_id} (cumLen={self.cum_len:.1f}): exceeds budget, skip"
        if self.action == "visit":
            return f"Pop and visit {self.segment_id} (cumLen={self.cum_len:.1f})"
        if self.action == "relax":
            origin = "first time" if self.previous is None else f"improved from {self.previous:.1f}"
            return f"  neighbor {self.neighbor}: cumLen={self.candidate:.1f} ({origin}), queued"
        return (
            f"  neighbor {self.neighbor}: cumLen={self.candidate:.1f} "
            f">= existing {self.previous:.1f}, skip"
        )


def _search(
    network: Network,
    root: int,
    budget: float,
    record: Optional[Callable[..., None]] = None,
) -> Tuple[Set[int], Dict[int, float]]:
    require_positive_budget(budget)
    root_len = network.segment(root).length

    best_len: Dict[int, float] = {root: root_len}
    visited: Set[int] = set()
    heap: List[Tuple[float, int]] = [(root_len, root)]
    if record:
        record("init", root, root_len)

    while heap:
        cum_len, node = heapq.heappop(heap)
        if cum_len > budget:
            if record:
                record("prune", node, cum_len)
            continue
        # A stale duplicate only re-expands with a worse length; relaxation drops it.
        visited.add(node)
        if record:
            record("visit", node, cum_len)

        for nbr in network.neighbors(node):
            candidate = cum_len + network.segment(nbr).length
            prev = best_len.get(nbr)
            if prev is None or candidate < prev:
                best_len[nbr] = candidate
                heapq.heappush(heap, (candidate, nbr))
                if record:
                    record("relax", node, cum_len, nbr, candidate, prev)
            elif record:
                record("skip", node, cum_len, nbr, candidate, prev)

    return visited, best_len


def bounded_neighbourhood(network: Network, root: int, budget: float) -> Set[int]:
    """Return every segment whose shortest cumulative length from ``root`` is
    at most ``budget``.

    The root itself is excluded when its own length exceeds the budget, in
    which case the result is empty.
    """
    visited, _ = _search(network, root, budget)
    logger.debug("Neighbourhood of %s within %.1f: %d segments", root, budget, len(visited))
    return visited


def neighbourhood_lengths(network: Network, root: int, budget: float) -> Dict[int, float]:
    """Return ``{segment_id: shortest cumulative length}`` for the neighbourhood."""
    visited, best_len = _search(network, root, budget)
    return {seg_id: best_len[seg_id] for seg_id in visited}


def trace_neighbourhood(
    network: Network, root: int, budget: float
) -> Tuple[Set[int], List[SearchStep]]:
    """Run the search while recording each queue operation."""
    steps: List[SearchStep] = []

    def record(action, seg_id, cum_len, neighbor=None, candidate=None, previous=None):
        steps.append(
            SearchStep(len(steps) + 1, action, seg_id, cum_len, neighbor, candidate, previous)
        )

    visited, _ = _search(network, root, budget, record)
    return visited, steps


def budget_scenarios(
    network: Network,
    root: int,
    budgets: Iterable[float],
    cost_config: Optional[CostConfig] = None,
) -> List[Tuple[float, Set[int], Optional[ProjectMetrics]]]:
    """Search from ``root`` under each budget and score the result.

    Returns ``(budget, segment_ids, metrics)`` tuples; ``metrics`` is ``None``
    when the root alone exceeds the budget.
    """
    scenarios = []
    for budget in budgets:
        found = bounded_neighbourhood(network, root, budget)
        metrics = cluster_metrics(found, network, cost_config) if found else None
        scenarios.append((budget, found, metrics))
    return scenarios


def compare_roots(
    network: Network,
    roots: Iterable[int],
    budget: float,
    cost_config: Optional[CostConfig] = None,
) -> List[Tuple[int, Set[int], Optional[ProjectMetrics]]]:
    """Search from each of ``roots`` under one ``budget`` and score the results.

    All roots are checked before any search runs.
    """
    roots = list(roots)
    require_positive_budget(budget)
    network.require(roots)
    results = []
    for root in roots:
        found = bounded_neighbourhood(network, root, budget)
        metrics = cluster_metrics(found, network, cost_config) if found else None
        results.append((root, found, metrics))
    return results
