"""
Greedy assembly of disjoint renovation projects from ranked seeds.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Set

from .config import InvalidConfigurationError, require_positive_budget
from .metrics import CostConfig, ProjectMetrics, cluster_metrics
from .neighbourhood import bounded_neighbourhood
from .network import Network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cluster:
    cluster_id: int  # 1-based position of the seed in the seed sequence
    seed_id: int
    segment_ids: FrozenSet[int]
    metrics: ProjectMetrics

    def __len__(self) -> int:
        return len(self.segment_ids)

    def sorted_segment_ids(self) -> List[int]:
        return sorted(self.segment_ids)


def assemble_clusters(
    network: Network,
    seeds: Iterable[int],
    budget: float,
    target_count: int,
    over_generation_factor: int = 2,
    cost_config: Optional[CostConfig] = None,
) -> List[Cluster]:
    """Grow one project per unclaimed seed and claim its segments exclusively.

    Seeds are processed in order. A seed already claimed by an earlier project
    is skipped; segments found by the search but claimed earlier are left out
    of the new project. Assembly stops once ``target_count *
    over_generation_factor`` projects exist. The result keeps seed order.
    """
    seeds = list(seeds)
    require_positive_budget(budget)
    if target_count < 1:
        raise InvalidConfigurationError("target_count must be at least 1")
    if over_generation_factor < 1:
        raise InvalidConfigurationError("over_generation_factor must be at least 1")
    network.require(seeds)
    if cost_config is None:
        cost_config = CostConfig()

    limit = target_count * over_generation_factor
    claimed: Set[int] = set()
    clusters: List[Cluster] = []

    for i, seed in enumerate(seeds):
        if seed in claimed:
            logger.debug("Seed %s already claimed, skipping", seed)
            continue

        found = bounded_neighbourhood(network, seed, budget)
        members = frozenset(found - claimed)
        claimed |= members

        if members:
            clusters.append(
                Cluster(
                    cluster_id=i + 1,
                    seed_id=seed,
                    segment_ids=members,
                    metrics=cluster_metrics(members, network, cost_config),
                )
            )
        else:
            logger.debug("Seed %s produced no project within budget %.1f", seed, budget)

        if len(clusters) >= limit:
            break

    logger.info(
        "Assembled %d projects covering %d segments from %d seeds",
        len(clusters),
        len(claimed),
        len(seeds),
    )
    return clusters


def check_disjoint(clusters: Iterable[Cluster]) -> None:
    """Raise ``ValueError`` if any segment belongs to more than one cluster."""
    owner = {}
    for cluster in clusters:
        for seg_id in cluster.segment_ids:
            if seg_id in owner:
                raise ValueError(
                    f"Segment {seg_id} assigned to clusters {owner[seg_id]} and {cluster.cluster_id}"
                )
            owner[seg_id] = cluster.cluster_id
