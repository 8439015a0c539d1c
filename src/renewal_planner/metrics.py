from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Iterable, List, Mapping, Optional

import pandas as pd

from .config import InvalidConfigurationError, RANK_KEYS
from .network import Network

logger = logging.getLogger(__name__)

# The last term repeats risk density; kept so rankings match the published weights.
PRIORITY_WEIGHTS = {
    "roi": 0.4,
    "risk_density": 0.3,
    "avg_risk": 0.2,
    "lof_length_ratio": 0.1,
}


@dataclass
class CostConfig:
    minor_leak: float = 3000.0
    major_leak: float = 15000.0
    burst: float = 62500.0
    service_disruption: float = 30000.0
    cost_per_meter: float = 500.0
    fixed_cost: float = 10000.0

    def __post_init__(self):
        for name, value in asdict(self).items():
            if value < 0:
                raise InvalidConfigurationError(f"{name} must not be negative, got {value}")

    @property
    def average_cost_of_failure(self) -> float:
        return (self.minor_leak + self.major_leak + self.burst + self.service_disruption) / 4


@dataclass(frozen=True)
class ProjectMetrics:
    segment_count: int
    total_length: float
    total_risk: float
    avg_risk: float
    risk_density: float  # risk per km
    lof_length_ratio: float
    estimated_cost: float
    bre: float  # business risk exposure
    roi: float
    priority: float


def cluster_metrics(segment_ids, network: Network, cost_config: Optional[CostConfig] = None) -> ProjectMetrics:
    """Derive project metrics from the member segments.

    ``segment_ids`` may be any iterable of ids or an assembled cluster.
    """
    if cost_config is None:
        cost_config = CostConfig()
    if hasattr(segment_ids, "segment_ids"):
        segment_ids = segment_ids.segment_ids
    members = [network.segment(seg_id) for seg_id in segment_ids]
    if not members:
        raise ValueError("Cannot score a project without segments")

    total_risk = sum(s.risk_score for s in members)
    total_length = sum(s.length for s in members)
    avg_risk = total_risk / len(members)
    risk_density = total_risk / (total_length / 1000)
    lof_length_ratio = total_risk / (total_length / 1000)

    estimated_cost = total_length * cost_config.cost_per_meter + cost_config.fixed_cost
    bre = total_risk * cost_config.average_cost_of_failure
    roi = bre / estimated_cost if estimated_cost else 0.0

    priority = (
        roi * PRIORITY_WEIGHTS["roi"]
        + risk_density * PRIORITY_WEIGHTS["risk_density"]
        + avg_risk * PRIORITY_WEIGHTS["avg_risk"]
        + lof_length_ratio * PRIORITY_WEIGHTS["lof_length_ratio"]
    )
    return ProjectMetrics(
        segment_count=len(members),
        total_length=total_length,
        total_risk=total_risk,
        avg_risk=avg_risk,
        risk_density=risk_density,
        lof_length_ratio=lof_length_ratio,
        estimated_cost=estimated_cost,
        bre=bre,
        roi=roi,
        priority=priority,
    )


def rank_projects(clusters: Iterable, target_count: int, key: str = "roi") -> List:
    """Return the best ``target_count`` clusters ordered by ``key`` descending.

    Equal scores keep their assembly order.
    """
    if key not in RANK_KEYS:
        raise InvalidConfigurationError(f"Unknown rank key {key!r}")
    if target_count < 1:
        raise InvalidConfigurationError("target_count must be at least 1")
    ranked = sorted(clusters, key=lambda c: getattr(c.metrics, key), reverse=True)
    return ranked[:target_count]


@dataclass
class StrategySummary:
    project_count: int
    avg_roi: float
    avg_risk: float
    avg_priority: float
    total_cost: float
    total_bre: float
    total_length: float

    @property
    def payback_years(self) -> Optional[float]:
        """Rough payback estimate; ``None`` when no risk exposure is addressed."""
        if not self.total_bre:
            return None
        return self.total_cost / self.total_bre * 10

    @property
    def score(self) -> float:
        return self.avg_roi * 0.6 + self.avg_priority * 0.4


def summarize_projects(clusters: Iterable) -> StrategySummary:
    metrics = [c.metrics for c in clusters]
    n = len(metrics)
    if not n:
        return StrategySummary(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    return StrategySummary(
        project_count=n,
        avg_roi=sum(m.roi for m in metrics) / n,
        avg_risk=sum(m.avg_risk for m in metrics) / n,
        avg_priority=sum(m.priority for m in metrics) / n,
        total_cost=sum(m.estimated_cost for m in metrics),
        total_bre=sum(m.bre for m in metrics),
        total_length=sum(m.total_length for m in metrics),
    )


def recommend_strategy(results: Mapping[str, List]) -> Optional[str]:
    """Return the strategy whose projects combine the best ROI and priority."""
    best_name = None
    best_score = None
    for name, clusters in results.items():
        summary = summarize_projects(clusters)
        if summary.project_count == 0:
            continue
        if best_score is None or summary.score > best_score:
            best_name, best_score = name, summary.score
    if best_name is not None:
        logger.info("Recommended strategy %s (score %.3f)", best_name, best_score)
    return best_name


def projects_frame(clusters: Iterable) -> pd.DataFrame:
    """Tabulate clusters, one row per project."""
    rows = []
    for c in clusters:
        row = {"project_id": c.cluster_id, "seed_id": c.seed_id}
        row.update(asdict(c.metrics))
        rows.append(row)
    columns = ["project_id", "seed_id"] + list(ProjectMetrics.__dataclass_fields__)
    return pd.DataFrame(rows, columns=columns)
