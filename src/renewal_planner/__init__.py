"""Public exports for the pipe renewal planner."""

from .config import InvalidConfigurationError, PlannerConfig, load_config
from .network import (
    Network,
    Segment,
    SegmentNotFoundError,
    load_network,
    risk_profile,
)
from .neighbourhood import (
    bounded_neighbourhood,
    budget_scenarios,
    compare_roots,
    neighbourhood_lengths,
    trace_neighbourhood,
)
from .strategies import (
    SEED_STRATEGIES,
    rank_by_risk,
    rank_by_risk_density,
    rank_by_risk_length_ratio,
    rank_seeds,
)
from .assembly import Cluster, assemble_clusters, check_disjoint
from .metrics import (
    CostConfig,
    ProjectMetrics,
    cluster_metrics,
    rank_projects,
    recommend_strategy,
    summarize_projects,
)
from .generator import demo_network, example_network, generate_pipe_network

__all__ = [
    "InvalidConfigurationError",
    "PlannerConfig",
    "load_config",
    "Network",
    "Segment",
    "SegmentNotFoundError",
    "load_network",
    "risk_profile",
    "bounded_neighbourhood",
    "budget_scenarios",
    "compare_roots",
    "neighbourhood_lengths",
    "trace_neighbourhood",
    "SEED_STRATEGIES",
    "rank_by_risk",
    "rank_by_risk_density",
    "rank_by_risk_length_ratio",
    "rank_seeds",
    "Cluster",
    "assemble_clusters",
    "check_disjoint",
    "CostConfig",
    "ProjectMetrics",
    "cluster_metrics",
    "rank_projects",
    "recommend_strategy",
    "summarize_projects",
    "demo_network",
    "example_network",
    "generate_pipe_network",
]
