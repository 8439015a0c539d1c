"""
Seed ranking strategies.

Each strategy orders segments by a risk measure and keeps a top fraction,
capped at a maximum count. Ties are broken by ascending segment id so the
seed order, and therefore the assembled projects, are reproducible.
"""
import logging
from typing import Callable, Dict, List, Tuple

from tqdm.auto import tqdm

from .config import InvalidConfigurationError, require_positive_budget
from .neighbourhood import bounded_neighbourhood
from .network import Network

logger = logging.getLogger(__name__)


def _top_seeds(scored: List[Tuple[int, float]], fraction: float, max_seeds: int) -> List[int]:
    if not 0.0 < fraction <= 1.0:
        raise InvalidConfigurationError(f"fraction must be in (0, 1], got {fraction}")
    if max_seeds < 0:
        raise InvalidConfigurationError("max_seeds must not be negative")
    scored.sort(key=lambda item: (-item[1], item[0]))
    num_seeds = min(int(len(scored) * fraction), max_seeds)
    return [seg_id for seg_id, _ in scored[:num_seeds]]


def rank_by_risk(network: Network, fraction: float = 0.2, max_seeds: int = 50) -> List[int]:
    """Segments with the highest likelihood of failure."""
    scored = [(s.seg_id, s.risk_score) for s in network]
    seeds = _top_seeds(scored, fraction, max_seeds)
    logger.info("Found %d high LoF seed segments", len(seeds))
    return seeds


def rank_by_risk_density(
    network: Network,
    budget: float,
    fraction: float = 0.15,
    max_seeds: int = 40,
    progress: bool = False,
) -> List[int]:
    """Segments at the centre of the densest risk neighbourhoods.

    The neighbourhood radius is half of ``budget``; density is total risk per
    kilometre of the neighbourhood. Segments longer than the radius have an
    empty neighbourhood and are not ranked.
    """
    require_positive_budget(budget)
    radius = budget / 2
    scored: List[Tuple[int, float]] = []
    for seg in tqdm(
        network.segments(), desc="Scoring risk density", unit="seg", disable=not progress
    ):
        area = bounded_neighbourhood(network, seg.seg_id, radius)
        total_risk = 0.0
        total_length = 0.0
        for seg_id in area:
            member = network.segment(seg_id)
            total_risk += member.risk_score
            total_length += member.length
        if total_length > 0:
            scored.append((seg.seg_id, total_risk / (total_length / 1000)))
    seeds = _top_seeds(scored, fraction, max_seeds)
    logger.info("Found %d high risk density seed areas", len(seeds))
    return seeds


def rank_by_risk_length_ratio(
    network: Network, fraction: float = 0.2, max_seeds: int = 45
) -> List[int]:
    """Segments with the most risk per kilometre of their own length."""
    scored = [(s.seg_id, s.risk_score / (s.length / 1000)) for s in network]
    seeds = _top_seeds(scored, fraction, max_seeds)
    logger.info("Found %d high LoF/length ratio seed segments", len(seeds))
    return seeds


SEED_STRATEGIES: Dict[str, Callable[..., List[int]]] = {
    "high_lof": lambda network, budget, **kw: rank_by_risk(network, **kw),
    "risk_density": rank_by_risk_density,
    "lof_length": lambda network, budget, **kw: rank_by_risk_length_ratio(network, **kw),
}

STRATEGY_LABELS = {
    "high_lof": "High LoF",
    "risk_density": "High Risk Density",
    "lof_length": "High LoF/Length",
}


def rank_seeds(network: Network, strategy: str, budget: float, **kwargs) -> List[int]:
    """Rank seeds with the named strategy.

    ``budget`` is the project length budget; only the density strategy uses it.
    Extra keyword arguments (``fraction``, ``max_seeds``, ``progress`` for
    density) are passed through.
    """
    try:
        func = SEED_STRATEGIES[strategy]
    except KeyError:
        raise InvalidConfigurationError(
            f"Unknown seed strategy {strategy!r}; expected one of {', '.join(SEED_STRATEGIES)}"
        ) from None
    return func(network, budget, **kwargs)
