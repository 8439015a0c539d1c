import json
import math
import os
from dataclasses import dataclass, field
from typing import List, Optional

RANK_KEYS = ("roi", "priority")
DEFAULT_STRATEGIES = ["high_lof", "risk_density", "lof_length"]


class InvalidConfigurationError(ValueError):
    """Raised when planner inputs are outside their valid range."""


def require_positive_budget(budget: float) -> None:
    if budget is None or not math.isfinite(budget) or budget <= 0:
        raise InvalidConfigurationError(f"budget must be a positive length, got {budget!r}")


@dataclass
class PlannerConfig:
    target_count: int = 15
    max_length: float = 200.0
    # Accepted for parity with older configs; the search is bounded by max_length alone.
    overshoot_factor: float = 1.2
    longest_path_fraction: float = 0.8
    over_generation_factor: int = 2
    rank_by: str = "roi"
    strategies: List[str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    network_size: int = 2000
    random_seed: Optional[int] = 42
    network_file: Optional[str] = None
    minor_leak: float = 3000.0
    major_leak: float = 15000.0
    burst: float = 62500.0
    service_disruption: float = 30000.0
    cost_per_meter: float = 500.0
    fixed_cost: float = 10000.0
    output: Optional[str] = None

    def validate(self) -> "PlannerConfig":
        """Raise :class:`InvalidConfigurationError` if any value is unusable."""
        require_positive_budget(self.max_length)
        if self.target_count < 1:
            raise InvalidConfigurationError("target_count must be at least 1")
        if self.over_generation_factor < 1:
            raise InvalidConfigurationError("over_generation_factor must be at least 1")
        if self.overshoot_factor < 1.0:
            raise InvalidConfigurationError("overshoot_factor must be at least 1.0")
        if not 0.0 < self.longest_path_fraction <= 1.0:
            raise InvalidConfigurationError("longest_path_fraction must be in (0, 1]")
        if self.rank_by not in RANK_KEYS:
            raise InvalidConfigurationError(
                f"rank_by must be one of {', '.join(RANK_KEYS)}, got {self.rank_by!r}"
            )
        unknown = [s for s in self.strategies if s not in DEFAULT_STRATEGIES]
        if unknown:
            raise InvalidConfigurationError(f"Unknown seed strategies: {', '.join(unknown)}")
        if self.network_file is None and self.network_size < 1:
            raise InvalidConfigurationError("network_size must be at least 1")
        return self

    def cost_config(self):
        from .metrics import CostConfig

        return CostConfig(
            minor_leak=self.minor_leak,
            major_leak=self.major_leak,
            burst=self.burst,
            service_disruption=self.service_disruption,
            cost_per_meter=self.cost_per_meter,
            fixed_cost=self.fixed_cost,
        )


def load_config(path: str) -> PlannerConfig:
    """Load a :class:`PlannerConfig` from a JSON or YAML file."""
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path) as f:
        if path.lower().endswith(".json"):
            data = json.load(f)
        else:
            import yaml

            data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping")
    if "max_length" not in data and "budget" in data:
        data["max_length"] = data.pop("budget")
    return PlannerConfig(**data)
