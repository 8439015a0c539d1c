import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, fields
from typing import Dict, List, Optional

import pandas as pd
from tqdm.auto import tqdm

from renewal_planner.assembly import Cluster, assemble_clusters, check_disjoint
from renewal_planner.config import (
    DEFAULT_STRATEGIES,
    RANK_KEYS,
    InvalidConfigurationError,
    PlannerConfig,
    load_config,
)
from renewal_planner.generator import demo_network, example_network, generate_pipe_network
from renewal_planner.metrics import (
    CostConfig,
    projects_frame,
    rank_projects,
    recommend_strategy,
    summarize_projects,
)
from renewal_planner.neighbourhood import budget_scenarios, compare_roots, trace_neighbourhood
from renewal_planner.network import Network, SegmentNotFoundError, load_network, risk_profile
from renewal_planner.strategies import SEED_STRATEGIES, STRATEGY_LABELS, rank_seeds

logger = logging.getLogger(__name__)

FIXTURES = {"example": example_network, "demo": demo_network}


class TqdmWriteHandler(logging.Handler):
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except OSError:
            self.handleError(record)


def configure_logging(verbose: bool) -> None:
    handler = TqdmWriteHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.setLevel(logging.INFO if verbose else logging.WARNING)
    root_logger.addHandler(handler)


def plan_strategy(
    network: Network,
    strategy: str,
    config: PlannerConfig,
    cost_config: CostConfig,
    progress: bool = False,
) -> List[Cluster]:
    """Rank seeds with ``strategy``, assemble projects and keep the best ones."""
    kwargs = {"progress": progress} if strategy == "risk_density" else {}
    seeds = rank_seeds(network, strategy, config.max_length, **kwargs)
    clusters = assemble_clusters(
        network,
        seeds,
        config.max_length,
        config.target_count,
        config.over_generation_factor,
        cost_config,
    )
    check_disjoint(clusters)
    return rank_projects(clusters, config.target_count, key=config.rank_by)


def format_profile(network: Network) -> str:
    profile = risk_profile(network)
    n = profile.segment_count or 1
    lines = [
        "Network Overview:",
        f"  Total Pipes: {profile.segment_count}",
        f"  Total Length: {profile.total_length_km:.2f} km",
        f"  Average Risk (LoF): {profile.average_risk:.3f}",
        f"  Average Length: {profile.average_length:.1f} m",
        "Risk Distribution:",
    ]
    for name, count in profile.risk_categories.items():
        lines.append(f"  {name.capitalize():<9} {count:5d} pipes ({count / n * 100:.1f}%)")
    lines.append("Length Distribution:")
    for name, count in profile.length_categories.items():
        lines.append(f"  {name.capitalize():<9} {count:5d} pipes ({count / n * 100:.1f}%)")
    return "\n".join(lines)


def format_comparison(results: Dict[str, List[Cluster]]) -> str:
    rows = []
    for strategy, clusters in results.items():
        summary = summarize_projects(clusters)
        if summary.project_count == 0:
            continue
        rows.append(
            {
                "strategy": STRATEGY_LABELS.get(strategy, strategy),
                "projects": summary.project_count,
                "avg_roi": summary.avg_roi,
                "avg_risk": summary.avg_risk,
                "total_cost": summary.total_cost,
                "total_bre": summary.total_bre,
            }
        )
    if not rows:
        return "No strategy produced any projects."
    return pd.DataFrame(rows).to_string(index=False, float_format=lambda v: f"{v:,.2f}")


def format_recommendation(results: Dict[str, List[Cluster]]) -> str:
    best = recommend_strategy(results)
    if best is None:
        return "No recommendation: no strategy produced any projects."
    summary = summarize_projects(results[best])
    payback = summary.payback_years
    lines = [
        f"Recommended Strategy: {STRATEGY_LABELS.get(best, best)}",
        f"  Total Investment: {summary.total_cost:,.0f}",
        f"  Total Risk Exposure Addressed: {summary.total_bre:,.0f}",
        f"  Expected Payback Period: {payback:.1f} years" if payback is not None else "  Expected Payback Period: n/a",
        f"  Number of Projects: {summary.project_count}",
    ]
    return "\n".join(lines)


def _print_scenario(root: int, found, metrics) -> None:
    if metrics is None:
        print(f"  Segment {root} alone exceeds the budget; nothing selected")
        return
    print(f"  Segments included: {sorted(found)}")
    print(f"  Total length: {metrics.total_length:.1f} m")
    print(f"  Total risk: {metrics.total_risk:.2f}")
    print(f"  Avg risk: {metrics.avg_risk:.3f}")
    print(f"  Cost: {metrics.estimated_cost:,.0f}")
    print(f"  ROI: {metrics.roi:.2f}")


def run_budget_analysis(network: Network, root: int, budgets: List[float], cost_config: CostConfig) -> None:
    for budget, found, metrics in budget_scenarios(network, root, budgets, cost_config):
        print(f"\n--- Budget: {budget:.1f} ---")
        _print_scenario(root, found, metrics)


def run_root_comparison(network: Network, roots: List[int], budget: float, cost_config: CostConfig) -> None:
    print(f"=== Starting Segment Comparison (Budget: {budget:.1f}) ===")
    for root, found, metrics in compare_roots(network, roots, budget, cost_config):
        print(f"\n--- Starting from Segment {root} ---")
        _print_scenario(root, found, metrics)


def run_trace(network: Network, root: int, budget: float) -> None:
    visited, steps = trace_neighbourhood(network, root, budget)
    print(f"=== Search from Segment {root} (Budget: {budget:.1f}) ===")
    for step in steps:
        print(f"{step.step:3d}. {step.describe()}")
    print(f"Reachable segments: {sorted(visited)}")


def build_parser(config_defaults: Dict[str, object], config_path: Optional[str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pipe renewal project planner")
    parser.set_defaults(**config_defaults)
    parser.add_argument("--config", default=config_path, help="Path to config YAML or JSON file")
    parser.add_argument(
        "--network",
        dest="network_file",
        help="JSON network file; a synthetic network is generated when omitted",
    )
    parser.add_argument(
        "--fixture",
        choices=sorted(FIXTURES),
        help="Use a built-in example network instead of --network",
    )
    parser.add_argument("--network-size", type=int, help="Number of segments to generate")
    parser.add_argument("--random-seed", type=int, help="Seed for the synthetic network")
    parser.add_argument(
        "--budget",
        dest="max_length",
        type=float,
        help="Maximum total length of a project in meters",
    )
    parser.add_argument("--target-count", type=int, help="Number of projects to select")
    parser.add_argument(
        "--over-generation-factor",
        type=int,
        help="Candidate projects to assemble per selected project",
    )
    parser.add_argument(
        "--strategy",
        dest="strategies",
        action="append",
        choices=sorted(SEED_STRATEGIES),
        help="Seed strategy to run (repeatable; default all)",
    )
    parser.add_argument("--rank-by", choices=RANK_KEYS, help="Metric used to select projects")
    parser.add_argument("--output", help="Write the selected projects to this CSV file")
    parser.add_argument(
        "--root",
        type=int,
        nargs="+",
        help="Analyse searches from these segments instead of planning: one root runs "
        "the --budgets scenarios, several roots are compared at --budget",
    )
    parser.add_argument(
        "--budgets",
        type=float,
        nargs="+",
        default=[3.0, 5.0, 8.0, 12.0],
        help="Budgets for --root analysis",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print each step of the search from every --root at --budget",
    )
    parser.add_argument("--progress", action="store_true", help="Show progress bars")
    parser.add_argument("--verbose", action="store_true", help="Enable info logging")
    return parser


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    config_path = None
    for i, arg in enumerate(argv):
        if arg == "--config" and i + 1 < len(argv):
            config_path = argv[i + 1]
            break
        if arg.startswith("--config="):
            config_path = arg.split("=", 1)[1]
            break
    if config_path is None:
        default_yaml = os.path.join("config", "planner_config.yaml")
        default_json = os.path.join("config", "planner_config.json")
        if os.path.exists(default_yaml):
            config_path = default_yaml
        elif os.path.exists(default_json):
            config_path = default_json

    config_defaults: Dict[str, object] = asdict(PlannerConfig())
    if config_path:
        try:
            config_defaults.update(asdict(load_config(config_path)))
        except (OSError, ValueError, TypeError, json.JSONDecodeError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)
    # --strategy appends, so it must not start from the configured list.
    configured_strategies = config_defaults.pop("strategies") or list(DEFAULT_STRATEGIES)

    parser = build_parser(config_defaults, config_path)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not args.strategies:
        args.strategies = list(configured_strategies)
    config = PlannerConfig(**{f.name: getattr(args, f.name) for f in fields(PlannerConfig)})
    try:
        config.validate()
        cost_config = config.cost_config()
    except InvalidConfigurationError as e:
        parser.error(str(e))

    if args.trace and args.root is None:
        parser.error("--trace requires --root")

    try:
        if args.fixture:
            network = FIXTURES[args.fixture]()
        elif config.network_file:
            network = load_network(config.network_file)
        else:
            network = generate_pipe_network(config.network_size, seed=config.random_seed)
    except (OSError, ValueError, SegmentNotFoundError) as e:
        # ValueError covers malformed JSON and out-of-range segment values.
        logger.error("Failed to build network: %s", e)
        parser.error(f"invalid network: {e}")

    try:
        if args.root is not None:
            if args.trace:
                for root in args.root:
                    run_trace(network, root, config.max_length)
            elif len(args.root) > 1:
                run_root_comparison(network, args.root, config.max_length, cost_config)
            else:
                run_budget_analysis(network, args.root[0], args.budgets, cost_config)
            return 0

        print(format_profile(network))
        results: Dict[str, List[Cluster]] = {}
        for strategy in config.strategies:
            projects = plan_strategy(network, strategy, config, cost_config, progress=args.progress)
            results[strategy] = projects
            print(f"\n--- Strategy: {STRATEGY_LABELS.get(strategy, strategy)} ---")
            if projects:
                print(projects_frame(projects).to_string(index=False, float_format=lambda v: f"{v:.3f}"))
            else:
                print("No projects fit the budget.")
    except (SegmentNotFoundError, InvalidConfigurationError) as e:
        parser.error(str(e))

    print("\n=== Strategy Comparison ===")
    print(format_comparison(results))
    print("\n=== Recommendation ===")
    print(format_recommendation(results))

    if config.output:
        best = recommend_strategy(results)
        if best is not None:
            frame = projects_frame(results[best])
            frame.insert(0, "strategy", best)
            frame.to_csv(config.output, index=False)
            logger.info("Wrote %d projects to %s", len(frame), config.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
