"""Command-line entry point for bandit-driven search.

Subcommands:
    search     run an RL local search against the simulated program
    compare    benchmark every selector on simulated operators
    operators  list the operator catalogue
"""

import argparse
import sys

import numpy as np
import structlog

from bandit_gi.adapters.repositories.csv_exporter import CsvExporter
from bandit_gi.adapters.repositories.variant_store import YamlVariantStore
from bandit_gi.adapters.simulation.benchmark import compare_selectors
from bandit_gi.adapters.simulation.environment import SimulatedMutationEngine, SimulatedTestRunner
from bandit_gi.adapters.strategies import create_selector
from bandit_gi.domain.errors import BanditSearchError
from bandit_gi.domain.operators import describe_catalogue, operators_for_set
from bandit_gi.domain.ports.collaborators import (
    MetricsExporter,
    MutationEngine,
    TestRunner,
    VariantStore,
)
from bandit_gi.domain.services.search_loop import SearchLoop
from bandit_gi.infrastructure.config import SearchConfig, load_config
from bandit_gi.infrastructure.logging import LogContext, configure_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bandit-gi",
        description="RL-based operator selection for genetic improvement",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Run an RL local search")
    search.add_argument("--config", help="YAML configuration file")
    search.add_argument("-s", "--seed", type=int, help="Random seed (default: 123)")
    search.add_argument("-n", "--steps", type=int, help="Number of steps (default: 100)")
    search.add_argument(
        "--rl",
        dest="algorithm",
        help="uniform, epsilon_greedy, ucb, policy_gradient, probability_matching",
    )
    search.add_argument("--eps", dest="epsilon", type=float, help="Epsilon for epsilon-greedy")
    search.add_argument("--ucbc", dest="ucb_c", type=float, help="Exploration constant for UCB")
    search.add_argument("--alpha", type=float, help="Learning rate for policy gradient")
    search.add_argument("--pmin", dest="p_min", type=float, help="Minimum probability for probability matching")
    search.add_argument("--ops", dest="operator_set", help="Operator set: statement, matched, modify_node, traditional, llm, all")
    search.add_argument("-o", "--output-dir", help="Output directory (default: rl_results)")
    search.add_argument("--expid", dest="experiment_id", help="Experiment ID")
    search.add_argument("--base-cost", type=int, default=1_000_000, help="Simulated original cost (ns)")

    compare = sub.add_parser("compare", help="Benchmark selectors on simulated operators")
    compare.add_argument("--steps", type=int, default=500)
    compare.add_argument("--trials", type=int, default=10)
    compare.add_argument("--seed", type=int, default=12345)

    sub.add_parser("operators", help="List available operators")
    return parser


def apply_overrides(config: SearchConfig, args: argparse.Namespace) -> SearchConfig:
    """Copy command-line values that were given onto the configuration."""
    for attr in ("seed", "operator_set", "output_dir", "experiment_id"):
        value = getattr(args, attr, None)
        if value is not None:
            setattr(config, attr, value)
    if args.steps is not None:
        config.num_steps = args.steps
    for attr in ("algorithm", "epsilon", "ucb_c", "alpha", "p_min"):
        value = getattr(args, attr, None)
        if value is not None:
            setattr(config.selector, attr, value)
    config.validate()
    return config


def build_search_loop(
    config: SearchConfig,
    mutation_engine: MutationEngine,
    test_runner: TestRunner,
    variant_store: VariantStore | None = None,
    exporter: MetricsExporter | None = None,
) -> SearchLoop:
    """Wire a search loop from configuration.

    The selector and the loop share one generator seeded from ``config.seed``.

    Raises:
        ConfigurationError: Unknown algorithm or operator set
        ValueError: Invalid selector hyperparameter
    """
    settings = config.to_search_settings()
    rng = np.random.default_rng(config.seed)
    sel = config.selector
    selector = create_selector(
        sel.algorithm,
        operators_for_set(config.operator_set),
        epsilon=sel.epsilon,
        ucb_c=sel.ucb_c,
        alpha=sel.alpha,
        p_min=sel.p_min,
        rng=rng,
    )
    logger.info(
        "search_wired",
        algorithm=sel.algorithm,
        operator_set=config.operator_set,
        output_dir=config.output_dir,
    )
    return SearchLoop(
        settings,
        selector,
        mutation_engine,
        test_runner,
        exporter if exporter is not None else CsvExporter(config.output_dir),
        variant_store=variant_store,
        rng=rng,
    )


def run_search(args: argparse.Namespace) -> int:
    config = apply_overrides(load_config(args.config), args)
    if args.log_level:
        config.logging.level = args.log_level
    configure_logging(config.logging.level, json_output=args.json_logs or config.logging.json_output)

    loop = build_search_loop(
        config,
        mutation_engine=SimulatedMutationEngine(),
        test_runner=SimulatedTestRunner(base_cost=args.base_cost, random_seed=config.seed),
        variant_store=YamlVariantStore(config.output_dir),
    )
    with LogContext(experiment_id=loop.experiment_id, selector=config.selector.algorithm):
        result = loop.run()

    print(f"Original fitness: {result.original_fitness}")
    print(f"Best fitness:     {result.best_fitness} ({result.improvement_pct:.1f}% improvement)")
    print(f"Best patch:       {result.best_patch}")
    return 0


def run_compare(args: argparse.Namespace) -> int:
    configure_logging(args.log_level or "INFO", json_output=args.json_logs)
    rows = compare_selectors(num_steps=args.steps, num_trials=args.trials, base_seed=args.seed)

    print(f"\n{'Selector':<25} {'Avg Reward':>12} {'Std Dev':>12} {'Success%':>12} {'Regret':>12}")
    print("-" * 75)
    for row in rows:
        print(
            f"{row.name:<25} {row.mean_reward:>12.4f} {row.std_reward:>12.4f} "
            f"{row.mean_success_rate * 100:>11.1f}% {row.mean_regret:>12.1f}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "operators":
        print("\n".join(describe_catalogue()))
        return 0

    try:
        if args.command == "search":
            return run_search(args)
        return run_compare(args)
    except BanditSearchError as exc:
        logger.error("search_aborted", **exc.to_dict())
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except ValueError as exc:
        logger.error("invalid_argument", error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
