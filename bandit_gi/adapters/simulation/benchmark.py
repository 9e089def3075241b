"""Offline benchmark of the bandit selectors.

Runs each selector against simulated operators with known true qualities,
outside the full search, to compare how quickly they find the best
operator. Each trial gets its own seeded generator and fresh selector
instances so trials never share state.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
import structlog

from bandit_gi.adapters.simulation.environment import (
    DEFAULT_QUALITY,
    TRUE_QUALITIES,
    success_probability,
)
from bandit_gi.adapters.strategies import (
    EpsilonGreedySelector,
    PolicyGradientSelector,
    ProbabilityMatchingSelector,
    UCBSelector,
    UniformSelector,
)
from bandit_gi.domain.operators import TRADITIONAL_OPERATORS, Operator
from bandit_gi.domain.ports.selector import OperatorSelector

logger = structlog.get_logger(__name__)

PARENT_FITNESS = 1000

SelectorFactory = Callable[[tuple[Operator, ...], np.random.Generator], OperatorSelector]

DEFAULT_SELECTORS: dict[str, SelectorFactory] = {
    "Uniform": lambda ops, rng: UniformSelector(ops, rng=rng),
    "EpsilonGreedy(0.1)": lambda ops, rng: EpsilonGreedySelector(ops, epsilon=0.1, rng=rng),
    "EpsilonGreedy(0.2)": lambda ops, rng: EpsilonGreedySelector(ops, epsilon=0.2, rng=rng),
    "UCB(sqrt2)": lambda ops, rng: UCBSelector(ops, c=math.sqrt(2), rng=rng),
    "PolicyGradient(0.1)": lambda ops, rng: PolicyGradientSelector(ops, alpha=0.1, rng=rng),
    "ProbabilityMatching(0.05)": lambda ops, rng: ProbabilityMatchingSelector(ops, p_min=0.05, rng=rng),
}


@dataclass
class SimulatedOutcome:
    parent_fitness: int
    child_fitness: int | None
    success: bool


class OperatorSimulator:
    """Draws outcomes centred on each operator's true quality."""

    def __init__(
        self,
        qualities: dict[str, float] | None = None,
        random_seed: int | np.random.SeedSequence | None = None,
    ):
        self.qualities = dict(TRUE_QUALITIES if qualities is None else qualities)
        self.rng = np.random.default_rng(random_seed)

    def quality(self, operator: Operator) -> float:
        return self.qualities.get(operator.name, DEFAULT_QUALITY)

    def simulate(self, operator: Operator) -> SimulatedOutcome:
        q = self.quality(operator)
        if self.rng.random() >= success_probability(q):
            return SimulatedOutcome(PARENT_FITNESS, None, False)
        noise = 0.8 + 0.4 * self.rng.random()
        child = int(PARENT_FITNESS / max(0.1, q * noise))
        return SimulatedOutcome(PARENT_FITNESS, child, True)


@dataclass
class TrialResult:
    """Result of running one selector for a number of steps."""
    selector_name: str
    num_steps: int
    rewards: list[float] = field(default_factory=list)
    selections: list[Operator] = field(default_factory=list)
    success_count: int = 0
    best_quality: float = 0.0

    @property
    def total_reward(self) -> float:
        return float(math.fsum(self.rewards))

    @property
    def average_reward(self) -> float:
        return self.total_reward / self.num_steps if self.num_steps else 0.0

    @property
    def success_rate(self) -> float:
        return self.success_count / self.num_steps if self.num_steps else 0.0

    @property
    def cumulative_regret(self) -> float:
        return self.num_steps * self.best_quality - self.total_reward

    def selection_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for op in self.selections:
            counts[op.name] = counts.get(op.name, 0) + 1
        return counts

    def moving_average(self, points: int = 10, window: int = 50) -> list[tuple[int, float]]:
        """Average reward over ``window`` steps at ``points`` evenly spaced offsets."""
        if not self.rewards:
            return []
        stride = max(1, len(self.rewards) // points)
        curve = []
        for start in range(0, len(self.rewards), stride)[:points]:
            chunk = self.rewards[start:start + window]
            curve.append((start, float(np.mean(chunk))))
        return curve


@dataclass(frozen=True)
class ComparisonRow:
    """Statistics of one selector configuration across trials."""
    name: str
    trials: int
    mean_reward: float
    std_reward: float
    mean_success_rate: float
    mean_regret: float


def run_trial(
    name: str,
    selector: OperatorSelector,
    simulator: OperatorSimulator,
    num_steps: int,
) -> TrialResult:
    """Drive ``selector`` for ``num_steps`` select/update cycles."""
    result = TrialResult(
        selector_name=name,
        num_steps=num_steps,
        best_quality=max(simulator.quality(op) for op in selector.operators),
    )
    for _ in range(num_steps):
        operator = selector.select()
        outcome = simulator.simulate(operator)
        reward = selector.update(
            operator, outcome.parent_fitness, outcome.child_fitness, outcome.success
        )
        result.selections.append(operator)
        result.rewards.append(reward)
        if outcome.success:
            result.success_count += 1
    return result


def compare_selectors(
    num_steps: int = 500,
    num_trials: int = 10,
    operators: tuple[Operator, ...] = TRADITIONAL_OPERATORS,
    selectors: dict[str, SelectorFactory] | None = None,
    qualities: dict[str, float] | None = None,
    base_seed: int = 12345,
) -> list[ComparisonRow]:
    """Compare selector configurations over independently seeded trials.

    Returns:
        One row per selector configuration, in the order given
    """
    selectors = selectors or DEFAULT_SELECTORS
    results: dict[str, list[TrialResult]] = {name: [] for name in selectors}

    for trial in range(num_trials):
        seeds = np.random.SeedSequence([base_seed, trial]).spawn(2 * len(selectors))
        for i, (name, factory) in enumerate(selectors.items()):
            selector = factory(operators, np.random.default_rng(seeds[2 * i]))
            simulator = OperatorSimulator(qualities, random_seed=seeds[2 * i + 1])
            results[name].append(run_trial(name, selector, simulator, num_steps))
        logger.debug("benchmark_trial_complete", trial=trial + 1, trials=num_trials)

    rows = []
    for name, trials in results.items():
        rewards = np.array([t.average_reward for t in trials])
        rows.append(
            ComparisonRow(
                name=name,
                trials=len(trials),
                mean_reward=float(rewards.mean()) if len(trials) else 0.0,
                std_reward=float(rewards.std()) if len(trials) else 0.0,
                mean_success_rate=float(np.mean([t.success_rate for t in trials])) if trials else 0.0,
                mean_regret=float(np.mean([t.cumulative_regret for t in trials])) if trials else 0.0,
            )
        )
        logger.info(
            "benchmark_result",
            selector=name,
            mean_reward=round(rows[-1].mean_reward, 4),
            std_reward=round(rows[-1].std_reward, 4),
            success_pct=round(100.0 * rows[-1].mean_success_rate, 1),
            regret=round(rows[-1].mean_regret, 1),
        )
    return rows
