"""Shared bookkeeping for the bandit operator selectors.

Every strategy composes a ``BanditBookkeeping`` instance instead of
inheriting from a common base class. It owns the per-operator counters, the
reward function, the select/update call-order check, and the append-only
history used for post-hoc analysis.

Reward is the ratio of parent to child execution cost:
    reward > 1   child is faster (improvement)
    reward == 1  no change
    reward < 1   child is slower
    reward == 0  mutation failed (invalid patch, compile error, test failure)
"""

import math
from dataclasses import dataclass, field

import numpy as np
import structlog

from bandit_gi.domain.operators import Operator
from bandit_gi.domain.ports.selector import OperatorStats

logger = structlog.get_logger(__name__)


@dataclass
class BanditState:
    """Per-operator counters and running estimates."""
    selection_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    average_quality: float = 0.0
    total_reward: float = 0.0

    def to_stats(self) -> OperatorStats:
        return OperatorStats(
            selection_count=self.selection_count,
            average_quality=self.average_quality,
            success_count=self.success_count,
            failure_count=self.failure_count,
            total_reward=self.total_reward,
        )


def compute_reward(
    parent_fitness: int | float | None,
    child_fitness: int | float | None,
    success: bool,
) -> float:
    """Map a mutation outcome to a scalar reward.

    Args:
        parent_fitness: Execution cost before the mutation
        child_fitness: Execution cost after the mutation, None if it failed
        success: Whether the mutation applied, compiled and passed tests

    Returns:
        ``parent_fitness / child_fitness`` for a successful mutation, else 0.0
    """
    if not success or child_fitness is None or child_fitness <= 0:
        return 0.0
    if parent_fitness is None or parent_fitness <= 0:
        logger.warning("invalid_parent_fitness", parent_fitness=parent_fitness)
        return 0.0
    return float(parent_fitness) / float(child_fitness)


def incremental_mean(old_mean: float, value: float, count: int) -> float:
    """Sample-average update ``Q + (r - Q) / n`` with ``n`` the new count."""
    return old_mean + (value - old_mean) / count


@dataclass
class CallOrderTracker:
    """Counts select/update calls and warns when they fall out of step.

    Mismatches never raise; they only indicate a caller bug.
    """
    select_calls: int = 0
    update_calls: int = 0

    def on_select(self) -> None:
        if self.select_calls > 0 and self.update_calls < self.select_calls:
            logger.warning(
                "select_without_update",
                select_calls=self.select_calls,
                update_calls=self.update_calls,
            )
        self.select_calls += 1

    def on_update(self) -> None:
        if self.update_calls >= self.select_calls:
            logger.warning(
                "update_without_select",
                select_calls=self.select_calls,
                update_calls=self.update_calls,
            )
        self.update_calls += 1

    def reset(self) -> None:
        self.select_calls = 0
        self.update_calls = 0


@dataclass
class SelectionHistory:
    """Append-only time series recorded for analysis only."""
    rewards: list[float] = field(default_factory=list)
    qualities: list[dict[Operator, float]] = field(default_factory=list)
    action_counts: list[dict[Operator, int]] = field(default_factory=list)
    selections: list[Operator] = field(default_factory=list)
    successes: list[bool] = field(default_factory=list)

    def clear(self) -> None:
        self.rewards.clear()
        self.qualities.clear()
        self.action_counts.clear()
        self.selections.clear()
        self.successes.clear()


class BanditBookkeeping:
    """State shared by all selection strategies.

    Holds one ``BanditState`` per operator plus the random generator used by
    the owning strategy.
    """

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        """
        Args:
            operators: Operators (arms) to manage, in iteration order
            rng: Random generator to share with the caller (optional)
            random_seed: Seed for a private generator when ``rng`` is None

        Raises:
            ValueError: If the operator list is None or empty
        """
        if not operators:
            raise ValueError("Operators list cannot be null or empty")
        if len(set(operators)) != len(operators):
            raise ValueError("Operators list contains duplicates")

        self.operators: tuple[Operator, ...] = tuple(operators)
        self.index = {op: i for i, op in enumerate(self.operators)}
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)
        self.states: dict[Operator, BanditState] = {}
        self.tracker = CallOrderTracker()
        self.history = SelectionHistory()
        self.previous_operator: Operator | None = None
        self._init_states()

    def _init_states(self) -> None:
        self.states = {op: BanditState() for op in self.operators}
        self.history.qualities.append(self.quality_snapshot())
        self.history.action_counts.append(self.count_snapshot())

    def state(self, operator: Operator) -> BanditState:
        try:
            return self.states[operator]
        except KeyError:
            raise ValueError(f"Unknown operator: {operator}") from None

    def quality_snapshot(self) -> dict[Operator, float]:
        return {op: s.average_quality for op, s in self.states.items()}

    def count_snapshot(self) -> dict[Operator, int]:
        return {op: s.selection_count for op, s in self.states.items()}

    def qualities(self) -> np.ndarray:
        return np.array([self.states[op].average_quality for op in self.operators])

    @property
    def total_selections(self) -> int:
        return sum(s.selection_count for s in self.states.values())

    def pre_select(self) -> None:
        self.tracker.on_select()

    def post_select(self, selected: Operator) -> Operator:
        self.previous_operator = selected
        self.history.selections.append(selected)
        logger.debug(
            "operator_selected",
            operator=selected.name,
            is_learned=selected.is_learned,
        )
        return selected

    def uniform_choice(self, candidates: list[Operator] | tuple[Operator, ...]) -> Operator:
        return candidates[int(self.rng.integers(len(candidates)))]

    def sample_categorical(self, probabilities: np.ndarray) -> Operator:
        """Draw one operator by cumulative-probability inversion.

        Falls back to the last operator when rounding leaves the draw
        unassigned.
        """
        r = self.rng.random()
        cumulative = 0.0
        for op, p in zip(self.operators, probabilities):
            cumulative += p
            if r <= cumulative:
                return op
        return self.operators[-1]

    def record_outcome(
        self,
        operator: Operator,
        parent_fitness: int | float | None,
        child_fitness: int | float | None,
        success: bool,
    ) -> float:
        """Apply the canonical sample-average update and return the reward."""
        state = self.state(operator)
        self.tracker.on_update()

        reward = compute_reward(parent_fitness, child_fitness, success)

        state.selection_count += 1
        state.average_quality = incremental_mean(
            state.average_quality, reward, state.selection_count
        )
        if success:
            state.success_count += 1
        else:
            state.failure_count += 1
        state.total_reward += reward

        self.history.rewards.append(reward)
        self.history.qualities.append(self.quality_snapshot())
        self.history.action_counts.append(self.count_snapshot())
        self.history.successes.append(success)

        logger.debug(
            "quality_updated",
            operator=operator.name,
            reward=round(reward, 4),
            average_quality=round(state.average_quality, 4),
            selection_count=state.selection_count,
            success=success,
        )
        return reward

    def reset(self) -> None:
        self.tracker.reset()
        self.history.clear()
        self.previous_operator = None
        self._init_states()

    def statistics(self) -> dict[Operator, OperatorStats]:
        return {op: self.states[op].to_stats() for op in self.operators}

    def best_operator(self) -> Operator:
        return self.operators[int(np.argmax(self.qualities()))]

    @property
    def cumulative_reward(self) -> float:
        return float(math.fsum(self.history.rewards))

    @property
    def average_reward(self) -> float:
        if not self.history.rewards:
            return 0.0
        return self.cumulative_reward / len(self.history.rewards)

    def log_operator_summary(self, title: str = "operator_summary") -> list[str]:
        """Log a fixed-width table of operator statistics and return its lines."""
        lines = [
            f"{'Operator':<35} {'Count':>8} {'AvgQ':>8} {'SuccRate':>10} {'LLM':>8}",
            "-" * 75,
        ]
        for op in self.operators:
            state = self.states[op]
            rate = state.success_count / state.selection_count if state.selection_count else 0.0
            lines.append(
                f"{op.name:<35} {state.selection_count:>8d} {state.average_quality:>8.4f} "
                f"{rate * 100:>9.2f}% {'Yes' if op.is_learned else 'No':>8}"
            )
        for line in lines:
            logger.info(title, line=line)
        return lines
