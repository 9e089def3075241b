"""Read-only accessors shared by all bandit strategies.

Strategies keep their own ``select``/``update``/``reset`` logic and delegate
the common bookkeeping to the composed ``BanditBookkeeping`` in ``self.book``.
"""

import numpy as np

from bandit_gi.adapters.strategies.bandit_state import BanditBookkeeping, SelectionHistory
from bandit_gi.domain.operators import Operator
from bandit_gi.domain.ports.selector import OperatorSelector, OperatorStats


class BanditSelector(OperatorSelector):
    """Operator selector backed by ``BanditBookkeeping``."""

    name = "bandit"

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        self.book = BanditBookkeeping(operators, rng=rng, random_seed=random_seed)

    @property
    def operators(self) -> tuple[Operator, ...]:
        return self.book.operators

    @property
    def previous_operator(self) -> Operator | None:
        return self.book.previous_operator

    @property
    def rng(self) -> np.random.Generator:
        return self.book.rng

    @property
    def history(self) -> SelectionHistory:
        return self.book.history

    @property
    def total_selections(self) -> int:
        return self.book.total_selections

    @property
    def cumulative_reward(self) -> float:
        return self.book.cumulative_reward

    @property
    def average_reward(self) -> float:
        return self.book.average_reward

    def operator_statistics(self) -> dict[Operator, OperatorStats]:
        return self.book.statistics()

    def average_qualities(self) -> dict[Operator, float]:
        return self.book.quality_snapshot()

    def action_counts(self) -> dict[Operator, int]:
        return self.book.count_snapshot()

    def best_operator(self) -> Operator:
        return self.book.best_operator()

    def reward_log(self) -> tuple[float, ...]:
        return tuple(self.book.history.rewards)

    def quality_log(self) -> tuple[dict[Operator, float], ...]:
        return tuple(dict(q) for q in self.book.history.qualities)

    def action_count_log(self) -> tuple[dict[Operator, int], ...]:
        return tuple(dict(c) for c in self.book.history.action_counts)

    def selection_log(self) -> tuple[Operator, ...]:
        return tuple(self.book.history.selections)

    def success_log(self) -> tuple[bool, ...]:
        return tuple(self.book.history.successes)

    def log_operator_summary(self) -> list[str]:
        return self.book.log_operator_summary()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(operators={len(self.operators)})"
