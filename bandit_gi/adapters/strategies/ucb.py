import math

import numpy as np
import structlog

from bandit_gi.adapters.strategies.bandit_selector import BanditSelector
from bandit_gi.domain.operators import Operator

logger = structlog.get_logger(__name__)


class UCBSelector(BanditSelector):
    """
    UCB1 operator selection.

    Every operator is tried once (in random order) before any scores are
    compared. After that the selector picks

        argmax_a  Q(a) + c * sqrt(ln(t) / n(a))

    where ``t`` is the total number of selections so far and ``n(a)`` the
    selection count of ``a``.

    References:
        - Auer, Cesa-Bianchi & Fischer (2002): "Finite-time Analysis of the
          Multiarmed Bandit Problem"
    """

    name = "ucb"

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        c: float = math.sqrt(2),
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        """
        Args:
            operators: Operators to choose between
            c: Exploration constant, non-negative (default: sqrt(2))
            rng: Shared random generator (optional)
            random_seed: Seed for a private generator when ``rng`` is None

        Raises:
            ValueError: If c is negative or operators is empty
        """
        super().__init__(operators, rng=rng, random_seed=random_seed)
        if not c >= 0:
            raise ValueError(f"Exploration constant c must be non-negative, got: {c}")
        self.c = c
        self._unselected: list[Operator] = list(self.operators)
        logger.info("selector_initialized", selector=self.name, c=c)

    @property
    def is_initialized(self) -> bool:
        """True once every operator has been selected at least once."""
        return not self._unselected

    def compute_ucb(self, operator: Operator, total_selections: int) -> float:
        state = self.book.state(operator)
        if state.selection_count == 0:
            return math.inf
        bonus = self.c * math.sqrt(math.log(total_selections) / state.selection_count)
        return state.average_quality + bonus

    def ucb_values(self) -> dict[Operator, float]:
        total = self.total_selections
        return {op: self.compute_ucb(op, total) for op in self.operators}

    def select(self) -> Operator:
        self.book.pre_select()

        if self._unselected:
            selected = self.book.uniform_choice(self._unselected)
            self._unselected.remove(selected)
            logger.debug(
                "ucb_initialization",
                operator=selected.name,
                remaining=len(self._unselected),
            )
        else:
            total = self.total_selections
            scores = [self.compute_ucb(op, total) for op in self.operators]
            selected = self.operators[int(np.argmax(scores))]
            logger.debug("ucb_selected", operator=selected.name, ucb=round(max(scores), 4))

        return self.book.post_select(selected)

    def update(self, operator, parent_fitness, child_fitness, success) -> float:
        return self.book.record_outcome(operator, parent_fitness, child_fitness, success)

    def reset(self) -> None:
        self.book.reset()
        self._unselected = list(self.operators)
        logger.info("selector_reset", selector=self.name)

    def __repr__(self) -> str:
        return (
            f"UCBSelector(c={self.c}, operators={len(self.operators)}, "
            f"initialized={self.is_initialized})"
        )
