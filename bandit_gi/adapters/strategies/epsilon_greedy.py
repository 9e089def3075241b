import numpy as np
import structlog

from bandit_gi.adapters.strategies.bandit_selector import BanditSelector
from bandit_gi.domain.operators import Operator

logger = structlog.get_logger(__name__)


class EpsilonGreedySelector(BanditSelector):
    """
    Epsilon-greedy operator selection.

    With probability ``epsilon`` an operator is drawn uniformly at random
    (explore); otherwise the operator with the highest average quality is
    chosen (exploit), ties going to the first operator in iteration order.
    """

    name = "epsilon_greedy"

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        epsilon: float = 0.2,
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        """
        Args:
            operators: Operators to choose between
            epsilon: Exploration rate in [0, 1] (default: 0.2)
            rng: Shared random generator (optional)
            random_seed: Seed for a private generator when ``rng`` is None

        Raises:
            ValueError: If epsilon is outside [0, 1] or operators is empty
        """
        super().__init__(operators, rng=rng, random_seed=random_seed)
        if not 0.0 <= epsilon <= 1.0:
            raise ValueError(f"Epsilon must be between 0 and 1, got: {epsilon}")
        self.epsilon = epsilon
        logger.info("selector_initialized", selector=self.name, epsilon=epsilon)

    def select(self) -> Operator:
        self.book.pre_select()

        if self.book.rng.random() < self.epsilon:
            selected = self.book.uniform_choice(self.operators)
            logger.debug("epsilon_greedy_explore", operator=selected.name)
        else:
            selected = self.book.best_operator()
            logger.debug(
                "epsilon_greedy_exploit",
                operator=selected.name,
                q=round(self.book.states[selected].average_quality, 4),
            )

        return self.book.post_select(selected)

    def update(self, operator, parent_fitness, child_fitness, success) -> float:
        return self.book.record_outcome(operator, parent_fitness, child_fitness, success)

    def reset(self) -> None:
        self.book.reset()
        logger.info("selector_reset", selector=self.name)

    def __repr__(self) -> str:
        return f"EpsilonGreedySelector(epsilon={self.epsilon}, operators={len(self.operators)})"
