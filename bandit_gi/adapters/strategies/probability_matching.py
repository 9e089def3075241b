import numpy as np
import structlog

from bandit_gi.adapters.strategies.bandit_selector import BanditSelector
from bandit_gi.domain.operators import Operator

logger = structlog.get_logger(__name__)


class ProbabilityMatchingSelector(BanditSelector):
    """
    Probability matching with a minimum selection probability.

    Selection probabilities are proportional to average quality while every
    operator keeps at least ``p_min``:

        p(a) = p_min + (1 - n * p_min) * Q(a) / sum_b Q(b)

    When no operator has positive quality yet the distribution is uniform.

    References:
        - Thierens (2005): "An Adaptive Pursuit Strategy for Allocating
          Operator Probabilities"
    """

    name = "probability_matching"

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        p_min: float = 0.05,
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        """
        Args:
            operators: Operators to choose between
            p_min: Minimum probability per operator; ``n * p_min`` must be < 1
            rng: Shared random generator (optional)
            random_seed: Seed for a private generator when ``rng`` is None

        Raises:
            ValueError: If p_min is not positive, too large, or operators is empty
        """
        super().__init__(operators, rng=rng, random_seed=random_seed)
        n = len(self.operators)
        if not p_min > 0:
            raise ValueError(f"pMin must be positive, got: {p_min}")
        if not n * p_min < 1.0:
            raise ValueError(f"pMin too large: {n} * {p_min} = {n * p_min} >= 1.0")
        self.p_min = p_min
        self._init_probabilities()
        logger.info("selector_initialized", selector=self.name, p_min=p_min)

    def _init_probabilities(self) -> None:
        n = len(self.operators)
        self._probabilities = np.full(n, 1.0 / n)
        self.probabilities_log: list[np.ndarray] = [self._probabilities.copy()]

    @property
    def probabilities(self) -> np.ndarray:
        return self._probabilities.copy()

    def probability_map(self) -> dict[Operator, float]:
        return {op: float(p) for op, p in zip(self.operators, self._probabilities)}

    def _update_probabilities(self) -> None:
        n = len(self.operators)
        qualities = self.book.qualities()
        total_q = float(qualities.sum())

        if total_q <= 0:
            probabilities = np.full(n, 1.0 / n)
        else:
            probabilities = self.p_min + (1.0 - n * self.p_min) * qualities / total_q

        # renormalize against floating-point drift
        self._probabilities = probabilities / probabilities.sum()

    def select(self) -> Operator:
        self.book.pre_select()
        selected = self.book.sample_categorical(self._probabilities)
        logger.debug(
            "probability_matching_selected",
            operator=selected.name,
            p=round(float(self._probabilities[self.book.index[selected]]), 4),
        )
        return self.book.post_select(selected)

    def update(self, operator, parent_fitness, child_fitness, success) -> float:
        reward = self.book.record_outcome(operator, parent_fitness, child_fitness, success)
        self._update_probabilities()
        self.probabilities_log.append(self._probabilities.copy())
        return reward

    def reset(self) -> None:
        self.book.reset()
        self._init_probabilities()
        logger.info("selector_reset", selector=self.name)

    def __repr__(self) -> str:
        return f"ProbabilityMatchingSelector(p_min={self.p_min}, operators={len(self.operators)})"
