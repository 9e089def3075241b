import numpy as np
import structlog

from bandit_gi.adapters.strategies.bandit_selector import BanditSelector
from bandit_gi.domain.operators import Operator

logger = structlog.get_logger(__name__)


class UniformSelector(BanditSelector):
    """Random baseline: every operator is equally likely at every step.

    Statistics are still accumulated so the baseline can be compared with
    the learning strategies.
    """

    name = "uniform"

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        super().__init__(operators, rng=rng, random_seed=random_seed)
        logger.info("selector_initialized", selector=self.name, operators=len(self.operators))

    def select(self) -> Operator:
        self.book.pre_select()
        return self.book.post_select(self.book.uniform_choice(self.operators))

    def update(self, operator, parent_fitness, child_fitness, success) -> float:
        return self.book.record_outcome(operator, parent_fitness, child_fitness, success)

    def reset(self) -> None:
        self.book.reset()
        logger.info("selector_reset", selector=self.name)
