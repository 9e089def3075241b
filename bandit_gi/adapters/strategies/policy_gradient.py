import numpy as np
import structlog

from bandit_gi.adapters.strategies.bandit_selector import BanditSelector
from bandit_gi.domain.operators import Operator

logger = structlog.get_logger(__name__)


def softmax(preferences: np.ndarray) -> np.ndarray:
    """Numerically stable softmax (max-subtracted)."""
    shifted = np.exp(preferences - np.max(preferences))
    return shifted / shifted.sum()


class PolicyGradientSelector(BanditSelector):
    """
    Gradient bandit (softmax policy, REINFORCE update with a reward baseline).

    Keeps a preference ``H(a)`` per operator and samples from
    ``pi = softmax(H)``. After each outcome with reward ``R``:

        H(a) += alpha * (R - R_bar) * (1 - pi(a))   for the evaluated operator
        H(b) -= alpha * (R - R_bar) * pi(b)         for every other operator

    ``R_bar`` is the mean of all rewards received before the current one; the
    current reward is folded into the baseline after the preference step.
    The sample-average Q values are still maintained for reporting only.

    References:
        - Sutton & Barto (2018), Section 2.8: "Gradient Bandit Algorithms"
    """

    name = "policy_gradient"

    def __init__(
        self,
        operators: list[Operator] | tuple[Operator, ...] | None,
        alpha: float = 0.1,
        rng: np.random.Generator | None = None,
        random_seed: int | None = None,
    ):
        """
        Args:
            operators: Operators to choose between
            alpha: Learning rate, strictly positive (default: 0.1)
            rng: Shared random generator (optional)
            random_seed: Seed for a private generator when ``rng`` is None

        Raises:
            ValueError: If alpha is not positive or operators is empty
        """
        super().__init__(operators, rng=rng, random_seed=random_seed)
        if not alpha > 0:
            raise ValueError(f"Learning rate alpha must be positive, got: {alpha}")
        self.alpha = alpha
        self._init_policy()
        logger.info("selector_initialized", selector=self.name, alpha=alpha)

    def _init_policy(self) -> None:
        n = len(self.operators)
        self._preferences = np.zeros(n)
        self._policy = softmax(self._preferences)
        self._reward_sum = 0.0
        self._reward_count = 0
        self._baseline = 0.0
        self.preferences_log: list[np.ndarray] = [self._preferences.copy()]
        self.policy_log: list[np.ndarray] = [self._policy.copy()]
        self.baseline_log: list[float] = [self._baseline]

    @property
    def policy(self) -> np.ndarray:
        return self._policy.copy()

    @property
    def preferences(self) -> np.ndarray:
        return self._preferences.copy()

    @property
    def baseline_reward(self) -> float:
        return self._baseline

    def policy_map(self) -> dict[Operator, float]:
        return {op: float(p) for op, p in zip(self.operators, self._policy)}

    def preferences_map(self) -> dict[Operator, float]:
        return {op: float(h) for op, h in zip(self.operators, self._preferences)}

    def select(self) -> Operator:
        self.book.pre_select()
        selected = self.book.sample_categorical(self._policy)
        logger.debug(
            "policy_gradient_selected",
            operator=selected.name,
            pi=round(float(self._policy[self.book.index[selected]]), 4),
        )
        return self.book.post_select(selected)

    def update(self, operator, parent_fitness, child_fitness, success) -> float:
        reward = self.book.record_outcome(operator, parent_fitness, child_fitness, success)

        advantage = reward - self._baseline
        one_hot = np.zeros(len(self.operators))
        one_hot[self.book.index[operator]] = 1.0
        self._preferences += self.alpha * advantage * (one_hot - self._policy)
        self._policy = softmax(self._preferences)

        self._reward_sum += reward
        self._reward_count += 1
        self._baseline = self._reward_sum / self._reward_count

        self.preferences_log.append(self._preferences.copy())
        self.policy_log.append(self._policy.copy())
        self.baseline_log.append(self._baseline)

        logger.debug(
            "policy_gradient_updated",
            operator=operator.name,
            advantage=round(advantage, 4),
            baseline=round(self._baseline, 4),
        )
        return reward

    def reset(self) -> None:
        self.book.reset()
        self._init_policy()
        logger.info("selector_reset", selector=self.name)

    def __repr__(self) -> str:
        return (
            f"PolicyGradientSelector(alpha={self.alpha}, operators={len(self.operators)}, "
            f"baseline={self._baseline:.4f})"
        )
