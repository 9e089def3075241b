"""Build a selector from an algorithm name and its hyperparameter."""

import math

import numpy as np

from bandit_gi.adapters.strategies.bandit_selector import BanditSelector
from bandit_gi.adapters.strategies.epsilon_greedy import EpsilonGreedySelector
from bandit_gi.adapters.strategies.policy_gradient import PolicyGradientSelector
from bandit_gi.adapters.strategies.probability_matching import ProbabilityMatchingSelector
from bandit_gi.adapters.strategies.ucb import UCBSelector
from bandit_gi.adapters.strategies.uniform import UniformSelector
from bandit_gi.domain.algorithms import canonical_algorithm
from bandit_gi.domain.operators import Operator


def create_selector(
    algorithm: str,
    operators: list[Operator] | tuple[Operator, ...],
    *,
    epsilon: float = 0.2,
    ucb_c: float = math.sqrt(2),
    alpha: float = 0.1,
    p_min: float = 0.05,
    rng: np.random.Generator | None = None,
    random_seed: int | None = None,
) -> BanditSelector:
    """Instantiate the selector named by ``algorithm``.

    Only the hyperparameter relevant to the chosen algorithm is used.

    Raises:
        ConfigurationError: Unknown algorithm
        ValueError: Invalid hyperparameter or empty operator set
    """
    canonical = canonical_algorithm(algorithm)
    common = {"rng": rng, "random_seed": random_seed}

    if canonical == "uniform":
        return UniformSelector(operators, **common)
    if canonical == "epsilon_greedy":
        return EpsilonGreedySelector(operators, epsilon=epsilon, **common)
    if canonical == "ucb":
        return UCBSelector(operators, c=ucb_c, **common)
    if canonical == "policy_gradient":
        return PolicyGradientSelector(operators, alpha=alpha, **common)
    return ProbabilityMatchingSelector(operators, p_min=p_min, **common)
