"""Bandit operator-selection strategies."""

from .bandit_selector import BanditSelector
from .bandit_state import BanditBookkeeping, BanditState, compute_reward, incremental_mean
from .epsilon_greedy import EpsilonGreedySelector
from .policy_gradient import PolicyGradientSelector, softmax
from .probability_matching import ProbabilityMatchingSelector
from .selector_factory import create_selector
from .ucb import UCBSelector
from .uniform import UniformSelector

__all__ = [
    "BanditBookkeeping",
    "BanditSelector",
    "BanditState",
    "EpsilonGreedySelector",
    "PolicyGradientSelector",
    "ProbabilityMatchingSelector",
    "UCBSelector",
    "UniformSelector",
    "compute_reward",
    "create_selector",
    "incremental_mean",
    "softmax",
]
