"""Names of the selection algorithms and the hyperparameter each one takes."""

from bandit_gi.domain.errors import ConfigurationError, ErrorCode

ALGORITHM_ALIASES: dict[str, str] = {
    "uniform": "uniform",
    "random": "uniform",
    "epsilon_greedy": "epsilon_greedy",
    "epsilon-greedy": "epsilon_greedy",
    "egreedy": "epsilon_greedy",
    "ucb": "ucb",
    "ucb1": "ucb",
    "policy_gradient": "policy_gradient",
    "policy-gradient": "policy_gradient",
    "pg": "policy_gradient",
    "reinforce": "policy_gradient",
    "probability_matching": "probability_matching",
    "probability-matching": "probability_matching",
    "pm": "probability_matching",
}

# Config key of the single hyperparameter each algorithm takes
HYPERPARAMETER_KEYS: dict[str, str | None] = {
    "uniform": None,
    "epsilon_greedy": "epsilon",
    "ucb": "ucb_c",
    "policy_gradient": "alpha",
    "probability_matching": "p_min",
}


def canonical_algorithm(name: str) -> str:
    """Normalize an algorithm name or alias.

    Raises:
        ConfigurationError: If the name is not a known algorithm
    """
    try:
        return ALGORITHM_ALIASES[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown RL algorithm: {name}",
            code=ErrorCode.CONFIG_UNKNOWN_ALGORITHM,
            details={"known_algorithms": sorted(set(ALGORITHM_ALIASES.values()))},
        ) from None
