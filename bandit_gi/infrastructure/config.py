"""Configuration for bandit-driven search runs.

Values come from dataclass defaults, optionally a YAML file, then
environment variables (``BANDIT_GI_*``, a ``.env`` file is honoured), and
finally command-line overrides applied by the caller.
"""

import math
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from bandit_gi.domain.algorithms import HYPERPARAMETER_KEYS, canonical_algorithm
from bandit_gi.domain.errors import ConfigurationError, ErrorCode
from bandit_gi.domain.operators import includes_learned, operators_for_set
from bandit_gi.domain.services.search_loop import SearchSettings

ENV_PREFIX = "BANDIT_GI_"


@dataclass
class SelectorConfig:
    """Bandit algorithm and its hyperparameters."""
    algorithm: str = "epsilon_greedy"
    epsilon: float = 0.2
    ucb_c: float = math.sqrt(2)
    alpha: float = 0.1
    p_min: float = 0.05

    @property
    def canonical_algorithm(self) -> str:
        return canonical_algorithm(self.algorithm)

    def hyperparameter(self) -> tuple[str, float] | None:
        """The (key, value) pair the chosen algorithm uses, if any."""
        key = HYPERPARAMETER_KEYS[self.canonical_algorithm]
        if key is None:
            return None
        return key, getattr(self, key)


@dataclass
class LLMConfig:
    """Settings forwarded to LLM-driven mutation operators."""
    model_type: str = "OpenAI"
    model_name: str = "gpt-3.5-turbo"
    prompt_type: str = "MEDIUM"

    @property
    def model_label(self) -> str:
        return self.model_name if self.model_type == "OpenAI" else self.model_type


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json_output: bool = False


@dataclass
class SearchConfig:
    """Complete configuration of one search run."""
    seed: int = 123
    num_steps: int = 100
    warmup_reps: int = 10
    operator_set: str = "all"
    output_dir: str = "rl_results"
    experiment_id: str | None = None
    selector: SelectorConfig = field(default_factory=SelectorConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Check values that would otherwise fail deep inside a run.

        Raises:
            ConfigurationError: On unknown names or out-of-range counts
        """
        canonical_algorithm(self.selector.algorithm)
        operators_for_set(self.operator_set)
        if self.num_steps < 0:
            raise ConfigurationError(
                f"num_steps must be non-negative, got {self.num_steps}",
                code=ErrorCode.CONFIG_INVALID_VALUE,
            )
        if self.warmup_reps <= 0:
            raise ConfigurationError(
                f"warmup_reps must be positive, got {self.warmup_reps}",
                code=ErrorCode.CONFIG_INVALID_VALUE,
            )

    def resolved_experiment_id(self) -> str:
        if self.experiment_id:
            return self.experiment_id
        return f"{self.selector.algorithm}_{self.operator_set}_{self.seed}"

    def to_config_entries(self) -> dict[str, str]:
        """Ordered key/value pairs recorded with the experiment results."""
        operators = operators_for_set(self.operator_set)
        entries: dict[str, str] = {
            "seed": str(self.seed),
            "num_steps": str(self.num_steps),
            "rl_algorithm": self.selector.algorithm,
            "operator_set": self.operator_set,
            "num_operators": str(len(operators)),
        }
        hyperparameter = self.selector.hyperparameter()
        if hyperparameter is not None:
            key, value = hyperparameter
            entries[key] = str(value)
        if includes_learned(operators):
            entries["llm_model"] = self.llm.model_label
            entries["llm_prompt_type"] = self.llm.prompt_type
        return entries

    def to_search_settings(self) -> SearchSettings:
        """Validate and reduce the configuration to what the search loop needs."""
        self.validate()
        return SearchSettings(
            experiment_id=self.resolved_experiment_id(),
            num_steps=self.num_steps,
            warmup_reps=self.warmup_reps,
            seed=self.seed,
            config_entries=self.to_config_entries(),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchConfig":
        """Build a config from a (possibly partial) nested dictionary."""
        data = dict(data or {})
        nested = {
            "selector": SelectorConfig,
            "llm": LLMConfig,
            "logging": LoggingConfig,
        }
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {sorted(unknown)}",
                code=ErrorCode.CONFIG_INVALID_VALUE,
            )
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in nested:
                kwargs[key] = nested[key](**(value or {}))
            else:
                kwargs[key] = value
        return cls(**kwargs)


def _apply_env_overrides(config: SearchConfig) -> SearchConfig:
    env = os.environ
    if f"{ENV_PREFIX}SEED" in env:
        config.seed = int(env[f"{ENV_PREFIX}SEED"])
    if f"{ENV_PREFIX}STEPS" in env:
        config.num_steps = int(env[f"{ENV_PREFIX}STEPS"])
    if f"{ENV_PREFIX}ALGORITHM" in env:
        config.selector.algorithm = env[f"{ENV_PREFIX}ALGORITHM"]
    if f"{ENV_PREFIX}OPERATOR_SET" in env:
        config.operator_set = env[f"{ENV_PREFIX}OPERATOR_SET"]
    if f"{ENV_PREFIX}OUTPUT_DIR" in env:
        config.output_dir = env[f"{ENV_PREFIX}OUTPUT_DIR"]
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        config.logging.level = env[f"{ENV_PREFIX}LOG_LEVEL"]
    return config


def load_config(
    path: str | Path | None = None,
    use_env: bool = True,
    env_file: str | Path | None = None,
) -> SearchConfig:
    """Load configuration from an optional YAML file and the environment.

    Args:
        path: YAML file with a (partial) ``SearchConfig`` mapping
        use_env: Apply ``BANDIT_GI_*`` environment overrides
        env_file: Explicit ``.env`` file (default: search upwards from cwd)

    Returns:
        Validated SearchConfig
    """
    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                code=ErrorCode.CONFIG_INVALID_VALUE,
            )
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    config = SearchConfig.from_dict(data)
    if use_env:
        load_dotenv(env_file)
        _apply_env_overrides(config)
    config.validate()
    return config
