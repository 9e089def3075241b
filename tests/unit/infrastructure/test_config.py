"""
Tests for configuration loading and validation.
"""

import math
import os

import pytest
import yaml

from bandit_gi.domain.errors import ConfigurationError, ErrorCode
from bandit_gi.infrastructure.config import SearchConfig, SelectorConfig, load_config


ENV_NAMES = [
    f"BANDIT_GI_{name}"
    for name in ("SEED", "STEPS", "ALGORITHM", "OPERATOR_SET", "OUTPUT_DIR", "LOG_LEVEL")
]


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without overrides; values loaded from .env files are dropped afterwards."""
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
    for name in ENV_NAMES:
        os.environ.pop(name, None)


class TestSearchConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        """Test the documented default values."""
        config = SearchConfig()

        assert config.seed == 123
        assert config.num_steps == 100
        assert config.warmup_reps == 10
        assert config.operator_set == "all"
        assert config.output_dir == "rl_results"
        assert config.selector.algorithm == "epsilon_greedy"
        assert config.selector.epsilon == 0.2
        assert config.selector.ucb_c == pytest.approx(math.sqrt(2))

    def test_resolved_experiment_id(self):
        """Test the generated id and its explicit override."""
        config = SearchConfig(seed=7, operator_set="llm")
        config.selector.algorithm = "ucb"

        assert config.resolved_experiment_id() == "ucb_llm_7"
        config.experiment_id = "custom"
        assert config.resolved_experiment_id() == "custom"

    def test_validate_rejects_unknown_algorithm(self):
        """Test an unknown algorithm fails validation with its error code."""
        config = SearchConfig(selector=SelectorConfig(algorithm="thompson"))
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()
        assert exc_info.value.code is ErrorCode.CONFIG_UNKNOWN_ALGORITHM

    def test_validate_rejects_unknown_operator_set(self):
        """Test an unknown operator set fails validation."""
        with pytest.raises(ConfigurationError, match="operator set"):
            SearchConfig(operator_set="everything").validate()

    def test_validate_rejects_negative_steps(self):
        """Test a negative step budget fails validation."""
        with pytest.raises(ConfigurationError) as exc_info:
            SearchConfig(num_steps=-1).validate()
        assert exc_info.value.code is ErrorCode.CONFIG_INVALID_VALUE


class TestConfigEntries:
    """Test the key/value pairs recorded with results."""

    def test_entries_for_llm_set(self):
        """Test an LLM-bearing set records model details and the hyperparameter."""
        config = SearchConfig(seed=5, num_steps=20, operator_set="all")
        config.selector.algorithm = "ucb"
        config.selector.ucb_c = 1.0

        assert config.to_config_entries() == {
            "seed": "5",
            "num_steps": "20",
            "rl_algorithm": "ucb",
            "operator_set": "all",
            "num_operators": "13",
            "ucb_c": "1.0",
            "llm_model": "gpt-3.5-turbo",
            "llm_prompt_type": "MEDIUM",
        }

    def test_entries_without_llm_or_hyperparameter(self):
        """Test uniform selection over traditional operators records only the basics."""
        config = SearchConfig(operator_set="traditional")
        config.selector.algorithm = "uniform"
        entries = config.to_config_entries()

        assert "llm_model" not in entries
        assert set(entries) == {"seed", "num_steps", "rl_algorithm", "operator_set", "num_operators"}

    def test_non_openai_model_label(self):
        """Test a non-OpenAI backend is labelled by its type."""
        config = SearchConfig(operator_set="llm")
        config.llm.model_type = "Ollama"
        assert config.to_config_entries()["llm_model"] == "Ollama"


class TestSearchSettings:
    """Test reduction of the config to search loop settings."""

    def test_settings_carry_run_parameters(self):
        """Test the step budget, seed, id and config entries are carried over."""
        config = SearchConfig(seed=8, num_steps=30, warmup_reps=4, operator_set="llm")
        config.selector.algorithm = "pg"

        settings = config.to_search_settings()

        assert settings.experiment_id == "pg_llm_8"
        assert settings.num_steps == 30
        assert settings.warmup_reps == 4
        assert settings.seed == 8
        assert settings.config_entries == config.to_config_entries()
        assert settings.config_entries["alpha"] == "0.1"

    def test_invalid_config_rejected(self):
        """Test settings are only produced from a valid config."""
        with pytest.raises(ConfigurationError):
            SearchConfig(operator_set="everything").to_search_settings()


class TestFromDict:
    """Test building a config from nested mappings."""

    def test_nested_sections(self):
        """Test nested sections fill their dataclasses and keep other defaults."""
        config = SearchConfig.from_dict(
            {"seed": 9, "selector": {"algorithm": "pm", "p_min": 0.1}, "logging": {"level": "DEBUG"}}
        )

        assert config.seed == 9
        assert config.selector.algorithm == "pm"
        assert config.selector.p_min == 0.1
        assert config.logging.level == "DEBUG"
        assert config.llm.model_name == "gpt-3.5-turbo"

    def test_unknown_key_rejected(self):
        """Test unknown top-level keys are refused."""
        with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
            SearchConfig.from_dict({"steps": 10})

    def test_round_trip_through_dict(self):
        """Test a config survives conversion to a dict and back."""
        config = SearchConfig(seed=3)
        assert SearchConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Test layered loading from YAML and the environment."""

    def test_defaults_without_file(self, clean_env, tmp_path):
        """Test loading with no file or overrides gives the defaults."""
        config = load_config(env_file=tmp_path / "missing.env")
        assert config == SearchConfig()

    def test_yaml_file(self, clean_env, tmp_path):
        """Test values from a YAML file are applied."""
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump({"num_steps": 50, "selector": {"algorithm": "ucb", "ucb_c": 2.0}})
        )

        config = load_config(path, use_env=False)

        assert config.num_steps == 50
        assert config.selector.ucb_c == 2.0

    def test_missing_file(self, tmp_path):
        """Test a missing YAML file is a configuration error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml", use_env=False)

    def test_environment_overrides_file(self, clean_env, tmp_path):
        """Test environment variables win over the YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"seed": 1, "num_steps": 50}))
        clean_env.setenv("BANDIT_GI_SEED", "99")
        clean_env.setenv("BANDIT_GI_ALGORITHM", "policy_gradient")
        clean_env.setenv("BANDIT_GI_LOG_LEVEL", "DEBUG")

        config = load_config(path, env_file=tmp_path / "missing.env")

        assert config.seed == 99
        assert config.num_steps == 50
        assert config.selector.algorithm == "policy_gradient"
        assert config.logging.level == "DEBUG"

    def test_dotenv_file(self, clean_env, tmp_path):
        """Test variables from a .env file are applied."""
        env_file = tmp_path / ".env"
        env_file.write_text("BANDIT_GI_STEPS=7\nBANDIT_GI_OPERATOR_SET=llm\n")

        config = load_config(env_file=env_file)

        assert config.num_steps == 7
        assert config.operator_set == "llm"

    def test_invalid_environment_value_rejected(self, clean_env, tmp_path):
        """Test an invalid value from the environment fails validation."""
        clean_env.setenv("BANDIT_GI_OPERATOR_SET", "bogus")
        with pytest.raises(ConfigurationError):
            load_config(env_file=tmp_path / "missing.env")
