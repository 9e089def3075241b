from pathlib import Path

import pytest

from bandit_gi.domain.models import Edit, EvaluationOutcome, Patch
from bandit_gi.domain.operators import Operator, OperatorCategory
from bandit_gi.domain.ports.collaborators import (
    MetricsExporter,
    MutationEngine,
    TestRunner,
    VariantStore,
)
from bandit_gi.domain.ports.selector import OperatorSelector
from bandit_gi.domain.services.metrics_log import MetricsLog
from bandit_gi.domain.services.search_loop import SearchSettings
from bandit_gi.infrastructure.config import SearchConfig


class ScriptedTestRunner(TestRunner):
    """Test runner returning pre-scripted outcomes in order.

    The first outcome answers the warmup; once the script is exhausted the
    last outcome is repeated.
    """

    def __init__(self, outcomes: list[EvaluationOutcome]):
        self.outcomes = list(outcomes)
        self.calls: list[tuple[Patch, int]] = []

    def evaluate(self, patch: Patch, repetitions: int) -> EvaluationOutcome:
        self.calls.append((patch, repetitions))
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        return self.outcomes[index]


class CountingMutationEngine(MutationEngine):
    """Mutation engine producing numbered edits."""

    def __init__(self):
        self.created = 0

    def random_edit(self, operator, rng) -> Edit:
        self.created += 1
        return Edit(operator, f"{operator.name} #{self.created}")


class RecordingVariantStore(VariantStore):
    def __init__(self, path):
        self.path = path
        self.saved: list[tuple[Patch, int, str]] = []

    def save(self, patch, fitness, experiment_id):
        self.saved.append((patch, fitness, experiment_id))
        return self.path


class RecordingExporter(MetricsExporter):
    """Exporter that remembers what it was asked to write."""

    def __init__(self, error: OSError | None = None):
        self.error = error
        self.calls: list[tuple[MetricsLog, OperatorSelector]] = []

    def export_all(self, metrics, selector):
        self.calls.append((metrics, selector))
        if self.error is not None:
            raise self.error
        return {"steps": Path(f"{metrics.experiment_id}_steps.csv")}


def passing(cost: int) -> EvaluationOutcome:
    return EvaluationOutcome(True, True, True, cost)


@pytest.fixture
def three_operators():
    """Operators A, B, C in a fixed order."""
    return (
        Operator("A", OperatorCategory.STATEMENT),
        Operator("B", OperatorCategory.MATCHED),
        Operator("C", OperatorCategory.LLM, is_learned=True),
    )


@pytest.fixture
def two_operators(three_operators):
    return three_operators[:2]


@pytest.fixture
def search_config(tmp_path):
    """Small search config writing into a temporary directory."""
    config = SearchConfig(
        seed=42,
        num_steps=5,
        operator_set="traditional",
        output_dir=str(tmp_path / "results"),
        experiment_id="test_run",
    )
    config.selector.algorithm = "uniform"
    return config


@pytest.fixture
def mutation_engine():
    return CountingMutationEngine()


@pytest.fixture
def variant_store(tmp_path):
    return RecordingVariantStore(tmp_path / "best.yaml")


@pytest.fixture
def search_settings():
    """Five-step run with a fixed seed."""
    return SearchSettings(
        experiment_id="test_run",
        num_steps=5,
        seed=42,
        config_entries={"seed": "42", "rl_algorithm": "uniform"},
    )


@pytest.fixture
def exporter():
    return RecordingExporter()
