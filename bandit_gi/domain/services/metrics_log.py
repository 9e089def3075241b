"""Experiment metrics accumulated during a search.

Holds the append-only step records and the resolved configuration, and
derives the per-operator aggregates and the run summary that get exported
at the end of a search.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from bandit_gi.domain.models import StepRecord
from bandit_gi.domain.operators import Operator
from bandit_gi.domain.ports.selector import OperatorSelector

logger = structlog.get_logger(__name__)


def _rate(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(frozen=True)
class OperatorAggregate:
    """Per-operator statistics derived from the step records."""
    operator: Operator
    selection_count: int
    success_count: int
    improvement_count: int
    total_reward: float
    learned_q: float

    @property
    def success_rate(self) -> float:
        return _rate(self.success_count, self.selection_count)

    @property
    def improvement_rate(self) -> float:
        return _rate(self.improvement_count, self.selection_count)

    @property
    def average_reward(self) -> float:
        return _rate(self.total_reward, self.selection_count)


@dataclass(frozen=True)
class GroupSummary:
    """Counts restricted to one group of operators."""
    selections: int
    successes: int
    improvements: int

    @property
    def success_rate(self) -> float:
        return _rate(self.successes, self.selections)


@dataclass(frozen=True)
class RunSummary:
    """Run-level summary statistics."""
    experiment_id: str
    total_steps: int
    successful_steps: int
    improvements: int
    total_reward: float
    original_fitness: int | None
    best_fitness: int | None
    learned: GroupSummary
    traditional: GroupSummary
    runtime_ms: int
    best_patch: str | None

    @property
    def success_rate(self) -> float:
        return _rate(self.successful_steps, self.total_steps)

    @property
    def improvement_rate(self) -> float:
        return _rate(self.improvements, self.total_steps)

    @property
    def average_reward(self) -> float:
        return _rate(self.total_reward, self.total_steps)

    @property
    def improvement_pct(self) -> float:
        if not self.original_fitness or self.best_fitness is None:
            return 0.0
        return 100.0 * (self.original_fitness - self.best_fitness) / self.original_fitness


class MetricsLog:
    """Accumulates step records and configuration for one experiment."""

    def __init__(self, experiment_id: str, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            experiment_id: Identifier used in exports and summaries
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self.experiment_id = experiment_id
        self._clock = clock
        self._start = clock()
        self._records: list[StepRecord] = []
        self._config: dict[str, str] = {}
        self.original_fitness: int | None = None
        self.best_fitness: int | None = None
        self.best_patch: str | None = None
        logger.info("metrics_log_initialized", experiment_id=experiment_id)

    @property
    def records(self) -> tuple[StepRecord, ...]:
        return tuple(self._records)

    @property
    def configuration(self) -> dict[str, str]:
        return dict(self._config)

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._start) * 1000)

    def set_config(self, key: str, value) -> None:
        self._config[key] = str(value)

    def update_config(self, entries: dict[str, object]) -> None:
        for key, value in entries.items():
            self.set_config(key, value)

    def set_original_fitness(self, fitness: int) -> None:
        self.original_fitness = fitness
        self.best_fitness = fitness
        self.set_config("original_fitness", fitness)

    def log_step(
        self,
        step: int,
        operator: Operator,
        success: bool,
        parent_fitness: int | None,
        child_fitness: int | None,
        reward: float,
        step_duration_ms: int,
        patch_description: str,
    ) -> StepRecord:
        """Append the record for a completed step."""
        is_improvement = (
            success
            and child_fitness is not None
            and parent_fitness is not None
            and child_fitness < parent_fitness
        )
        record = StepRecord(
            step=step,
            operator_name=operator.name,
            operator_category=operator.category.value,
            is_learned=operator.is_learned,
            success=success,
            is_improvement=is_improvement,
            parent_fitness=parent_fitness,
            child_fitness=child_fitness if success else None,
            reward=reward,
            step_duration_ms=step_duration_ms,
            cumulative_time_ms=self.elapsed_ms(),
            patch_description=patch_description,
        )
        self._records.append(record)

        if (
            success
            and child_fitness is not None
            and (self.best_fitness is None or child_fitness < self.best_fitness)
        ):
            self.best_fitness = child_fitness
            self.best_patch = patch_description

        logger.debug(
            "step_logged",
            step=step,
            operator=operator.name,
            success=success,
            reward=round(reward, 4),
        )
        return record

    def operator_aggregates(self, selector: OperatorSelector) -> list[OperatorAggregate]:
        """Aggregate the step records per operator, in the selector's order."""
        stats = selector.operator_statistics()
        aggregates = []
        for op in selector.operators:
            op_records = [r for r in self._records if r.operator_name == op.name]
            op_stats = stats.get(op)
            aggregates.append(
                OperatorAggregate(
                    operator=op,
                    selection_count=len(op_records),
                    success_count=sum(r.success for r in op_records),
                    improvement_count=sum(r.is_improvement for r in op_records),
                    total_reward=sum(r.reward for r in op_records),
                    learned_q=op_stats.average_quality if op_stats else 0.0,
                )
            )
        return aggregates

    def summary(self) -> RunSummary:
        records = self._records
        learned = [r for r in records if r.is_learned]
        traditional = [r for r in records if not r.is_learned]
        return RunSummary(
            experiment_id=self.experiment_id,
            total_steps=len(records),
            successful_steps=sum(r.success for r in records),
            improvements=sum(r.is_improvement for r in records),
            total_reward=sum(r.reward for r in records),
            original_fitness=self.original_fitness,
            best_fitness=self.best_fitness,
            learned=GroupSummary(
                selections=len(learned),
                successes=sum(r.success for r in learned),
                improvements=sum(r.is_improvement for r in learned),
            ),
            traditional=GroupSummary(
                selections=len(traditional),
                successes=sum(r.success for r in traditional),
                improvements=sum(r.is_improvement for r in traditional),
            ),
            runtime_ms=self.elapsed_ms(),
            best_patch=self.best_patch,
        )

    def log_summary(self) -> RunSummary:
        """Emit the run summary as a structured log event."""
        summary = self.summary()
        logger.info(
            "experiment_summary",
            experiment_id=summary.experiment_id,
            steps=summary.total_steps,
            successes=summary.successful_steps,
            success_pct=round(100.0 * summary.success_rate, 1),
            improvements=summary.improvements,
            improvement_rate_pct=round(100.0 * summary.improvement_rate, 1),
            total_reward=round(summary.total_reward, 2),
            avg_reward=round(summary.average_reward, 4),
            original_fitness=summary.original_fitness,
            best_fitness=summary.best_fitness,
            improvement_pct=round(summary.improvement_pct, 2),
            runtime_s=round(summary.runtime_ms / 1000.0, 1),
        )
        return summary
