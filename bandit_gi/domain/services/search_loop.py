"""RL-driven local search over program patches.

Instead of picking mutation operators uniformly, the search asks a bandit
selector which operator to try at every step and feeds the outcome back as
a reward. The run moves through a fixed sequence of states:

    INIT -> WARMUP -> STEP (x num_steps) -> DONE

Step failures (invalid patch, compile error, failing tests) are ordinary
data: they earn reward 0, are recorded, and the loop moves on. Only a failing
warmup aborts the run, because without a working baseline there is nothing
to improve on.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import numpy as np
import structlog

from bandit_gi.domain.errors import ConfigurationError, ErrorCode, WarmupFailedError
from bandit_gi.domain.models import Patch, StepRecord
from bandit_gi.domain.operators import Operator
from bandit_gi.domain.ports.collaborators import (
    MetricsExporter,
    MutationEngine,
    TestRunner,
    VariantStore,
)
from bandit_gi.domain.ports.selector import OperatorSelector
from bandit_gi.domain.services.metrics_log import MetricsLog, RunSummary

logger = structlog.get_logger(__name__)

REMOVE_EDIT_PROBABILITY = 0.5


class SearchState(Enum):
    """Lifecycle of a search run."""
    INIT = "init"
    WARMUP = "warmup"
    STEP = "step"
    DONE = "done"


@dataclass
class SearchResult:
    """Outcome of a completed search."""
    experiment_id: str
    original_fitness: int
    best_fitness: int
    best_patch: Patch
    summary: RunSummary
    exported: dict[str, Path] = field(default_factory=dict)
    variant_path: Path | None = None

    @property
    def improved(self) -> bool:
        return self.best_fitness < self.original_fitness

    @property
    def improvement_pct(self) -> float:
        if self.original_fitness <= 0:
            return 0.0
        return 100.0 * (self.original_fitness - self.best_fitness) / self.original_fitness


@dataclass
class SearchSettings:
    """Run parameters the search loop itself needs.

    The composition root derives these from the full configuration; the
    loop never sees selector hyperparameters or output paths.
    """
    experiment_id: str
    num_steps: int
    warmup_reps: int = 10
    seed: int | None = None
    config_entries: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
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


class SearchLoop:
    """Local search whose mutation operator is chosen by a bandit selector."""

    def __init__(
        self,
        settings: SearchSettings,
        selector: OperatorSelector,
        mutation_engine: MutationEngine,
        test_runner: TestRunner,
        exporter: MetricsExporter,
        variant_store: VariantStore | None = None,
        rng: np.random.Generator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            settings: Step budget, warmup repetitions and run identity
            selector: Chooses the operator for every step
            mutation_engine: Produces edits for the selected operator
            test_runner: Compiles and tests patched programs
            exporter: Writes the metrics tables when the search finishes
            variant_store: Where the best variant is written (optional)
            rng: Random generator, normally the one the selector draws from
                (default: seeded from settings.seed)
            clock: Monotonic clock in seconds
        """
        self.settings = settings
        self.selector = selector
        self.mutation_engine = mutation_engine
        self.test_runner = test_runner
        self.exporter = exporter
        self.variant_store = variant_store
        self.rng = rng if rng is not None else np.random.default_rng(settings.seed)
        self._clock = clock
        self.experiment_id = settings.experiment_id

        self.metrics = MetricsLog(self.experiment_id, clock=clock)
        self.metrics.update_config(settings.config_entries)

        self.state = SearchState.INIT
        self.step_index = 0
        self.original_fitness: int | None = None
        self.best_fitness: int | None = None
        self.best_patch = Patch()

        logger.info(
            "search_initialized",
            experiment_id=self.experiment_id,
            selector=type(selector).__name__,
            operators=len(selector.operators),
            steps=settings.num_steps,
        )

    def _require(self, *states: SearchState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.name for s in states)
            raise RuntimeError(f"Search is in state {self.state.name}, expected {allowed}")

    def warmup(self) -> int:
        """Measure the unmodified program and seed the baseline fitness.

        Returns:
            Mean execution cost of the original program

        Raises:
            WarmupFailedError: If the original does not compile or fails tests
        """
        self._require(SearchState.INIT)
        self.state = SearchState.WARMUP
        reps = self.settings.warmup_reps
        logger.info("warmup_started", repetitions=reps)

        outcome = self.test_runner.evaluate(Patch(), reps)
        if not outcome.clean_compile:
            logger.error("warmup_compile_failed")
            raise WarmupFailedError(
                "Original code failed to compile",
                code=ErrorCode.WARMUP_COMPILE_FAILED,
            )
        if not outcome.success:
            logger.error("warmup_tests_failed", valid_patch=outcome.valid_patch)
            raise WarmupFailedError("Original code failed tests")

        baseline = outcome.total_execution_cost // reps
        self.original_fitness = baseline
        self.best_fitness = baseline
        self.metrics.set_original_fitness(baseline)
        self.state = SearchState.STEP
        logger.info("warmup_complete", original_fitness=baseline)
        return baseline

    def create_neighbour(self, patch: Patch, operator: Operator) -> Patch:
        """Derive a neighbour of ``patch``.

        A non-empty patch loses a random edit with probability one half;
        otherwise a new random edit of ``operator``'s kind is appended.
        """
        if len(patch) > 0 and self.rng.random() > REMOVE_EDIT_PROBABILITY:
            return patch.without(int(self.rng.integers(len(patch))))
        return patch.with_edit(self.mutation_engine.random_edit(operator, self.rng))

    def step(self) -> StepRecord:
        """Run one select -> mutate -> evaluate -> update -> record cycle."""
        self._require(SearchState.STEP)
        if self.step_index >= self.settings.num_steps:
            raise RuntimeError("Step budget exhausted")
        self.step_index += 1
        step = self.step_index
        started = self._clock()

        operator = self.selector.select()
        logger.info(
            "search_step",
            step=step,
            total=self.settings.num_steps,
            operator=operator.name,
        )

        neighbour = self.create_neighbour(self.best_patch, operator)
        outcome = self.test_runner.evaluate(neighbour, 1)

        success = outcome.success
        parent_fitness = self.best_fitness
        child_fitness = outcome.total_execution_cost if success else None
        is_improvement = child_fitness is not None and child_fitness < parent_fitness

        reward = self.selector.update(operator, parent_fitness, child_fitness, success)

        if is_improvement:
            self.best_patch = neighbour
            self.best_fitness = child_fitness
            result = "new_best"
        else:
            result = outcome.failure_reason() or "no_improvement"

        duration_ms = int((self._clock() - started) * 1000)
        record = self.metrics.log_step(
            step,
            operator,
            success,
            parent_fitness,
            child_fitness,
            reward,
            duration_ms,
            str(neighbour),
        )

        if is_improvement:
            logger.info(
                "new_best_fitness",
                step=step,
                best_fitness=self.best_fitness,
                improvement_pct=round(
                    100.0 * (self.original_fitness - self.best_fitness) / self.original_fitness, 1
                ),
            )
        logger.info(
            "step_result",
            step=step,
            result=result,
            child_fitness=child_fitness,
            reward=round(reward, 4),
        )
        return record

    def finish(self) -> SearchResult:
        """Summarize, export, and persist the best variant if it improved."""
        self._require(SearchState.STEP)
        self.state = SearchState.DONE

        summary = self.metrics.log_summary()
        logger.info(
            "search_complete",
            original_fitness=self.original_fitness,
            best_fitness=self.best_fitness,
            patch=str(self.best_patch),
        )
        self.selector.log_operator_summary()

        exported: dict[str, Path] = {}
        try:
            exported = self.exporter.export_all(self.metrics, self.selector)
        except OSError as exc:
            logger.error("export_failed", error=str(exc))

        variant_path = None
        if self.best_fitness < self.original_fitness and self.variant_store is not None:
            variant_path = self.variant_store.save(
                self.best_patch, self.best_fitness, self.experiment_id
            )

        return SearchResult(
            experiment_id=self.experiment_id,
            original_fitness=self.original_fitness,
            best_fitness=self.best_fitness,
            best_patch=self.best_patch,
            summary=summary,
            exported=exported,
            variant_path=variant_path,
        )

    def run(self) -> SearchResult:
        """Execute the whole search: warmup, every step, then finish."""
        logger.info("search_started", experiment_id=self.experiment_id)
        self.warmup()
        while self.step_index < self.settings.num_steps:
            self.step()
        return self.finish()
