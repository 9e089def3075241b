"""Simulated mutation engine and test runner.

Stand-ins for the real patch-generation engine and compile-and-test runner
so a search can run end to end without a program under optimization. Every
operator has a hidden "true quality" that controls how often its edits keep
the tests passing and how much faster they make the program.
"""

import math

import numpy as np

from bandit_gi.domain.models import Edit, EvaluationOutcome, Patch
from bandit_gi.domain.operators import Operator
from bandit_gi.domain.ports.collaborators import MutationEngine, TestRunner

# Higher means the operator is more often useful. Unknown to the selectors.
TRUE_QUALITIES: dict[str, float] = {
    "DeleteStatement": 0.3,
    "CopyStatement": 0.5,
    "ReplaceStatement": 0.7,
    "SwapStatement": 0.4,
    "MoveStatement": 0.35,
    "MatchedDeleteStatement": 0.35,
    "MatchedCopyStatement": 0.55,
    "MatchedReplaceStatement": 0.75,
    "MatchedSwapStatement": 0.5,
    "BinaryOperatorReplacement": 0.6,
    "UnaryOperatorReplacement": 0.45,
    "LLMMaskedStatement": 0.65,
    "LLMReplaceStatement": 0.7,
}

DEFAULT_QUALITY = 0.5


def success_probability(quality: float) -> float:
    return 0.3 + 0.6 * quality


class SimulatedMutationEngine(MutationEngine):
    """Creates edits whose effect is drawn from the operator's true quality."""

    def __init__(
        self,
        qualities: dict[str, float] | None = None,
        source_lines: int = 200,
        invalid_rate: float = 0.05,
    ):
        self.qualities = dict(TRUE_QUALITIES if qualities is None else qualities)
        self.source_lines = source_lines
        self.invalid_rate = invalid_rate

    def quality(self, operator: Operator) -> float:
        return self.qualities.get(operator.name, DEFAULT_QUALITY)

    def random_edit(self, operator: Operator, rng: np.random.Generator) -> Edit:
        q = self.quality(operator)
        line = int(rng.integers(1, self.source_lines + 1))
        invalid = bool(rng.random() < self.invalid_rate)
        breaks_tests = bool(rng.random() >= success_probability(q))
        speedup = 0.9 + 0.25 * q * (0.8 + 0.4 * rng.random())
        return Edit(
            operator=operator,
            description=f"{operator.name} line {line}",
            metadata={
                "invalid": invalid,
                "breaks_tests": breaks_tests,
                "speedup": speedup,
            },
        )


class SimulatedTestRunner(TestRunner):
    """Evaluates patches built by ``SimulatedMutationEngine``.

    The original program costs ``base_cost`` per repetition; each edit
    divides the cost by its speed-up factor.
    """

    def __init__(
        self,
        base_cost: int = 1_000_000,
        compiles: bool = True,
        passes: bool = True,
        noise: float = 0.0,
        random_seed: int | None = None,
    ):
        self.base_cost = base_cost
        self.compiles = compiles
        self.passes = passes
        self.noise = noise
        self.rng = np.random.default_rng(random_seed)
        self.evaluations = 0

    def evaluate(self, patch: Patch, repetitions: int) -> EvaluationOutcome:
        self.evaluations += 1
        edits = patch.edits
        valid = not any(e.metadata.get("invalid", False) for e in edits)
        if not valid:
            return EvaluationOutcome(False, False, False, 0)
        if not self.compiles:
            return EvaluationOutcome(True, False, False, 0)
        passes = self.passes and not any(e.metadata.get("breaks_tests", False) for e in edits)
        if not passes:
            return EvaluationOutcome(True, True, False, 0)

        speedup = math.prod(e.metadata.get("speedup", 1.0) for e in edits)
        total = 0
        for _ in range(repetitions):
            jitter = 1.0 + self.noise * (self.rng.random() - 0.5) if self.noise else 1.0
            total += max(1, int(self.base_cost * jitter / speedup))
        return EvaluationOutcome(True, True, True, total)
