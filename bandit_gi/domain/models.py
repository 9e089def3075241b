"""Domain models for the operator-selection search."""

from dataclasses import dataclass, field
from typing import Any

from bandit_gi.domain.operators import Operator


@dataclass(frozen=True)
class Edit:
    """A single edit produced by the mutation engine.

    ``description`` is the engine's rendering of the edit (for example
    ``DeleteStatement Foo.java:42``); the core only ever displays it.
    """
    operator: Operator
    description: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True)
class Patch:
    """An ordered, immutable list of edits applied to the original program."""
    edits: tuple[Edit, ...] = ()

    def __len__(self) -> int:
        return len(self.edits)

    def with_edit(self, edit: Edit) -> "Patch":
        return Patch(self.edits + (edit,))

    def without(self, index: int) -> "Patch":
        if not 0 <= index < len(self.edits):
            raise IndexError(f"Patch has no edit at index {index}")
        return Patch(self.edits[:index] + self.edits[index + 1:])

    def __str__(self) -> str:
        if not self.edits:
            return "|"
        return "| " + " | ".join(str(e) for e in self.edits) + " |"


@dataclass(frozen=True)
class EvaluationOutcome:
    """Result of compiling and testing a patched program."""
    valid_patch: bool
    clean_compile: bool
    all_tests_pass: bool
    total_execution_cost: int = 0

    @property
    def success(self) -> bool:
        return self.valid_patch and self.clean_compile and self.all_tests_pass

    def failure_reason(self) -> str | None:
        if not self.valid_patch:
            return "Invalid patch"
        if not self.clean_compile:
            return "Compilation failed"
        if not self.all_tests_pass:
            return "Tests failed"
        return None


@dataclass(frozen=True)
class StepRecord:
    """Facts recorded once per completed search step."""
    step: int
    operator_name: str
    operator_category: str
    is_learned: bool
    success: bool
    is_improvement: bool
    parent_fitness: int | None
    child_fitness: int | None
    reward: float
    step_duration_ms: int
    cumulative_time_ms: int
    patch_description: str
