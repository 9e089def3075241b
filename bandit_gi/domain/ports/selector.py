"""Operator selector port.

Every bandit strategy implements this interface so the search loop can swap
selection algorithms without knowing how they decide.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from bandit_gi.domain.operators import Operator


@dataclass(frozen=True)
class OperatorStats:
    """Snapshot of one operator's bandit statistics."""
    selection_count: int
    average_quality: float
    success_count: int
    failure_count: int
    total_reward: float

    @property
    def success_rate(self) -> float:
        total = self.success_count + self.failure_count
        return self.success_count / total if total > 0 else 0.0


class OperatorSelector(ABC):
    """Abstract interface for RL-based mutation operator selection.

    Each operator is an arm of a multi-armed bandit. The search loop calls
    ``select`` to pick the next operator, evaluates the resulting mutation,
    then reports the outcome through ``update`` exactly once.

    Example:
        selector = EpsilonGreedySelector(operators, epsilon=0.2, random_seed=7)
        op = selector.select()
        selector.update(op, parent_fitness=1000, child_fitness=800, success=True)
    """

    @abstractmethod
    def select(self) -> Operator:
        """Choose the next operator to try.

        Must not modify per-operator statistics.
        """

    @abstractmethod
    def update(
        self,
        operator: Operator,
        parent_fitness: int | float | None,
        child_fitness: int | float | None,
        success: bool,
    ) -> float:
        """Feed back the outcome of applying ``operator``.

        Args:
            operator: The operator that was applied
            parent_fitness: Cost of the program before the edit
            child_fitness: Cost after the edit, or None if it failed
            success: Whether the edit applied, compiled, and passed tests

        Returns:
            The reward credited to the operator
        """

    @abstractmethod
    def reset(self) -> None:
        """Forget everything learned while keeping the operator set."""

    @property
    @abstractmethod
    def operators(self) -> tuple[Operator, ...]:
        """Operators this selector chooses between, in iteration order."""

    @property
    @abstractmethod
    def previous_operator(self) -> Operator | None:
        """Most recent ``select`` result, or None before the first call."""

    @abstractmethod
    def operator_statistics(self) -> dict[Operator, OperatorStats]:
        """Current statistics for every operator."""

    @abstractmethod
    def log_operator_summary(self) -> list[str]:
        """Log a per-operator statistics table and return its lines."""
