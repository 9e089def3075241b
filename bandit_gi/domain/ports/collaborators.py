"""Ports for the collaborators the search loop drives.

The mutation engine, the compile-and-test runner, the metrics exporter and
the storage for the best variant all live outside the core. Concrete adapters
implement these interfaces; the search loop only ever talks to them through
here.
"""

from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np

from bandit_gi.domain.models import Edit, EvaluationOutcome, Patch
from bandit_gi.domain.operators import Operator
from bandit_gi.domain.ports.selector import OperatorSelector
from bandit_gi.domain.services.metrics_log import MetricsLog


class MutationEngine(ABC):
    """Produces edits of a requested operator kind."""

    @abstractmethod
    def random_edit(self, operator: Operator, rng: np.random.Generator) -> Edit:
        """Create a new random edit of the given operator's kind.

        Args:
            operator: Operator the edit must belong to
            rng: Shared random generator of the search

        Returns:
            The new edit (not yet applied to any patch)
        """


class TestRunner(ABC):
    """Compiles a patched program and runs its tests."""

    __test__ = False

    @abstractmethod
    def evaluate(self, patch: Patch, repetitions: int) -> EvaluationOutcome:
        """Apply ``patch`` to the original program and run the test suite.

        Args:
            patch: Edits to apply (empty patch means the original program)
            repetitions: Number of times to run the tests

        Returns:
            Outcome flags plus the total execution cost over all repetitions
        """


class VariantStore(ABC):
    """Persists the best variant found by a search."""

    @abstractmethod
    def save(self, patch: Patch, fitness: int, experiment_id: str) -> Path:
        """Write the variant and return where it was stored."""


class MetricsExporter(ABC):
    """Writes the metrics of a finished search."""

    @abstractmethod
    def export_all(
        self, metrics: MetricsLog, selector: OperatorSelector
    ) -> dict[str, Path]:
        """Export every table and return the written paths keyed by table name.

        Raises:
            OSError: If the output cannot be written
        """
