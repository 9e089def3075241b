"""
Tests for the operator selector port.
"""

import pytest

from bandit_gi.adapters.strategies import UniformSelector
from bandit_gi.domain.ports.selector import OperatorSelector, OperatorStats


class SilentSelector(OperatorSelector):
    """Selector implementing everything except the operator summary."""

    def select(self):
        return None

    def update(self, operator, parent_fitness, child_fitness, success):
        return 0.0

    def reset(self):
        pass

    @property
    def operators(self):
        return ()

    @property
    def previous_operator(self):
        return None

    def operator_statistics(self):
        return {}


class TestOperatorSelectorPort:
    """Test the abstract selector interface."""

    def test_operator_summary_is_required(self):
        """Test a selector without an operator summary cannot be instantiated."""
        with pytest.raises(TypeError, match="log_operator_summary"):
            SilentSelector()

    def test_bandit_selectors_implement_port(self, three_operators):
        """Test the bandit strategies satisfy the port, summary included."""
        selector = UniformSelector(three_operators, random_seed=1)

        assert isinstance(selector, OperatorSelector)
        assert len(selector.log_operator_summary()) == 2 + len(three_operators)


class TestOperatorStats:
    """Test the statistics snapshot."""

    def test_success_rate(self):
        """Test the success rate over recorded outcomes."""
        stats = OperatorStats(4, 0.5, 3, 1, 2.0)
        assert stats.success_rate == pytest.approx(0.75)

    def test_success_rate_without_outcomes(self):
        """Test the success rate is zero before any outcome."""
        assert OperatorStats(0, 0.0, 0, 0, 0.0).success_rate == 0.0
