"""
Tests for the uniform random selector.
"""

from collections import Counter

import pytest

from bandit_gi.adapters.strategies import UniformSelector


class TestUniformSelector:
    """Test uniform random selection."""

    def test_rejects_empty_operators(self):
        """Test an empty operator list is refused."""
        with pytest.raises(ValueError, match="cannot be null or empty"):
            UniformSelector([])

    def test_single_operator_always_selected(self, three_operators):
        """Test a single operator is always chosen."""
        selector = UniformSelector(three_operators[:1], random_seed=5)
        for _ in range(10):
            assert selector.select() == three_operators[0]
            selector.update(three_operators[0], 1000, 900, True)

    def test_selection_ignores_quality(self, three_operators):
        """Test learned quality does not bias selection."""
        selector = UniformSelector(three_operators, random_seed=3)
        selector.update(three_operators[0], 10_000, 1000, True)

        counts = Counter()
        for _ in range(3000):
            op = selector.select()
            counts[op] += 1
            selector.update(op, 1000, None, False)

        for op in three_operators:
            assert 850 < counts[op] < 1150

    def test_statistics_still_tracked(self, three_operators):
        """Test rewards and selections are still recorded."""
        selector = UniformSelector(three_operators, random_seed=3)
        op = selector.select()
        reward = selector.update(op, 1000, 800, True)

        assert reward == pytest.approx(1.25)
        assert selector.operator_statistics()[op].selection_count == 1
        assert selector.reward_log() == (pytest.approx(1.25),)
        assert selector.selection_log() == (op,)
