"""
Tests for the mutation operator catalogue.
"""

import pytest

from bandit_gi.domain.errors import ConfigurationError, ErrorCode
from bandit_gi.domain.operators import (
    ALL_OPERATORS,
    LLM_OPERATORS,
    TRADITIONAL_OPERATORS,
    OperatorCategory,
    describe_catalogue,
    includes_learned,
    operator_by_name,
    operators_for_set,
)


class TestOperatorCatalogue:
    """Test operator sets and lookups."""

    def test_catalogue_sizes(self):
        """Test every named set has the expected number of operators."""
        assert len(operators_for_set("statement")) == 5
        assert len(operators_for_set("matched")) == 4
        assert len(operators_for_set("modify_node")) == 2
        assert len(operators_for_set("traditional")) == 11
        assert len(operators_for_set("llm")) == 2
        assert len(ALL_OPERATORS) == 13

    def test_only_llm_operators_are_learned(self):
        """Test the learned flag marks exactly the LLM operators."""
        assert all(op.is_learned for op in LLM_OPERATORS)
        assert not any(op.is_learned for op in TRADITIONAL_OPERATORS)
        assert all(op.category is OperatorCategory.LLM for op in LLM_OPERATORS)

    def test_set_names_are_case_insensitive(self):
        """Test set names match regardless of case."""
        assert operators_for_set("ALL") == ALL_OPERATORS
        assert operators_for_set("ModifyNode") == operators_for_set("modify_node")

    def test_unknown_set_raises(self):
        """Test an unknown set name carries the operator-set error code."""
        with pytest.raises(ConfigurationError, match="Unknown operator set") as exc_info:
            operators_for_set("genetic")
        assert exc_info.value.code is ErrorCode.CONFIG_UNKNOWN_OPERATOR_SET

    def test_lookup_by_name(self):
        """Test a catalogue operator is found by name."""
        op = operator_by_name("LLMMaskedStatement")
        assert op.is_learned

    def test_unknown_operator_name_code(self):
        """Test an unknown operator name carries its own error code."""
        with pytest.raises(ConfigurationError, match="Unknown operator: Nope") as exc_info:
            operator_by_name("Nope")
        assert exc_info.value.code is ErrorCode.CONFIG_UNKNOWN_OPERATOR
        assert exc_info.value.to_dict()["code"] == "CFG_004"

    def test_operators_are_hashable_values(self):
        """Test operators compare by value and hash consistently."""
        assert operator_by_name("DeleteStatement") == operators_for_set("statement")[0]
        assert len(set(ALL_OPERATORS)) == len(ALL_OPERATORS)

    def test_includes_learned(self):
        """Test detection of learned operators in a set."""
        assert includes_learned(ALL_OPERATORS)
        assert not includes_learned(TRADITIONAL_OPERATORS)

    def test_describe_catalogue(self):
        """Test the catalogue listing ends with the total."""
        lines = describe_catalogue()
        assert lines[-1] == "Total: 13 operators"
        assert "llm operators (2):" in lines
