"""Mutation operator catalogue.

Operators are the arms the bandit selectors choose between. Each one is a
small immutable value carrying its category and whether it is model-driven
(LLM) rather than a classical genetic-improvement edit.
"""

from dataclasses import dataclass
from enum import Enum

from bandit_gi.domain.errors import ConfigurationError, ErrorCode


class OperatorCategory(Enum):
    """Closed set of operator families."""
    STATEMENT = "statement"
    MATCHED = "matched"
    MODIFY_NODE = "modify_node"
    LLM = "llm"


@dataclass(frozen=True)
class Operator:
    """A mutation kind a selector can choose."""
    name: str
    category: OperatorCategory
    is_learned: bool = False

    def __str__(self) -> str:
        return self.name


def _operators(category: OperatorCategory, *names: str) -> tuple[Operator, ...]:
    learned = category is OperatorCategory.LLM
    return tuple(Operator(name, category, learned) for name in names)


STATEMENT_OPERATORS = _operators(
    OperatorCategory.STATEMENT,
    "DeleteStatement",
    "CopyStatement",
    "ReplaceStatement",
    "SwapStatement",
    "MoveStatement",
)

MATCHED_OPERATORS = _operators(
    OperatorCategory.MATCHED,
    "MatchedDeleteStatement",
    "MatchedCopyStatement",
    "MatchedReplaceStatement",
    "MatchedSwapStatement",
)

MODIFY_NODE_OPERATORS = _operators(
    OperatorCategory.MODIFY_NODE,
    "BinaryOperatorReplacement",
    "UnaryOperatorReplacement",
)

LLM_OPERATORS = _operators(
    OperatorCategory.LLM,
    "LLMMaskedStatement",
    "LLMReplaceStatement",
)

TRADITIONAL_OPERATORS = STATEMENT_OPERATORS + MATCHED_OPERATORS + MODIFY_NODE_OPERATORS

ALL_OPERATORS = TRADITIONAL_OPERATORS + LLM_OPERATORS

OPERATOR_SETS: dict[str, tuple[Operator, ...]] = {
    "statement": STATEMENT_OPERATORS,
    "matched": MATCHED_OPERATORS,
    "modify_node": MODIFY_NODE_OPERATORS,
    "modifynode": MODIFY_NODE_OPERATORS,
    "traditional": TRADITIONAL_OPERATORS,
    "llm": LLM_OPERATORS,
    "all": ALL_OPERATORS,
}

_BY_NAME = {op.name: op for op in ALL_OPERATORS}


def operators_for_set(name: str) -> tuple[Operator, ...]:
    """Resolve an operator-set name such as ``traditional`` or ``all``.

    Raises:
        ConfigurationError: If the set name is unknown
    """
    try:
        return OPERATOR_SETS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown operator set: {name}",
            code=ErrorCode.CONFIG_UNKNOWN_OPERATOR_SET,
            details={"known_sets": sorted(OPERATOR_SETS)},
        ) from None


def operator_by_name(name: str) -> Operator:
    """Look up a catalogue operator by its name."""
    try:
        return _BY_NAME[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown operator: {name}",
            code=ErrorCode.CONFIG_UNKNOWN_OPERATOR,
        ) from None


def includes_learned(operators: tuple[Operator, ...] | list[Operator]) -> bool:
    return any(op.is_learned for op in operators)


def describe_catalogue() -> list[str]:
    """Human-readable listing of every operator family."""
    lines = []
    for category in OperatorCategory:
        members = [op for op in ALL_OPERATORS if op.category is category]
        lines.append(f"{category.value} operators ({len(members)}):")
        lines.extend(f"  - {op.name}" for op in members)
    lines.append(f"Total: {len(ALL_OPERATORS)} operators")
    return lines
