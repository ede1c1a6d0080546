"""
Visibility Rule Structures for formlogic

Conditional visibility is represented as data, never as code strings.

    visibleWhen:
        logic: OR
        conditions:
            - {field: employment.status, operator: equals, value: employed}
            - {field: age, operator: exists}

This ensures:
    - Rules are serializable
    - Rules can be analyzed (dependency graph, cycle detection)
    - Evaluation stays pure and deterministic

ARCHITECTURAL RULE:
    These objects hold structure only.
    Evaluation belongs in formlogic.visibility.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Union


class ConditionOperator(str, Enum):
    """
    Comparison operators supported in visibility conditions.

    Keep this closed. An operator string outside this set is preserved
    on the Condition as a raw string and evaluates to False.
    """

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    IN = "in"
    NOT_IN = "notIn"
    EXISTS = "exists"
    NOT_EXISTS = "notExists"


class LogicOperator(str, Enum):
    """How the results of a rule's conditions are combined."""

    AND = "AND"
    OR = "OR"


def parse_operator(raw: Any) -> Union[ConditionOperator, str, None]:
    """Map a raw operator to the enum, keeping unknown values verbatim."""
    if raw is None or isinstance(raw, ConditionOperator):
        return raw
    try:
        return ConditionOperator(raw)
    except ValueError:
        return raw


def parse_logic(raw: Any) -> Union[LogicOperator, str]:
    if raw is None:
        return LogicOperator.AND
    if isinstance(raw, LogicOperator):
        return raw
    try:
        return LogicOperator(str(raw).upper())
    except ValueError:
        return raw


@dataclass(frozen=True)
class Condition:
    """
    A single test against another field's current value.

    Properties:
        field:
            Qualified address of the target field (e.g. "g.A")

        operator:
            ConditionOperator, a raw unknown string, or None when
            the schema omitted it. Anything other than a known
            operator evaluates to False.

        value:
            Comparison operand. Must be a list for in / notIn.
            Ignored by exists / notExists.
    """

    field: str
    operator: Union[ConditionOperator, str, None] = ConditionOperator.EQUALS
    value: Any = None


@dataclass(frozen=True)
class VisibilityRule:
    """
    Boolean expression over other fields' values.

    Example:
        VisibilityRule(
            logic=LogicOperator.AND,
            conditions=(
                Condition("g.A", ConditionOperator.EQUALS, True),
            ),
        )

    A rule with no conditions is always satisfied.
    """

    conditions: tuple = ()
    logic: Union[LogicOperator, str] = LogicOperator.AND

    def __post_init__(self):
        # lists are accepted for convenience; stored as a tuple to stay hashable
        if isinstance(self.conditions, list):
            object.__setattr__(self, "conditions", tuple(self.conditions))

    @property
    def targets(self) -> List[str]:
        """Addresses this rule reads, in declaration order."""
        return [c.field for c in self.conditions]


def when(*conditions: Condition, logic: Union[LogicOperator, str] = LogicOperator.AND) -> VisibilityRule:
    """Shorthand for building a VisibilityRule in code."""
    return VisibilityRule(conditions=tuple(conditions), logic=logic)
