"""
Visibility evaluation.

Pure functions over (VisibilityRule, value tree). Called for every
conditionally visible field on every value change, so they do no I/O,
no logging and hold no state.

Malformed input fails closed: an unknown operator, an in/notIn condition
whose operand is not a list, or an unknown logic keyword all evaluate
to False rather than raising.
"""

from typing import Any, Optional

from formlogic.expressions import Condition, ConditionOperator, LogicOperator, VisibilityRule
from formlogic.paths import ABSENT, resolve


def strict_equals(left: Any, right: Any) -> bool:
    """
    Equality without cross-type coercion.

    True never equals 1, and ABSENT never equals None.
    """
    if left is ABSENT or right is ABSENT:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def has_value(value: Any) -> bool:
    """The "exists" test: not ABSENT, not None, not an empty string."""
    return value is not ABSENT and value is not None and value != ""


def _contains(candidates: Any, value: Any) -> bool:
    return any(strict_equals(value, candidate) for candidate in candidates)


def evaluate_condition(condition: Condition, values: Any) -> bool:
    """Evaluate one condition against the current value tree."""
    if not isinstance(getattr(condition, "field", None), str):
        return False

    current = resolve(values, condition.field)
    operator = condition.operator
    operand = condition.value

    if operator == ConditionOperator.EQUALS:
        return strict_equals(current, operand)
    if operator == ConditionOperator.NOT_EQUALS:
        return not strict_equals(current, operand)
    if operator == ConditionOperator.IN:
        return isinstance(operand, (list, tuple)) and _contains(operand, current)
    if operator == ConditionOperator.NOT_IN:
        return isinstance(operand, (list, tuple)) and not _contains(operand, current)
    if operator == ConditionOperator.EXISTS:
        return has_value(current)
    if operator == ConditionOperator.NOT_EXISTS:
        return not has_value(current)
    return False


def is_visible(rule: Optional[VisibilityRule], values: Any) -> bool:
    """
    Decide whether a field with this rule is shown.

    Args:
        rule: The field's VisibilityRule, or None
        values: Full current value tree

    Returns:
        True when there is no rule, no conditions, or the conditions
        combine to True under the rule's logic
    """
    if rule is None or not rule.conditions:
        return True

    results = (evaluate_condition(condition, values) for condition in rule.conditions)
    if rule.logic == LogicOperator.AND:
        return all(results)
    if rule.logic == LogicOperator.OR:
        return any(results)
    return False
