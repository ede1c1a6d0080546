"""
Tests for visibility rule structures.

These tests verify:
    - Rules and conditions can be created
    - Rule immutability
    - Operator / logic parsing keeps unknown input verbatim
"""

import pytest

from formlogic.expressions import (
    Condition,
    ConditionOperator,
    LogicOperator,
    VisibilityRule,
    parse_logic,
    parse_operator,
    when,
)


class TestCondition:
    """Test condition objects."""

    def test_default_operator_is_equals(self):
        c = Condition("status", value="employed")
        assert c.operator is ConditionOperator.EQUALS

    def test_condition_immutable(self):
        c = Condition("status", ConditionOperator.EXISTS)
        with pytest.raises(AttributeError):
            c.field = "other"


class TestVisibilityRule:
    """Test rule objects."""

    def test_list_conditions_become_tuple(self):
        rule = VisibilityRule(conditions=[Condition("a"), Condition("b")])
        assert isinstance(rule.conditions, tuple)
        assert rule.targets == ["a", "b"]

    def test_when_builder(self):
        rule = when(Condition("a"), Condition("b"), logic=LogicOperator.OR)
        assert rule.logic is LogicOperator.OR
        assert len(rule.conditions) == 2

    def test_rules_are_hashable(self):
        rule = when(Condition("a", ConditionOperator.IN, ("x", "y")))
        assert hash(rule) == hash(when(Condition("a", ConditionOperator.IN, ("x", "y"))))


class TestParsing:
    """Test parsing of raw operator and logic values."""

    def test_known_operators(self):
        assert parse_operator("notIn") is ConditionOperator.NOT_IN
        assert parse_operator(ConditionOperator.EXISTS) is ConditionOperator.EXISTS

    def test_unknown_operator_kept(self):
        assert parse_operator("greaterThan") == "greaterThan"

    def test_missing_operator_is_none(self):
        assert parse_operator(None) is None

    def test_logic_defaults_to_and(self):
        assert parse_logic(None) is LogicOperator.AND

    def test_logic_case_insensitive(self):
        assert parse_logic("or") is LogicOperator.OR

    def test_unknown_logic_kept(self):
        assert parse_logic("XOR") == "XOR"
