"""
Tests for the bundled example schemas and input presets.
"""

from formlogic.analyzer import analyze_schema
from formlogic.engine import FormEngine
from formlogic.examples import (
    build_checkbox_group_schema,
    build_checkbox_validation_schema,
    build_country_state_schema,
    lookup_states,
)
from formlogic.model import FieldSchema
from formlogic.presets import allow_digits_or_blank, allow_percent_range_1_to_99, allow_positive_integers_only
from formlogic.store import FieldError, InMemoryFormStore, check_rules


def test_examples_are_valid():
    for schema in (build_country_state_schema(), build_checkbox_group_schema(), build_checkbox_validation_schema()):
        report = analyze_schema(schema)
        assert report.ok, report.errors
        assert report.warnings == []


def test_lookup_states():
    assert [o.value for o in lookup_states("IN")] == ["KA", "MH"]
    assert lookup_states("FR") == []
    assert lookup_states(None) == []


class TestCheckboxValidationSchema:
    """Group-level custom rules read the whole group value."""

    def _engine(self, values=None):
        schema = build_checkbox_validation_schema()
        store = InMemoryFormStore(values)
        engine = FormEngine(schema, store)
        engine.render()
        return engine, store

    def test_untouched_groups(self):
        engine, store = self._engine()
        assert not engine.validate()
        assert store.get_error("atLeastOne") == FieldError("custom", "Please select at least one option")
        assert store.get_error("requireA") == FieldError("custom", "Option A is required")
        assert store.get_error("ifAthenB") is None
        assert store.get_error("maxTwo") is None

    def test_group_error_message_rendered(self):
        engine, _ = self._engine()
        engine.validate()
        engine.render()
        assert engine.find("atLeastOne").error == "Please select at least one option"

    def test_all_satisfied(self):
        values = {
            "atLeastOne": {"A": True},
            "requireA": {"A": True},
            "atLeastOneFromSubset": {"C": True},
            "ifAthenB": {"A": True, "B": True},
            "maxTwo": {"A": True, "B": True},
        }
        engine, _ = self._engine(values)
        assert engine.validate()

    def test_if_a_then_b(self):
        engine, store = self._engine({"ifAthenB": {"A": True}})
        engine.validate()
        assert store.get_error("ifAthenB").message == "If A is selected, B must also be selected"

    def test_max_two(self):
        engine, store = self._engine({"maxTwo": {"A": True, "B": True, "C": True}})
        engine.validate()
        assert store.get_error("maxTwo").message == "You can select up to 2 options only"


class TestPresets:
    """Presets combine a keystroke filter with a submit-time pattern."""

    def test_digits_or_blank(self):
        field = FieldSchema(name="n", **allow_digits_or_blank())
        assert field.allowed_pattern == r"^[0-9]*$"
        assert check_rules(field, "") is None
        assert check_rules(field, "0042") is None

    def test_positive_integers(self):
        field = FieldSchema(name="n", **allow_positive_integers_only())
        assert check_rules(field, "12") is None
        assert check_rules(field, "012") == FieldError("pattern", "Only numbers greater than 0 are allowed")

    def test_percent_range(self):
        field = FieldSchema(name="n", **allow_percent_range_1_to_99())
        for ok in ("1", "09", "99"):
            assert check_rules(field, ok) is None
        for bad in ("0", "100", "00"):
            assert check_rules(field, bad).message == "Enter a number greater than 0 and less than 100"

    def test_filter_applied_on_change(self):
        store = InMemoryFormStore()
        engine = FormEngine([FieldSchema(name="n", **allow_positive_integers_only())], store)
        engine.render()
        engine.change("n", "4x2")
        assert store.get_value("n") == "42"
