"""
Example schemas for demos and tests.

    - Country / state form: a select whose options depend on another select
    - Checkbox group with a sibling shown only when one box is checked
    - Checkbox groups validated as a whole by custom rules
"""
from typing import Any, Callable, Dict, List, Optional

from formlogic.expressions import Condition, ConditionOperator, when
from formlogic.model import FieldSchema, FieldType, FormSchema, Option, ValidationRules

STATES_BY_COUNTRY: Dict[str, List[Option]] = {
    "US": [Option("California", "CA"), Option("New York", "NY"), Option("Texas", "TX")],
    "CA": [Option("Ontario", "ON"), Option("Quebec", "QC"), Option("British Columbia", "BC")],
    "IN": [Option("Karnataka", "KA"), Option("Maharashtra", "MH")],
}


def lookup_states(country: Any) -> List[Option]:
    return list(STATES_BY_COUNTRY.get(country, []))


def build_country_state_schema(get_options: Optional[Callable[[Any], Any]] = None) -> FormSchema:
    """
    Country select plus a state select resolved from the chosen country.

    Args:
        get_options: Resolver for the state options (sync or async).
            Defaults to a lookup in STATES_BY_COUNTRY.
    """
    country = FieldSchema(
        name="country",
        type=FieldType.SELECT,
        label="Country",
        required=True,
        options=[
            Option("United States", "US"),
            Option("Canada", "CA"),
            Option("India", "IN", help_text="Prices are shown in INR"),
        ],
    )
    state = FieldSchema(
        name="state",
        type=FieldType.SELECT,
        label="State",
        required=True,
        depends_on="country",
        get_options=get_options or lookup_states,
        visible_when=when(Condition("country", ConditionOperator.EXISTS)),
    )
    return FormSchema(name="Country and State", fields=[country, state])


def build_checkbox_group_schema() -> FormSchema:
    """Group g with checkboxes A and B; sibling C is visible only while g.A is checked."""
    group = FieldSchema(
        name="g",
        type=FieldType.GROUP,
        label="Choices",
        children=[
            FieldSchema(name="A", type=FieldType.CHECKBOX, label="A"),
            FieldSchema(name="B", type=FieldType.CHECKBOX, label="B"),
        ],
    )
    follow_up = FieldSchema(
        name="C",
        type=FieldType.TEXT,
        label="Tell us about A",
        visible_when=when(Condition("g.A", ConditionOperator.EQUALS, True)),
    )
    return FormSchema(name="Checkbox Group", fields=[group, follow_up])


def _abc_group(name: str, label: str, custom: Callable[[Any], Any]) -> FieldSchema:
    return FieldSchema(
        name=name,
        type=FieldType.GROUP,
        label=label,
        validation=ValidationRules(custom=custom),
        children=[FieldSchema(name=key, type=FieldType.CHECKBOX, label=key) for key in ("A", "B", "C")],
    )


def _selected(value: Any, keys=("A", "B", "C")) -> List[str]:
    value = value or {}
    return [key for key in keys if value.get(key)]


def _if_a_then_b(value: Any) -> Any:
    value = value or {}
    if value.get("A") and not value.get("B"):
        return "If A is selected, B must also be selected"
    return True


def build_checkbox_validation_schema() -> FormSchema:
    """Checkbox groups whose custom rule reads the whole group value."""
    return FormSchema(
        name="Checkbox Validation",
        fields=[
            _abc_group(
                "atLeastOne", "Select at least one",
                lambda value: len(_selected(value)) > 0 or "Please select at least one option",
            ),
            _abc_group(
                "requireA", "A is required",
                lambda value: (value or {}).get("A") or "Option A is required",
            ),
            _abc_group(
                "atLeastOneFromSubset", "Select at least one from B or C",
                lambda value: len(_selected(value, ("B", "C"))) > 0 or "Select at least one from B or C",
            ),
            _abc_group("ifAthenB", "If A is selected, B must be too", _if_a_then_b),
            _abc_group(
                "maxTwo", "Select up to 2 options",
                lambda value: len(_selected(value)) <= 2 or "You can select up to 2 options only",
            ),
        ],
    )
