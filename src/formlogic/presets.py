"""
Ready-made input restrictions for numeric text fields.

Each preset pairs a per-keystroke filter (allowed_pattern) with a
validation pattern the store checks on submit. Apply one with:

    FieldSchema(name="age", **allow_positive_integers_only())
"""

from typing import Any, Dict

from formlogic.model import RuleSpec, ValidationRules

DIGITS_ONLY = r"^[0-9]*$"


def _preset(pattern: str, message: str) -> Dict[str, Any]:
    return {
        "allowed_pattern": DIGITS_ONLY,
        "validation": ValidationRules(pattern=RuleSpec(value=pattern, message=message)),
    }


def allow_digits_or_blank() -> Dict[str, Any]:
    return _preset(r"^$|^[0-9]+$", "Only numbers are allowed")


def allow_positive_integers_only() -> Dict[str, Any]:
    return _preset(r"^[1-9][0-9]*$", "Only numbers greater than 0 are allowed")


def allow_percent_range_1_to_99() -> Dict[str, Any]:
    return _preset(r"^(?:[1-9][0-9]?|0?[1-9])$", "Enter a number greater than 0 and less than 100")
