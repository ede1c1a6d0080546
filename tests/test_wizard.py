"""
Tests for multi-step navigation.
"""

import pytest

from formlogic.analyzer import SchemaValidationError
from formlogic.expressions import Condition, ConditionOperator, when
from formlogic.model import FieldSchema, FieldType
from formlogic.store import InMemoryFormStore
from formlogic.wizard import FormWizard, WizardStep


def _steps():
    return [
        WizardStep(title="Account", fields=[FieldSchema(name="email", label="Email", required=True)]),
        WizardStep(
            title="Profile",
            fields=[
                FieldSchema(name="company", type=FieldType.CHECKBOX),
                FieldSchema(
                    name="vat",
                    required=True,
                    visible_when=when(Condition("company", ConditionOperator.EQUALS, True)),
                ),
            ],
        ),
    ]


class TestNavigation:

    def test_blocked_until_valid(self):
        store = InMemoryFormStore()
        changes = []
        wizard = FormWizard(_steps(), store, on_submit=lambda values: None, on_step_change=changes.append)
        wizard.render()

        assert wizard.is_first
        assert not wizard.next()
        assert wizard.current_step == 0
        wizard.render()
        assert wizard.engine.find("email").error == "Email is required"

        wizard.engine.change("email", "a@b.c")
        assert wizard.next()
        assert wizard.current_step == 1
        assert wizard.is_last
        assert changes == [1]

    def test_submit_on_last_step(self):
        store = InMemoryFormStore({"email": "a@b.c"})
        submitted = []
        wizard = FormWizard(_steps(), store, on_submit=submitted.append)
        wizard.render()
        wizard.next()

        # hidden required field does not block submission
        assert wizard.next()
        assert submitted == [{"email": "a@b.c"}]

    def test_visible_required_field_blocks_submit(self):
        store = InMemoryFormStore({"email": "a@b.c"})
        submitted = []
        wizard = FormWizard(_steps(), store, on_submit=submitted.append)
        wizard.render()
        wizard.next()

        wizard.engine.change("company", True)
        assert not wizard.next()
        wizard.engine.change("vat", "EU123")
        assert wizard.next()
        assert submitted == [{"email": "a@b.c", "company": True, "vat": "EU123"}]

    def test_prev(self):
        store = InMemoryFormStore({"email": "a@b.c"})
        changes = []
        wizard = FormWizard(_steps(), store, on_submit=lambda v: None, on_step_change=changes.append)
        wizard.render()

        assert not wizard.prev()
        wizard.next()
        assert wizard.prev()
        assert wizard.current_step == 0
        assert changes == [1, 0]
        assert wizard.engine.find("email").widget.value == "a@b.c"


class TestConstruction:

    def test_needs_steps(self):
        with pytest.raises(ValueError):
            FormWizard([], InMemoryFormStore(), on_submit=lambda v: None)

    def test_names_unique_across_steps(self):
        steps = [WizardStep(fields=[FieldSchema(name="a")]), WizardStep(fields=[FieldSchema(name="a")])]
        with pytest.raises(SchemaValidationError):
            FormWizard(steps, InMemoryFormStore(), on_submit=lambda v: None)
