"""
Tests for field type dispatch.

These tests verify:
    - Precedence: render > override_component > built-in behavior
    - Unknown types render a placeholder
    - Per-type behavior (coercion, counters, option handling)
"""

from formlogic.dispatcher import (
    CheckboxBehavior,
    FieldContext,
    FieldTypeDispatcher,
    NodeKind,
    NumberBehavior,
    TextBehavior,
    WidgetSpec,
    FieldBehavior,
)
from formlogic.model import FieldSchema, FieldType, Option
from formlogic.options import OptionState
from formlogic.paths import ABSENT
from formlogic.store import FieldUtils, InMemoryFormStore


def _ctx(field, value=ABSENT, error=None, loading=False, options_state=None, address=None):
    store = InMemoryFormStore()
    state = options_state or OptionState(options=list(field.options))
    return FieldContext(
        address=address or field.name,
        field=field,
        value=value,
        error=error,
        loading=loading,
        utils=FieldUtils.for_store(store),
        resolve_options=lambda: state,
    )


def _no_children(children, parent):
    return []


class TestPrecedence:
    """Test render / override / built-in precedence."""

    def test_render_wins(self):
        seen = {}

        def render(props):
            seen["props"] = props
            return "custom"

        field = FieldSchema(
            name="x",
            render=render,
            override_component=lambda **kw: "override",
            default_value="d",
        )
        node = FieldTypeDispatcher().dispatch(_ctx(field, value="v", error="bad"), _no_children)

        assert node.kind is NodeKind.CUSTOM
        assert node.output == "custom"
        assert node.widget is None
        assert seen["props"].value == "v"
        assert seen["props"].default_value == "d"
        assert seen["props"].error == "bad"

    def test_override_keeps_engine_behavior(self):
        received = {}

        def override(**kwargs):
            received.update(kwargs)
            return "override"

        field = FieldSchema(
            name="color",
            type=FieldType.SELECT,
            options=[Option("Red", "r")],
            override_component=override,
            override_component_props={"variant": "outlined"},
        )
        node = FieldTypeDispatcher().dispatch(_ctx(field, value="r"), _no_children)

        assert node.kind is NodeKind.OVERRIDE
        assert node.output == "override"
        assert received["variant"] == "outlined"
        assert received["name"] == "color"
        assert [o.value for o in received["widget"].options] == ["r"]

    def test_override_on_group_receives_children(self):
        field = FieldSchema(
            name="g",
            type=FieldType.GROUP,
            children=[FieldSchema(name="A", type=FieldType.CHECKBOX)],
            override_component=lambda **kw: len(kw["children"]),
        )

        def walk(children, parent):
            return [FieldTypeDispatcher().dispatch(_ctx(c, address=f"{parent}.{c.name}"), _no_children) for c in children]

        node = FieldTypeDispatcher().dispatch(_ctx(field), walk)
        assert node.output == 1
        assert node.children[0].address == "g.A"

    def test_override_renders_unknown_type(self):
        field = FieldSchema(name="extra", type="additional_email", override_component=lambda **kw: "custom-widget")
        node = FieldTypeDispatcher().dispatch(_ctx(field), _no_children)

        assert node.kind is NodeKind.OVERRIDE
        assert node.output == "custom-widget"
        assert node.widget is None

    def test_override_props_cannot_shadow_engine_keys(self):
        received = {}

        def override(**kwargs):
            received.update(kwargs)
            return "override"

        field = FieldSchema(
            name="x",
            override_component=override,
            override_component_props={"name": "ignored", "variant": "outlined"},
        )
        node = FieldTypeDispatcher().dispatch(_ctx(field, address="g.x", error="bad"), _no_children)

        assert node.output == "override"
        assert received["name"] == "g.x"
        assert received["error"] == "bad"
        assert received["variant"] == "outlined"

    def test_builtin(self):
        node = FieldTypeDispatcher().dispatch(_ctx(FieldSchema(name="x", label="X")), _no_children)
        assert node.kind is NodeKind.WIDGET
        assert node.widget.type == "text"
        assert node.widget.label == "X"

    def test_render_exception_is_contained(self):
        def render(props):
            raise RuntimeError("broken renderer")

        node = FieldTypeDispatcher().dispatch(_ctx(FieldSchema(name="x", render=render)), _no_children)
        assert node.kind is NodeKind.CUSTOM
        assert node.output is None


class TestUnsupported:
    """Unknown types render a placeholder."""

    def test_unknown_type(self):
        field = FieldSchema(name="x", type="signature")
        node = FieldTypeDispatcher().dispatch(_ctx(field), _no_children)
        assert node.kind is NodeKind.UNSUPPORTED
        assert node.output == "Unsupported field type: signature"

    def test_registered_type_supported(self):
        class SignatureBehavior(FieldBehavior):
            def build(self, ctx):
                return WidgetSpec(type="signature", name=ctx.address)

        dispatcher = FieldTypeDispatcher()
        dispatcher.register("signature", SignatureBehavior())
        node = dispatcher.dispatch(_ctx(FieldSchema(name="x", type="signature")), _no_children)
        assert node.kind is NodeKind.WIDGET


class TestDisplayValue:
    """Displayed value falls back to default, then empty."""

    def test_stored_value(self):
        node = FieldTypeDispatcher().dispatch(_ctx(FieldSchema(name="x", default_value="d"), value="v"), _no_children)
        assert node.widget.value == "v"

    def test_default_value(self):
        node = FieldTypeDispatcher().dispatch(_ctx(FieldSchema(name="x", default_value="d")), _no_children)
        assert node.widget.value == "d"

    def test_empty(self):
        node = FieldTypeDispatcher().dispatch(_ctx(FieldSchema(name="x")), _no_children)
        assert node.widget.value == ""


class TestBehaviors:
    """Per-type behavior."""

    def test_allowed_pattern_filters(self):
        field = FieldSchema(name="n", allowed_pattern=r"^[0-9]*$")
        assert TextBehavior().coerce(field, "12a3", "") == "123"

    def test_number_coercion(self):
        field = FieldSchema(name="n", type=FieldType.NUMBER)
        behavior = NumberBehavior()
        assert behavior.coerce(field, "42", "") == 42
        assert behavior.coerce(field, "4.5", "") == 4.5
        assert behavior.coerce(field, "", 3) == ""
        assert behavior.coerce(field, "abc", "") == "abc"
        assert behavior.coerce(field, 7, "") == 7

    def test_textarea_counters(self):
        field = FieldSchema(name="bio", type=FieldType.TEXTAREA, show_word_count=True, max_length=100)
        node = FieldTypeDispatcher().dispatch(_ctx(field, value="hello big world"), _no_children)
        assert node.widget.char_count == 15
        assert node.widget.word_count == 3
        assert node.widget.max_length == 100

    def test_select_disabled_while_loading(self):
        field = FieldSchema(name="state", type=FieldType.SELECT, get_options=lambda p: [])
        node = FieldTypeDispatcher().dispatch(_ctx(field, options_state=OptionState(loading=True)), _no_children)
        assert node.widget.loading
        assert node.widget.disabled

    def test_select_fetch_error_and_help_text(self):
        options = [Option("India", "IN", help_text="INR")]
        field = FieldSchema(name="country", type=FieldType.SELECT, options=options)
        node = FieldTypeDispatcher().dispatch(_ctx(field, value="IN"), _no_children)
        assert node.widget.selected_help_text == "INR"

        failed = OptionState(fetch_error="Failed to load options.")
        node = FieldTypeDispatcher().dispatch(_ctx(field, options_state=failed), _no_children)
        assert node.widget.fetch_error == "Failed to load options."
        assert node.widget.options == []

    def test_single_checkbox(self):
        field = FieldSchema(name="agree", type=FieldType.CHECKBOX)
        behavior = CheckboxBehavior()
        assert behavior.empty_value(field) is False
        assert behavior.coerce(field, 1, False) is True
        node = FieldTypeDispatcher().dispatch(_ctx(field), _no_children)
        assert node.widget.value is False

    def test_checkbox_group_toggle(self):
        field = FieldSchema(name="tags", type=FieldType.CHECKBOX, options=[Option("A", "a"), Option("B", "b")])
        behavior = CheckboxBehavior()
        assert behavior.empty_value(field) == []
        selected = behavior.toggle([], "a", True)
        selected = behavior.toggle(selected, "b", True)
        assert selected == ["a", "b"]
        assert behavior.toggle(selected, "a", False) == ["b"]

    def test_group_empty_value(self):
        dispatcher = FieldTypeDispatcher()
        assert dispatcher.empty_value(FieldSchema(name="g", type=FieldType.GROUP)) == {}
        assert dispatcher.empty_value(FieldSchema(name="x", type="unknown")) == ""
