"""
Field type dispatch.

Maps a schema node to the behavior that renders it, in fixed precedence:

    1. field.render              custom render function, replaces everything
    2. field.override_component  replaces only the widget; options, children
                                 and every other engine behavior still apply
    3. built-in behavior         looked up by FieldType in a strategy table

Unknown types without an override produce an UNSUPPORTED node instead of
failing, so schema authoring mistakes show up in place.

Groups recurse: the caller supplies a walker that renders a list of child
schemas under a parent address, and the group passes its own address.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from formlogic.config import EngineConfig, get_engine_config
from formlogic.model import FieldSchema, FieldType, Option
from formlogic.options import OptionState
from formlogic.paths import ABSENT
from formlogic.store import FieldUtils

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    WIDGET = "widget"
    GROUP = "group"
    OVERRIDE = "override"
    CUSTOM = "custom"
    UNSUPPORTED = "unsupported"


@dataclass
class WidgetSpec:
    """
    Everything a widget needs to draw one field.

    Properties:
        type: Field type value ("text", "select", ...)
        name: Qualified address, used as the widget id
        value: Value to display (stored value, else default, else empty)
        loading: Debounced effect or option resolution outstanding
        options: Current option list for selection fields
        fetch_error: Option resolution advisory, else None
        selected_help_text: Help text of the selected option, else None
        char_count / word_count: Counters for text areas
    """

    type: str
    name: str
    label: str = ""
    value: Any = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    required: bool = False
    disabled: bool = False
    loading: bool = False
    error: Optional[str] = None
    options: List[Option] = field(default_factory=list)
    fetch_error: Optional[str] = None
    selected_help_text: Optional[str] = None
    max_length: Optional[int] = None
    char_count: Optional[int] = None
    word_count: Optional[int] = None


@dataclass
class RenderNode:
    """
    One rendered field in the output tree.

    Properties:
        address: Qualified address
        field: Source schema node
        kind: NodeKind
        widget: WidgetSpec built by the type's behavior (None for CUSTOM, UNSUPPORTED
            and overrides of unknown types)
        output: Return value of a custom render function or override component,
            or the placeholder text for UNSUPPORTED
        error: Resolved error message, else None
        children: Rendered children of a group
    """

    address: str
    field: FieldSchema
    kind: NodeKind
    widget: Optional[WidgetSpec] = None
    output: Any = None
    error: Optional[str] = None
    children: List["RenderNode"] = field(default_factory=list)

    def find(self, address: str) -> Optional["RenderNode"]:
        if self.address == address:
            return self
        for child in self.children:
            found = child.find(address)
            if found is not None:
                return found
        return None


@dataclass
class FieldContext:
    """
    Per-render inputs a behavior may read.

    resolve_options is only called by selection behaviors, so fields that
    never reach a built-in behavior never start option resolution.
    """

    address: str
    field: FieldSchema
    value: Any
    error: Optional[str]
    loading: bool
    utils: FieldUtils
    resolve_options: Callable[[], OptionState]


@dataclass(frozen=True)
class RenderProps:
    """Arguments handed to a field's custom render function."""

    name: str
    value: Any
    error: Optional[str]
    default_value: Any
    utils: FieldUtils


def display_value(ctx: FieldContext, empty: Any) -> Any:
    if ctx.value is not ABSENT:
        return ctx.value
    if ctx.field.has_default:
        return ctx.field.default_value
    return empty


class FieldBehavior(ABC):
    """Built-in behavior for one field type."""

    def empty_value(self, field: FieldSchema) -> Any:
        """Value written when a hidden field with no default is cleared."""
        return ""

    def coerce(self, field: FieldSchema, raw: Any, current: Any) -> Any:
        """Normalize a user-entered value before it is stored."""
        return raw

    @abstractmethod
    def build(self, ctx: FieldContext) -> WidgetSpec:
        """Produce the widget description for this render."""

    def _base(self, ctx: FieldContext, empty: Any = "") -> WidgetSpec:
        schema = ctx.field
        return WidgetSpec(
            type=str(getattr(schema.type, "value", schema.type)),
            name=ctx.address,
            label=schema.label,
            value=display_value(ctx, empty),
            placeholder=schema.placeholder,
            help_text=schema.help_text,
            required=schema.required,
            disabled=schema.disabled,
            loading=ctx.loading,
            error=ctx.error,
            max_length=schema.max_length,
        )


class TextBehavior(FieldBehavior):
    """text and email inputs; allowed_pattern filters typed characters."""

    def coerce(self, field: FieldSchema, raw: Any, current: Any) -> Any:
        if field.allowed_pattern and isinstance(raw, str):
            allowed = re.compile(field.allowed_pattern)
            return "".join(ch for ch in raw if allowed.search(ch))
        return raw

    def build(self, ctx: FieldContext) -> WidgetSpec:
        return self._base(ctx)


class NumberBehavior(FieldBehavior):

    def coerce(self, field: FieldSchema, raw: Any, current: Any) -> Any:
        if not isinstance(raw, str):
            return raw
        text = raw.strip()
        if text == "":
            return ""
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            # kept verbatim so validation can report it
            return raw

    def build(self, ctx: FieldContext) -> WidgetSpec:
        return self._base(ctx)


class TextAreaBehavior(TextBehavior):

    def build(self, ctx: FieldContext) -> WidgetSpec:
        spec = self._base(ctx)
        text = spec.value if isinstance(spec.value, str) else ""
        spec.char_count = len(text)
        if ctx.field.show_word_count:
            spec.word_count = len(text.split())
        return spec


class ChoiceBehavior(FieldBehavior):
    """Shared option handling for select, radio and checkbox groups."""

    def _with_options(self, ctx: FieldContext, spec: WidgetSpec) -> WidgetSpec:
        state = ctx.resolve_options()
        spec.options = list(state.options)
        spec.fetch_error = state.fetch_error
        spec.loading = spec.loading or state.loading
        for option in spec.options:
            if option.value == spec.value:
                spec.selected_help_text = option.help_text
                break
        return spec

    def build(self, ctx: FieldContext) -> WidgetSpec:
        return self._with_options(ctx, self._base(ctx))


class SelectBehavior(ChoiceBehavior):

    def build(self, ctx: FieldContext) -> WidgetSpec:
        spec = super().build(ctx)
        spec.disabled = spec.disabled or spec.loading
        return spec


class RadioBehavior(ChoiceBehavior):
    pass


class CheckboxBehavior(ChoiceBehavior):
    """
    A single checkbox stores a bool; a checkbox with options stores the
    list of checked option values.
    """

    def empty_value(self, field: FieldSchema) -> Any:
        return [] if field.options or field.get_options else False

    def coerce(self, field: FieldSchema, raw: Any, current: Any) -> Any:
        if field.options or field.get_options:
            return list(raw) if isinstance(raw, (list, tuple, set)) else raw
        return bool(raw)

    def toggle(self, current: Any, option_value: Any, checked: bool) -> List[Any]:
        selected = list(current) if isinstance(current, (list, tuple)) else []
        if checked and option_value not in selected:
            selected.append(option_value)
        elif not checked:
            selected = [v for v in selected if v != option_value]
        return selected

    def build(self, ctx: FieldContext) -> WidgetSpec:
        spec = self._base(ctx, self.empty_value(ctx.field))
        if ctx.field.options or ctx.field.get_options:
            spec = self._with_options(ctx, spec)
            spec.selected_help_text = None
        return spec


class GroupBehavior(FieldBehavior):

    def empty_value(self, field: FieldSchema) -> Any:
        return {}

    def build(self, ctx: FieldContext) -> WidgetSpec:
        return self._base(ctx, {})


def default_behaviors() -> Dict[FieldType, FieldBehavior]:
    text = TextBehavior()
    return {
        FieldType.TEXT: text,
        FieldType.EMAIL: text,
        FieldType.NUMBER: NumberBehavior(),
        FieldType.TEXTAREA: TextAreaBehavior(),
        FieldType.SELECT: SelectBehavior(),
        FieldType.RADIO: RadioBehavior(),
        FieldType.CHECKBOX: CheckboxBehavior(),
        FieldType.GROUP: GroupBehavior(),
    }


Walker = Callable[[Sequence[FieldSchema], str], List[RenderNode]]


class FieldTypeDispatcher:
    """
    Strategy table from FieldType to FieldBehavior, plus the two override slots.

    Example:
        dispatcher = FieldTypeDispatcher()
        dispatcher.register(FieldType.TEXT, UppercaseTextBehavior())
    """

    def __init__(self, behaviors: Optional[Dict[FieldType, FieldBehavior]] = None, config: Optional[EngineConfig] = None):
        self._behaviors: Dict[Any, FieldBehavior] = default_behaviors()
        if behaviors:
            self._behaviors.update(behaviors)
        self._config = config or get_engine_config()

    def register(self, field_type: FieldType, behavior: FieldBehavior) -> None:
        self._behaviors[field_type] = behavior

    def behavior_for(self, field: FieldSchema) -> Optional[FieldBehavior]:
        return self._behaviors.get(field.type)

    def empty_value(self, field: FieldSchema) -> Any:
        behavior = self.behavior_for(field)
        return behavior.empty_value(field) if behavior is not None else ""

    def dispatch(self, ctx: FieldContext, walk_children: Walker) -> RenderNode:
        """
        Render one visible field.

        Args:
            ctx: Per-render inputs for the field
            walk_children: Renders child schemas under a parent address

        Returns:
            RenderNode for the field (and, for groups, its visible children)
        """
        schema = ctx.field
        address = ctx.address

        if schema.render is not None:
            props = RenderProps(
                name=address,
                value=ctx.value,
                error=ctx.error,
                default_value=None if schema.default_value is ABSENT else schema.default_value,
                utils=ctx.utils,
            )
            try:
                output = schema.render(props)
            except Exception:
                logger.exception("Custom render for %s raised", address)
                output = None
            return RenderNode(address=address, field=schema, kind=NodeKind.CUSTOM, output=output, error=ctx.error)

        behavior = self.behavior_for(schema)

        if schema.override_component is not None:
            # an override also stands in for types the table does not know
            widget = behavior.build(ctx) if behavior is not None else None
            children = walk_children(schema.children, address) if schema.is_group else []
            props = dict(schema.override_component_props)
            props.update(field=schema, name=address, error=ctx.error, widget=widget, children=children)
            try:
                output = schema.override_component(**props)
            except Exception:
                logger.exception("Override component for %s raised", address)
                output = None
            return RenderNode(
                address=address, field=schema, kind=NodeKind.OVERRIDE,
                widget=widget, output=output, error=ctx.error, children=children,
            )

        if behavior is None:
            type_name = getattr(schema.type, "value", schema.type)
            logger.warning("Unsupported field type %r at %s", type_name, address)
            return RenderNode(
                address=address,
                field=schema,
                kind=NodeKind.UNSUPPORTED,
                output=self._config.unsupported_label.format(type=type_name),
            )

        widget = behavior.build(ctx)
        children = walk_children(schema.children, address) if schema.is_group else []
        kind = NodeKind.GROUP if schema.is_group else NodeKind.WIDGET
        return RenderNode(address=address, field=schema, kind=kind, widget=widget, error=ctx.error, children=children)
