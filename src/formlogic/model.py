"""
Core Form Schema Objects

Defines the declarative input consumed by the engine:
    - Options (choices for selection fields)
    - Validation rule descriptors (passed through to the store)
    - Field schemas (recursive tree nodes)
    - Form schemas (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about widgets or styling
        - Are never mutated by the engine
        - Are serializable, apart from host callbacks
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from formlogic.expressions import VisibilityRule
from formlogic.paths import ABSENT, qualify


class FieldType(str, Enum):
    """
    Closed set of field types with built-in behavior.

    A schema may still carry a type string outside this set; it is kept
    verbatim and rendered as an "unsupported type" placeholder.
    """

    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    TEXTAREA = "textarea"
    GROUP = "group"


SELECTION_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX})


def parse_field_type(raw: Any) -> Union[FieldType, str]:
    if isinstance(raw, FieldType):
        return raw
    try:
        return FieldType(raw)
    except ValueError:
        return raw


@dataclass(frozen=True)
class Option:
    """
    One choice of a select, radio or checkbox group.

    Properties:
        label: Text shown to the user
        value: Value stored when chosen
        disabled: Whether the option can be chosen
        help_text: Extra text shown when this option is selected
    """

    label: str
    value: Any
    disabled: bool = False
    help_text: Optional[str] = None


@dataclass(frozen=True)
class RuleSpec:
    """A rule operand with an optional author-supplied message."""

    value: Any
    message: Optional[str] = None


@dataclass
class ValidationRules:
    """
    Validation rule descriptors.

    The engine never evaluates these. They are handed to the store
    when a field mounts; the store decides what an error is.

    Properties:
        pattern: RuleSpec whose value is a regex (string or compiled)
        min_length: RuleSpec whose value is an int
        max_length: RuleSpec whose value is an int
        custom: Callable(value) returning True, False, or an error message
    """

    pattern: Optional[RuleSpec] = None
    min_length: Optional[RuleSpec] = None
    max_length: Optional[RuleSpec] = None
    custom: Optional[Callable[[Any], Union[bool, str]]] = None

    def is_empty(self) -> bool:
        return not (self.pattern or self.min_length or self.max_length or self.custom)


@dataclass
class FieldSchema:
    """
    Declarative description of a single field or field group.

    Properties:
        name:
            Identifier, unique among siblings.
            The qualified address is built from ancestor group names.

        type:
            FieldType, or the raw string for unknown types

        default_value:
            Value used as the fallback when a hidden field is cleared.
            ABSENT when the schema declares none.

        visible_when:
            VisibilityRule or None (always visible)

        preserve_value:
            Keep the stored value when the field becomes hidden

        depends_on:
            Qualified address of the field whose value drives get_options

        get_options:
            Callable(parent_value) -> list of Option, or an awaitable of one

        children:
            Child schemas. Only meaningful for type == group.

        debounce_ms:
            Delay for on_value_change_debounced. None uses the engine default.

        render / override_component:
            Host rendering hooks. render replaces everything the engine would
            render for this field; override_component replaces only the widget.

    INVARIANTS:
        - children is non-empty only for groups
        - name is unique among siblings
        (checked once per schema load by formlogic.analyzer.validate_schema)
    """

    name: str
    type: Union[FieldType, str] = FieldType.TEXT
    label: str = ""
    default_value: Any = ABSENT
    required: bool = False
    disabled: bool = False
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    validation: ValidationRules = field(default_factory=ValidationRules)
    visible_when: Optional[VisibilityRule] = None
    preserve_value: bool = False
    depends_on: Optional[str] = None
    get_options: Optional[Callable[[Any], Any]] = None
    options: List[Option] = field(default_factory=list)
    children: List["FieldSchema"] = field(default_factory=list)
    debounce_ms: Optional[int] = None
    on_value_change: Optional[Callable[..., Any]] = None
    on_value_change_debounced: Optional[Callable[..., Any]] = None
    error_text: Optional[str] = None
    get_error_message: Optional[Callable[[Any], Optional[str]]] = None
    show_error_on_blur: bool = False
    allowed_pattern: Optional[str] = None
    max_length: Optional[int] = None
    show_word_count: bool = False
    render: Optional[Callable[..., Any]] = None
    override_component: Optional[Callable[..., Any]] = None
    override_component_props: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.type = parse_field_type(self.type)

    @property
    def is_group(self) -> bool:
        return self.type == FieldType.GROUP

    @property
    def has_default(self) -> bool:
        return self.default_value is not ABSENT

    @property
    def display_label(self) -> str:
        """Label used in generated messages; falls back to the name."""
        return self.label or self.name


@dataclass
class FormSchema:
    """
    Root container for a form definition.

    Properties:
        name: Form identifier
        fields: Top-level field schemas
        metadata: Arbitrary key-value pairs (use sparingly)
    """

    name: str = ""
    fields: List[FieldSchema] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def iter_fields(self) -> Iterator[Tuple[str, FieldSchema]]:
        """
        Walk the whole tree depth-first.

        Yields:
            (qualified address, field schema) pairs, parents before children
        """
        yield from iter_addresses(self.fields)

    def get_field(self, address: str) -> Optional[FieldSchema]:
        """
        Retrieve a field by qualified address.

        Args:
            address: Qualified address, e.g. "contact.email"

        Returns:
            FieldSchema or None if not found
        """
        for candidate, schema in self.iter_fields():
            if candidate == address:
                return schema
        return None


def iter_addresses(fields: List[FieldSchema], parent: Optional[str] = None) -> Iterator[Tuple[str, FieldSchema]]:
    for schema in fields:
        address = qualify(parent, schema.name)
        yield address, schema
        if schema.children:
            yield from iter_addresses(schema.children, address)


def as_field_list(schema: Union[FormSchema, List[FieldSchema]]) -> List[FieldSchema]:
    if isinstance(schema, FormSchema):
        return schema.fields
    return list(schema)
