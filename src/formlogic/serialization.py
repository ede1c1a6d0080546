"""
Serialization helpers for formlogic schemas (FormSchema, FieldSchema, VisibilityRule, etc.).

Provides JSON/YAML round-trip via an intermediate dict representation
using the camelCase keys schema authors write (defaultValue, visibleWhen,
preserveValue, dependsOn, ...).

Host callbacks (getOptions, onValueChange, render, overrideComponent, custom
validators) cannot be expressed in JSON or YAML. They are accepted when a
dict is built in code and omitted on output.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from formlogic.expressions import (
    Condition,
    ConditionOperator,
    LogicOperator,
    VisibilityRule,
    parse_logic,
    parse_operator,
)
from formlogic.model import FieldSchema, FieldType, FormSchema, Option, RuleSpec, ValidationRules
from formlogic.paths import ABSENT


def _enum_value(raw: Any) -> Any:
    return raw.value if isinstance(raw, (ConditionOperator, LogicOperator, FieldType)) else raw


def condition_to_dict(c: Condition) -> Dict[str, Any]:
    d = {"field": c.field, "operator": _enum_value(c.operator)}
    if c.value is not None:
        d["value"] = list(c.value) if isinstance(c.value, tuple) else c.value
    return d


def condition_from_dict(d: Dict[str, Any]) -> Condition:
    return Condition(field=d.get("field"), operator=parse_operator(d.get("operator")), value=d.get("value"))


def rule_to_dict(r: VisibilityRule | None) -> Dict[str, Any] | None:
    if r is None:
        return None
    return {"logic": _enum_value(r.logic), "conditions": [condition_to_dict(c) for c in r.conditions]}


def rule_from_dict(d: Dict[str, Any] | None) -> VisibilityRule | None:
    if d is None:
        return None
    return VisibilityRule(
        conditions=tuple(condition_from_dict(c) for c in d.get("conditions") or []),
        logic=parse_logic(d.get("logic")),
    )


def option_to_dict(o: Option) -> Dict[str, Any]:
    d = {"label": o.label, "value": o.value}
    if o.disabled:
        d["disabled"] = True
    if o.help_text is not None:
        d["helpText"] = o.help_text
    return d


def option_from_dict(d: Dict[str, Any]) -> Option:
    return Option(
        label=d.get("label", str(d.get("value", ""))),
        value=d.get("value"),
        disabled=bool(d.get("disabled", False)),
        help_text=d.get("helpText"),
    )


def _spec_to_dict(s: RuleSpec | None) -> Any:
    if s is None:
        return None
    value = getattr(s.value, "pattern", s.value)
    return {"value": value, "message": s.message} if s.message else value


def _spec_from_dict(d: Any) -> RuleSpec | None:
    if d is None:
        return None
    if isinstance(d, RuleSpec):
        return d
    if isinstance(d, dict):
        return RuleSpec(value=d.get("value"), message=d.get("message"))
    return RuleSpec(value=d)


def validation_to_dict(v: ValidationRules) -> Dict[str, Any] | None:
    d = {}
    for key, spec in (("pattern", v.pattern), ("minLength", v.min_length), ("maxLength", v.max_length)):
        if spec is not None:
            d[key] = _spec_to_dict(spec)
    return d or None


def validation_from_dict(d: Dict[str, Any] | None) -> ValidationRules:
    if not d:
        return ValidationRules()
    return ValidationRules(
        pattern=_spec_from_dict(d.get("pattern")),
        min_length=_spec_from_dict(d.get("minLength")),
        max_length=_spec_from_dict(d.get("maxLength")),
        custom=d.get("custom") if callable(d.get("custom")) else None,
    )


def field_to_dict(f: FieldSchema) -> Dict[str, Any]:
    d: Dict[str, Any] = {"name": f.name, "type": _enum_value(f.type)}
    if f.label:
        d["label"] = f.label
    if f.default_value is not ABSENT:
        d["defaultValue"] = f.default_value
    if f.required:
        d["required"] = True
    if f.disabled:
        d["disabled"] = True
    if f.placeholder is not None:
        d["placeholder"] = f.placeholder
    if f.help_text is not None:
        d["helpText"] = f.help_text
    validation = validation_to_dict(f.validation)
    if validation:
        d["validation"] = validation
    if f.visible_when is not None:
        d["visibleWhen"] = rule_to_dict(f.visible_when)
    if f.preserve_value:
        d["preserveValue"] = True
    if f.depends_on is not None:
        d["dependsOn"] = f.depends_on
    if f.options:
        d["options"] = [option_to_dict(o) for o in f.options]
    if f.children:
        d["children"] = [field_to_dict(c) for c in f.children]
    if f.debounce_ms is not None:
        d["debounceMs"] = f.debounce_ms
    if f.error_text is not None:
        d["errorText"] = f.error_text
    if f.show_error_on_blur:
        d["showErrorOnBlur"] = True
    if f.allowed_pattern is not None:
        d["allowedPattern"] = f.allowed_pattern
    if f.max_length is not None:
        d["maxLength"] = f.max_length
    if f.show_word_count:
        d["showWordCount"] = True
    if f.override_component_props:
        d["overrideComponentProps"] = f.override_component_props
    return d


def field_from_dict(d: Dict[str, Any]) -> FieldSchema:
    return FieldSchema(
        name=d["name"],
        type=d.get("type", FieldType.TEXT.value),
        label=d.get("label", ""),
        default_value=d["defaultValue"] if "defaultValue" in d else ABSENT,
        required=bool(d.get("required", False)),
        disabled=bool(d.get("disabled", False)),
        placeholder=d.get("placeholder"),
        help_text=d.get("helpText"),
        validation=validation_from_dict(d.get("validation")),
        visible_when=rule_from_dict(d.get("visibleWhen")),
        preserve_value=bool(d.get("preserveValue", False)),
        depends_on=d.get("dependsOn"),
        get_options=d.get("getOptions"),
        options=[option_from_dict(o) for o in d.get("options") or []],
        children=[field_from_dict(c) for c in d.get("children") or []],
        debounce_ms=d.get("debounceMs"),
        on_value_change=d.get("onValueChange"),
        on_value_change_debounced=d.get("onValueChangeDebounced"),
        error_text=d.get("errorText"),
        get_error_message=d.get("getErrorMessage"),
        show_error_on_blur=bool(d.get("showErrorOnBlur", False)),
        allowed_pattern=d.get("allowedPattern"),
        max_length=d.get("maxLength"),
        show_word_count=bool(d.get("showWordCount", False)),
        render=d.get("render"),
        override_component=d.get("overrideComponent"),
        override_component_props=dict(d.get("overrideComponentProps") or {}),
    )


def schema_to_dict(s: FormSchema) -> Dict[str, Any]:
    return {
        "name": s.name,
        "fields": [field_to_dict(f) for f in s.fields],
        "metadata": s.metadata,
    }


def schema_from_dict(d: Any) -> FormSchema:
    """Build a FormSchema from a {name, fields, metadata} mapping or a bare list of fields."""
    if isinstance(d, list):
        return FormSchema(fields=fields_from_list(d))
    s = FormSchema(name=d.get("name", ""))
    s.fields = fields_from_list(d.get("fields") or [])
    s.metadata = d.get("metadata") or {}
    return s


def fields_from_list(items: List[Dict[str, Any]]) -> List[FieldSchema]:
    return [field_from_dict(f) for f in items]


def schema_to_json(s: FormSchema) -> str:
    return json.dumps(schema_to_dict(s), sort_keys=True)


def schema_from_json(s: str) -> FormSchema:
    d = json.loads(s)
    return schema_from_dict(d)


def schema_to_yaml(s: FormSchema) -> str:
    return yaml.safe_dump(schema_to_dict(s))


def schema_from_yaml(s: str) -> FormSchema:
    d = yaml.safe_load(s)
    return schema_from_dict(d)
