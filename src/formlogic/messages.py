"""
Human-readable validation messages.

The store decides whether a field is in error; this module only decides
what to say about it. Precedence, first non-empty wins:

    1. field.error_text               (fixed text from the schema author)
    2. field.get_error_message(error) (author-supplied callable)
    3. error.message                  (message carried by the failed rule)
    4. built-in fallback keyed by rule kind
"""

import logging
from typing import Any, Optional

from formlogic.config import EngineConfig, get_engine_config
from formlogic.model import SELECTION_TYPES, FieldSchema, FieldType

logger = logging.getLogger(__name__)


def _rule_value(field: FieldSchema, kind: str) -> Any:
    spec = {
        "minLength": field.validation.min_length,
        "maxLength": field.validation.max_length,
        "pattern": field.validation.pattern,
    }.get(kind)
    return spec.value if spec is not None else ""


def fallback_message(field: FieldSchema, kind: Optional[str], config: Optional[EngineConfig] = None) -> str:
    templates = (config or get_engine_config()).fallback_messages

    if field.type == FieldType.GROUP:
        key = "group"
    elif kind == "required":
        key = "required"
    elif field.type in SELECTION_TYPES:
        key = "selection"
    elif kind in ("minLength", "maxLength", "pattern"):
        key = kind
    else:
        key = "default"
    template = templates.get(key, templates["default"])

    return template.format(label=field.display_label, value=_rule_value(field, kind or ""))


def resolve_error_message(field: FieldSchema, error: Any, config: Optional[EngineConfig] = None) -> Optional[str]:
    """
    Resolve the message to show for a field's error.

    Args:
        field: Schema of the field in error
        error: Error descriptor from the store (FieldError, a plain string, or None)
        config: EngineConfig supplying fallback templates

    Returns:
        Message string, or None when there is no error
    """
    if error is None:
        return None

    if field.error_text:
        return field.error_text

    if field.get_error_message is not None:
        try:
            custom = field.get_error_message(error)
        except Exception:
            logger.exception("get_error_message for %r raised", field.name)
            custom = None
        if custom:
            return custom

    if isinstance(error, str):
        return error

    message = getattr(error, "message", None)
    if message:
        return message

    return fallback_message(field, getattr(error, "kind", None), config)
