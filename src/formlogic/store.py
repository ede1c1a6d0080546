"""
Form-state store contract and an in-memory implementation.

The engine never owns form values. It reads them through FormStore and
asks for targeted writes (one address at a time). The store is also where
validation rules are evaluated and errors are kept.

InMemoryFormStore is a small reference implementation used for headless
operation and tests. Hosts with their own state layer subclass FormStore.
"""

import copy
import logging
import re
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from formlogic.model import FieldSchema, FieldType, FormSchema, as_field_list, iter_addresses
from formlogic.paths import ABSENT, assign, is_descendant, resolve

logger = logging.getLogger(__name__)

DEFAULT_HISTORY = 100


@dataclass(frozen=True)
class FieldError:
    """
    Error descriptor for one address.

    Properties:
        kind: Rule that failed ("required", "pattern", "minLength", "maxLength", "custom")
        message: Message supplied by the rule author, if any
    """

    kind: str
    message: Optional[str] = None


class FormStore(ABC):
    """
    Capability contract the engine expects from the host's state layer.

    Only get_value / set_value / watch_all / get_error / trigger_validation
    are required. register_field / unregister_field let the engine pass
    rule descriptors through when a field mounts or unmounts.
    """

    @abstractmethod
    def get_value(self, address: str) -> Any:
        """Value at address, or ABSENT."""

    @abstractmethod
    def set_value(self, address: str, value: Any) -> None:
        """Write a single address."""

    @abstractmethod
    def watch_all(self) -> Any:
        """Current value tree."""

    @abstractmethod
    def get_error(self, address: str) -> Optional[FieldError]:
        """Error at address, or None."""

    @abstractmethod
    def trigger_validation(self, address: str) -> bool:
        """Re-run validation for address (and its descendants); True when valid."""

    def register_field(self, address: str, schema: FieldSchema) -> None:
        pass

    def unregister_field(self, address: str) -> None:
        pass


def is_empty_value(value: Any) -> bool:
    """What "required" rejects: nothing stored, None, "", [], {} or False."""
    if value is ABSENT or value is None or value is False:
        return True
    if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
        return True
    return False


def _search(pattern: Any, text: str) -> bool:
    if isinstance(pattern, re.Pattern):
        return pattern.search(text) is not None
    return re.search(pattern, text) is not None


def check_rules(schema: FieldSchema, value: Any) -> Optional[FieldError]:
    """
    Apply a field's declared rules to a value.

    Rules run in the order required, pattern, minLength, maxLength, custom;
    the first failure wins.
    """
    if schema.required and is_empty_value(value):
        return FieldError("required")

    rules = schema.validation
    text = value if isinstance(value, str) else None

    if text:
        if rules.pattern is not None and not _search(rules.pattern.value, text):
            return FieldError("pattern", rules.pattern.message)
        if rules.min_length is not None and len(text) < rules.min_length.value:
            return FieldError("minLength", rules.min_length.message)
        if rules.max_length is not None and len(text) > rules.max_length.value:
            return FieldError("maxLength", rules.max_length.message)

    if rules.custom is not None:
        try:
            outcome = rules.custom(None if value is ABSENT else value)
        except Exception:
            logger.exception("Custom validator for %r raised", schema.name)
            return FieldError("custom")
        if isinstance(outcome, str):
            return FieldError("custom", outcome)
        if outcome is False:
            return FieldError("custom")

    return None


class InMemoryFormStore(FormStore):
    """
    Dict-backed store.

    Usage:
        store = InMemoryFormStore.from_schema(schema)
        engine = FormEngine(schema, store)
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None, history: int = DEFAULT_HISTORY):
        self._values: Dict[str, Any] = copy.deepcopy(values) if values else {}
        self._errors: Dict[str, FieldError] = {}
        self._registered: Dict[str, FieldSchema] = {}
        # most recent (address, value) writes, newest last
        self.writes: Deque[tuple] = deque(maxlen=history)

    @classmethod
    def from_schema(
        cls,
        schema: Union[FormSchema, List[FieldSchema]],
        values: Optional[Dict[str, Any]] = None,
        history: int = DEFAULT_HISTORY,
    ) -> "InMemoryFormStore":
        """
        Create a store seeded with every declared default value.

        Explicit values take precedence over defaults.
        """
        store = cls(values, history=history)
        for address, field_schema in iter_addresses(as_field_list(schema)):
            if field_schema.has_default and resolve(store._values, address) is ABSENT:
                assign(store._values, address, copy.deepcopy(field_schema.default_value))
        return store

    def get_value(self, address: str) -> Any:
        return resolve(self._values, address)

    def set_value(self, address: str, value: Any) -> None:
        assign(self._values, address, value)
        self.writes.append((address, value))

    def watch_all(self) -> Dict[str, Any]:
        return self._values

    def get_error(self, address: str) -> Optional[FieldError]:
        return self._errors.get(address)

    def set_error(self, address: str, error: Optional[FieldError]) -> None:
        if error is None:
            self._errors.pop(address, None)
        else:
            self._errors[address] = error

    def register_field(self, address: str, schema: FieldSchema) -> None:
        self._registered[address] = schema

    def unregister_field(self, address: str) -> None:
        self._registered.pop(address, None)
        self._errors.pop(address, None)

    def trigger_validation(self, address: str) -> bool:
        targets = [
            candidate for candidate in self._registered
            if candidate == address or is_descendant(candidate, address)
        ]
        valid = True
        for candidate in targets:
            schema = self._registered[candidate]
            # an untouched group validates as an empty mapping
            value = self.get_value(candidate)
            if schema.type == FieldType.GROUP and value is ABSENT:
                value = {}
            error = check_rules(schema, value)
            self.set_error(candidate, error)
            if error is not None:
                logger.debug("Validation failed at %s: %s", candidate, error.kind)
                valid = False
        return valid

    def validate_all(self) -> bool:
        """Validate every registered field."""
        valid = True
        for address in list(self._registered):
            if not self.trigger_validation(address):
                valid = False
        return valid


@dataclass(frozen=True)
class FieldUtils:
    """
    Narrow store capabilities handed to host callbacks.

    on_value_change(value, utils) and on_value_change_debounced(value, utils)
    receive one of these instead of the store itself.
    """

    set_value: Callable[[str, Any], None]
    get_values: Callable[[], Any]
    trigger: Callable[[str], bool]

    @classmethod
    def for_store(cls, store: FormStore) -> "FieldUtils":
        return cls(set_value=store.set_value, get_values=store.watch_all, trigger=store.trigger_validation)
