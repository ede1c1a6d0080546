"""
Value lifecycle: clear or preserve a field's stored value when it hides.

Per address, two states:

    SHOWN  --(visibility flips to False)-->  HIDDEN   clear unless preserve_value
    HIDDEN --(visibility flips to True)--->  SHOWN    no value change

Hiding may scrub data so values the user never saw are not submitted.
Showing never fabricates data. Repeated observations of the same state do
nothing: the clear is driven by the transition, not the steady state.

Addresses never observed before start in SHOWN, so a field that is hidden
on its first evaluation is cleared if it already holds a value.
"""

import copy
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from formlogic.model import FieldSchema
from formlogic.paths import ABSENT, qualify
from formlogic.store import FormStore

logger = logging.getLogger(__name__)


class VisibilityState(Enum):
    SHOWN = "shown"
    HIDDEN = "hidden"


class Transition(Enum):
    NONE = "none"
    HIDDEN = "hidden"
    SHOWN = "shown"


def _default_empty(field: FieldSchema) -> Any:
    return ""


class ValueLifecycleManager:
    """
    Tracks visibility state per qualified address and clears on hide.

    Args:
        empty_value: Callable(field) -> value written when a cleared field
            declares no default. The engine passes the dispatcher's
            per-type empty value.
    """

    def __init__(self, empty_value: Optional[Callable[[FieldSchema], Any]] = None):
        self._states: Dict[str, VisibilityState] = {}
        self._empty_value = empty_value or _default_empty
        self.cleared: List[str] = []

    def state(self, address: str) -> VisibilityState:
        return self._states.get(address, VisibilityState.SHOWN)

    def observe(self, address: str, field: FieldSchema, visible: bool, store: FormStore) -> Transition:
        """
        Record the latest visibility of a field and act on transitions.

        Returns:
            The transition that occurred (Transition.NONE for steady state)
        """
        previous = self.state(address)
        current = VisibilityState.SHOWN if visible else VisibilityState.HIDDEN
        self._states[address] = current

        if previous is current:
            return Transition.NONE

        if current is VisibilityState.SHOWN:
            logger.debug("%s shown", address)
            return Transition.SHOWN

        logger.debug("%s hidden (preserve_value=%s)", address, field.preserve_value)
        if not field.preserve_value:
            self._clear(address, field, store)
        return Transition.HIDDEN

    def retain(self, addresses: Set[str]) -> None:
        """Drop state for every address not in addresses (no longer evaluated)."""
        for address in [a for a in self._states if a not in addresses]:
            del self._states[address]

    def drain_cleared(self) -> List[str]:
        """Addresses cleared since the last call, oldest first."""
        cleared, self.cleared = self.cleared, []
        return cleared

    def _clear(self, address: str, field: FieldSchema, store: FormStore) -> None:
        if field.is_group:
            self._clear_subtree(address, field.children, store)
        else:
            self._reset(address, field, store)

    def _clear_subtree(self, parent: str, children: List[FieldSchema], store: FormStore) -> None:
        for child in children:
            if child.preserve_value:
                continue
            child_address = qualify(parent, child.name)
            if child.is_group:
                self._clear_subtree(child_address, child.children, store)
            else:
                self._reset(child_address, child, store)

    def _reset(self, address: str, field: FieldSchema, store: FormStore) -> None:
        if store.get_value(address) is ABSENT:
            return
        fallback = copy.deepcopy(field.default_value) if field.has_default else self._empty_value(field)
        store.set_value(address, fallback)
        self.cleared.append(address)
        logger.debug("Cleared %s to %r", address, fallback)
