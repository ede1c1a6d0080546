"""
Dependent option resolution for selection fields.

A field may declare depends_on (an address) and get_options (a callable).
Whenever the value at depends_on changes, including on first mount, the
option list is recomputed:

    1. the field's epoch is incremented
    2. loading is set, any previous fetch error is cleared
    3. get_options(parent_value) is called; it may return a list or an awaitable
    4. the result is committed only if the epoch captured at call time is
       still the field's current epoch; otherwise it is discarded silently
    5. a failure with a current epoch sets fetch_error and empties the list

Without get_options the static options are used and nothing is resolved.

The epoch check is what keeps a slow earlier fetch from overwriting a
faster later one.
"""

import asyncio
import copy
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from formlogic.model import FieldSchema, Option
from formlogic.paths import ABSENT, resolve
from formlogic.visibility import strict_equals

logger = logging.getLogger(__name__)

DEFAULT_FETCH_ERROR = "Failed to load options."


@dataclass
class OptionState:
    """
    Per-field resolution state.

    Properties:
        epoch: Incremented on every parent-value change
        options: Last committed option list
        loading: A resolution for the current epoch is outstanding
        fetch_error: Advisory text after a failed resolution, else None
        parent_value: Parent value the current epoch was started for
    """

    epoch: int = 0
    options: List[Option] = field(default_factory=list)
    loading: bool = False
    fetch_error: Optional[str] = None
    parent_value: Any = ABSENT


def coerce_options(raw: Any) -> List[Option]:
    """Accept Option objects, {label, value, ...} mappings or None."""
    if not raw:
        return []
    result = []
    for item in raw:
        if isinstance(item, Option):
            result.append(item)
        elif isinstance(item, dict):
            result.append(Option(
                label=item.get("label", str(item.get("value", ""))),
                value=item.get("value"),
                disabled=bool(item.get("disabled", False)),
                help_text=item.get("helpText", item.get("help_text")),
            ))
        else:
            result.append(Option(label=str(item), value=item))
    return result


class DependentOptionResolver:
    """
    Keeps each mounted selection field's option list in step with its parent.

    Args:
        on_commit: Called with the field address whenever an asynchronous
            resolution commits (options or fetch error), so the host can
            re-render.
        fetch_error_message: Advisory text stored on failure.
    """

    def __init__(
        self,
        on_commit: Optional[Callable[[str], None]] = None,
        fetch_error_message: str = DEFAULT_FETCH_ERROR,
    ):
        self._on_commit = on_commit
        self._fetch_error_message = fetch_error_message
        self._states: Dict[str, OptionState] = {}
        self._pending: Set[asyncio.Task] = set()

    def state(self, address: str) -> Optional[OptionState]:
        return self._states.get(address)

    def options_for(self, address: str, schema: FieldSchema) -> List[Option]:
        current = self._states.get(address)
        if schema.get_options is None or current is None:
            return list(schema.options)
        return current.options

    def sync(self, address: str, schema: FieldSchema, values: Any) -> OptionState:
        """
        Bring a field's options up to date with the current value tree.

        Called on every render of a mounted field. Starts a new resolution
        only when the parent value differs from the one the current epoch
        was started for.
        """
        current = self._states.get(address)
        if current is None:
            current = OptionState(options=list(schema.options))
            self._states[address] = current
            first = True
        else:
            first = False

        if schema.get_options is None:
            current.options = list(schema.options)
            return current

        parent_value = resolve(values, schema.depends_on) if schema.depends_on else ABSENT
        if not first and strict_equals(parent_value, current.parent_value):
            return current

        current.parent_value = copy.deepcopy(parent_value)
        self._start(address, schema, current, parent_value)
        return current

    def unmount(self, address: str) -> None:
        """Forget a field; results still in flight for it are discarded."""
        state = self._states.pop(address, None)
        if state is not None:
            state.epoch += 1

    def unmount_all(self) -> None:
        for address in list(self._states):
            self.unmount(address)

    async def wait_idle(self) -> None:
        """Wait for every outstanding asynchronous resolution to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _start(self, address: str, schema: FieldSchema, state: OptionState, parent_value: Any) -> None:
        state.epoch += 1
        epoch = state.epoch
        state.loading = True
        state.fetch_error = None
        logger.debug("Resolving options for %s (epoch %d, parent=%r)", address, epoch, parent_value)

        try:
            result = schema.get_options(None if parent_value is ABSENT else parent_value)
        except Exception:
            logger.warning("Option resolution for %s failed", address, exc_info=True)
            self._fail(address, state, epoch, notify=False)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(self._await(address, state, epoch, result))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        else:
            self._commit(address, state, epoch, result, notify=False)

    async def _await(self, address: str, state: OptionState, epoch: int, awaitable: Any) -> None:
        try:
            result = await awaitable
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning("Option resolution for %s failed", address, exc_info=True)
            self._fail(address, state, epoch, notify=True)
            return
        self._commit(address, state, epoch, result, notify=True)

    def _is_current(self, address: str, state: OptionState, epoch: int) -> bool:
        return self._states.get(address) is state and state.epoch == epoch

    def _commit(self, address: str, state: OptionState, epoch: int, result: Any, notify: bool) -> None:
        if not self._is_current(address, state, epoch):
            logger.debug("Discarding stale options for %s (epoch %d, current %d)", address, epoch, state.epoch)
            return
        try:
            options = coerce_options(result)
        except Exception:
            logger.warning("Option resolver for %s returned %r, not a list", address, result, exc_info=True)
            self._fail(address, state, epoch, notify)
            return
        state.options = options
        state.loading = False
        if notify and self._on_commit is not None:
            self._on_commit(address)

    def _fail(self, address: str, state: OptionState, epoch: int, notify: bool) -> None:
        if not self._is_current(address, state, epoch):
            return
        state.fetch_error = self._fetch_error_message
        state.options = []
        state.loading = False
        if notify and self._on_commit is not None:
            self._on_commit(address)
