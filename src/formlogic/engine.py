"""
FormEngine - walks a schema tree and keeps its rendering in step with the store.

One render pass, per node, top-down:

    address  = qualify(parent, node.name)
    visible  = is_visible(node.visible_when, values)
    lifecycle.observe(address, node, visible)     # may clear on hide
    if visible:
        mount(address)                            # once
        dispatcher.dispatch(node)                 # groups recurse here

A hide transition can clear a value that another field's visibility reads,
so render() repeats passes until one completes without clearing anything.
Fields not reached in the final pass are unmounted: their debounce timers
are cancelled and their option-resolution epochs invalidated.
"""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union

from formlogic.analyzer import validate_schema
from formlogic.config import EngineConfig, get_engine_config
from formlogic.debounce import DebouncedEffectRunner
from formlogic.dispatcher import CheckboxBehavior, FieldContext, FieldTypeDispatcher, RenderNode
from formlogic.lifecycle import ValueLifecycleManager, VisibilityState
from formlogic.messages import resolve_error_message
from formlogic.model import FieldSchema, FormSchema, Option, as_field_list
from formlogic.options import DependentOptionResolver
from formlogic.paths import qualify
from formlogic.store import FieldUtils, FormStore
from formlogic.visibility import is_visible

logger = logging.getLogger(__name__)


@dataclass
class FieldState:
    """Snapshot of the engine's view of one address."""

    address: str
    mounted: bool
    visible: bool
    value: Any
    loading: bool = False
    options: List[Option] = field(default_factory=list)
    fetch_error: Optional[str] = None


class FormEngine:
    """
    Schema interpreter bound to one store.

    Usage:
        store = InMemoryFormStore.from_schema(schema)
        engine = FormEngine(schema, store, on_update=lambda address: redraw())

        nodes = engine.render()
        nodes = engine.change("country", "US")
        await engine.settle()           # let option resolutions finish
        engine.close()                  # on teardown

    Debounced callbacks and asynchronous option resolvers need a running
    asyncio event loop; synchronous schemas work without one.
    """

    def __init__(
        self,
        schema: Union[FormSchema, Sequence[FieldSchema]],
        store: FormStore,
        config: Optional[EngineConfig] = None,
        dispatcher: Optional[FieldTypeDispatcher] = None,
        on_update: Optional[Callable[[str], None]] = None,
    ):
        self._config = config or get_engine_config()
        self._fields = as_field_list(schema)
        validate_schema(self._fields)

        self._store = store
        self._utils = FieldUtils.for_store(store)
        self._dispatcher = dispatcher or FieldTypeDispatcher(config=self._config)
        self._lifecycle = ValueLifecycleManager(empty_value=self._dispatcher.empty_value)
        self._effects = DebouncedEffectRunner(on_loading=self._on_effect_loading)
        self._options = DependentOptionResolver(
            on_commit=self._notify,
            fetch_error_message=self._config.fetch_error_message,
        )
        self._on_update = on_update
        self._mounted: Dict[str, FieldSchema] = {}
        self._nodes: List[RenderNode] = []

    @property
    def store(self) -> FormStore:
        return self._store

    @property
    def nodes(self) -> List[RenderNode]:
        """Output of the most recent render."""
        return self._nodes

    @property
    def mounted(self) -> List[str]:
        return list(self._mounted)

    def set_schema(self, schema: Union[FormSchema, Sequence[FieldSchema]]) -> List[RenderNode]:
        """Replace the schema (e.g. regenerated by the host) and re-render."""
        fields = as_field_list(schema)
        validate_schema(fields)
        self._fields = fields
        return self.render()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> List[RenderNode]:
        """
        Evaluate the whole tree against the store's current values.

        Returns:
            RenderNodes for the visible top-level fields
        """
        evaluated: Set[str] = set()
        shown: Set[str] = set()
        nodes: List[RenderNode] = []
        limit = max(self._config.max_render_passes, 1)

        for attempt in range(1, limit + 1):
            evaluated = set()
            shown = set()
            values = self._store.watch_all()
            nodes = self._walk(self._fields, None, values, evaluated, shown)
            cleared = self._lifecycle.drain_cleared()
            if not cleared:
                break
            logger.debug("Pass %d cleared %s; re-evaluating", attempt, ", ".join(cleared))
        else:
            logger.warning("Render did not settle after %d passes", limit)

        for address in [a for a in self._mounted if a not in shown]:
            self._unmount(address)
        self._lifecycle.retain(evaluated)

        self._nodes = nodes
        return nodes

    def _walk(
        self,
        fields: Sequence[FieldSchema],
        parent: Optional[str],
        values: Any,
        evaluated: Set[str],
        shown: Set[str],
    ) -> List[RenderNode]:
        nodes = []
        for schema in fields:
            address = qualify(parent, schema.name)
            visible = is_visible(schema.visible_when, values)
            evaluated.add(address)
            self._lifecycle.observe(address, schema, visible, self._store)
            if not visible:
                continue

            shown.add(address)
            self._ensure_mounted(address, schema)
            ctx = FieldContext(
                address=address,
                field=schema,
                value=self._store.get_value(address),
                error=resolve_error_message(schema, self._store.get_error(address), self._config),
                loading=self._effects.is_loading(address),
                utils=self._utils,
                resolve_options=partial(self._options.sync, address, schema, values),
            )
            walk_children = partial(self._walk_children, values=values, evaluated=evaluated, shown=shown)
            nodes.append(self._dispatcher.dispatch(ctx, walk_children))
        return nodes

    def _walk_children(self, children, parent, values, evaluated, shown):
        return self._walk(children, parent, values, evaluated, shown)

    def _ensure_mounted(self, address: str, schema: FieldSchema) -> None:
        current = self._mounted.get(address)
        if current is schema:
            return
        if current is not None:
            # the host regenerated this node; restart its effects and options
            self._unmount(address)
        self._mounted[address] = schema
        self._store.register_field(address, schema)
        logger.debug("Mounted %s", address)

    def _unmount(self, address: str) -> None:
        self._mounted.pop(address, None)
        self._effects.cancel(address)
        self._options.unmount(address)
        self._store.unregister_field(address)
        logger.debug("Unmounted %s", address)

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------

    def change(self, address: str, value: Any) -> List[RenderNode]:
        """
        Apply a user edit to a mounted field and re-render.

        The value is normalized by the field's behavior, written to the
        store, passed to on_value_change, and scheduled for
        on_value_change_debounced. Edits to unmounted addresses are ignored.
        """
        schema = self._mounted.get(address)
        if schema is None:
            logger.warning("Ignoring change for unmounted field %s", address)
            return self._nodes

        behavior = self._dispatcher.behavior_for(schema)
        if behavior is not None:
            value = behavior.coerce(schema, value, self._store.get_value(address))

        self._store.set_value(address, value)
        self._run_change_callbacks(address, schema, value)

        if schema.show_error_on_blur and self._store.get_error(address) is not None:
            # clear a stale error as soon as the input is fixed
            self._store.trigger_validation(address)

        return self.render()

    def toggle_option(self, address: str, option_value: Any, checked: bool) -> List[RenderNode]:
        """Check or uncheck one option of a checkbox group."""
        schema = self._mounted.get(address)
        if schema is None:
            logger.warning("Ignoring toggle for unmounted field %s", address)
            return self._nodes
        behavior = self._dispatcher.behavior_for(schema)
        if not isinstance(behavior, CheckboxBehavior):
            raise TypeError(f"Field {address} is not a checkbox field")
        selected = behavior.toggle(self._store.get_value(address), option_value, checked)
        return self.change(address, selected)

    def blur(self, address: str) -> None:
        schema = self._mounted.get(address)
        if schema is not None and schema.show_error_on_blur:
            self._store.trigger_validation(address)

    def validate(self) -> bool:
        """Trigger validation for every visible top-level field."""
        valid = True
        top_level = {schema.name for schema in self._fields}
        for address in [a for a in self._mounted if a in top_level]:
            if not self._store.trigger_validation(address):
                valid = False
        return valid

    def _run_change_callbacks(self, address: str, schema: FieldSchema, value: Any) -> None:
        if schema.on_value_change is not None:
            try:
                schema.on_value_change(value, self._utils)
            except Exception:
                logger.exception("on_value_change for %s raised", address)

        if schema.on_value_change_debounced is not None:
            delay = schema.debounce_ms if schema.debounce_ms is not None else self._config.default_debounce_ms
            effect = partial(schema.on_value_change_debounced, value, self._utils)
            self._effects.schedule(address, effect, delay)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def field_state(self, address: str) -> FieldState:
        schema = self._mounted.get(address)
        option_state = self._options.state(address)
        return FieldState(
            address=address,
            mounted=schema is not None,
            visible=self._lifecycle.state(address) is VisibilityState.SHOWN and schema is not None,
            value=self._store.get_value(address),
            loading=self._effects.is_loading(address) or bool(option_state and option_state.loading),
            options=self._options.options_for(address, schema) if schema is not None else [],
            fetch_error=option_state.fetch_error if option_state else None,
        )

    def find(self, address: str) -> Optional[RenderNode]:
        """Locate a node in the most recent render output."""
        for node in self._nodes:
            found = node.find(address)
            if found is not None:
                return found
        return None

    async def settle(self) -> List[RenderNode]:
        """Wait for pending option resolutions and debounced effects, then re-render."""
        await self._options.wait_idle()
        await self._effects.wait_idle()
        await self._options.wait_idle()
        return self.render()

    def close(self) -> None:
        """Unmount everything: cancel timers and discard in-flight resolutions."""
        for address in list(self._mounted):
            self._unmount(address)
        self._effects.cancel_all()
        self._options.unmount_all()
        self._lifecycle.retain(set())
        self._nodes = []

    def _on_effect_loading(self, address: str, loading: bool) -> None:
        self._notify(address)

    def _notify(self, address: str) -> None:
        if self._on_update is not None:
            self._on_update(address)
