"""Keyed trailing debounce on the asyncio event loop."""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)


class DebouncedEffectRunner:
    """
    Keyed trailing debounce runner.

    Each key holds at most one pending timer. Scheduling again under the same
    key cancels the pending timer and arms a new one, so the effect fires once,
    delay_ms after the last call, with the last call's closure.

    Loading is reported per key: True from schedule() until the most recently
    scheduled effect settles (success or error).

    Usage:
        runner = DebouncedEffectRunner(on_loading=lambda key, flag: ...)

        def on_text_changed(value):
            runner.schedule("email", lambda: check_email(value), 300)

        def on_unmount():
            runner.cancel("email")  # pending timer never fires
    """

    def __init__(
        self,
        on_loading: Optional[Callable[[str, bool], None]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._on_loading = on_loading
        self._loop = loop
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._generations: Dict[str, int] = {}
        self._loading: Dict[str, bool] = {}
        self._running: Set[asyncio.Task] = set()

    def schedule(self, key: str, fn: Callable[[], Any], delay_ms: int) -> None:
        """Cancel any pending effect for key and arm a new timer."""
        self._cancel_timer(key)
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation

        loop = self._loop or asyncio.get_running_loop()
        self._timers[key] = loop.call_later(
            max(delay_ms, 0) / 1000.0, self._fire, key, generation, fn
        )
        self._set_loading(key, True)

    def cancel(self, key: str) -> None:
        """
        Cancel the pending timer for key and invalidate any effect in flight.

        Used when the owning field unmounts.
        """
        self._cancel_timer(key)
        if key in self._generations:
            self._generations[key] += 1
        if self._loading.get(key):
            self._set_loading(key, False)
        self._loading.pop(key, None)

    def cancel_all(self) -> None:
        for key in set(self._timers) | set(self._loading):
            self.cancel(key)

    def is_pending(self, key: str) -> bool:
        return key in self._timers

    def is_loading(self, key: str) -> bool:
        return self._loading.get(key, False)

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and no effect is running."""
        while self._timers or self._running:
            if self._running:
                await asyncio.gather(*list(self._running), return_exceptions=True)
            else:
                await asyncio.sleep(0.005)

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, key: str, generation: int, fn: Callable[[], Any]) -> None:
        self._timers.pop(key, None)
        try:
            result = fn()
        except Exception:
            logger.exception("Debounced effect for %s raised", key)
            self._settle(key, generation)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(self._await(key, generation, result))
            self._running.add(task)
            task.add_done_callback(self._running.discard)
        else:
            self._settle(key, generation)

    async def _await(self, key: str, generation: int, awaitable: Any) -> None:
        try:
            await awaitable
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Debounced effect for %s raised", key)
        finally:
            self._settle(key, generation)

    def _settle(self, key: str, generation: int) -> None:
        # an older effect settling must not end a newer effect's loading
        if self._generations.get(key) == generation:
            self._set_loading(key, False)

    def _set_loading(self, key: str, flag: bool) -> None:
        if self._loading.get(key) == flag:
            return
        self._loading[key] = flag
        if self._on_loading is not None:
            self._on_loading(key, flag)
