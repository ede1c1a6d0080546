"""
Tests for keyed trailing debounce.

Async behavior is driven with asyncio.run inside plain test functions.
"""

import asyncio

from formlogic.debounce import DebouncedEffectRunner


class TestTrailingDebounce:
    """Test that bursts collapse to one trailing call."""

    def test_burst_fires_once_with_last_value(self):
        calls = []

        async def _run():
            runner = DebouncedEffectRunner()
            for value in ("a", "ab", "abc"):
                runner.schedule("email", lambda v=value: calls.append(v), 20)
                await asyncio.sleep(0.005)
            await runner.wait_idle()

        asyncio.run(_run())
        assert calls == ["abc"]

    def test_keys_are_independent(self):
        calls = []

        async def _run():
            runner = DebouncedEffectRunner()
            runner.schedule("a", lambda: calls.append("a"), 10)
            runner.schedule("b", lambda: calls.append("b"), 10)
            await runner.wait_idle()

        asyncio.run(_run())
        assert sorted(calls) == ["a", "b"]

    def test_cancel_prevents_fire(self):
        calls = []

        async def _run():
            runner = DebouncedEffectRunner()
            runner.schedule("email", lambda: calls.append("x"), 20)
            assert runner.is_pending("email")
            runner.cancel("email")
            assert not runner.is_pending("email")
            await asyncio.sleep(0.05)

        asyncio.run(_run())
        assert calls == []


class TestLoading:
    """Test the per-key loading flag."""

    def test_loading_true_until_settled(self):
        events = []

        async def _run():
            runner = DebouncedEffectRunner(on_loading=lambda key, flag: events.append((key, flag)))
            runner.schedule("k", lambda: None, 10)
            assert runner.is_loading("k")
            await runner.wait_idle()
            assert not runner.is_loading("k")

        asyncio.run(_run())
        assert events == [("k", True), ("k", False)]

    def test_rescheduling_does_not_toggle_loading(self):
        events = []

        async def _run():
            runner = DebouncedEffectRunner(on_loading=lambda key, flag: events.append(flag))
            runner.schedule("k", lambda: None, 20)
            runner.schedule("k", lambda: None, 20)
            await runner.wait_idle()

        asyncio.run(_run())
        assert events == [True, False]

    def test_async_effect_keeps_loading_while_running(self):
        seen = []

        async def _run():
            runner = DebouncedEffectRunner()

            async def effect():
                seen.append(runner.is_loading("k"))
                await asyncio.sleep(0.01)

            runner.schedule("k", effect, 5)
            await runner.wait_idle()
            seen.append(runner.is_loading("k"))

        asyncio.run(_run())
        assert seen == [True, False]

    def test_error_resets_loading(self):
        async def _run():
            runner = DebouncedEffectRunner()

            def boom():
                raise RuntimeError("effect failed")

            runner.schedule("k", boom, 5)
            await runner.wait_idle()
            return runner.is_loading("k")

        assert asyncio.run(_run()) is False

    def test_async_error_resets_loading(self):
        async def _run():
            runner = DebouncedEffectRunner()

            async def boom():
                raise ValueError("effect failed")

            runner.schedule("k", boom, 5)
            await runner.wait_idle()
            return runner.is_loading("k")

        assert asyncio.run(_run()) is False

    def test_cancel_clears_loading(self):
        events = []

        async def _run():
            runner = DebouncedEffectRunner(on_loading=lambda key, flag: events.append(flag))
            runner.schedule("k", lambda: None, 50)
            runner.cancel("k")
            assert not runner.is_loading("k")

        asyncio.run(_run())
        assert events == [True, False]

    def test_cancel_all(self):
        calls = []

        async def _run():
            runner = DebouncedEffectRunner()
            runner.schedule("a", lambda: calls.append("a"), 20)
            runner.schedule("b", lambda: calls.append("b"), 20)
            runner.cancel_all()
            await asyncio.sleep(0.05)

        asyncio.run(_run())
        assert calls == []
