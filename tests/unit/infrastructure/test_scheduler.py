"""Tests for the asyncio and manual schedulers."""

import asyncio

import pytest

from flashpay_core.infrastructure.scheduler import AsyncioScheduler, ManualScheduler


class TestManualScheduler:
    def test_timer_fires_only_when_due(self) -> None:
        scheduler = ManualScheduler()
        fired: list[str] = []
        scheduler.call_later(100, lambda: fired.append("a"))

        scheduler.advance(99)
        assert fired == []

        scheduler.advance(1)
        assert fired == ["a"]
        assert scheduler.pending == 0

    def test_timers_fire_in_due_order(self) -> None:
        scheduler = ManualScheduler()
        fired: list[str] = []
        scheduler.call_later(200, lambda: fired.append("late"))
        scheduler.call_later(50, lambda: fired.append("early"))

        scheduler.advance(500)

        assert fired == ["early", "late"]

    def test_cancelled_timer_never_fires(self) -> None:
        scheduler = ManualScheduler()
        fired: list[str] = []
        timer = scheduler.call_later(100, lambda: fired.append("a"))

        timer.cancel()
        scheduler.advance(100)

        assert fired == []
        assert scheduler.pending == 0

    def test_timer_scheduled_by_callback_runs_in_same_advance(self) -> None:
        scheduler = ManualScheduler()
        fired: list[str] = []

        def first() -> None:
            fired.append("first")
            scheduler.call_later(10, lambda: fired.append("second"))

        scheduler.call_later(10, first)
        scheduler.advance(20)

        assert fired == ["first", "second"]


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_callback_runs_on_running_loop(self) -> None:
        scheduler = AsyncioScheduler()
        done = asyncio.Event()

        scheduler.call_later(1, done.set)

        await asyncio.wait_for(done.wait(), timeout=1)
        assert done.is_set()

    @pytest.mark.asyncio
    async def test_cancelled_handle_does_not_run(self) -> None:
        scheduler = AsyncioScheduler()
        fired: list[str] = []

        handle = scheduler.call_later(1, lambda: fired.append("a"))
        handle.cancel()
        await asyncio.sleep(0.01)

        assert fired == []
