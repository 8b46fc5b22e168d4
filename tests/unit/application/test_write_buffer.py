"""Tests for the debounced WriteBuffer."""

import pytest

from flashpay_core.application.write_buffer import WriteBuffer
from flashpay_core.infrastructure import ManualScheduler


@pytest.fixture
def writes() -> list[int]:
    return []


@pytest.fixture
def buffer(scheduler: ManualScheduler, writes: list[int]) -> WriteBuffer:
    return WriteBuffer(lambda: writes.append(1), scheduler, delay_ms=100)


class TestWriteBuffer:
    def test_burst_of_schedules_writes_once(
        self, buffer: WriteBuffer, scheduler: ManualScheduler, writes: list[int]
    ) -> None:
        for _ in range(5):
            buffer.schedule()
            scheduler.advance(50)

        scheduler.advance(100)

        assert writes == [1]

    def test_nothing_written_before_window_elapses(
        self, buffer: WriteBuffer, scheduler: ManualScheduler, writes: list[int]
    ) -> None:
        buffer.schedule()
        scheduler.advance(99)

        assert writes == []
        assert buffer.has_pending

    def test_flush_writes_immediately(
        self, buffer: WriteBuffer, scheduler: ManualScheduler, writes: list[int]
    ) -> None:
        buffer.schedule()

        buffer.flush()
        scheduler.advance(1000)

        assert writes == [1]
        assert not buffer.has_pending

    def test_flush_without_pending_change_is_noop(
        self, buffer: WriteBuffer, writes: list[int]
    ) -> None:
        buffer.flush()

        assert writes == []

    def test_cancel_drops_pending_write(
        self, buffer: WriteBuffer, scheduler: ManualScheduler, writes: list[int]
    ) -> None:
        buffer.schedule()

        buffer.cancel()
        scheduler.advance(1000)

        assert writes == []
