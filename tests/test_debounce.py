"""
Debouncer: rapid calls coalesce into one delayed callback with the latest value.
"""
from __future__ import annotations

import asyncio

import pytest

from app.modules.drafts.debounce import Debouncer

WINDOW = 0.1


class Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.calls = []
        self.fail = fail

    async def __call__(self, value) -> None:
        self.calls.append(value)
        if self.fail:
            raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_burst_of_calls_fires_once_with_last_value() -> None:
    recorder = Recorder()
    debouncer = Debouncer(WINDOW, recorder)

    for value in range(5):
        debouncer.schedule(value)
        await asyncio.sleep(WINDOW / 10)
    assert recorder.calls == []
    assert debouncer.pending is True

    await asyncio.sleep(WINDOW * 3)
    await debouncer.wait_idle()

    assert recorder.calls == [4]
    assert debouncer.pending is False


@pytest.mark.asyncio
async def test_calls_separated_by_quiet_windows_fire_separately() -> None:
    recorder = Recorder()
    debouncer = Debouncer(WINDOW, recorder)

    debouncer.schedule("first")
    await asyncio.sleep(WINDOW * 3)
    debouncer.schedule("second")
    await asyncio.sleep(WINDOW * 3)
    await debouncer.wait_idle()

    assert recorder.calls == ["first", "second"]


@pytest.mark.asyncio
async def test_cancel_drops_pending_value() -> None:
    recorder = Recorder()
    debouncer = Debouncer(WINDOW, recorder)

    debouncer.schedule("dropped")
    assert debouncer.cancel() is True
    await asyncio.sleep(WINDOW * 3)

    assert recorder.calls == []
    assert debouncer.cancel() is False


@pytest.mark.asyncio
async def test_flush_runs_pending_callback_immediately() -> None:
    recorder = Recorder()
    debouncer = Debouncer(10.0, recorder)

    debouncer.schedule("now")
    await debouncer.flush()

    assert recorder.calls == ["now"]
    assert debouncer.pending is False
    # Nothing left to flush
    await debouncer.flush()
    assert recorder.calls == ["now"]


@pytest.mark.asyncio
async def test_failing_callback_does_not_escape_timer() -> None:
    recorder = Recorder(fail=True)
    debouncer = Debouncer(WINDOW, recorder)

    debouncer.schedule("x")
    await asyncio.sleep(WINDOW * 3)
    await debouncer.wait_idle()

    assert recorder.calls == ["x"]
