from __future__ import annotations

import asyncio
import threading

import pytest

from sleeptracker.lifecycle.dispatch import (
    IO_THREAD_PREFIX,
    Dispatchers,
    LifecycleScope,
    ScopeClosedError,
)


@pytest.mark.asyncio
async def test_run_io_executes_off_the_loop_thread(dispatchers: Dispatchers) -> None:
    thread_name = await dispatchers.run_io(lambda: threading.current_thread().name)

    assert thread_name.startswith(IO_THREAD_PREFIX)
    assert thread_name != threading.current_thread().name


@pytest.mark.asyncio
async def test_run_io_passes_arguments(dispatchers: Dispatchers) -> None:
    result = await dispatchers.run_io(lambda a, b=0: a + b, 2, b=3)

    assert result == 5


def test_dispatchers_reject_zero_workers() -> None:
    with pytest.raises(ValueError):
        Dispatchers(io_workers=0)


@pytest.mark.asyncio
async def test_scope_join_waits_for_launched_tasks() -> None:
    scope = LifecycleScope("test")
    finished = []

    async def work(tag: str) -> None:
        await asyncio.sleep(0)
        finished.append(tag)

    scope.launch(work("a"))
    scope.launch(work("b"))
    await scope.join()

    assert sorted(finished) == ["a", "b"]
    assert scope.active_count == 0


@pytest.mark.asyncio
async def test_scope_cancel_happens_once() -> None:
    scope = LifecycleScope("test")
    started = asyncio.Event()

    async def sleeper() -> None:
        started.set()
        await asyncio.sleep(3600)

    task = scope.launch(sleeper())
    await started.wait()

    assert scope.cancel() is True
    assert scope.cancel() is False
    with pytest.raises(asyncio.CancelledError):
        await task
    assert scope.cancelled


@pytest.mark.asyncio
async def test_launch_after_cancel_raises() -> None:
    scope = LifecycleScope("test")
    scope.cancel()

    async def never() -> None:
        raise AssertionError("should not run")

    with pytest.raises(ScopeClosedError):
        scope.launch(never())


@pytest.mark.asyncio
async def test_failed_task_is_logged_and_still_raises(caplog: pytest.LogCaptureFixture) -> None:
    scope = LifecycleScope("test")

    async def boom() -> None:
        raise RuntimeError("storage failed")

    task = scope.launch(boom(), name="boom")
    await scope.join()

    assert "Task boom in scope test failed" in caplog.text
    with pytest.raises(RuntimeError):
        await task
