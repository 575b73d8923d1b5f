"""Foreground/background execution handles and lifetime-scoped task groups."""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Coroutine, Optional, Set, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

IO_THREAD_PREFIX = "sleeptracker-io"


class ScopeClosedError(RuntimeError):
    """Raised when work is launched on a scope that was already cancelled."""


class Dispatchers:
    """Pairs the foreground event loop with an executor reserved for blocking I/O.

    Storage calls go through :meth:`run_io`, which submits to the I/O executor
    and awaits the result on the foreground loop.
    """

    def __init__(
        self,
        io_workers: int = 4,
        *,
        io_executor: Optional[Executor] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if io_executor is None and io_workers < 1:
            raise ValueError("Dispatchers requires at least one I/O worker")
        self._owns_executor = io_executor is None
        self._io = io_executor or ThreadPoolExecutor(
            max_workers=io_workers,
            thread_name_prefix=IO_THREAD_PREFIX,
        )
        self._loop = loop

    @property
    def foreground(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def io(self) -> Executor:
        return self._io

    async def run_io(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        call = functools.partial(fn, *args, **kwargs)
        return await self.foreground.run_in_executor(self._io, call)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._io.shutdown(wait=wait)


class LifecycleScope:
    """Structured group of tasks tied to the lifetime of one component."""

    def __init__(self, name: str = "scope") -> None:
        self._name = name
        self._tasks: Set[asyncio.Task] = set()
        self._cancelled = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def launch(self, coro: Coroutine[Any, Any, T], *, name: Optional[str] = None) -> "asyncio.Task[T]":
        if self._cancelled:
            coro.close()
            raise ScopeClosedError(f"Scope '{self._name}' has been cancelled")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def cancel(self) -> bool:
        """Cancel every pending task. Only the first call has an effect."""

        if self._cancelled:
            return False
        self._cancelled = True
        pending = [task for task in self._tasks if not task.done()]
        LOGGER.debug("Cancelling scope %s (%d pending task(s))", self._name, len(pending))
        for task in pending:
            task.cancel()
        return True

    async def join(self) -> None:
        """Wait until every task launched so far (and any they launch) finishes."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error(
                "Task %s in scope %s failed",
                task.get_name(),
                self._name,
                exc_info=(type(exc), exc, exc.__traceback__),
            )


__all__ = [
    "Dispatchers",
    "IO_THREAD_PREFIX",
    "LifecycleScope",
    "ScopeClosedError",
]
