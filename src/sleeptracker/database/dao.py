"""Data access object for stored sleep nights."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Executor, Future
from typing import List, Optional, Set, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from sleeptracker.database.models import SleepNightRecord
from sleeptracker.lifecycle.observable import MutableObservable
from sleeptracker.tracker.types import SleepNight

LOGGER = logging.getLogger(__name__)


class LiveQuery(MutableObservable[List[SleepNight]]):
    """Observable list of every night, refreshed by the DAO after each write."""

    def __init__(self, dao: "SleepDatabaseDao", *, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__(loop=loop)
        self._dao = dao
        self._closed = False
        self._initial_load: Optional[Future] = None
        self._generation = 0
        self._generation_lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    async def wait_loaded(self) -> None:
        """Wait for the first load submitted to the query executor, if any."""
        if self._initial_load is not None:
            await asyncio.wrap_future(self._initial_load)

    def publish(self, generation: int, nights: List[SleepNight]) -> None:
        """Deliver a snapshot unless a newer one has already been applied."""
        self._dispatch(self._apply, generation, nights)

    def _apply(self, generation: int, nights: List[SleepNight]) -> None:
        with self._generation_lock:
            if generation <= self._generation:
                return
            self._generation = generation
        self._set(nights)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._dao._unregister(self)


class SleepDatabaseDao:
    """Blocking storage calls for SleepNight rows.

    Every method opens its own session, so calls are safe from any worker
    thread. Callers on the event loop should go through ``Dispatchers.run_io``.
    """

    def __init__(self, session_factory: sessionmaker, *, query_executor: Optional[Executor] = None) -> None:
        self._session_factory = session_factory
        self._query_executor = query_executor
        self._live_queries: Set[LiveQuery] = set()
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._generation = 0

    def insert(self, night: SleepNight) -> int:
        with self._session_factory.begin() as session:
            record = SleepNightRecord.from_night(night)
            session.add(record)
            session.flush()
            night.night_id = record.night_id
        LOGGER.debug("Inserted night %s", night.night_id)
        self._invalidate()
        return night.night_id

    def update(self, night: SleepNight) -> None:
        with self._session_factory.begin() as session:
            record = session.get(SleepNightRecord, night.night_id)
            if record is None:
                LOGGER.debug("Night %s not found; nothing to update", night.night_id)
                return
            record.start_time_milli = night.start_time_milli
            record.end_time_milli = night.end_time_milli
            record.sleep_quality = night.sleep_quality
        LOGGER.debug("Updated night %s", night.night_id)
        self._invalidate()

    def get(self, night_id: int) -> Optional[SleepNight]:
        with self._session_factory() as session:
            record = session.get(SleepNightRecord, night_id)
            return record.to_night() if record is not None else None

    def get_tonight(self) -> Optional[SleepNight]:
        """Return the most recently inserted night, if any."""
        stmt = select(SleepNightRecord).order_by(SleepNightRecord.night_id.desc()).limit(1)
        with self._session_factory() as session:
            record = session.scalars(stmt).first()
            return record.to_night() if record is not None else None

    def get_all_nights(self) -> List[SleepNight]:
        stmt = select(SleepNightRecord).order_by(SleepNightRecord.night_id.desc())
        with self._session_factory() as session:
            return [record.to_night() for record in session.scalars(stmt)]

    def clear(self) -> None:
        with self._session_factory.begin() as session:
            result = session.execute(delete(SleepNightRecord))
        LOGGER.info("Cleared %s stored night(s)", result.rowcount)
        self._invalidate()

    def observe_all_nights(self, *, loop: Optional[asyncio.AbstractEventLoop] = None) -> LiveQuery:
        """Return a push-based view of ``get_all_nights``.

        The first load runs on the query executor when one is configured;
        later loads follow every write made through this DAO.
        """
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        query = LiveQuery(self, loop=loop)
        with self._lock:
            self._live_queries.add(query)
        if self._query_executor is None:
            self._refresh(query)
        else:
            future = self._query_executor.submit(self._refresh, query)
            future.add_done_callback(_log_refresh_failure)
            query._initial_load = future
        return query

    def _refresh(self, query: LiveQuery) -> None:
        if query.closed:
            return
        generation, nights = self._snapshot()
        query.publish(generation, nights)

    def _invalidate(self) -> None:
        with self._lock:
            queries = [query for query in self._live_queries if not query.closed]
        if not queries:
            return
        generation, nights = self._snapshot()
        for query in queries:
            query.publish(generation, list(nights))

    def _snapshot(self) -> Tuple[int, List[SleepNight]]:
        # Observers may write back through the DAO, so nothing is published under this lock.
        with self._refresh_lock:
            self._generation += 1
            return self._generation, self.get_all_nights()

    def _unregister(self, query: LiveQuery) -> None:
        with self._lock:
            self._live_queries.discard(query)


def _log_refresh_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        LOGGER.error("Live query refresh failed", exc_info=(type(exc), exc, exc.__traceback__))


__all__ = ["LiveQuery", "SleepDatabaseDao"]
