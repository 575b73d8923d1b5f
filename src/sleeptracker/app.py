"""Wiring from a loaded Config to a ready SleepTracker."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from sleeptracker.config.loader import Config
from sleeptracker.database.dao import SleepDatabaseDao
from sleeptracker.database.engine import create_db_engine, create_session_factory
from sleeptracker.formatting import Resources
from sleeptracker.lifecycle.dispatch import Dispatchers
from sleeptracker.tracker.sleep_tracker import SleepTracker

LOGGER = logging.getLogger(__name__)


@dataclass
class TrackerApp:
    tracker: SleepTracker
    database: SleepDatabaseDao
    dispatchers: Dispatchers
    engine: Engine

    async def aclose(self) -> None:
        """Cancel the tracker on the loop, then release the executor and engine off it."""
        self.tracker.close()
        await asyncio.to_thread(self._release)

    def _release(self) -> None:
        self.dispatchers.shutdown(wait=True)
        self.engine.dispose()


def build_tracker_app(
    config: Config,
    *,
    dispatchers: Optional[Dispatchers] = None,
    now_fn: Optional[Callable[[], int]] = None,
) -> TrackerApp:
    """Create storage, executors, and the tracker. Call from inside the event loop."""

    dispatchers = dispatchers or Dispatchers(io_workers=config.executor.io_workers)
    engine = create_db_engine(config.database.url, echo=config.database.echo)
    session_factory = create_session_factory(engine)
    database = SleepDatabaseDao(session_factory, query_executor=dispatchers.io)
    tracker = SleepTracker(
        database,
        Resources.from_config(config.display),
        dispatchers=dispatchers,
        now_fn=now_fn,
    )
    LOGGER.debug("Tracker ready (config=%s)", config.config_version)
    return TrackerApp(tracker=tracker, database=database, dispatchers=dispatchers, engine=engine)


__all__ = ["TrackerApp", "build_tracker_app"]
