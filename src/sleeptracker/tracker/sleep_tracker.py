"""UI-state holder for the sleep tracker screen."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, List, Optional

from sleeptracker.formatting import Resources, format_nights
from sleeptracker.lifecycle.dispatch import Dispatchers, LifecycleScope
from sleeptracker.lifecycle.observable import MutableObservable, Observable, map_observable
from sleeptracker.tracker.types import SleepNight, current_time_millis

if TYPE_CHECKING:
    from sleeptracker.database.dao import SleepDatabaseDao

LOGGER = logging.getLogger(__name__)


class SleepTracker:
    """Exposes tonight's in-progress night and the formatted history.

    Storage calls run on the I/O executor; results are published on the
    foreground loop. Must be constructed while that loop is running.
    """

    def __init__(
        self,
        database: "SleepDatabaseDao",
        resources: Resources,
        *,
        dispatchers: Dispatchers,
        now_fn: Optional[Callable[[], int]] = None,
        scope: Optional[LifecycleScope] = None,
    ) -> None:
        self._database = database
        self._resources = resources
        self._dispatchers = dispatchers
        self._now = now_fn or current_time_millis
        self._scope = scope or LifecycleScope("sleep-tracker")
        self._closed = False

        self._tonight: MutableObservable[SleepNight] = MutableObservable(None)
        self._nights = database.observe_all_nights(loop=dispatchers.foreground)
        self._nights_string = map_observable(self._nights, self._format)

        self._initialize_tonight()

    @property
    def tonight(self) -> Observable[SleepNight]:
        return self._tonight

    @property
    def nights_string(self) -> Observable[str]:
        """Formatted history, recomputed whenever the stored nights change."""
        return self._nights_string

    @property
    def scope(self) -> LifecycleScope:
        return self._scope

    def _format(self, nights: Optional[List[SleepNight]]) -> str:
        return format_nights(nights or [], self._resources)

    def _initialize_tonight(self) -> None:
        async def initialize() -> None:
            self._tonight.value = await self._get_tonight_from_database()

        self._scope.launch(initialize(), name="initialize-tonight")

    async def _get_tonight_from_database(self) -> Optional[SleepNight]:
        """Return the latest night only if it is still being recorded.

        A stopped app or a forgotten recording leaves start and end equal;
        a completed night must never come back as tonight.
        """
        night = await self._dispatchers.run_io(self._database.get_tonight)
        if night is not None and not night.is_in_progress:
            night = None
        return night

    def on_start_tracking(self) -> "asyncio.Task[None]":
        async def start() -> None:
            new_night = SleepNight(start_time_milli=self._now())
            await self._dispatchers.run_io(self._database.insert, new_night)
            LOGGER.info("Started tracking night %s", new_night.night_id)
            self._tonight.value = await self._get_tonight_from_database()

        return self._scope.launch(start(), name="start-tracking")

    def on_stop_tracking(self) -> "asyncio.Task[None]":
        async def stop() -> None:
            old_night = self._tonight.value
            if old_night is None:
                LOGGER.debug("Stop requested with no night in progress")
                return
            old_night.end_time_milli = self._now()
            await self._dispatchers.run_io(self._database.update, old_night)
            LOGGER.info("Stopped tracking night %s", old_night.night_id)

        return self._scope.launch(stop(), name="stop-tracking")

    def on_clear(self) -> "asyncio.Task[None]":
        async def clear() -> None:
            await self._dispatchers.run_io(self._database.clear)
            self._tonight.value = None

        return self._scope.launch(clear(), name="clear-history")

    async def join(self) -> None:
        """Wait for the first history load and every launched operation."""
        await self._nights.wait_loaded()
        await self._scope.join()

    def close(self) -> None:
        """Cancel in-flight work and detach from the stored nights."""

        if self._closed:
            return
        self._closed = True
        self._scope.cancel()
        self._nights_string.close()
        self._nights.close()


__all__ = ["SleepTracker"]
