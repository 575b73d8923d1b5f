from __future__ import annotations

from datetime import timezone
from typing import Iterator

import pytest
from sqlalchemy.orm import sessionmaker

from sleeptracker.database.dao import SleepDatabaseDao
from sleeptracker.database.engine import create_session_factory
from sleeptracker.formatting import Resources
from sleeptracker.lifecycle.dispatch import Dispatchers


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(100)


@pytest.fixture
def session_factory() -> sessionmaker:
    return create_session_factory("sqlite+pysqlite://")


@pytest.fixture
def dispatchers() -> Iterator[Dispatchers]:
    # One worker keeps storage calls in submission order.
    dispatchers = Dispatchers(io_workers=1)
    yield dispatchers
    dispatchers.shutdown(wait=True)


@pytest.fixture
def dao(session_factory: sessionmaker, dispatchers: Dispatchers) -> SleepDatabaseDao:
    return SleepDatabaseDao(session_factory, query_executor=dispatchers.io)


@pytest.fixture
def resources() -> Resources:
    return Resources(tz=timezone.utc)
