"""
Database engine and session factory for the sleep store.

Provides the engine, the session factory, and table creation.
"""
from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

LOGGER = logging.getLogger(__name__)


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for ``url``.

    In-memory SQLite databases share one connection across threads so the
    I/O executor and the caller see the same data.
    """
    parsed = make_url(url)
    kwargs = {"echo": echo}
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True  # Enable connection health checks
    return create_engine(parsed, **kwargs)


def create_session_factory(url: str | Engine, echo: bool = False) -> sessionmaker:
    """Create missing tables and return a session factory bound to ``url``.

    ``url`` may also be an already-built engine.
    """
    engine = url if isinstance(url, Engine) else create_db_engine(url, echo=echo)
    Base.metadata.create_all(bind=engine)
    LOGGER.debug("Database ready at %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
