"""
Async SQLAlchemy setup: engine, session factory, declarative base and
the ``get_db`` dependency shared by REST routes and the GraphQL context.

SQL echo follows ``settings.sqlalchemy_echo`` (never on in production).
Statements slower than ``SLOW_QUERY_THRESHOLD_MS`` are logged with their
parameter count only, never their values.
"""

import logging
import time
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from crm_api.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500
LOGGED_STATEMENT_LENGTH = 200

SERVER_POOL_OPTIONS = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_recycle": 3600,
    "pool_pre_ping": True,
}


def _engine_options(database_url: str) -> dict:
    # SQLite (tests, local runs) uses its own pool without sizing options
    return {} if database_url.startswith("sqlite") else dict(SERVER_POOL_OPTIONS)


def track_slow_queries(sync_engine: Engine, threshold_ms: float = SLOW_QUERY_THRESHOLD_MS):
    """Log statements on ``sync_engine`` that take at least ``threshold_ms``."""

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_started", []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.get("query_started")
        if not started:
            return
        elapsed_ms = (time.perf_counter() - started.pop()) * 1000
        if elapsed_ms < threshold_ms:
            return
        shown = statement[:LOGGED_STATEMENT_LENGTH]
        if len(statement) > LOGGED_STATEMENT_LENGTH:
            shown += "..."
        logger.warning(
            "Slow query (%.0fms, %d params): %s",
            elapsed_ms,
            len(parameters) if parameters else 0,
            shown,
        )


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.sqlalchemy_echo,
    **_engine_options(settings.DATABASE_URL),
)
track_slow_queries(engine.sync_engine)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session. Writers commit explicitly; the session is always closed."""
    async with async_session_maker() as session:
        yield session


async def init_db():
    """Create any missing tables for the registered models."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
