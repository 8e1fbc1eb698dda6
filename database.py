"""Krishi Drishti — Database Connection Manager.

One async engine per process. Deployments talk to PostgreSQL through
asyncpg with a pre-pinged pool; local runs and the test suite use SQLite
through aiosqlite on a single shared connection.

Usage:
    from database import get_db, init_database, shutdown_database

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_database()
        yield
        await shutdown_database()

    @router.get("/panchayats/{panchayat_id}")
    async def read_panchayat(panchayat_id: str, db: AsyncSession = Depends(get_db)):
        return await db.get(Panchayat, panchayat_id)
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from config import DatabaseSettings, get_settings
from db.base import Base
from logger import get_logger

import db.models  # noqa: F401  registers tables on Base.metadata

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None

SLOW_QUERY_MS = 500


# =============================================================================
# Engine
# =============================================================================

def _engine_options(db_settings: DatabaseSettings) -> dict[str, Any]:
    if db_settings.is_sqlite:
        # one connection shared across tasks, so :memory: keeps its tables
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {
        "poolclass": AsyncAdaptedQueuePool,
        "pool_size": db_settings.pool_size,
        "max_overflow": db_settings.max_overflow,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "hide_parameters": True,
        "connect_args": {"server_settings": {"application_name": "krishi-drishti"}},
    }


def _watch_engine(engine: AsyncEngine) -> None:
    """Log dropped connections and statements slower than SLOW_QUERY_MS."""
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "invalidate")
    def _on_invalidate(dbapi_connection, connection_record, exception):
        logger.warning("Connection invalidated", error=str(exception) if exception else None)

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_started", []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.get("query_started")
        if not started:
            return
        elapsed_ms = (time.perf_counter() - started.pop()) * 1000
        if elapsed_ms > SLOW_QUERY_MS:
            logger.warning(
                "Slow query",
                statement=statement[:300],
                latency_ms=round(elapsed_ms, 1),
            )


def _session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _session_maker


# =============================================================================
# Lifecycle
# =============================================================================

async def init_database() -> None:
    """Create the engine and check connectivity. Idempotent.

    Tables are created from ORM metadata only when ``DB_AUTO_CREATE_SCHEMA``
    is set; otherwise the alembic revisions own the schema.

    Raises:
        RuntimeError: The database is unreachable.
    """
    global _engine, _session_maker

    if _engine is not None:
        return

    settings = get_settings()
    db_settings = settings.database
    logger.info("Connecting to database", dsn=db_settings.dsn_safe)

    engine = create_async_engine(
        db_settings.async_dsn,
        echo=settings.debug,
        **_engine_options(db_settings),
    )
    _watch_engine(engine)

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if db_settings.auto_create_schema:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database schema ensured")
    except (DBAPIError, OSError) as exc:
        await engine.dispose()
        logger.error("Database unreachable", error_type=type(exc).__name__, error=str(exc))
        raise RuntimeError(f"Failed to initialize database: {exc}") from exc

    _engine = engine
    _session_maker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.info("Database initialized", backend=engine.dialect.name)


async def shutdown_database() -> None:
    """Dispose the engine and its pooled connections."""
    global _engine, _session_maker

    if _engine is None:
        return
    try:
        await _engine.dispose()
    finally:
        _engine = None
        _session_maker = None
    logger.info("Database connections closed")


# =============================================================================
# Sessions
# =============================================================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request.

    Commits when the route returns, rolls back when it raises.
    """
    async with _session_factory()() as session:
        try:
            yield session
            await session.commit()
        except DBAPIError as exc:
            await session.rollback()
            logger.error("Database operation failed", error_type=type(exc).__name__, error=str(exc))
            raise
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session scope for flows and scripts, with the same commit rules as get_db.

    Example:
        async with get_db_context() as db:
            await SessionReaper(db).sweep()
    """
    async with _session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_database_health() -> dict[str, Any]:
    """Connectivity probe for /health."""
    if _engine is None:
        return {"status": "unhealthy", "error": "Database not initialized"}

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (DBAPIError, OSError) as exc:
        logger.error("Database health check failed", error_type=type(exc).__name__)
        return {"status": "unhealthy", "error": type(exc).__name__}
    return {"status": "healthy", "backend": _engine.dialect.name}
