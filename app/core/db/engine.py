"""
Async database engine for the reports API.

SQLite (aiosqlite) is the default for single-office installs; PostgreSQL
(asyncpg) is picked up from DB_URL in production.
"""

from typing import AsyncGenerator
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from app.core.config import config as settings


def _get_engine_options(database_url: str) -> dict:
    """
    Get engine options based on database type.
    aiosqlite cannot share pooled connections, in-memory databases need a
    single static connection.
    """
    options = {"echo": False}

    if database_url.startswith("sqlite"):
        if ":memory:" in database_url:
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        else:
            options["poolclass"] = NullPool
    elif not settings.is_production:
        options["poolclass"] = NullPool

    return options


def _configure_sqlite_connection(dbapi_connection, connection_record):
    """
    Per-connection SQLite settings:
    - WAL so the list view can read while a save is writing
    - busy_timeout instead of immediate "database is locked"
    - foreign_keys so deleting a group cascades to its rows
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


database_url = settings.database_url

engine = create_async_engine(database_url, **_get_engine_options(database_url))

if database_url.startswith("sqlite"):
    # aiosqlite: pool events live on the sync engine
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        _configure_sqlite_connection(dbapi_connection, connection_record)


AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db_util() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency for FastAPI.
    One session per request: commit when the route returns, rollback on
    any exception.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Verify the database answers. Used by /health."""
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception:
        return False
