"""
Database Engine Configuration for FastAPI.

Optimized for:
- Async operations via aiosqlite (SQLite) or asyncpg (PostgreSQL)
- Safe concurrency with WAL mode and busy_timeout on SQLite
- Foreign key enforcement
"""

from typing import AsyncGenerator
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from app.core.config import config as settings


def _get_engine_options(database_url: str) -> dict:
    """
    Get engine options based on database type.
    SQLite requires special handling for async and concurrency.
    """
    is_sqlite = database_url.startswith("sqlite")

    options = {
        "echo": False,
        "future": True,  # Use SQLAlchemy 2.0 features
    }

    if is_sqlite:
        # In-memory databases must share one connection or every session
        # would see its own empty database
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
    Configure SQLite connection with optimal settings for concurrency.
    Called on every new connection to the database.

    Settings:
    - WAL mode: Allows concurrent reads during writes
    - busy_timeout: Wait up to 30s for locks instead of immediate failure
    - foreign_keys: Enforce referential integrity
    - synchronous=NORMAL: Good balance of safety and performance with WAL
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


database_url = settings.database_url

engine = create_async_engine(
    database_url,
    **_get_engine_options(database_url)
)

if database_url.startswith("sqlite"):
    # For aiosqlite, we need to use the sync_engine's pool events
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        _configure_sqlite_connection(dbapi_connection, connection_record)


AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,  # Manual control over flushing
)


async def get_db_util() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency for FastAPI.

    Transaction handling:
    - One session (and transaction) per request
    - Commit when the endpoint returns, rollback on any exception
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """
    Verify database connection is working.
    Useful for health checks and startup validation.
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception:
        return False
