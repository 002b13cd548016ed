from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import OperationalError
from app.core.config import settings
from app.db.base import Base
from app.store.base import DocumentStore
from app.store.memory import MemoryDocumentStore
from app.store.sql import SqlDocumentStore
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def normalize_database_url(db_url: str) -> str:
    """Make sure the URL names an async driver."""
    # If using postgresql://, convert to postgresql+asyncpg://
    if db_url.startswith('postgresql://'):
        return db_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    # If using postgres://, convert to postgresql+asyncpg://
    if db_url.startswith('postgres://'):
        return db_url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if db_url.startswith('sqlite://'):
        return db_url.replace('sqlite://', 'sqlite+aiosqlite://', 1)
    return db_url


def create_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the document table.

    sqlite gets a single shared connection for in-memory databases; server
    databases get the configured connection pool.
    """
    db_url = normalize_database_url(db_url)

    if db_url.startswith('sqlite'):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url.endswith("sqlite+aiosqlite://"):
            kwargs["poolclass"] = StaticPool
        return create_async_engine(db_url, echo=echo, **kwargs)

    logger.info("Using async database connection with asyncpg")
    return create_async_engine(
        db_url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before using them
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,
    )


_store: Optional[DocumentStore] = None
_engine: Optional[AsyncEngine] = None


async def initialize_store() -> DocumentStore:
    """
    Build the configured document store and verify it is reachable.
    """
    global _store, _engine

    if _store is not None:
        return _store

    if settings.STORE_BACKEND == "memory":
        logger.info("Using in-memory document store")
        _store = MemoryDocumentStore()
        return _store

    try:
        _engine = create_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except OperationalError as e:
        logger.error(f"Failed to connect to database: {e}")
        raise

    _store = SqlDocumentStore(create_session_factory(_engine))
    logger.info("Database connection initialized successfully")
    return _store


async def close_store() -> None:
    """
    Detach listeners and close the database connection pool.
    """
    global _store, _engine
    if _store is not None:
        await _store.close()
        _store = None
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database connection pool closed")


# Dependency to use in FastAPI endpoints
async def get_store() -> DocumentStore:
    """
    Dependency that provides the document store.
    """
    if _store is None:
        return await initialize_store()
    return _store
