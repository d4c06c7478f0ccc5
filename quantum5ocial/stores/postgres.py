"""Postgres access for every Quantum5ocial service.

One async engine per process (created in the app lifespan or by a script),
and `get_session()` as the unit of work: the block commits when it exits
cleanly and rolls back when it raises. Services never commit by hand.

The schema is owned by Alembic (`alembic upgrade head`); nothing here creates
tables.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from quantum5ocial.settings import get_settings

LIKE_ESCAPE = "\\"


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _require_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Postgres is not initialized; call init_db() at startup.")
    return _engine


async def init_db() -> None:
    """Create the engine and session factory from DATABASE_URL."""
    global _engine, _session_factory

    settings = get_settings()
    _engine = create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        connect_args=settings.asyncpg_connect_args,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)


async def ping_db() -> None:
    async with _require_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Unit of work.

        async with get_session() as session:
            session.add(Post(...))
        # committed here
    """
    if _session_factory is None:
        raise RuntimeError("Postgres is not initialized; call init_db() at startup.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def contains_pattern(term: str) -> str:
    """`%term%` for ILIKE with `%`, `_` and the escape char in `term` matched literally.

    Pair with `column.ilike(pattern, escape=LIKE_ESCAPE)`.
    """
    escaped = term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
    for wildcard in ("%", "_"):
        escaped = escaped.replace(wildcard, LIKE_ESCAPE + wildcard)
    return f"%{escaped}%"


def generate_uuid() -> str:
    """Primary key for user-facing rows (posts, threads, jobs...)."""
    return str(uuid4())
