"""
Async engine, session factory, and the declarative base for Project Hub.

Column types stay portable (Integer keys, timezone-aware DateTime) so the
same models run on PostgreSQL via asyncpg and on SQLite via aiosqlite.
Timestamps are filled in Python with utcnow() rather than by the server,
which keeps freshly inserted rows readable without a refresh.
"""

import datetime
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from projecthub.core.config import settings

# ── Engine ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# ── Sessions ────────────────────────────────────────────────
# Objects stay loaded after commit; routers serialize them afterwards.
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Metadata shared by every model and by Alembic."""


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request. Services commit or roll back their own work."""
    async with async_session_factory() as session:
        yield session
