"""Async SQLAlchemy engine and request-scoped sessions.

Configured from DATABASE_URL (``postgresql+asyncpg://...``).  Without it
``engine`` and ``async_session_factory`` are None and the API serves
from the in-memory store instead.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from meetly.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for every table in db/tables.py."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev and SETTINGS.log_level == "debug",
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """A session that commits when the block exits cleanly.

    A workflow's writes (event, package, purchase) land together or not
    at all.  Provider side effects are not transactional: a rollback
    after a meeting was scheduled leaves the meeting on the calendar.
    """
    if async_session_factory is None:
        raise RuntimeError("DATABASE_URL is not configured")
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan_db():
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url.render_as_string(hide_password=True))
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
