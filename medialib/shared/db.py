"""Relational store handle: declarative base, engine, and per-request sessions."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import Column, DateTime, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from .exceptions import StorageError
from .logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all media library tables."""


class TimestampMixin:
    """Adds a creation timestamp set at insert time."""

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class Database:
    """Owns the async engine and session factory for one application instance."""

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_schema_ready", dialect=self.engine.dialect.name)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database_engine_disposed")

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a session from the app's Database handle."""
    async for session in get_database(request).session():
        yield session


@asynccontextmanager
async def db_errors(session: AsyncSession, operation: str, **details):
    """Roll back and re-raise SQLAlchemy failures as StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageError(
            message=f"Database error during {operation}",
            details=details,
        ) from e
