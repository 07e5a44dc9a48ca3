"""
astroview/core/db.py
Durable document store backed by SQLAlchemy's async engine.

One table, one row per fixed document key. A row holds the JSON payload and
the time it was last overwritten; rows are replaced, never merged.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from astroview.core.config import UTC
from astroview.core.summary_cache import StoredDocument

log = logging.getLogger("db")


class Base(AsyncAttrs, DeclarativeBase):
    pass


class SummaryDocumentDB(Base):
    __tablename__ = "summary_documents"

    key:          Mapped[str]      = mapped_column(String(200), primary_key=True)
    payload:      Mapped[str]      = mapped_column(Text, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<SummaryDocument(key={self.key}, last_updated={self.last_updated})>"


class Database:
    """Engine + session factory, created at startup and disposed on shutdown."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, future=True)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        log.info(f"Durable store ready ({self.engine.url.get_backend_name()})")

    async def close(self) -> None:
        await self.engine.dispose()


class SqlSummaryStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self, key: str) -> Optional[StoredDocument]:
        async with self._session_factory() as session:
            row = await session.get(SummaryDocumentDB, key)
            if row is None:
                return None
            last_updated = row.last_updated
            # SQLite drops tzinfo on the way back
            if last_updated.tzinfo is None:
                last_updated = UTC.localize(last_updated)
            return StoredDocument(payload=json.loads(row.payload), last_updated=last_updated)

    async def store(self, key: str, payload: Any, last_updated: datetime) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(SummaryDocumentDB, key)
                body = json.dumps(payload)
                if row is None:
                    session.add(SummaryDocumentDB(key=key, payload=body, last_updated=last_updated))
                else:
                    row.payload = body
                    row.last_updated = last_updated
