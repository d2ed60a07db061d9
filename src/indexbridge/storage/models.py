"""SQLAlchemy models for indexbridge storage.

Defines the persisted entity indexed by default: Document.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


class Document(Base):
    """Represents a stored document that is mirrored into the search index."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[Optional[str]] = mapped_column(String(512), default=None)
    path: Mapped[str] = mapped_column(String(2048))
    text: Mapped[Optional[str]] = mapped_column(Text, default=None)

    # Archived documents stay in the database but are dropped from the index
    archived: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"Document(id={self.id!r}, title={self.title!r})"
