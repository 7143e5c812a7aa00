"""ORM models backing the session store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Integer, PickleType, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for sqlbridge tables."""


class SessionRecord(Base):
    """One row per web session; ``data`` holds the pickled session payload."""

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    data: Mapped[Any] = mapped_column(PickleType, nullable=True)
    # Both timestamps are stamped on insert.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<SessionRecord(session_id={self.session_id!r})>"


__all__ = ["Base", "SessionRecord"]
