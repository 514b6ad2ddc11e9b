# src/scorekeeper/db/models.py

"""Database models for the SQL document store."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

Base = declarative_base()


# ===============================================
# Mixins for Common Columns
# ===============================================


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        default=None,
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=True,
    )


class VersionMixin:
    """Mixin counting how many times a row has been rewritten."""

    version: Mapped[int] = mapped_column(default=1, nullable=False)


# ===============================================
# Document Table
# ===============================================


class DocumentRow(Base, TimestampMixin, VersionMixin):
    """One raw JSON document stored under a unique key.

    The payload is kept verbatim so that documents written by other clients
    round-trip unchanged.
    """

    __tablename__ = "leaderboard_documents"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<DocumentRow(key={self.key!r}, version={self.version})>"
