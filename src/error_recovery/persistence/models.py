"""SQLAlchemy models for key-value persistence."""
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KeyValueModel(Base):
    """Single table backing every storage slot.

    The record store keeps its whole JSON array in one row and rewrites the
    row on every mutation.
    """

    __tablename__ = 'kv_store'

    key: Mapped[str] = mapped_column(String(255), primary_key=True)

    # Opaque serialized payload
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        index=True
    )

    def __repr__(self) -> str:
        return f"<KeyValueModel(key='{self.key}', size={len(self.value or '')})>"
