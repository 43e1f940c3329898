"""
Dream - one submitted dream and its optional interpretation.

Rules:
- `id` and `submitted_at` are written once, on insert.
- `tags` is a JSON-encoded Text column (stdlib json, no new deps).
- Status transitions go through ruya.services.interpretation only.
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ruya.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Gender(str, enum.Enum):
    male = "male"
    female = "female"


class MaritalStatus(str, enum.Enum):
    single = "single"
    married = "married"


class DreamStatus(str, enum.Enum):
    pending = "pending"
    interpreted = "interpreted"
    archived = "archived"


class Dream(Base):
    __tablename__ = "dreams"
    __table_args__ = (
        Index("ix_dreams_status_submitted_at", "status", "submitted_at"),
        Index("ix_dreams_gender_marital_status", "gender", "marital_status"),
        Index("ix_dreams_is_public_status", "is_public", "status"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    gender: Mapped[str] = mapped_column(Enum(Gender, name="gender_enum"), nullable=False)
    marital_status: Mapped[str] = mapped_column(
        Enum(MaritalStatus, name="marital_status_enum"), nullable=False
    )
    dream: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="unknown")
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )

    interpretation: Mapped[str | None] = mapped_column(Text, nullable=True)
    interpreted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    interpreted_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        Enum(DreamStatus, name="dream_status_enum"),
        nullable=False,
        default=DreamStatus.pending,
    )
    tags: Mapped[str] = mapped_column(
        Text, nullable=False, default="[]",
        comment="JSON array of tag strings",
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )
