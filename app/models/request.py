"""Song request model — one singer's ask at one venue."""

import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Uuid
from pydantic import field_validator
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, utcnow


class SongRequest(TimestampMixin, SQLModel, table=True):
    __tablename__ = "requests"

    id: int | None = Field(default=None, primary_key=True)
    venue_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
    )
    # Both NULL for guest submissions
    singer_profile_id: uuid.UUID | None = Field(
        default=None, foreign_key="singer_profiles.id", index=True,
    )
    submitted_by_user_id: uuid.UUID | None = Field(default=None, foreign_key="users.id")

    artist: str = Field(max_length=255, nullable=False)
    title: str = Field(max_length=255, nullable=False)
    key_change: int = Field(default=0)
    notes: str | None = Field(default=None, max_length=1000)
    processed: bool = Field(default=False, index=True)
    processed_at: datetime | None = Field(default=None)
    requested_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class SongRequestCreate(SQLModel):
    artist: str = Field(min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=255)
    key_change: int = Field(default=0, ge=-12, le=12)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("artist", "title", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class SongRequestUpdate(SQLModel):
    processed: bool | None = None
    notes: str | None = Field(default=None, max_length=1000)


class SongRequestRead(SQLModel):
    id: int
    venue_id: uuid.UUID
    singer_profile_id: uuid.UUID | None
    artist: str
    title: str
    key_change: int
    notes: str | None
    processed: bool
    processed_at: datetime | None
    requested_at: datetime
    singer_name: str | None = None
