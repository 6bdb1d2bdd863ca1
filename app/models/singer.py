"""Singer profile plus the singer's request history and favorites."""

import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Uuid
from pydantic import field_validator
from sqlmodel import Field, SQLModel, UniqueConstraint

from app.models.base import TimestampMixin, new_uuid, utcnow


class SingerProfile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "singer_profiles"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", unique=True, nullable=False, index=True)
    nickname: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=2048)


class SingerRequestHistory(SQLModel, table=True):
    """Append-only log of a signed-in singer's requests."""

    __tablename__ = "singer_request_history"

    id: int | None = Field(default=None, primary_key=True)
    singer_profile_id: uuid.UUID = Field(
        foreign_key="singer_profiles.id", nullable=False, index=True,
    )
    # Survives venue deletion
    venue_id: uuid.UUID | None = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("venues.id", ondelete="SET NULL"), index=True),
    )
    artist: str = Field(max_length=255, nullable=False)
    title: str = Field(max_length=255, nullable=False)
    key_change: int = Field(default=0)
    # lower("{artist}:{title}"), distinct from the catalog's normalized form
    song_fingerprint: str = Field(max_length=512, nullable=False, index=True)
    requested_at: datetime = Field(default_factory=utcnow, nullable=False)


class SingerFavoriteSong(TimestampMixin, SQLModel, table=True):
    __tablename__ = "singer_favorite_songs"
    __table_args__ = (
        UniqueConstraint("singer_profile_id", "artist", "title", "key_change"),
    )

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    singer_profile_id: uuid.UUID = Field(
        foreign_key="singer_profiles.id", nullable=False, index=True,
    )
    artist: str = Field(max_length=255, nullable=False)
    title: str = Field(max_length=255, nullable=False)
    key_change: int = Field(default=0)


class SingerFavoriteVenue(TimestampMixin, SQLModel, table=True):
    __tablename__ = "singer_favorite_venues"

    singer_profile_id: uuid.UUID = Field(foreign_key="singer_profiles.id", primary_key=True)
    venue_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("venues.id", ondelete="CASCADE"), primary_key=True),
    )


# ── Pydantic schemas ─────────────────────────────────────────

class SingerProfileRead(SQLModel):
    id: uuid.UUID
    nickname: str | None
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime


class SingerProfileUpdate(SQLModel):
    nickname: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=2048)


class HistoryVenue(SQLModel):
    id: uuid.UUID
    name: str
    city: str
    state: str


class SingerRequestHistoryRead(SQLModel):
    id: int
    venue_id: uuid.UUID | None
    venue: HistoryVenue | None = None
    artist: str
    title: str
    key_change: int
    song_fingerprint: str
    requested_at: datetime


class FavoriteSongCreate(SQLModel):
    artist: str = Field(min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=255)
    key_change: int = Field(default=0, ge=-12, le=12)

    @field_validator("artist", "title", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class FavoriteSongRead(SQLModel):
    id: uuid.UUID
    artist: str
    title: str
    key_change: int
    created_at: datetime


class FavoriteVenueCreate(SQLModel):
    venue_id: uuid.UUID
