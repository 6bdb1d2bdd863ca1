"""Song catalog entries, one set per system."""

import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Uuid
from sqlmodel import Field, SQLModel, UniqueConstraint

from app.models.base import TenantOwnedMixin, TimestampMixin


class SongEntry(TenantOwnedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "song_db"
    __table_args__ = (UniqueConstraint("system_id", "normalized_combined"),)

    id: int | None = Field(default=None, primary_key=True)
    system_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("systems.id", ondelete="RESTRICT"), nullable=False, index=True,
        ),
    )
    artist: str = Field(max_length=255, nullable=False, index=True)
    title: str = Field(max_length=255, nullable=False, index=True)
    combined: str = Field(max_length=520, nullable=False)
    normalized_combined: str = Field(max_length=520, nullable=False, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class SongInput(SQLModel):
    """One catalog item as submitted; validated per item during import."""
    artist: str = ""
    title: str = ""


class SongImport(SQLModel):
    openkj_system_id: int
    songs: list[SongInput]


class ImportResult(SQLModel):
    imported: int = 0
    skipped: int = 0
    errors: int = 0


class SongRead(SQLModel):
    id: int
    system_id: uuid.UUID
    artist: str
    title: str
    combined: str
    normalized_combined: str
    created_at: datetime


class SongExportItem(SQLModel):
    artist: str
    title: str
