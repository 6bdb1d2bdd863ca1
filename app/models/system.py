"""System model — one karaoke host setup with its own song catalog."""

import json
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel, UniqueConstraint

from app.models.base import TenantOwnedMixin, TimestampMixin, new_uuid


class System(TenantOwnedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "systems"
    __table_args__ = (UniqueConstraint("customer_profile_id", "openkj_system_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    openkj_system_id: int = Field(nullable=False)
    name: str = Field(max_length=255, nullable=False)

    # JSON object, stored as text
    configuration: str = Field(default="{}", sa_column=Column(Text, nullable=False, default="{}"))

    @property
    def config(self) -> dict[str, Any]:
        return json.loads(self.configuration or "{}")


# ── Pydantic schemas ─────────────────────────────────────────

class SystemCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    configuration: dict[str, Any] = Field(default_factory=dict)


class SystemUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    # Merged key-wise into the stored configuration
    configuration: dict[str, Any] | None = None


class SystemRead(SQLModel):
    id: uuid.UUID
    openkj_system_id: int
    name: str
    configuration: dict[str, Any]
    song_count: int = 0
    created_at: datetime
    updated_at: datetime
