"""Venue model — a physical location that takes song requests."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel, UniqueConstraint

from app.models.base import TenantOwnedMixin, TimestampMixin, new_uuid

URL_NAME_PATTERN = r"^[a-z0-9-]+$"


class Venue(TenantOwnedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "venues"
    __table_args__ = (UniqueConstraint("customer_profile_id", "openkj_venue_id"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    openkj_venue_id: int = Field(nullable=False)
    name: str = Field(max_length=255, nullable=False)

    # Public slug, unique across all tenants
    url_name: str = Field(max_length=100, unique=True, nullable=False, index=True)

    address: str | None = Field(default=None, max_length=255)
    city: str = Field(default="", max_length=100, index=True)
    state: str = Field(default="", max_length=100, index=True)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=2048)
    accepting_requests: bool = Field(default=True)


# ── Pydantic schemas ─────────────────────────────────────────

class VenueCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    url_name: str = Field(min_length=3, max_length=100)
    address: str | None = Field(default=None, max_length=255)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=2048)
    accepting_requests: bool = True


class VenueUpdate(SQLModel):
    """Partial update. The slug is immutable."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    phone_number: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=2048)
    accepting_requests: bool | None = None


class VenueRead(SQLModel):
    id: uuid.UUID
    openkj_venue_id: int
    name: str
    url_name: str
    address: str | None
    city: str
    state: str
    postal_code: str | None
    country: str | None
    phone_number: str | None
    website: str | None
    accepting_requests: bool
    created_at: datetime
    updated_at: datetime


class PublicVenueRead(SQLModel):
    """What anonymous visitors see: no tenant or legacy identifiers."""
    id: uuid.UUID
    name: str
    url_name: str
    address: str | None
    city: str
    state: str
    postal_code: str | None
    country: str | None
    phone_number: str | None
    website: str | None
    accepting_requests: bool
