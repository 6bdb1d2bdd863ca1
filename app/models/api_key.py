"""API key model — credentials for the legacy desktop sync client."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlmodel import Field, SQLModel

from app.models.base import TenantOwnedMixin, TimestampMixin, new_uuid


class ApiKeyStatus(StrEnum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class ApiKey(TenantOwnedMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "api_keys"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    created_by_user_id: uuid.UUID | None = Field(default=None, foreign_key="users.id")

    # Human-readable label, e.g. "Main stage laptop"
    description: str | None = Field(default=None, max_length=255)

    # SHA-256 of the full key; the plaintext is shown once at creation
    api_key_hash: str = Field(nullable=False, unique=True, index=True)

    # First characters of the random part, for display
    key_prefix: str = Field(max_length=16, nullable=False)

    status: ApiKeyStatus = Field(default=ApiKeyStatus.ACTIVE, index=True)
    last_used_at: datetime | None = Field(default=None)
    revoked_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class ApiKeyCreate(SQLModel):
    description: str | None = Field(default=None, max_length=255)


class ApiKeyRead(SQLModel):
    """Returned on list / detail. Never includes the hash or plaintext."""
    id: uuid.UUID
    description: str | None
    key_prefix: str
    status: ApiKeyStatus
    last_used_at: datetime | None
    revoked_at: datetime | None
    created_at: datetime


class ApiKeyCreated(ApiKeyRead):
    """Returned exactly once at creation time, with the plaintext key."""
    api_key: str
    warning: str = "Store this key securely. It will not be shown again."
