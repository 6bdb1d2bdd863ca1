"""Customer profile — the tenant: owns venues, systems, song catalog and API keys."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class CustomerProfile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "customer_profiles"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", unique=True, nullable=False, index=True)
    legal_business_name: str | None = Field(default=None, max_length=255)
    contact_email: str | None = Field(default=None, max_length=320)
    timezone: str = Field(default="UTC", max_length=64)


class TenantState(SQLModel, table=True):
    """Per-tenant counter handing out legacy venue/system ids."""

    __tablename__ = "tenant_states"

    customer_profile_id: uuid.UUID = Field(
        foreign_key="customer_profiles.id", primary_key=True,
    )
    serial: int = Field(default=0, nullable=False)


# ── Pydantic schemas ─────────────────────────────────────────

class CustomerProfileRead(SQLModel):
    id: uuid.UUID
    legal_business_name: str | None
    contact_email: str | None
    timezone: str
    created_at: datetime
    updated_at: datetime
