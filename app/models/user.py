"""User model — the authenticating principal behind a customer or singer profile."""

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class AccountRole(StrEnum):
    CUSTOMER_OWNER = "customer_owner"
    SINGER = "singer"


class AccountType(StrEnum):
    CUSTOMER = "customer"
    SINGER = "singer"


class User(TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    name: str | None = Field(default=None, max_length=255)
    role: AccountRole = Field(default=AccountRole.SINGER)
    is_active: bool = Field(default=True)
    last_login_at: datetime | None = Field(default=None)


# ── Pydantic schemas ─────────────────────────────────────────

class CustomerSignupData(SQLModel):
    legal_business_name: str | None = Field(default=None, max_length=255)
    contact_email: EmailStr | None = None
    timezone: str = Field(default="UTC", max_length=64)


class SingerSignupData(SQLModel):
    nickname: str | None = Field(default=None, max_length=100)


class UserCreate(SQLModel):
    email: EmailStr
    password: str
    name: str | None = Field(default=None, max_length=255)
    account_type: AccountType
    customer_data: CustomerSignupData | None = None
    singer_data: SingerSignupData | None = None


class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    name: str | None
    role: AccountRole
