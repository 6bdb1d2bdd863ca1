"""One-time tokens sent out of band, e.g. for password reset."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, new_uuid


class VerificationToken(TimestampMixin, SQLModel, table=True):
    __tablename__ = "verification_tokens"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)

    # Purpose and subject, e.g. "reset:someone@example.com"
    identifier: str = Field(max_length=400, nullable=False, index=True)

    # SHA-256 of the token; the plaintext only leaves through delivery
    token_hash: str = Field(nullable=False, unique=True, index=True)

    expires_at: datetime = Field(nullable=False)
