"""API key registry — issue, list, revoke and verify sync-client keys."""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.security import API_KEY_PREFIX, generate_api_key, hash_api_key
from app.models.api_key import ApiKey, ApiKeyStatus
from app.models.base import utcnow
from app.services.tenancy import assert_ownership

logger = logging.getLogger(__name__)

# sk_ + 43 base64url chars; anything much longer is not one of ours
MAX_API_KEY_LENGTH = 128


@dataclass
class ApiKeyVerification:
    valid: bool
    customer_profile_id: uuid.UUID | None = None
    api_key_id: uuid.UUID | None = None


INVALID = ApiKeyVerification(valid=False)


async def create_api_key(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    description: str | None = None,
) -> tuple[ApiKey, str]:
    """Persist a new key and return it with its plaintext (shown once)."""
    plaintext, key_hash, prefix = generate_api_key()
    api_key = ApiKey(
        customer_profile_id=tenant_id,
        created_by_user_id=user_id,
        description=description,
        api_key_hash=key_hash,
        key_prefix=prefix,
    )
    session.add(api_key)
    await session.commit()
    await session.refresh(api_key)
    logger.info("API key %s created for tenant %s", api_key.id, tenant_id)
    return api_key, plaintext


async def list_api_keys(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    status: ApiKeyStatus | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[ApiKey], int]:
    conditions = [ApiKey.customer_profile_id == tenant_id]
    if status is not None:
        conditions.append(ApiKey.status == status)

    total = (
        await session.execute(select(func.count()).select_from(ApiKey).where(*conditions))
    ).scalar_one()
    stmt = (
        select(ApiKey)
        .where(*conditions)
        .order_by(ApiKey.created_at.desc())  # type: ignore[union-attr]
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def get_api_key(
    session: AsyncSession, key_id: uuid.UUID, tenant_id: uuid.UUID
) -> ApiKey:
    return await assert_ownership(session, tenant_id, key_id, ApiKey)


async def revoke_api_key(
    session: AsyncSession, key_id: uuid.UUID, tenant_id: uuid.UUID
) -> ApiKey:
    """Permanently revoke a key. Revoking twice keeps the first timestamp."""
    api_key = await assert_ownership(session, tenant_id, key_id, ApiKey)
    if api_key.status != ApiKeyStatus.REVOKED:
        api_key.status = ApiKeyStatus.REVOKED
        api_key.revoked_at = utcnow()
        api_key.updated_at = utcnow()
        session.add(api_key)
        await session.commit()
        await session.refresh(api_key)
        logger.info("API key %s revoked for tenant %s", key_id, tenant_id)
    return api_key


async def verify_api_key(session: AsyncSession, candidate: Any) -> ApiKeyVerification:
    """Check a presented key. Returns an invalid result for any bad input, never raises for it."""
    if not isinstance(candidate, str):
        return INVALID
    if not candidate.startswith(API_KEY_PREFIX) or len(candidate) > MAX_API_KEY_LENGTH:
        return INVALID
    if len(candidate) == len(API_KEY_PREFIX):
        return INVALID

    result = await session.execute(
        select(ApiKey).where(ApiKey.api_key_hash == hash_api_key(candidate))
    )
    api_key = result.scalar_one_or_none()
    if api_key is None or api_key.status != ApiKeyStatus.ACTIVE:
        return INVALID

    verification = ApiKeyVerification(
        valid=True,
        customer_profile_id=api_key.customer_profile_id,
        api_key_id=api_key.id,
    )

    # A failed usage stamp never invalidates the key
    try:
        api_key.last_used_at = utcnow()
        session.add(api_key)
        await session.commit()
    except SQLAlchemyError:
        logger.warning("Could not record usage of API key %s", api_key.id)
        await session.rollback()

    return verification
