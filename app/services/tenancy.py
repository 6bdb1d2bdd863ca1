"""Tenant resolution, ownership checks and legacy id allocation."""

import uuid
from typing import TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError
from app.models.api_key import ApiKey
from app.models.customer_profile import CustomerProfile, TenantState
from app.models.singer import SingerProfile
from app.models.song import SongEntry
from app.models.system import System
from app.models.venue import Venue

OwnedT = TypeVar("OwnedT", Venue, System, SongEntry, ApiKey)

RESOURCE_LABELS: dict[type, str] = {
    Venue: "Venue",
    System: "System",
    SongEntry: "Song",
    ApiKey: "API key",
}


async def resolve_tenant(session: AsyncSession, user_id: uuid.UUID) -> uuid.UUID:
    """Return the customer profile id owned by ``user_id``."""
    result = await session.execute(
        select(CustomerProfile.id).where(CustomerProfile.user_id == user_id)
    )
    tenant_id = result.scalar_one_or_none()
    if tenant_id is None:
        raise NotFoundError("Customer profile")
    return tenant_id


async def resolve_singer(session: AsyncSession, user_id: uuid.UUID) -> uuid.UUID:
    result = await session.execute(
        select(SingerProfile.id).where(SingerProfile.user_id == user_id)
    )
    singer_id = result.scalar_one_or_none()
    if singer_id is None:
        raise NotFoundError("Singer profile")
    return singer_id


async def assert_ownership(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    resource_id: uuid.UUID | int,
    model: type[OwnedT],
) -> OwnedT:
    """Load ``model`` by id *and* tenant.

    A missing row and a row owned by another tenant raise the same
    ``NotFoundError`` so callers cannot tell foreign ids from missing ones.
    """
    stmt = select(model).where(
        model.id == resource_id,
        model.customer_profile_id == tenant_id,
    )
    result = await session.execute(stmt)
    resource = result.scalar_one_or_none()
    if resource is None:
        raise NotFoundError(RESOURCE_LABELS[model])
    return resource


async def next_legacy_id(session: AsyncSession, tenant_id: uuid.UUID) -> int:
    """Hand out the tenant's next legacy venue/system id.

    One upsert statement, so concurrent callers never receive the same value.
    Shares the caller's transaction.
    """
    dialect = session.get_bind().dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
    table = TenantState.__table__
    stmt = (
        insert(table)
        .values(customer_profile_id=tenant_id, serial=1)
        .on_conflict_do_update(
            index_elements=[table.c.customer_profile_id],
            set_={"serial": table.c.serial + 1},
        )
        .returning(table.c.serial)
    )
    result = await session.execute(stmt)
    return result.scalar_one()
