"""Karaoke systems: owner CRUD plus lookups by legacy id."""

import json
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import escape_like
from app.core.errors import ConflictError, NotFoundError
from app.models.base import utcnow
from app.models.song import SongEntry
from app.models.system import System, SystemCreate, SystemUpdate
from app.services.tenancy import assert_ownership, next_legacy_id

logger = logging.getLogger(__name__)


async def song_count(session: AsyncSession, system_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(SongEntry).where(SongEntry.system_id == system_id)
    )
    return result.scalar_one()


async def get_system_by_legacy_id(
    session: AsyncSession, tenant_id: uuid.UUID, openkj_system_id: int
) -> System:
    result = await session.execute(
        select(System).where(
            System.customer_profile_id == tenant_id,
            System.openkj_system_id == openkj_system_id,
        )
    )
    system = result.scalar_one_or_none()
    if system is None:
        raise NotFoundError("System")
    return system


async def create_system(
    session: AsyncSession, tenant_id: uuid.UUID, body: SystemCreate
) -> System:
    system = System(
        customer_profile_id=tenant_id,
        openkj_system_id=await next_legacy_id(session, tenant_id),
        name=body.name,
        configuration=json.dumps(body.configuration),
    )
    session.add(system)
    await session.commit()
    await session.refresh(system)
    logger.info(
        "System %s created for tenant %s (legacy id %d)",
        system.id, tenant_id, system.openkj_system_id,
    )
    return system


async def list_systems(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    search: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[tuple[System, int]], int]:
    """Systems in name order, each paired with its catalog size."""
    conditions = [System.customer_profile_id == tenant_id]
    if search and search.strip():
        pattern = f"%{escape_like(search.strip())}%"
        conditions.append(System.name.ilike(pattern, escape="\\"))  # type: ignore[union-attr]

    total = (
        await session.execute(select(func.count()).select_from(System).where(*conditions))
    ).scalar_one()

    counts = (
        select(SongEntry.system_id, func.count().label("song_count"))
        .group_by(SongEntry.system_id)
        .subquery()
    )
    stmt = (
        select(System, func.coalesce(counts.c.song_count, 0))
        .outerjoin(counts, counts.c.system_id == System.id)
        .where(*conditions)
        .order_by(System.name)
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return [(system, count) for system, count in result.all()], total


async def get_system(
    session: AsyncSession, system_id: uuid.UUID, tenant_id: uuid.UUID
) -> tuple[System, int]:
    system = await assert_ownership(session, tenant_id, system_id, System)
    return system, await song_count(session, system.id)


async def update_system(
    session: AsyncSession,
    system_id: uuid.UUID,
    tenant_id: uuid.UUID,
    body: SystemUpdate,
) -> tuple[System, int]:
    system = await assert_ownership(session, tenant_id, system_id, System)
    if body.name is not None:
        system.name = body.name
    if body.configuration is not None:
        system.configuration = json.dumps({**system.config, **body.configuration})
    system.updated_at = utcnow()
    session.add(system)
    await session.commit()
    await session.refresh(system)
    return system, await song_count(session, system.id)


async def delete_system(
    session: AsyncSession, system_id: uuid.UUID, tenant_id: uuid.UUID
) -> None:
    """Delete an empty system. A system that still holds songs is kept."""
    system = await assert_ownership(session, tenant_id, system_id, System)
    count = await song_count(session, system.id)
    if count > 0:
        raise ConflictError(
            f"System still has {count} songs; delete its catalog first",
        )
    await session.delete(system)
    try:
        await session.commit()
    except IntegrityError as exc:
        # Songs imported after the count above
        await session.rollback()
        raise ConflictError("System still has songs; delete its catalog first") from exc
    logger.info("System %s deleted for tenant %s", system_id, tenant_id)
