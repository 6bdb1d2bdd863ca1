"""Venue CRUD for owners and the public venue directory."""

import logging
import re
import uuid

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.events import Publisher, VenueEvent, VenueEventType, notify
from app.models.base import utcnow
from app.models.request import SongRequest
from app.models.singer import SingerFavoriteVenue, SingerRequestHistory
from app.models.venue import URL_NAME_PATTERN, Venue, VenueCreate, VenueUpdate
from app.services.tenancy import assert_ownership, next_legacy_id

logger = logging.getLogger(__name__)

_URL_NAME = re.compile(URL_NAME_PATTERN)


async def create_venue(
    session: AsyncSession, tenant_id: uuid.UUID, body: VenueCreate
) -> Venue:
    if not _URL_NAME.match(body.url_name):
        raise ValidationError.for_field(
            "url_name", "URL name may only contain lowercase letters, digits and hyphens",
        )
    taken = await session.execute(select(Venue.id).where(Venue.url_name == body.url_name))
    if taken.scalar_one_or_none() is not None:
        raise ConflictError("URL name is already taken", field="url_name")

    venue = Venue(
        customer_profile_id=tenant_id,
        openkj_venue_id=await next_legacy_id(session, tenant_id),
        **body.model_dump(),
    )
    session.add(venue)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("URL name is already taken", field="url_name") from exc
    await session.refresh(venue)
    logger.info(
        "Venue %s created for tenant %s (legacy id %d)",
        venue.id, tenant_id, venue.openkj_venue_id,
    )
    return venue


async def list_venues(
    session: AsyncSession, tenant_id: uuid.UUID, limit: int = 20, offset: int = 0
) -> tuple[list[Venue], int]:
    condition = Venue.customer_profile_id == tenant_id
    total = (
        await session.execute(select(func.count()).select_from(Venue).where(condition))
    ).scalar_one()
    result = await session.execute(
        select(Venue)
        .where(condition)
        .order_by(Venue.created_at.desc())  # type: ignore[union-attr]
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def get_venue(
    session: AsyncSession, venue_id: uuid.UUID, tenant_id: uuid.UUID
) -> Venue:
    return await assert_ownership(session, tenant_id, venue_id, Venue)


async def get_venue_by_legacy_id(
    session: AsyncSession, tenant_id: uuid.UUID, openkj_venue_id: int
) -> Venue:
    result = await session.execute(
        select(Venue).where(
            Venue.customer_profile_id == tenant_id,
            Venue.openkj_venue_id == openkj_venue_id,
        )
    )
    venue = result.scalar_one_or_none()
    if venue is None:
        raise NotFoundError("Venue")
    return venue


async def update_venue(
    session: AsyncSession,
    publisher: Publisher,
    venue_id: uuid.UUID,
    tenant_id: uuid.UUID,
    body: VenueUpdate,
) -> Venue:
    venue = await assert_ownership(session, tenant_id, venue_id, Venue)
    changes = body.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(venue, key, value)
    venue.updated_at = utcnow()
    session.add(venue)
    await session.commit()
    await session.refresh(venue)

    await notify(publisher, str(venue.id), VenueEvent(
        VenueEventType.VENUE_UPDATED,
        {"venue_id": str(venue.id), "changes": sorted(changes)},
    ))
    return venue


async def delete_venue(
    session: AsyncSession, venue_id: uuid.UUID, tenant_id: uuid.UUID
) -> None:
    """Delete a venue with its requests. Singer history outlives it."""
    venue = await assert_ownership(session, tenant_id, venue_id, Venue)
    await session.execute(delete(SongRequest).where(SongRequest.venue_id == venue.id))
    await session.execute(
        delete(SingerFavoriteVenue).where(SingerFavoriteVenue.venue_id == venue.id)
    )
    await session.execute(
        update(SingerRequestHistory)
        .where(SingerRequestHistory.venue_id == venue.id)
        .values(venue_id=None)
    )
    await session.delete(venue)
    await session.commit()
    logger.info("Venue %s deleted for tenant %s", venue_id, tenant_id)


async def list_public_venues(
    session: AsyncSession,
    city: str | None = None,
    state: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Venue], int]:
    conditions = [Venue.accepting_requests.is_(True)]  # type: ignore[attr-defined]
    if city:
        conditions.append(func.lower(Venue.city) == city.strip().lower())
    if state:
        conditions.append(func.lower(Venue.state) == state.strip().lower())

    total = (
        await session.execute(select(func.count()).select_from(Venue).where(*conditions))
    ).scalar_one()
    result = await session.execute(
        select(Venue).where(*conditions).order_by(Venue.name).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), total


async def get_venue_by_url_name(session: AsyncSession, url_name: str) -> Venue:
    result = await session.execute(select(Venue).where(Venue.url_name == url_name))
    venue = result.scalar_one_or_none()
    if venue is None:
        raise NotFoundError("Venue")
    return venue
