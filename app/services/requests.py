"""Song request lifecycle: submit, list, process, delete.

Each committed change is announced to the venue's subscribers through the
injected ``Publisher``; delivery problems never fail the operation.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AuthorizationError, NotFoundError
from app.core.events import Publisher, VenueEvent, VenueEventType, notify
from app.models.base import utcnow
from app.models.request import SongRequest
from app.models.singer import SingerProfile, SingerRequestHistory
from app.models.user import User
from app.models.venue import Venue
from app.services.tenancy import assert_ownership

logger = logging.getLogger(__name__)

GUEST_NAME = "Guest"


@dataclass
class RequestView:
    """A request with its singer's display name resolved."""

    request: SongRequest
    singer_name: str


def song_fingerprint(artist: str, title: str) -> str:
    return f"{artist}:{title}".lower()


def _event_data(request: SongRequest) -> dict:
    return {
        "request_id": request.id,
        "artist": request.artist,
        "title": request.title,
        "key_change": request.key_change,
        "notes": request.notes,
        "processed": request.processed,
        "processed_at": request.processed_at.isoformat() if request.processed_at else None,
        "requested_at": request.requested_at.isoformat(),
    }


async def create_request(
    session: AsyncSession,
    publisher: Publisher,
    venue_id: uuid.UUID,
    artist: str,
    title: str,
    key_change: int = 0,
    notes: str | None = None,
    singer_profile_id: uuid.UUID | None = None,
    submitted_by_user_id: uuid.UUID | None = None,
) -> SongRequest:
    """Queue a request at an open venue.

    Signed-in singers also get a history entry in the same transaction;
    guests do not.
    """
    venue = await session.get(Venue, venue_id)
    if venue is None:
        raise NotFoundError("Venue")
    if not venue.accepting_requests:
        raise AuthorizationError("Venue is not accepting requests")

    request = SongRequest(
        venue_id=venue_id,
        singer_profile_id=singer_profile_id,
        submitted_by_user_id=submitted_by_user_id,
        artist=artist,
        title=title,
        key_change=key_change,
        notes=notes,
    )
    session.add(request)
    if singer_profile_id is not None:
        session.add(SingerRequestHistory(
            singer_profile_id=singer_profile_id,
            venue_id=venue_id,
            artist=artist,
            title=title,
            key_change=key_change,
            song_fingerprint=song_fingerprint(artist, title),
            requested_at=request.requested_at,
        ))
    await session.commit()
    await session.refresh(request)
    logger.info("Request %s created at venue %s", request.id, venue_id)

    await notify(
        publisher, str(venue_id),
        VenueEvent(VenueEventType.REQUEST_CREATED, _event_data(request)),
    )
    return request


async def singer_names(
    session: AsyncSession, singer_profile_ids: set[uuid.UUID]
) -> dict[uuid.UUID, str]:
    """Display name per singer profile: nickname, else account name, else Guest."""
    if not singer_profile_ids:
        return {}
    result = await session.execute(
        select(SingerProfile.id, SingerProfile.nickname, User.name)
        .join(User, User.id == SingerProfile.user_id)
        .where(SingerProfile.id.in_(singer_profile_ids))  # type: ignore[attr-defined]
    )
    return {
        profile_id: nickname or name or GUEST_NAME
        for profile_id, nickname, name in result.all()
    }


async def _with_names(
    session: AsyncSession, requests: list[SongRequest]
) -> list[RequestView]:
    names = await singer_names(
        session, {r.singer_profile_id for r in requests if r.singer_profile_id}
    )
    return [
        RequestView(r, names.get(r.singer_profile_id, GUEST_NAME) if r.singer_profile_id else GUEST_NAME)
        for r in requests
    ]


async def list_venue_requests(
    session: AsyncSession,
    venue_id: uuid.UUID,
    tenant_id: uuid.UUID,
    processed: bool | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[RequestView], int]:
    """Queue for an owned venue, oldest first."""
    await assert_ownership(session, tenant_id, venue_id, Venue)
    conditions = [SongRequest.venue_id == venue_id]
    if processed is not None:
        conditions.append(SongRequest.processed.is_(processed))  # type: ignore[attr-defined]

    total = (
        await session.execute(select(func.count()).select_from(SongRequest).where(*conditions))
    ).scalar_one()
    result = await session.execute(
        select(SongRequest)
        .where(*conditions)
        .order_by(SongRequest.requested_at, SongRequest.id)
        .limit(limit)
        .offset(offset)
    )
    return await _with_names(session, list(result.scalars().all())), total


async def _owned_request(
    session: AsyncSession,
    request_id: int,
    venue_id: uuid.UUID,
    tenant_id: uuid.UUID,
) -> SongRequest:
    await assert_ownership(session, tenant_id, venue_id, Venue)
    result = await session.execute(
        select(SongRequest).where(
            SongRequest.id == request_id,
            SongRequest.venue_id == venue_id,
        )
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request")
    return request


async def update_request(
    session: AsyncSession,
    publisher: Publisher,
    request_id: int,
    venue_id: uuid.UUID,
    tenant_id: uuid.UUID,
    processed: bool | None = None,
    notes: str | None = None,
) -> SongRequest:
    """Apply the given fields; ``None`` leaves a field as it is.

    Setting ``processed`` stamps ``processed_at``; clearing it removes the stamp.
    """
    request = await _owned_request(session, request_id, venue_id, tenant_id)
    if processed is not None:
        request.processed = processed
        request.processed_at = utcnow() if processed else None
    if notes is not None:
        request.notes = notes
    request.updated_at = utcnow()
    session.add(request)
    await session.commit()
    await session.refresh(request)

    await notify(
        publisher, str(venue_id),
        VenueEvent(VenueEventType.REQUEST_UPDATED, _event_data(request)),
    )
    return request


async def process_request(
    session: AsyncSession,
    publisher: Publisher,
    request_id: int,
    venue_id: uuid.UUID,
    tenant_id: uuid.UUID,
) -> SongRequest:
    """Mark processed. Already processed requests keep their original stamp."""
    request = await _owned_request(session, request_id, venue_id, tenant_id)
    if request.processed:
        return request
    return await update_request(
        session, publisher, request_id, venue_id, tenant_id, processed=True,
    )


async def delete_request(
    session: AsyncSession,
    publisher: Publisher,
    request_id: int,
    venue_id: uuid.UUID,
    tenant_id: uuid.UUID,
) -> None:
    request = await _owned_request(session, request_id, venue_id, tenant_id)
    await session.delete(request)
    await session.commit()
    logger.info("Request %s deleted from venue %s", request_id, venue_id)

    await notify(
        publisher, str(venue_id),
        VenueEvent(VenueEventType.REQUEST_DELETED, {"request_id": request_id}),
    )


async def get_singer_history(
    session: AsyncSession,
    singer_profile_id: uuid.UUID,
    limit: int = 20,
    offset: int = 0,
    venue_id: uuid.UUID | None = None,
) -> tuple[list[tuple[SingerRequestHistory, Venue | None]], int]:
    """Newest first, each entry with its venue when the venue still exists."""
    conditions = [SingerRequestHistory.singer_profile_id == singer_profile_id]
    if venue_id is not None:
        conditions.append(SingerRequestHistory.venue_id == venue_id)

    total = (
        await session.execute(
            select(func.count()).select_from(SingerRequestHistory).where(*conditions)
        )
    ).scalar_one()
    result = await session.execute(
        select(SingerRequestHistory, Venue)
        .outerjoin(Venue, Venue.id == SingerRequestHistory.venue_id)
        .where(*conditions)
        .order_by(
            SingerRequestHistory.requested_at.desc(),  # type: ignore[union-attr]
            SingerRequestHistory.id.desc(),  # type: ignore[union-attr]
        )
        .limit(limit)
        .offset(offset)
    )
    return [(entry, venue) for entry, venue in result.all()], total
