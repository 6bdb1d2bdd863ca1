"""Customer analytics over requests, catalogs and venues.

All figures are scoped to one tenant. Request counts may be narrowed to a
``requested_at`` window; catalog and venue counts never are. Days are UTC.
"""

import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import case, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ValidationError
from app.models.analytics import (
    OverallStats,
    SingerTally,
    SongTally,
    SystemStats,
    TrendPoint,
    VenueStats,
)
from app.models.base import utcnow
from app.models.request import SongRequest
from app.models.singer import SingerProfile
from app.models.song import SongEntry
from app.models.system import System
from app.models.user import User
from app.models.venue import Venue

TOP_SONGS_PER_VENUE = 10
RECENT_DAYS = 30
UNKNOWN_SINGER = "Unknown"


def _naive_utc(value: datetime | None) -> datetime | None:
    # Stored timestamps are naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass
class DateRange:
    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        self.start = _naive_utc(self.start)
        self.end = _naive_utc(self.end)
        if self.start and self.end and self.start > self.end:
            raise ValidationError.for_field("start_date", "start_date must not be after end_date")

    def conditions(self) -> list:
        conditions = []
        if self.start is not None:
            conditions.append(SongRequest.requested_at >= self.start)
        if self.end is not None:
            conditions.append(SongRequest.requested_at <= self.end)
        return conditions


def _processed_sum():
    return func.coalesce(func.sum(case((SongRequest.processed.is_(True), 1), else_=0)), 0)  # type: ignore[union-attr]


def _tenant_requests(tenant_id: uuid.UUID, window: DateRange | None) -> list:
    """Filters for requests at the tenant's venues (join ``Venue`` first)."""
    return [Venue.customer_profile_id == tenant_id, *(window.conditions() if window else [])]


async def _count(session: AsyncSession, model, tenant_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(model).where(model.customer_profile_id == tenant_id)
    )
    return result.scalar_one()


async def overall_stats(
    session: AsyncSession, tenant_id: uuid.UUID, window: DateRange | None = None
) -> OverallStats:
    totals = (await session.execute(
        select(
            func.count(SongRequest.id),
            _processed_sum(),
            func.count(func.distinct(SongRequest.singer_profile_id)),
        )
        .select_from(SongRequest)
        .join(Venue, SongRequest.venue_id == Venue.id)
        .where(*_tenant_requests(tenant_id, window))
    )).one()
    total_requests, processed, unique_singers = totals

    midnight = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    active_today = (await session.execute(
        select(func.count(SongRequest.id))
        .select_from(SongRequest)
        .join(Venue, SongRequest.venue_id == Venue.id)
        .where(Venue.customer_profile_id == tenant_id, SongRequest.requested_at >= midnight)
    )).scalar_one()

    return OverallStats(
        total_venues=await _count(session, Venue, tenant_id),
        total_systems=await _count(session, System, tenant_id),
        total_songs=await _count(session, SongEntry, tenant_id),
        total_requests=total_requests,
        processed_requests=processed,
        pending_requests=total_requests - processed,
        unique_singers=unique_singers,
        active_today=active_today,
    )


async def venue_stats(
    session: AsyncSession, tenant_id: uuid.UUID, window: DateRange | None = None
) -> list[VenueStats]:
    """Per-venue totals and the ten most requested songs, venues by name."""
    venues = (await session.execute(
        select(Venue.id, Venue.name)
        .where(Venue.customer_profile_id == tenant_id)
        .order_by(Venue.name)
    )).all()

    totals = {
        row.venue_id: row
        for row in (await session.execute(
            select(
                SongRequest.venue_id,
                func.count(SongRequest.id).label("total"),
                _processed_sum().label("processed"),
                func.count(func.distinct(SongRequest.singer_profile_id)).label("singers"),
            )
            .join(Venue, SongRequest.venue_id == Venue.id)
            .where(*_tenant_requests(tenant_id, window))
            .group_by(SongRequest.venue_id)
        )).all()
    }

    request_count = func.count(SongRequest.id)
    songs = await session.execute(
        select(SongRequest.venue_id, SongRequest.artist, SongRequest.title, request_count)
        .join(Venue, SongRequest.venue_id == Venue.id)
        .where(*_tenant_requests(tenant_id, window))
        .group_by(SongRequest.venue_id, SongRequest.artist, SongRequest.title)
        .order_by(request_count.desc(), SongRequest.artist, SongRequest.title)
    )
    top: dict[uuid.UUID, list[SongTally]] = defaultdict(list)
    for venue_id, artist, title, count in songs.all():
        if len(top[venue_id]) < TOP_SONGS_PER_VENUE:
            top[venue_id].append(SongTally(artist=artist, title=title, request_count=count))

    stats = []
    for venue_id, name in venues:
        row = totals.get(venue_id)
        stats.append(VenueStats(
            venue_id=venue_id,
            venue_name=name,
            total_requests=row.total if row else 0,
            processed_requests=row.processed if row else 0,
            unique_singers=row.singers if row else 0,
            top_songs=top.get(venue_id, []),
        ))
    return stats


async def system_stats(session: AsyncSession, tenant_id: uuid.UUID) -> list[SystemStats]:
    """Catalog size per system and how many entries arrived recently."""
    cutoff = utcnow() - timedelta(days=RECENT_DAYS)
    rows = await session.execute(
        select(
            System.id,
            System.name,
            func.count(SongEntry.id),
            func.coalesce(func.sum(case((SongEntry.created_at >= cutoff, 1), else_=0)), 0),
        )
        .outerjoin(SongEntry, SongEntry.system_id == System.id)
        .where(System.customer_profile_id == tenant_id)
        .group_by(System.id, System.name)
        .order_by(System.name)
    )
    return [
        SystemStats(system_id=sid, system_name=name, song_count=count, recently_added=recent)
        for sid, name, count, recent in rows.all()
    ]


async def request_trends(
    session: AsyncSession, tenant_id: uuid.UUID, days: int = 30
) -> list[TrendPoint]:
    """Daily request and processed counts, oldest first. Days without requests are omitted."""
    cutoff = utcnow() - timedelta(days=days)
    date_col = func.date(SongRequest.requested_at)
    rows = await session.execute(
        select(date_col.label("date"), func.count(SongRequest.id), _processed_sum())
        .join(Venue, SongRequest.venue_id == Venue.id)
        .where(Venue.customer_profile_id == tenant_id, SongRequest.requested_at >= cutoff)
        .group_by(date_col)
        .order_by(date_col.asc())
    )
    return [
        TrendPoint(date=str(day), requests=total, processed=processed)
        for day, total, processed in rows.all()
    ]


async def top_songs(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    limit: int = 50,
    window: DateRange | None = None,
) -> list[SongTally]:
    request_count = func.count(SongRequest.id)
    rows = await session.execute(
        select(SongRequest.artist, SongRequest.title, request_count)
        .join(Venue, SongRequest.venue_id == Venue.id)
        .where(*_tenant_requests(tenant_id, window))
        .group_by(SongRequest.artist, SongRequest.title)
        .order_by(request_count.desc(), SongRequest.artist, SongRequest.title)
        .limit(limit)
    )
    return [
        SongTally(artist=artist, title=title, request_count=count)
        for artist, title, count in rows.all()
    ]


async def singer_leaderboard(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    limit: int = 20,
    window: DateRange | None = None,
) -> list[SingerTally]:
    """Most active signed-in singers. Guest requests are not counted."""
    request_count = func.count(SongRequest.id)
    rows = await session.execute(
        select(SongRequest.singer_profile_id, SingerProfile.nickname, User.name, request_count)
        .join(Venue, SongRequest.venue_id == Venue.id)
        .join(SingerProfile, SingerProfile.id == SongRequest.singer_profile_id)
        .join(User, User.id == SingerProfile.user_id)
        .where(*_tenant_requests(tenant_id, window))
        .group_by(SongRequest.singer_profile_id, SingerProfile.nickname, User.name)
        .order_by(request_count.desc(), SongRequest.singer_profile_id)
        .limit(limit)
    )
    return [
        SingerTally(
            singer_profile_id=profile_id,
            singer_name=nickname or name or UNKNOWN_SINGER,
            request_count=count,
        )
        for profile_id, nickname, name, count in rows.all()
    ]
