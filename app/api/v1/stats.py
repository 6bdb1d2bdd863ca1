"""Customer analytics endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel

from app.api.deps import CustomerAuth, Session
from app.models.analytics import (
    OverallStats,
    SingerTally,
    SongTally,
    SystemStats,
    TrendPoint,
    VenueStats,
)
from app.services import analytics
from app.services.analytics import DateRange

router = APIRouter(prefix="/customer/stats", tags=["stats"])


# ── Schemas ──────────────────────────────────────────────────

class VenueStatsResponse(BaseModel):
    venues: list[VenueStats]


class SystemStatsResponse(BaseModel):
    systems: list[SystemStats]


class TrendsResponse(BaseModel):
    trends: list[TrendPoint]


class TopSongsResponse(BaseModel):
    songs: list[SongTally]


class SingersResponse(BaseModel):
    singers: list[SingerTally]


def _window(start_date: datetime | None, end_date: datetime | None) -> DateRange | None:
    if start_date is None and end_date is None:
        return None
    return DateRange(start_date, end_date)


# ── Routes ───────────────────────────────────────────────────

@router.get("", response_model=OverallStats)
async def get_overview(
    auth: CustomerAuth,
    session: Session,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> OverallStats:
    """Summary counts for the tenant. The window only narrows request counts."""
    return await analytics.overall_stats(
        session, auth.customer_profile_id, _window(start_date, end_date),
    )


@router.get("/venues", response_model=VenueStatsResponse)
async def get_venue_stats(
    auth: CustomerAuth,
    session: Session,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> VenueStatsResponse:
    venues = await analytics.venue_stats(
        session, auth.customer_profile_id, _window(start_date, end_date),
    )
    return VenueStatsResponse(venues=venues)


@router.get("/systems", response_model=SystemStatsResponse)
async def get_system_stats(auth: CustomerAuth, session: Session) -> SystemStatsResponse:
    systems = await analytics.system_stats(session, auth.customer_profile_id)
    return SystemStatsResponse(systems=systems)


@router.get("/trends", response_model=TrendsResponse)
async def get_trends(
    auth: CustomerAuth,
    session: Session,
    days: int = Query(default=30, ge=1, le=365),
) -> TrendsResponse:
    """Daily request counts over the last ``days`` days."""
    trends = await analytics.request_trends(session, auth.customer_profile_id, days)
    return TrendsResponse(trends=trends)


@router.get("/top-songs", response_model=TopSongsResponse)
async def get_top_songs(
    auth: CustomerAuth,
    session: Session,
    limit: int = Query(default=50, ge=1, le=200),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> TopSongsResponse:
    songs = await analytics.top_songs(
        session, auth.customer_profile_id, limit, _window(start_date, end_date),
    )
    return TopSongsResponse(songs=songs)


@router.get("/singers", response_model=SingersResponse)
async def get_singer_leaderboard(
    auth: CustomerAuth,
    session: Session,
    limit: int = Query(default=20, ge=1, le=100),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> SingersResponse:
    singers = await analytics.singer_leaderboard(
        session, auth.customer_profile_id, limit, _window(start_date, end_date),
    )
    return SingersResponse(singers=singers)
