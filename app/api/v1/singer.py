"""Singer endpoints — profile, requests, history and favorites."""

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import Publisher, Session, SingerAuth
from app.api.v1.customer import request_read
from app.core.pagination import Page, Paginated, paginate
from app.models.request import SongRequestCreate, SongRequestRead
from app.models.singer import (
    FavoriteSongCreate,
    FavoriteSongRead,
    FavoriteVenueCreate,
    HistoryVenue,
    SingerProfileRead,
    SingerProfileUpdate,
    SingerRequestHistoryRead,
)
from app.models.venue import PublicVenueRead
from app.services import favorites
from app.services import requests as request_service
from app.services import venues as venue_service

router = APIRouter(prefix="/singer", tags=["singer"])


# ── Profile ──────────────────────────────────────────────────

@router.get("/profile", response_model=SingerProfileRead)
async def get_profile(auth: SingerAuth, session: Session) -> SingerProfileRead:
    profile = await favorites.get_singer_profile(session, auth.singer_profile_id)
    return SingerProfileRead.model_validate(profile)


@router.patch("/profile", response_model=SingerProfileRead)
async def update_profile(
    body: SingerProfileUpdate, auth: SingerAuth, session: Session
) -> SingerProfileRead:
    profile = await favorites.update_singer_profile(session, auth.singer_profile_id, body)
    return SingerProfileRead.model_validate(profile)


# ── Requests & history ───────────────────────────────────────

@router.post(
    "/venues/{url_name}/requests",
    response_model=SongRequestRead,
    status_code=status.HTTP_201_CREATED,
)
async def submit_request(
    url_name: str,
    body: SongRequestCreate,
    auth: SingerAuth,
    session: Session,
    publisher: Publisher,
) -> SongRequestRead:
    """Request a song and record it in the singer's history."""
    venue = await venue_service.get_venue_by_url_name(session, url_name)
    request = await request_service.create_request(
        session, publisher, venue.id, body.artist, body.title,
        key_change=body.key_change,
        notes=body.notes,
        singer_profile_id=auth.singer_profile_id,
        submitted_by_user_id=auth.user_id,
    )
    names = await request_service.singer_names(session, {auth.singer_profile_id})
    return request_read(request, names.get(auth.singer_profile_id))


@router.get("/history", response_model=Paginated[SingerRequestHistoryRead])
async def get_history(
    auth: SingerAuth,
    session: Session,
    page: Page,
    venue_id: uuid.UUID | None = Query(default=None),
) -> Paginated[SingerRequestHistoryRead]:
    rows, total = await request_service.get_singer_history(
        session, auth.singer_profile_id, page.limit, page.offset, venue_id,
    )
    items = [
        SingerRequestHistoryRead(
            **entry.model_dump(exclude={"singer_profile_id"}),
            venue=HistoryVenue.model_validate(venue) if venue else None,
        )
        for entry, venue in rows
    ]
    return paginate(items, total, page)


# ── Favorite songs ───────────────────────────────────────────

@router.get("/favorites/songs", response_model=Paginated[FavoriteSongRead])
async def list_favorite_songs(
    auth: SingerAuth, session: Session, page: Page
) -> Paginated[FavoriteSongRead]:
    songs, total = await favorites.list_favorite_songs(
        session, auth.singer_profile_id, page.limit, page.offset,
    )
    return paginate([FavoriteSongRead.model_validate(s) for s in songs], total, page)


@router.post(
    "/favorites/songs", response_model=FavoriteSongRead, status_code=status.HTTP_201_CREATED,
)
async def add_favorite_song(
    body: FavoriteSongCreate, auth: SingerAuth, session: Session
) -> FavoriteSongRead:
    favorite = await favorites.add_favorite_song(session, auth.singer_profile_id, body)
    return FavoriteSongRead.model_validate(favorite)


@router.delete("/favorites/songs/{favorite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite_song(
    favorite_id: uuid.UUID, auth: SingerAuth, session: Session
) -> None:
    await favorites.remove_favorite_song(session, auth.singer_profile_id, favorite_id)


# ── Favorite venues ──────────────────────────────────────────

@router.get("/favorites/venues", response_model=list[PublicVenueRead])
async def list_favorite_venues(auth: SingerAuth, session: Session) -> list[PublicVenueRead]:
    venues = await favorites.list_favorite_venues(session, auth.singer_profile_id)
    return [PublicVenueRead.model_validate(v) for v in venues]


@router.post(
    "/favorites/venues", response_model=PublicVenueRead, status_code=status.HTTP_201_CREATED,
)
async def add_favorite_venue(
    body: FavoriteVenueCreate, auth: SingerAuth, session: Session
) -> PublicVenueRead:
    venue = await favorites.add_favorite_venue(session, auth.singer_profile_id, body.venue_id)
    return PublicVenueRead.model_validate(venue)


@router.delete("/favorites/venues/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite_venue(venue_id: uuid.UUID, auth: SingerAuth, session: Session) -> None:
    await favorites.remove_favorite_venue(session, auth.singer_profile_id, venue_id)
