"""Sync endpoints for the OpenKJ desktop client.

Authenticated by API key rather than session token. Venues and systems
are addressed by their per-tenant legacy integer ids, payloads are
snake_case and errors render as ``{error, message}``.
"""

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel

from app.api.deps import ApiKeyAuth, Publisher, Session
from app.core.errors import ValidationError
from app.models.song import SongInput
from app.services import catalog
from app.services import requests as request_service
from app.services import venues as venue_service

router = APIRouter(tags=["openkj"])


# ── Schemas ──────────────────────────────────────────────────

class LegacyVenue(BaseModel):
    venue_id: int
    name: str
    url_name: str
    address: str | None
    city: str
    state: str
    postal_code: str | None
    accepting_requests: bool


class LegacySong(BaseModel):
    song_id: str
    artist: str
    title: str
    combined: str


class LegacySongList(BaseModel):
    system_id: int
    total: int
    songs: list[LegacySong]


class SyncRequest(BaseModel):
    songs: list[SongInput]


class SyncResult(BaseModel):
    system_id: int
    total_submitted: int
    imported: int
    skipped: int


class LegacyRequest(BaseModel):
    request_id: str
    artist: str
    title: str
    key_change: int
    notes: str | None
    singer_name: str
    requested_at: datetime
    processed: bool
    processed_at: datetime | None


class LegacyRequestList(BaseModel):
    venue_id: int
    total: int
    requests: list[LegacyRequest]


class ProcessResult(BaseModel):
    request_id: str
    processed: bool
    processed_at: datetime | None


# ── Routes ───────────────────────────────────────────────────

@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": "1.0.0", "service": "OpenKJ Compatibility Layer"}


@router.get("/venues/{venue_id}", response_model=LegacyVenue)
async def get_venue(venue_id: int, auth: ApiKeyAuth, session: Session) -> LegacyVenue:
    venue = await venue_service.get_venue_by_legacy_id(
        session, auth.customer_profile_id, venue_id,
    )
    return LegacyVenue(
        venue_id=venue.openkj_venue_id,
        name=venue.name,
        url_name=venue.url_name,
        address=venue.address,
        city=venue.city,
        state=venue.state,
        postal_code=venue.postal_code,
        accepting_requests=venue.accepting_requests,
    )


@router.get("/systems/{system_id}/songs", response_model=LegacySongList)
async def list_songs(
    system_id: int,
    auth: ApiKeyAuth,
    session: Session,
    limit: int = Query(default=1000, ge=1, le=10_000),
    offset: int = Query(default=0, ge=0),
) -> LegacySongList:
    """A page of the system catalog; ``total`` counts the whole catalog."""
    system, songs, total = await catalog.list_system_songs(
        session, auth.customer_profile_id, system_id, limit, offset,
    )
    return LegacySongList(
        system_id=system.openkj_system_id,
        total=total,
        songs=[
            LegacySong(song_id=str(s.id), artist=s.artist, title=s.title, combined=s.combined)
            for s in songs
        ],
    )


@router.post("/systems/{system_id}/songs/sync", response_model=SyncResult)
async def sync_songs(
    system_id: int, body: SyncRequest, auth: ApiKeyAuth, session: Session
) -> SyncResult:
    """Bulk import; entries already in the catalog are skipped."""
    if not body.songs:
        raise ValidationError.for_field(
            "songs", "songs array is required and must not be empty",
        )
    result = await catalog.bulk_import_songs(
        session, auth.customer_profile_id, system_id, body.songs,
    )
    return SyncResult(
        system_id=system_id,
        total_submitted=len(body.songs),
        imported=result.imported,
        skipped=result.skipped,
    )


@router.get("/venues/{venue_id}/requests", response_model=LegacyRequestList)
async def list_requests(
    venue_id: int,
    auth: ApiKeyAuth,
    session: Session,
    processed: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
) -> LegacyRequestList:
    """Queue for one venue, oldest first. Pending requests unless ``processed=true``."""
    venue = await venue_service.get_venue_by_legacy_id(
        session, auth.customer_profile_id, venue_id,
    )
    views, total = await request_service.list_venue_requests(
        session, venue.id, auth.customer_profile_id, processed, limit, 0,
    )
    return LegacyRequestList(
        venue_id=venue.openkj_venue_id,
        total=total,
        requests=[
            LegacyRequest(
                request_id=str(v.request.id),
                artist=v.request.artist,
                title=v.request.title,
                key_change=v.request.key_change,
                notes=v.request.notes,
                singer_name=v.singer_name,
                requested_at=v.request.requested_at,
                processed=v.request.processed,
                processed_at=v.request.processed_at,
            )
            for v in views
        ],
    )


@router.post("/venues/{venue_id}/requests/{request_id}/process", response_model=ProcessResult)
async def process_request(
    venue_id: int,
    request_id: int,
    auth: ApiKeyAuth,
    session: Session,
    publisher: Publisher,
) -> ProcessResult:
    venue = await venue_service.get_venue_by_legacy_id(
        session, auth.customer_profile_id, venue_id,
    )
    request = await request_service.process_request(
        session, publisher, request_id, venue.id, auth.customer_profile_id,
    )
    return ProcessResult(
        request_id=str(request.id),
        processed=request.processed,
        processed_at=request.processed_at,
    )
