"""Unauthenticated endpoints — venue directory and guest requests."""

from fastapi import APIRouter, Query, status

from app.api.deps import Publisher, Session
from app.api.v1.customer import request_read
from app.core.pagination import Page, Paginated, paginate
from app.models.request import SongRequestCreate, SongRequestRead
from app.models.venue import PublicVenueRead
from app.services import requests as request_service
from app.services import venues as venue_service
from app.services.requests import GUEST_NAME

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/venues", response_model=Paginated[PublicVenueRead])
async def list_venues(
    session: Session,
    page: Page,
    city: str | None = Query(default=None, max_length=100),
    state: str | None = Query(default=None, max_length=100),
) -> Paginated[PublicVenueRead]:
    """Venues currently accepting requests, by name."""
    venues, total = await venue_service.list_public_venues(
        session, city, state, page.limit, page.offset,
    )
    return paginate([PublicVenueRead.model_validate(v) for v in venues], total, page)


@router.get("/venues/{url_name}", response_model=PublicVenueRead)
async def get_venue(url_name: str, session: Session) -> PublicVenueRead:
    venue = await venue_service.get_venue_by_url_name(session, url_name)
    return PublicVenueRead.model_validate(venue)


@router.post(
    "/venues/{url_name}/requests",
    response_model=SongRequestRead,
    status_code=status.HTTP_201_CREATED,
)
async def submit_guest_request(
    url_name: str,
    body: SongRequestCreate,
    session: Session,
    publisher: Publisher,
) -> SongRequestRead:
    """Anonymous request; no singer history is kept."""
    venue = await venue_service.get_venue_by_url_name(session, url_name)
    request = await request_service.create_request(
        session, publisher, venue.id, body.artist, body.title,
        key_change=body.key_change, notes=body.notes,
    )
    return request_read(request, GUEST_NAME)
