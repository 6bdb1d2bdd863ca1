"""Customer (venue owner) endpoints — profile, venues and their request queues.

Every query is scoped to the caller's customer profile.
"""

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import CustomerAuth, Publisher, Session
from app.core.errors import NotFoundError
from app.core.pagination import Page, Paginated, paginate
from app.models.customer_profile import CustomerProfile, CustomerProfileRead
from app.models.request import SongRequest, SongRequestRead, SongRequestUpdate
from app.models.venue import VenueCreate, VenueRead, VenueUpdate
from app.services import requests as request_service
from app.services import venues as venue_service
from app.services.requests import RequestView

router = APIRouter(prefix="/customer", tags=["customer"])


def request_read(request: SongRequest, singer_name: str | None = None) -> SongRequestRead:
    return SongRequestRead(
        **request.model_dump(exclude={"created_at", "updated_at", "submitted_by_user_id"}),
        singer_name=singer_name,
    )


def _view_read(view: RequestView) -> SongRequestRead:
    return request_read(view.request, view.singer_name)


# ── Profile ──────────────────────────────────────────────────

@router.get("/profile", response_model=CustomerProfileRead)
async def get_profile(auth: CustomerAuth, session: Session) -> CustomerProfileRead:
    profile = await session.get(CustomerProfile, auth.customer_profile_id)
    if profile is None:
        raise NotFoundError("Customer profile")
    return CustomerProfileRead.model_validate(profile)


# ── Venues ───────────────────────────────────────────────────

@router.post("/venues", response_model=VenueRead, status_code=status.HTTP_201_CREATED)
async def create_venue(body: VenueCreate, auth: CustomerAuth, session: Session) -> VenueRead:
    venue = await venue_service.create_venue(session, auth.customer_profile_id, body)
    return VenueRead.model_validate(venue)


@router.get("/venues", response_model=Paginated[VenueRead])
async def list_venues(auth: CustomerAuth, session: Session, page: Page) -> Paginated[VenueRead]:
    venues, total = await venue_service.list_venues(
        session, auth.customer_profile_id, page.limit, page.offset,
    )
    return paginate([VenueRead.model_validate(v) for v in venues], total, page)


@router.get("/venues/{venue_id}", response_model=VenueRead)
async def get_venue(venue_id: uuid.UUID, auth: CustomerAuth, session: Session) -> VenueRead:
    venue = await venue_service.get_venue(session, venue_id, auth.customer_profile_id)
    return VenueRead.model_validate(venue)


@router.patch("/venues/{venue_id}", response_model=VenueRead)
async def update_venue(
    venue_id: uuid.UUID,
    body: VenueUpdate,
    auth: CustomerAuth,
    session: Session,
    publisher: Publisher,
) -> VenueRead:
    venue = await venue_service.update_venue(
        session, publisher, venue_id, auth.customer_profile_id, body,
    )
    return VenueRead.model_validate(venue)


@router.delete("/venues/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_venue(venue_id: uuid.UUID, auth: CustomerAuth, session: Session) -> None:
    """Delete a venue together with its request queue."""
    await venue_service.delete_venue(session, venue_id, auth.customer_profile_id)


# ── Requests ─────────────────────────────────────────────────

@router.get("/venues/{venue_id}/requests", response_model=Paginated[SongRequestRead])
async def list_requests(
    venue_id: uuid.UUID,
    auth: CustomerAuth,
    session: Session,
    page: Page,
    processed: bool | None = Query(default=None),
) -> Paginated[SongRequestRead]:
    views, total = await request_service.list_venue_requests(
        session, venue_id, auth.customer_profile_id, processed, page.limit, page.offset,
    )
    return paginate([_view_read(v) for v in views], total, page)


@router.patch("/venues/{venue_id}/requests/{request_id}", response_model=SongRequestRead)
async def update_request(
    venue_id: uuid.UUID,
    request_id: int,
    body: SongRequestUpdate,
    auth: CustomerAuth,
    session: Session,
    publisher: Publisher,
) -> SongRequestRead:
    request = await request_service.update_request(
        session, publisher, request_id, venue_id, auth.customer_profile_id,
        processed=body.processed, notes=body.notes,
    )
    return request_read(request)


@router.delete(
    "/venues/{venue_id}/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_request(
    venue_id: uuid.UUID,
    request_id: int,
    auth: CustomerAuth,
    session: Session,
    publisher: Publisher,
) -> None:
    await request_service.delete_request(
        session, publisher, request_id, venue_id, auth.customer_profile_id,
    )
