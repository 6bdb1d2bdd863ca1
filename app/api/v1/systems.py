"""Karaoke system management — scoped to the caller's customer profile."""

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import CustomerAuth, Session
from app.core.pagination import Page, Paginated, paginate
from app.models.system import System, SystemCreate, SystemRead, SystemUpdate
from app.services import systems as system_service

router = APIRouter(prefix="/customer/systems", tags=["systems"])


def _to_read(system: System, song_count: int) -> SystemRead:
    return SystemRead(
        id=system.id,
        openkj_system_id=system.openkj_system_id,
        name=system.name,
        configuration=system.config,
        song_count=song_count,
        created_at=system.created_at,
        updated_at=system.updated_at,
    )


@router.post("", response_model=SystemRead, status_code=status.HTTP_201_CREATED)
async def create_system(body: SystemCreate, auth: CustomerAuth, session: Session) -> SystemRead:
    system = await system_service.create_system(session, auth.customer_profile_id, body)
    return _to_read(system, 0)


@router.get("", response_model=Paginated[SystemRead])
async def list_systems(
    auth: CustomerAuth,
    session: Session,
    page: Page,
    search: str | None = Query(default=None, max_length=255),
) -> Paginated[SystemRead]:
    rows, total = await system_service.list_systems(
        session, auth.customer_profile_id, search, page.limit, page.offset,
    )
    return paginate([_to_read(system, count) for system, count in rows], total, page)


@router.get("/{system_id}", response_model=SystemRead)
async def get_system(system_id: uuid.UUID, auth: CustomerAuth, session: Session) -> SystemRead:
    system, count = await system_service.get_system(session, system_id, auth.customer_profile_id)
    return _to_read(system, count)


@router.patch("/{system_id}", response_model=SystemRead)
async def update_system(
    system_id: uuid.UUID,
    body: SystemUpdate,
    auth: CustomerAuth,
    session: Session,
) -> SystemRead:
    """Partial update; ``configuration`` keys are merged into the stored object."""
    system, count = await system_service.update_system(
        session, system_id, auth.customer_profile_id, body,
    )
    return _to_read(system, count)


@router.delete("/{system_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_system(system_id: uuid.UUID, auth: CustomerAuth, session: Session) -> None:
    await system_service.delete_system(session, system_id, auth.customer_profile_id)
