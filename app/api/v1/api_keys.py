"""API key management — create, list, revoke."""

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import CustomerAuth, Session
from app.core.pagination import Page, Paginated, paginate
from app.models.api_key import ApiKeyCreate, ApiKeyCreated, ApiKeyRead, ApiKeyStatus
from app.services import api_keys as api_key_service

router = APIRouter(prefix="/customer/api-keys", tags=["api-keys"])


@router.post(
    "",
    response_model=ApiKeyCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new API key",
)
async def create_api_key(
    body: ApiKeyCreate,
    auth: CustomerAuth,
    session: Session,
) -> ApiKeyCreated:
    """Generate a key for the sync client.

    The plaintext key is returned once; store it securely.
    """
    api_key, plaintext = await api_key_service.create_api_key(
        session, auth.customer_profile_id, auth.user_id, body.description,
    )
    return ApiKeyCreated(
        **ApiKeyRead.model_validate(api_key).model_dump(),
        api_key=plaintext,
    )


@router.get(
    "",
    response_model=Paginated[ApiKeyRead],
    summary="List API keys for the current customer",
)
async def list_api_keys(
    auth: CustomerAuth,
    session: Session,
    page: Page,
    key_status: ApiKeyStatus | None = Query(default=None, alias="status"),
) -> Paginated[ApiKeyRead]:
    keys, total = await api_key_service.list_api_keys(
        session, auth.customer_profile_id, key_status, page.limit, page.offset,
    )
    return paginate([ApiKeyRead.model_validate(k) for k in keys], total, page)


@router.get("/{key_id}", response_model=ApiKeyRead)
async def get_api_key(key_id: uuid.UUID, auth: CustomerAuth, session: Session) -> ApiKeyRead:
    api_key = await api_key_service.get_api_key(session, key_id, auth.customer_profile_id)
    return ApiKeyRead.model_validate(api_key)


@router.delete(
    "/{key_id}",
    response_model=ApiKeyRead,
    summary="Revoke an API key",
)
async def revoke_api_key(key_id: uuid.UUID, auth: CustomerAuth, session: Session) -> ApiKeyRead:
    """Permanent: a revoked key can never authenticate again."""
    api_key = await api_key_service.revoke_api_key(session, key_id, auth.customer_profile_id)
    return ApiKeyRead.model_validate(api_key)
