"""FastAPI dependencies for authentication and tenant resolution."""

import uuid
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.errors import ApiKeyError, AuthenticationError
from app.core.events import VenueHub, get_publisher
from app.core.redis import get_redis
from app.core.revocation import TokenDenylist
from app.core.security import API_KEY_PREFIX, credential_stamp, decode_jwt
from app.models.user import AccountRole, User
from app.services.accounts import is_access_token, load_profiles
from app.services.api_keys import verify_api_key
from app.services.tenancy import resolve_singer, resolve_tenant

bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext:
    """Resolved identity carried through a request."""

    __slots__ = (
        "user_id", "email", "role", "jti", "expires_at",
        "customer_profile_id", "singer_profile_id",
    )

    def __init__(
        self,
        user_id: uuid.UUID,
        email: str,
        role: AccountRole,
        jti: str,
        expires_at: int,
        customer_profile_id: uuid.UUID | None = None,
        singer_profile_id: uuid.UUID | None = None,
    ) -> None:
        self.user_id = user_id
        self.email = email
        self.role = role
        self.jti = jti
        self.expires_at = expires_at
        self.customer_profile_id = customer_profile_id
        self.singer_profile_id = singer_profile_id


class ApiKeyContext:
    """Tenant identified by a sync-client API key."""

    __slots__ = ("customer_profile_id", "api_key_id")

    def __init__(self, customer_profile_id: uuid.UUID, api_key_id: uuid.UUID) -> None:
        self.customer_profile_id = customer_profile_id
        self.api_key_id = api_key_id


def get_denylist(redis: Annotated[Redis, Depends(get_redis)]) -> TokenDenylist:
    return TokenDenylist(redis)


async def resolve_access_token(
    token: str, session: AsyncSession, denylist: TokenDenylist
) -> AuthContext:
    """Verify an access JWT end to end and load the principal's profiles."""
    try:
        claims = decode_jwt(token)
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    if not is_access_token(claims) or "jti" not in claims:
        raise AuthenticationError("Invalid or expired token")
    if await denylist.is_revoked(claims["jti"]):
        raise AuthenticationError("Token has been revoked")

    try:
        user_id = uuid.UUID(claims["sub"])
    except (KeyError, ValueError) as exc:
        raise AuthenticationError("Malformed token payload") from exc

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Account is disabled")
    if claims.get("stamp") != credential_stamp(user.password_hash):
        raise AuthenticationError("Token has been revoked")

    profiles = await load_profiles(session, user.id)
    return AuthContext(
        user_id=user.id,
        email=user.email,
        role=user.role,
        jti=claims["jti"],
        expires_at=claims["exp"],
        customer_profile_id=profiles.customer_profile_id,
        singer_profile_id=profiles.singer_profile_id,
    )


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
    denylist: Annotated[TokenDenylist, Depends(get_denylist)],
) -> AuthContext:
    if credentials is None:
        raise AuthenticationError("Authentication required")
    return await resolve_access_token(credentials.credentials, session, denylist)


Auth = Annotated[AuthContext, Depends(get_auth_context)]


async def get_customer_context(
    auth: Auth, session: Annotated[AsyncSession, Depends(get_session)]
) -> AuthContext:
    if auth.customer_profile_id is None:
        auth.customer_profile_id = await resolve_tenant(session, auth.user_id)
    return auth


async def get_singer_context(
    auth: Auth, session: Annotated[AsyncSession, Depends(get_session)]
) -> AuthContext:
    if auth.singer_profile_id is None:
        auth.singer_profile_id = await resolve_singer(session, auth.user_id)
    return auth


async def get_api_key_context(
    session: Annotated[AsyncSession, Depends(get_session)],
    x_api_key: Annotated[str | None, Header()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> ApiKeyContext:
    """API key from ``X-API-Key`` or ``Authorization: Bearer sk_…``."""
    candidate = x_api_key
    if candidate is None and authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip().startswith(API_KEY_PREFIX):
            candidate = value.strip()
    if not candidate:
        raise ApiKeyError(
            "API key required",
            "Provide an API key in the X-API-Key header or Authorization header",
        )

    verification = await verify_api_key(session, candidate)
    if not verification.valid:
        raise ApiKeyError(
            "Invalid API key", "The provided API key is invalid or has been revoked",
        )
    return ApiKeyContext(verification.customer_profile_id, verification.api_key_id)


# Typed shorthand for use in route signatures
CustomerAuth = Annotated[AuthContext, Depends(get_customer_context)]
SingerAuth = Annotated[AuthContext, Depends(get_singer_context)]
ApiKeyAuth = Annotated[ApiKeyContext, Depends(get_api_key_context)]
Session = Annotated[AsyncSession, Depends(get_session)]
Denylist = Annotated[TokenDenylist, Depends(get_denylist)]
Publisher = Annotated[VenueHub, Depends(get_publisher)]
