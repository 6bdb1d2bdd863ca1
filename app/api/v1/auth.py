"""Authentication endpoints — signup, signin, token refresh, logout, password reset, current user."""

import uuid

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr, Field

from app.api.deps import Auth, Denylist, Session
from app.core.security import TokenPair
from app.models.user import User, UserCreate, UserRead
from app.services import accounts
from app.services.accounts import Profiles

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_REQUESTED = "If the email exists, a password reset link has been sent"


# ── Schemas ──────────────────────────────────────────────────

class SigninRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    new_password: str


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class AccountResponse(BaseModel):
    user: UserRead
    customer_profile_id: uuid.UUID | None = None
    singer_profile_id: uuid.UUID | None = None


class SessionResponse(AccountResponse):
    tokens: TokenResponse


def _tokens(pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=pair.expires_in,
    )


def _session_response(user: User, profiles: Profiles, pair: TokenPair) -> SessionResponse:
    return SessionResponse(
        user=UserRead.model_validate(user),
        customer_profile_id=profiles.customer_profile_id,
        singer_profile_id=profiles.singer_profile_id,
        tokens=_tokens(pair),
    )


# ── Routes ───────────────────────────────────────────────────

@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: UserCreate, session: Session) -> SessionResponse:
    """Register a customer (creates the tenant) or a singer account."""
    user, profiles, pair = await accounts.signup(session, body)
    return _session_response(user, profiles, pair)


@router.post("/signin", response_model=SessionResponse)
async def signin(body: SigninRequest, session: Session) -> SessionResponse:
    user, profiles, pair = await accounts.signin(session, body.email, body.password)
    return _session_response(user, profiles, pair)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, session: Session, denylist: Denylist) -> TokenResponse:
    """Rotate a refresh token. The presented token stops working."""
    pair = await accounts.refresh(session, denylist, body.refresh_token)
    return _tokens(pair)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    auth: Auth,
    denylist: Denylist,
    body: LogoutRequest | None = None,
) -> None:
    await accounts.logout(
        denylist,
        auth.jti,
        auth.expires_at,
        refresh_token=body.refresh_token if body else None,
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, session: Session) -> MessageResponse:
    """Start a password reset. The answer never reveals whether the email exists."""
    # TODO: pass the returned token to a mailer once outbound email exists
    await accounts.forgot_password(session, body.email)
    return MessageResponse(message=RESET_REQUESTED)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, session: Session) -> MessageResponse:
    await accounts.reset_password(session, body.token, body.new_password)
    return MessageResponse(message="Password reset successfully")


@router.get("/me", response_model=AccountResponse)
async def get_me(auth: Auth, session: Session) -> AccountResponse:
    """Return the current authenticated user and their profile ids."""
    user = await session.get(User, auth.user_id)
    return AccountResponse(
        user=UserRead.model_validate(user),
        customer_profile_id=auth.customer_profile_id,
        singer_profile_id=auth.singer_profile_id,
    )
