"""Account lifecycle: signup, signin, token refresh, logout and password reset."""

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.revocation import TokenDenylist
from app.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    TokenPair,
    create_token_pair,
    credential_stamp,
    decode_jwt,
    generate_one_time_token,
    hash_one_time_token,
    hash_password,
    password_problems,
    seconds_until,
    verify_password,
)
from app.models.base import utcnow
from app.models.customer_profile import CustomerProfile
from app.models.singer import SingerProfile
from app.models.user import AccountRole, AccountType, User, UserCreate
from app.models.verification_token import VerificationToken

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
RESET_PREFIX = "reset:"
RESET_TOKEN_TTL = timedelta(hours=1)


@dataclass
class Profiles:
    customer_profile_id: uuid.UUID | None = None
    singer_profile_id: uuid.UUID | None = None


async def load_profiles(session: AsyncSession, user_id: uuid.UUID) -> Profiles:
    customer = await session.execute(
        select(CustomerProfile.id).where(CustomerProfile.user_id == user_id)
    )
    singer = await session.execute(
        select(SingerProfile.id).where(SingerProfile.user_id == user_id)
    )
    return Profiles(
        customer_profile_id=customer.scalar_one_or_none(),
        singer_profile_id=singer.scalar_one_or_none(),
    )


def _issue_tokens(user: User) -> TokenPair:
    return create_token_pair(str(user.id), user.email, credential_stamp(user.password_hash))


async def signup(session: AsyncSession, body: UserCreate) -> tuple[User, Profiles, TokenPair]:
    """Create a user with exactly one profile and sign them in."""
    problems = password_problems(body.password)
    if problems:
        raise ValidationError(
            "Password does not meet requirements",
            errors=[{"field": "password", "message": p} for p in problems],
        )

    email = body.email.lower()
    existing = await session.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Email is already registered", field="email")

    is_customer = body.account_type == AccountType.CUSTOMER
    user = User(
        email=email,
        password_hash=hash_password(body.password),
        name=body.name,
        role=AccountRole.CUSTOMER_OWNER if is_customer else AccountRole.SINGER,
        last_login_at=utcnow(),
    )
    profiles = Profiles()
    try:
        session.add(user)
        # Profile rows reference the user
        await session.flush()
        _add_profile(session, body, user, profiles)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Email is already registered", field="email") from exc
    await session.refresh(user)

    logger.info("User %s signed up as %s", user.id, user.role)
    return user, profiles, _issue_tokens(user)


def _add_profile(session: AsyncSession, body: UserCreate, user: User, profiles: Profiles) -> None:
    if body.account_type == AccountType.CUSTOMER:
        data = body.customer_data
        customer = CustomerProfile(
            user_id=user.id,
            legal_business_name=data.legal_business_name if data else None,
            contact_email=(data.contact_email if data and data.contact_email else user.email),
            timezone=data.timezone if data else "UTC",
        )
        session.add(customer)
        profiles.customer_profile_id = customer.id
    else:
        data = body.singer_data
        singer = SingerProfile(user_id=user.id, nickname=data.nickname if data else None)
        session.add(singer)
        profiles.singer_profile_id = singer.id


async def signin(
    session: AsyncSession, email: str, password: str
) -> tuple[User, Profiles, TokenPair]:
    """Same error for an unknown email and a wrong password."""
    result = await session.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    user.last_login_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)

    profiles = await load_profiles(session, user.id)
    return user, profiles, _issue_tokens(user)


async def refresh(
    session: AsyncSession, denylist: TokenDenylist, refresh_token: str
) -> TokenPair:
    """Exchange a refresh token for a new pair. Each refresh token works once."""
    try:
        claims = decode_jwt(refresh_token)
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired refresh token") from exc

    if claims.get("type") != REFRESH_TOKEN or "jti" not in claims:
        raise AuthenticationError("Invalid or expired refresh token")
    if await denylist.is_revoked(claims["jti"]):
        raise AuthenticationError("Refresh token has been revoked")

    try:
        user_id = uuid.UUID(claims["sub"])
    except (KeyError, ValueError) as exc:
        raise AuthenticationError("Invalid or expired refresh token") from exc
    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Account is disabled")
    if claims.get("stamp") != credential_stamp(user.password_hash):
        raise AuthenticationError("Refresh token has been revoked")

    await denylist.revoke(claims["jti"], seconds_until(claims["exp"]))
    return _issue_tokens(user)


async def logout(
    denylist: TokenDenylist,
    access_jti: str,
    access_expires_at: int,
    refresh_token: str | None = None,
) -> None:
    """Revoke the presented access token and, if given, a refresh token."""
    await denylist.revoke(access_jti, seconds_until(access_expires_at))
    if not refresh_token:
        return
    try:
        claims = decode_jwt(refresh_token)
    except JWTError:
        logger.info("Ignoring invalid refresh token on logout")
        return
    if claims.get("type") == REFRESH_TOKEN and "jti" in claims:
        await denylist.revoke(claims["jti"], seconds_until(claims["exp"]))


def is_access_token(claims: dict) -> bool:
    return claims.get("type") == ACCESS_TOKEN


async def forgot_password(session: AsyncSession, email: str) -> str | None:
    """Issue a one-hour reset token for ``email``.

    Returns the plaintext for out-of-band delivery, or ``None`` when no
    active account has that email. Callers must answer both cases alike.
    """
    email = email.lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        logger.info("Password reset requested for an unknown account")
        return None

    identifier = f"{RESET_PREFIX}{email}"
    plaintext, digest = generate_one_time_token()
    # A new request replaces any outstanding token
    await session.execute(
        delete(VerificationToken).where(VerificationToken.identifier == identifier)
    )
    session.add(VerificationToken(
        identifier=identifier,
        token_hash=digest,
        expires_at=utcnow() + RESET_TOKEN_TTL,
    ))
    await session.commit()
    logger.info("Password reset token issued for user %s", user.id)
    return plaintext


async def reset_password(session: AsyncSession, token: str, new_password: str) -> None:
    """Set a new password from a reset token.

    Each token works once. Session tokens issued before the reset stop working.
    """
    problems = password_problems(new_password)
    if problems:
        raise ValidationError(
            "Password does not meet requirements",
            errors=[{"field": "new_password", "message": p} for p in problems],
        )

    result = await session.execute(
        select(VerificationToken).where(
            VerificationToken.token_hash == hash_one_time_token(token),
            VerificationToken.identifier.startswith(RESET_PREFIX),  # type: ignore[union-attr]
            VerificationToken.expires_at > utcnow(),
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise ValidationError.for_field("token", "Invalid or expired reset token")

    email = record.identifier.removeprefix(RESET_PREFIX)
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User")

    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()
    session.add(user)
    await session.delete(record)
    await session.commit()
    logger.info("Password reset for user %s", user.id)
