"""Security utilities: password hashing, session tokens, API key helpers."""

import hashlib
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from app.core.config import get_settings

settings = get_settings()

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def password_problems(password: str) -> list[str]:
    """Return every strength rule the password breaks (empty if none)."""
    problems = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters")
    if len(password) > 128:
        problems.append("Password must be at most 128 characters")
    if not re.search(r"[A-Za-z]", password):
        problems.append("Password must contain a letter")
    if not re.search(r"\d", password):
        problems.append("Password must contain a digit")
    return problems


# ── API key hashing (SHA-256, deterministic for lookups) ──────

API_KEY_PREFIX = "sk_"
API_KEY_DISPLAY_CHARS = 7


def hash_api_key(raw_key: str) -> str:
    """One-way SHA-256 hash for API key storage.

    We use SHA-256 (not Argon2) because keys are looked up by their hash on
    every sync call. The random part carries 256 bits of entropy, so
    brute-forcing the digest is infeasible.
    """
    return hashlib.sha256(raw_key.encode()).hexdigest()


def generate_api_key() -> tuple[str, str, str]:
    """Return ``(plaintext, sha256_hex, display_prefix)`` for a new key."""
    random_part = secrets.token_urlsafe(32)
    plaintext = f"{API_KEY_PREFIX}{random_part}"
    return plaintext, hash_api_key(plaintext), random_part[:API_KEY_DISPLAY_CHARS]


# ── One-time tokens (password reset) ─────────────────────────

def generate_one_time_token() -> tuple[str, str]:
    """Return ``(plaintext, sha256_hex)``; only the digest is stored."""
    plaintext = secrets.token_urlsafe(32)
    return plaintext, hash_one_time_token(plaintext)


def hash_one_time_token(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


# ── JWT ───────────────────────────────────────────────────────

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int  # seconds until the access token expires


def _signing_key() -> str:
    if settings.jwt_algorithm.startswith(("ES", "RS", "PS")):
        return settings.jwt_private_key
    return settings.jwt_secret_key


def _verification_key() -> str:
    if settings.jwt_algorithm.startswith(("ES", "RS", "PS")):
        return settings.jwt_public_key
    return settings.jwt_secret_key


def create_jwt(
    subject: str,
    email: str,
    token_type: str = ACCESS_TOKEN,
    expires_delta: timedelta | None = None,
    stamp: str | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = (
            timedelta(minutes=settings.jwt_access_expire_minutes)
            if token_type == ACCESS_TOKEN
            else timedelta(days=settings.jwt_refresh_expire_days)
        )
    payload = {
        "sub": subject,
        "email": email,
        "jti": str(uuid.uuid4()),
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    if stamp:
        payload["stamp"] = stamp
    return jwt.encode(payload, _signing_key(), algorithm=settings.jwt_algorithm)


def credential_stamp(password_hash: str) -> str:
    """Digest of the password hash, carried in every session token.

    A password change alters it, which invalidates every earlier token.
    """
    return hashlib.sha256(password_hash.encode()).hexdigest()[:16]


def create_token_pair(subject: str, email: str, stamp: str | None = None) -> TokenPair:
    return TokenPair(
        access_token=create_jwt(subject, email, ACCESS_TOKEN, stamp=stamp),
        refresh_token=create_jwt(subject, email, REFRESH_TOKEN, stamp=stamp),
        expires_in=settings.jwt_access_expire_minutes * 60,
    )


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(
        token,
        _verification_key(),
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


def seconds_until(exp: int | float) -> int:
    """Remaining lifetime of a token whose ``exp`` claim is ``exp``."""
    return max(0, int(exp - datetime.now(timezone.utc).timestamp()))
