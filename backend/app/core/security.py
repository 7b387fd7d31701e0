"""Token and password primitives.

Access tokens carry ``{id, username, email, role}``; refresh tokens carry
only ``{id}``. Both are HS256 JWTs stamped with the configured issuer and
audience, plus a random ``jti`` so two tokens minted in the same second
never collide.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import bcrypt
import jwt
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.config import get_settings
from app.core.errors import InvalidRefreshTokenError, InvalidTokenError, TokenExpiredError

BEARER_PREFIX = "Bearer "
# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


class TokenSubject(Protocol):
    id: int
    username: str
    email: str
    role: str


class TokenPair(BaseModel):
    """Access/refresh pair returned to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    refresh_token: str
    expires_in: str


# ============================================================================
# Minting
# ============================================================================


def _encode(claims: dict[str, Any], lifetime: timedelta) -> str:
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {
        **claims,
        "iat": now,
        "exp": now + lifetime,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    return _encode(claims, expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))


def create_refresh_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    return _encode(
        {"id": user_id},
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def generate_tokens(user: TokenSubject) -> TokenPair:
    """Mint an access token and a refresh token for a user."""
    claims = {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
    }
    return TokenPair(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(user.id),
        expires_in=get_settings().access_token_expires_in,
    )


# ============================================================================
# Verification
# ============================================================================


def verify_token(token: str) -> dict[str, Any]:
    """Verify signature, expiry, issuer and audience.

    Raises:
        TokenExpiredError: The token was valid but has expired.
        InvalidTokenError: Malformed, wrongly signed, or wrong issuer/audience.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e)) from e


def verify_refresh_token(token: str) -> dict[str, Any]:
    """Verify a refresh token; access tokens replayed here are rejected."""
    try:
        claims = verify_token(token)
    except (TokenExpiredError, InvalidTokenError) as e:
        raise InvalidRefreshTokenError("Invalid refresh token") from e

    if "username" in claims or "email" in claims:
        raise InvalidRefreshTokenError("Invalid refresh token")
    return claims


def extract_token_from_header(auth_header: str | None) -> str | None:
    """Return the token from a ``Bearer <token>`` header value."""
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    return auth_header[len(BEARER_PREFIX) :] or None


def decode_token(token: str) -> dict[str, Any]:
    """Decode claims without verifying anything."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.DecodeError as e:
        raise InvalidTokenError("Malformed token") from e


def is_token_expired(token: str) -> bool:
    try:
        claims = decode_token(token)
    except InvalidTokenError:
        return True
    exp = claims.get("exp")
    if not isinstance(exp, int | float):
        return True
    return exp < datetime.now(UTC).timestamp()


# ============================================================================
# Passwords
# ============================================================================


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_BCRYPT_MAX_BYTES], password_hash.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
