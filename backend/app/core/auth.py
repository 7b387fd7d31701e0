"""Authentication utilities.

Resolves a bearer token to a user record and implements the role,
ownership and email-verification gates. FastAPI wiring lives in
``app.api.deps``; everything here is plain async code so it can be used
outside a request as well.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AuthenticationError,
    AuthorizationError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
)
from app.core.logging import get_logger
from app.core.security import extract_token_from_header, verify_token
from app.models import User

logger = get_logger(__name__)

ADMIN_ROLE = "admin"


@dataclass
class AuthContext:
    """The resolved caller: user record plus the raw access token."""

    user: User
    token: str


async def authenticate_request(authorization: str | None, db: AsyncSession) -> AuthContext:
    """Resolve an ``Authorization`` header value to an AuthContext.

    Raises:
        AuthenticationError: NO_TOKEN, TOKEN_EXPIRED, INVALID_TOKEN,
            USER_NOT_FOUND or AUTH_FAILED.
    """
    token = extract_token_from_header(authorization)
    if not token:
        raise AuthenticationError("Access denied. No token provided.", code="NO_TOKEN")

    try:
        claims = verify_token(token)
    except TokenExpiredError as e:
        raise AuthenticationError("Access denied. Token expired.", code="TOKEN_EXPIRED") from e
    except InvalidTokenError as e:
        raise AuthenticationError("Access denied. Invalid token.", code="INVALID_TOKEN") from e

    user_id = claims.get("id")
    if not isinstance(user_id, int):
        raise AuthenticationError("Access denied. Authentication failed.", code="AUTH_FAILED")

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Access denied. User not found.", code="USER_NOT_FOUND")

    return AuthContext(user=user, token=token)


def check_roles(user: User | None, roles: tuple[str, ...]) -> User:
    """Raise unless ``user`` exists and holds one of ``roles``."""
    if user is None:
        raise AuthenticationError("Authentication required.", code="AUTH_REQUIRED")
    if roles and user.role not in roles:
        logger.warning("Role check failed", user_id=user.id, role=user.role, required=roles)
        raise AuthorizationError(
            "Access denied. Insufficient permissions.",
            code="INSUFFICIENT_PERMISSIONS",
            required=list(roles),
            current=user.role,
        )
    return user


def check_ownership(resource: Any, user: User | None, field: str = "created_by") -> Any:
    """Allow admins, or the user whose id is in ``resource.<field>``.

    A missing resource is reported as 404, never 403.
    """
    if user is None:
        raise AuthenticationError("Authentication required.", code="AUTH_REQUIRED")
    if user.role == ADMIN_ROLE:
        return resource
    if resource is None:
        raise NotFoundError("Resource not found.", code="RESOURCE_NOT_FOUND")
    if getattr(resource, field, None) != user.id:
        raise AuthorizationError(
            "Access denied. You can only access your own resources.",
            code="OWNERSHIP_REQUIRED",
        )
    return resource


def check_email_verified(user: User | None) -> User:
    if user is None:
        raise AuthenticationError("Authentication required.", code="AUTH_REQUIRED")
    if not user.is_email_verified:
        raise AuthorizationError(
            "Email verification required.", code="EMAIL_VERIFICATION_REQUIRED"
        )
    return user
