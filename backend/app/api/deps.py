"""API dependencies."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthContext, authenticate_request, check_email_verified, check_roles
from app.core.database import get_session
from app.core.errors import AppError
from app.core.logging import bind_request_context, get_logger
from app.models import User

logger = get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_session():
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db)]


async def get_auth_context(
    request: Request,
    db: DBSession,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthContext:
    """Required auth: 401 with a cause-specific code on any failure."""
    try:
        ctx = await authenticate_request(authorization, db)
    except AppError as e:
        logger.warning("Authentication failed", code=e.code, path=request.url.path)
        raise
    request.state.user = ctx.user
    request.state.token = ctx.token
    bind_request_context(user_id=ctx.user.id)
    return ctx


async def get_current_user(ctx: Annotated[AuthContext, Depends(get_auth_context)]) -> User:
    return ctx.user


async def get_optional_user(
    request: Request,
    db: DBSession,
    authorization: Annotated[str | None, Header()] = None,
) -> User | None:
    """Optional auth: any failure leaves the request anonymous."""
    try:
        ctx = await authenticate_request(authorization, db)
    except AppError:
        return None
    request.state.user = ctx.user
    request.state.token = ctx.token
    return ctx.user


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]


def require_roles(*roles: str) -> Callable[..., Awaitable[User]]:
    """Dependency factory: the caller must hold one of ``roles``."""

    async def dependency(user: CurrentUser) -> User:
        return check_roles(user, roles)

    return dependency


async def require_email_verification(user: CurrentUser) -> User:
    return check_email_verified(user)
