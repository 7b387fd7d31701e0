"""Auth API routes."""

from typing import Annotated

from fastapi import APIRouter, Body, status

from app.api.deps import CurrentUser, DBSession
from app.core.logging import get_logger
from app.models import User
from app.schemas.auth import LoginRequest, LogoutRequest, RefreshRequest, RegisterRequest
from app.schemas.user import UserPublic
from app.services import user_service

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def user_json(user: User) -> dict:
    return UserPublic.model_validate(user).model_dump(mode="json", by_alias=True)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: DBSession) -> dict:
    """Create an account and return it with a fresh token pair."""
    user, tokens = await user_service.register(db, data)
    return {
        "message": "User registered successfully",
        "user": user_json(user),
        "tokens": tokens.model_dump(by_alias=True),
    }


@router.post("/login")
async def login(data: LoginRequest, db: DBSession) -> dict:
    user, tokens = await user_service.login(db, data.identifier, data.password)
    return {
        "message": "Login successful",
        "user": user_json(user),
        "tokens": tokens.model_dump(by_alias=True),
    }


@router.post("/refresh")
async def refresh(
    db: DBSession,
    data: Annotated[RefreshRequest | None, Body()] = None,
) -> dict:
    """Exchange a stored refresh token for a new pair."""
    tokens = await user_service.refresh_tokens(db, data.refresh_token if data else None)
    return {
        "message": "Token refreshed successfully",
        "tokens": tokens.model_dump(by_alias=True),
    }


@router.post("/logout")
async def logout(
    user: CurrentUser,
    db: DBSession,
    data: Annotated[LogoutRequest | None, Body()] = None,
) -> dict:
    """Forget the given refresh token, or all of them when none is sent."""
    await user_service.logout(db, user, data.refresh_token if data else None)
    return {"message": "Logout successful"}


@router.post("/logout-all")
async def logout_all(user: CurrentUser, db: DBSession) -> dict:
    await user_service.logout(db, user, None)
    return {"message": "Logged out from all devices successfully"}


@router.get("/me")
async def me(user: CurrentUser) -> dict:
    return {"user": user_json(user)}
