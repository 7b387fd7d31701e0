"""User profile API routes."""

from fastapi import APIRouter

from app.api.deps import CurrentUser, DBSession
from app.api.routes.auth import user_json
from app.schemas.user import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    PreferencesUpdate,
    ProfileUpdate,
    UserStats,
)
from app.services import user_service

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile")
async def get_profile(user: CurrentUser) -> dict:
    return {"user": user_json(user)}


@router.put("/profile")
async def update_profile(data: ProfileUpdate, user: CurrentUser, db: DBSession) -> dict:
    updated = await user_service.update_profile(db, user, data)
    return {"message": "Profile updated successfully", "user": user_json(updated)}


@router.put("/preferences")
async def update_preferences(data: PreferencesUpdate, user: CurrentUser, db: DBSession) -> dict:
    preferences = await user_service.update_preferences(db, user, data)
    return {"message": "Preferences updated successfully", "preferences": preferences}


@router.post("/change-password")
async def change_password(data: ChangePasswordRequest, user: CurrentUser, db: DBSession) -> dict:
    """Replace the password; every device has to log in again."""
    await user_service.change_password(db, user, data.current_password, data.new_password)
    return {"message": "Password changed successfully. Please login again on all devices."}


@router.delete("/account")
async def delete_account(data: DeleteAccountRequest, user: CurrentUser, db: DBSession) -> dict:
    await user_service.delete_account(db, user, data.password)
    return {"message": "Account deleted successfully"}


@router.get("/stats")
async def get_stats(user: CurrentUser, db: DBSession) -> dict:
    stats = await user_service.get_user_stats(db, user)
    return {"stats": UserStats(**stats).model_dump(mode="json", by_alias=True)}
