"""User schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Literal

from pydantic import AnyHttpUrl, EmailStr, field_validator

from app.schemas.common import CamelModel, PersonName, StrongPassword, Username


class UserPublic(CamelModel):
    """The projection of a user that may leave the server."""

    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str
    avatar: str | None = None
    is_email_verified: bool
    role: str
    preferences: dict[str, Any]
    last_login_at: datetime | None = None
    created_at: datetime


class ProfileUpdate(CamelModel):
    username: Username | None = None
    email: EmailStr | None = None
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    avatar: AnyHttpUrl | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class NotificationPreferences(CamelModel):
    email: bool | None = None
    roadmap_updates: bool | None = None


class PreferencesUpdate(CamelModel):
    theme: Literal["light", "dark", "system"] | None = None
    notifications: NotificationPreferences | None = None


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: StrongPassword

    @field_validator("current_password")
    @classmethod
    def require_current(cls, v: str) -> str:
        if not v:
            raise ValueError("Current password is required")
        return v


class DeleteAccountRequest(CamelModel):
    password: str

    @field_validator("password")
    @classmethod
    def require_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required to delete account")
        return v


class UserStats(CamelModel):
    total_roadmaps: int
    public_roadmaps: int
    completed_roadmaps: int
    in_progress_roadmaps: int
    recent_roadmaps: int
    member_since: datetime
    last_login: datetime | None = None
