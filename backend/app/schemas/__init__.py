"""Pydantic schemas."""

from app.schemas.auth import LoginRequest, LogoutRequest, RefreshRequest, RegisterRequest
from app.schemas.common import CamelModel, Difficulty, TimeUnit
from app.schemas.roadmap import (
    ProgressResponse,
    RoadmapCreate,
    RoadmapListQuery,
    RoadmapResponse,
    StepCompletionRequest,
    StepSchema,
)
from app.schemas.user import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    PreferencesUpdate,
    ProfileUpdate,
    UserPublic,
    UserStats,
)

__all__ = [
    "CamelModel",
    "Difficulty",
    "TimeUnit",
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "LogoutRequest",
    "UserPublic",
    "UserStats",
    "ProfileUpdate",
    "PreferencesUpdate",
    "ChangePasswordRequest",
    "DeleteAccountRequest",
    "RoadmapCreate",
    "RoadmapResponse",
    "RoadmapListQuery",
    "StepSchema",
    "StepCompletionRequest",
    "ProgressResponse",
]
