"""Database models."""

from app.models.roadmap import Roadmap
from app.models.user import RefreshToken, User

__all__ = [
    "User",
    "RefreshToken",
    "Roadmap",
]
