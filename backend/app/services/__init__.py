"""Service layer modules."""

from app.services import roadmap_service, user_service

__all__ = [
    "roadmap_service",
    "user_service",
]
