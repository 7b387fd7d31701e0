"""API routes."""

from app.api.routes import auth, generator, roadmaps, users

__all__ = ["auth", "users", "roadmaps", "generator"]
