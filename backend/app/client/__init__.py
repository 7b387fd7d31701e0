"""Python client for the roadmap API."""

from app.client.auth import ApiError, AuthSession
from app.client.storage import FileStorage, MemoryStorage, TokenStorage

__all__ = ["ApiError", "AuthSession", "FileStorage", "MemoryStorage", "TokenStorage"]
