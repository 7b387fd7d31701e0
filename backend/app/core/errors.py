"""Application error taxonomy.

Every error that reaches a client is rendered as::

    {"error": {"message": "...", "code": "...", ...extra}}

Route handlers and services raise the ``AppError`` subclasses below; the
handlers registered in ``app.main`` turn them (and anything unexpected) into
that envelope.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors with a known HTTP status and machine-readable code."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        **extra: Any,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.extra = {k: v for k, v in extra.items() if v is not None}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"message": self.message, "code": self.code, **self.extra}}


class ValidationFailed(AppError):
    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class AuthenticationError(AppError):
    status_code = 401
    default_code = "AUTH_FAILED"
    default_message = "Access denied. Authentication failed."


class AuthorizationError(AppError):
    status_code = 403
    default_code = "ACCESS_DENIED"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_code = "RESOURCE_NOT_FOUND"
    default_message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    default_code = "DUPLICATE_FIELD"
    default_message = "Resource already exists"


class RateLimitExceeded(AppError):
    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"
    default_message = "Too many requests from this IP, please try again later."


class GenerationError(AppError):
    """Roadmap generation failed (provider call or unusable response)."""

    status_code = 502
    default_code = "GENERATION_FAILED"
    default_message = "Failed to generate roadmap from LLM. Please check your API key and try again."

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        detail: str | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(message, code, **extra)
        # Provider text can echo request data; logged, never sent to clients
        self.detail = detail


# ============================================================================
# Token errors (raised by app.core.security, mapped to 401 codes by auth)
# ============================================================================


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    pass


class InvalidTokenError(TokenError):
    pass


class InvalidRefreshTokenError(TokenError):
    pass
