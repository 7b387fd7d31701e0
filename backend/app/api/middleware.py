"""HTTP middleware and exception handlers."""

import time
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.config import get_settings
from app.core.errors import AppError, RateLimitExceeded
from app.core.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)


# ============================================================================
# Rate limiting
# ============================================================================


@dataclass
class _Window:
    started_at: float
    count: int = 0


@dataclass
class RateLimiter:
    """Fixed-window request counter per client IP.

    Over-limit requests are rejected immediately; nothing is queued.
    """

    max_requests: int
    window_seconds: float
    clock: Callable[[], float] = time.monotonic
    _windows: dict[str, _Window] = field(default_factory=dict)
    _last_sweep: float | None = None

    def hit(self, key: str) -> bool:
        """Count one request for ``key``; False when over the limit."""
        now = self.clock()
        if self._last_sweep is None or now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            window = _Window(started_at=now)
            self._windows[key] = window
        window.count += 1
        return window.count <= self.max_requests

    def _sweep(self, now: float) -> None:
        """Forget windows that have run out."""
        self._windows = {
            key: window
            for key, window in self._windows.items()
            if now - window.started_at < self.window_seconds
        }
        self._last_sweep = now

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        self._windows.clear()
        self._last_sweep = None


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: RateLimiter) -> None:  # type: ignore[no-untyped-def]
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        ip = client_ip(request)
        if not self.limiter.hit(ip):
            logger.warning("Rate limit exceeded", client_ip=ip, path=request.url.path)
            error = RateLimitExceeded()
            return JSONResponse(status_code=error.status_code, content=error.to_dict())
        return await call_next(request)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind client ip and path to every log line emitted during a request."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        clear_request_context()
        bind_request_context(client_ip=client_ip(request), path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_request_context()


# ============================================================================
# Exception handlers
# ============================================================================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            code=exc.code,
            message=exc.message,
            detail=getattr(exc, "detail", None),
            **exc.extra,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _validation_message(err: dict) -> str:
    # Custom validators raise ValueError; report their text without pydantic's prefix
    if err.get("type") == "value_error":
        cause = err.get("ctx", {}).get("error")
        if cause is not None:
            return str(cause)
    return err.get("msg", "Invalid value")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": _validation_message(err),
        }
        for err in exc.errors()
    ]
    error = AppError("Validation failed", code="VALIDATION_ERROR", details=details)
    return JSONResponse(status_code=400, content=error.to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        error = AppError("Route not found", code="ROUTE_NOT_FOUND")
    elif exc.status_code == 405:
        error = AppError("Method not allowed", code="METHOD_NOT_ALLOWED")
    else:
        error = AppError(str(exc.detail), code=f"HTTP_{exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code, content=error.to_dict(), headers=exc.headers
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error=str(exc))
    settings = get_settings()
    stack = None
    if settings.is_development and settings.DEBUG:
        stack = "".join(traceback.format_exception(exc))
    error = AppError("Internal server error", code="INTERNAL_ERROR", stack=stack)
    return JSONResponse(status_code=500, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
