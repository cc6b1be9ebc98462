import logging
import time
import uuid
from typing import Callable, Iterable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from yogastudio.core.logging_utils import error_tracker

logger = logging.getLogger(__name__)

UNLOGGED_PATHS = ("/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def client_ip(request: Request) -> str:
    """Real client address behind the reverse proxy"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.headers.get("x-real-ip"):
        return request.headers["x-real-ip"]
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a short id (echoed back as X-Request-ID),
    logs it with its duration, warns about slow ones and counts
    5xx responses and unhandled exceptions in the error tracker.
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths: Iterable[str] = UNLOGGED_PATHS,
        slow_after: float = 1.0,
    ):
        super().__init__(app)
        self.skip_paths = frozenset(skip_paths)
        self.slow_after = slow_after

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.skip_paths:
            return await call_next(request)

        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        route = f"{request.method} {path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            error_tracker.track_error(
                type(e).__name__,
                str(e),
                {"request_id": request_id, "route": route},
            )
            logger.exception(f"{route} crashed", extra={"request_id": request_id})
            raise

        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info(
            f"{route} -> {response.status_code} in {elapsed_ms}ms",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client_ip": client_ip(request),
            },
        )

        if elapsed_ms > self.slow_after * 1000:
            logger.warning(
                f"Slow request {route}: {elapsed_ms}ms",
                extra={"request_id": request_id, "category": "performance"},
            )
        if response.status_code >= 500:
            error_tracker.track_error(
                f"HTTP_{response.status_code}",
                f"{route} answered {response.status_code}",
                {"request_id": request_id},
            )

        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


def setup_middleware(
    app: FastAPI,
    skip_paths: Optional[Iterable[str]] = None,
    slow_after: float = 1.0,
):
    # Added last runs first, so the request context wraps everything
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RequestContextMiddleware,
        skip_paths=skip_paths or UNLOGGED_PATHS,
        slow_after=slow_after,
    )
