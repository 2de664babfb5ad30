"""API middleware: bearer auth, owner-scoped request logging, response headers."""

import logging
import re
import secrets
import time
import uuid
from collections.abc import Callable
from contextlib import nullcontext

from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from storefront_core.config import get_settings
from storefront_core.observability.context import owner_context
from storefront_core.observability.tracing import add_span_attribute, get_current_trace_id

logger = logging.getLogger(__name__)

# Cart and wishlist routes carry their owner as the first path segment after the collection
_OWNER_PATH = re.compile(r"^/v1/(?P<store>carts|wishlists)/(?P<owner_id>[^/]+)")


def owner_id_from_path(path: str) -> str | None:
    """Owner id of a cart or wishlist route, or None for any other path."""
    match = _OWNER_PATH.match(path)
    return match.group("owner_id") if match else None


def _bearer_token(header: str | None) -> str:
    if not header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format. Expected: Bearer <api_key>",
        )
    return token


async def verify_api_key(request: Request) -> str:
    """
    Check the storefront API key sent as ``Authorization: Bearer <api_key>``.

    Raises:
        HTTPException: 401 if the header is missing, malformed or the key is wrong.
    """
    token = _bearer_token(request.headers.get("Authorization"))
    if not secrets.compare_digest(token, get_settings().api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")
    return token


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging and timing.

    Requests to ``/v1/carts/{owner_id}`` and ``/v1/wishlists/{owner_id}``
    run inside that owner's logging context, so every record written while
    handling them (including the started/completed lines) carries the owner.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        owner_id = owner_id_from_path(request.url.path)
        request.state.owner_id = owner_id

        add_span_attribute("http.request_id", request_id)
        if owner_id:
            add_span_attribute("cart.owner_id", owner_id)

        with owner_context(owner_id) if owner_id else nullcontext():
            return await self._timed(request, call_next, request_id)

    async def _timed(
        self, request: Request, call_next: Callable[[Request], Response], request_id: str
    ) -> Response:
        trace_id = get_current_trace_id()
        start_time = time.perf_counter()
        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else "unknown",
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "error": str(e),
                    "processing_time_ms": _elapsed_ms(start_time),
                },
            )
            raise

        elapsed = _elapsed_ms(start_time)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time-Ms"] = str(elapsed)
        if trace_id:
            response.headers["X-Trace-ID"] = trace_id

        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "processing_time_ms": elapsed,
            },
        )
        return response


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Security headers on every response.

    Cart and wishlist responses are personal, so shared caches must not keep
    them.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if owner_id_from_path(request.url.path):
            response.headers["Cache-Control"] = "no-store"
        return response
