"""
Request Context Middleware.

Binds a request id and caller source to structlog for the duration of
each request, and reports timing back to the client.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.backend.core.logging import get_logger

logger = get_logger(__name__)

# Valid X-Frontend-ID values, aligned with VALID_SOURCES in logging.py
KNOWN_FRONTENDS = {"web", "cli", "api", "internal"}


def resolve_source(header_value: str | None) -> str:
    """Map an X-Frontend-ID header to a log source, 'unknown' if unrecognized."""
    source = (header_value or "").strip().lower()
    return source if source in KNOWN_FRONTENDS else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds request context to every request.

    Headers read:
    - X-Request-ID: propagated when present, generated otherwise
    - X-Frontend-ID: caller identifier (web, cli, api, internal)

    Headers written:
    - X-Request-ID
    - X-Response-Time: duration in milliseconds

    request.state.request_id and request.state.source are set for
    handlers; every log line emitted while handling the request carries
    request_id, source, method and path.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        source = resolve_source(request.headers.get("X-Frontend-ID"))

        request.state.request_id = request_id
        request.state.source = source

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            source=source,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed with exception",
                extra={
                    "duration_ms": _elapsed_ms(started),
                    "error_type": type(exc).__name__,
                },
            )
            raise
        finally:
            structlog.contextvars.clear_contextvars()

        duration_ms = _elapsed_ms(started)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        logger.debug(
            "Request completed",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
