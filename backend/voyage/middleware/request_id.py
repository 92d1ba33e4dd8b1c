"""
Voyage Backend - Request ID Middleware
=======================================

What:  Gives every request a correlation id and returns it in X-Request-ID.
How:   Reuses a well-formed X-Request-ID sent by the caller (so a frontend or
       another service can trace a call across services), otherwise
       generates a short UUID. The id is kept in a ContextVar for loggers and
       error handlers, and in request.state for route handlers.

Unhandled exceptions from the routes are turned into the 500 error envelope
here, while the id is still set; Starlette's own server error handler runs
outside every middleware and would answer without it.
"""

import logging
import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from voyage.exceptions import GENERIC_SERVER_ERROR
from voyage.middleware.security_headers import SECURITY_HEADERS

logger = logging.getLogger(__name__)

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Caller-supplied ids end up in logs; only short token-like values are kept
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def internal_error_response(rid: str) -> JSONResponse:
    """500 envelope for an exception no handler claimed."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": GENERIC_SERVER_ERROR,
            "request_id": rid,
        },
        headers=dict(SECURITY_HEADERS),
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID to each request and echoes it on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "")
        rid = incoming if _VALID_REQUEST_ID.match(incoming) else new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "[%s] Unexpected error on %s %s: %s",
                rid,
                request.method,
                request.url.path,
                str(exc),
                exc_info=True,
            )
            response = internal_error_response(rid)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
