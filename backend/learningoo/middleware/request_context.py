from __future__ import annotations

import logging
import re
import time
import uuid

import sentry_sdk
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..logging_context import pop_request_context, push_request_context

logger = logging.getLogger("learningoo.access")

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def _request_id_from(request: Request) -> str:
    incoming = (request.headers.get("X-Request-ID") or "").strip()
    if _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to log records and the Sentry scope, and log each request."""

    async def dispatch(self, request: Request, call_next):
        request_id = _request_id_from(request)
        token = push_request_context(request_id)
        request.state.request_id = request_id
        sentry_sdk.set_tag("request_id", request_id)
        started = time.perf_counter()
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
        finally:
            logger.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                status_code,
                extra={"duration_ms": round((time.perf_counter() - started) * 1000, 2)},
            )
            pop_request_context(token)
        response.headers["X-Request-ID"] = request_id
        return response
