"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
import re
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dayflow.core.context import request_id_ctx_var

logger = logging.getLogger("dayflow.access")

REQUEST_ID_HEADER = "X-Request-Id"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id, expose it to log records and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = _inbound_request_id(request) or uuid4().hex
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        started = perf_counter()

        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (perf_counter() - started) * 1000,
            )
        finally:
            request_id_ctx_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _inbound_request_id(request: Request) -> str | None:
    """Accept a caller-supplied id only if it is short and header-safe."""
    candidate = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return candidate if _REQUEST_ID_RE.match(candidate) else None
