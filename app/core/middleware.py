"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import bound_request_id

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id for logging and echo it back in the X-Request-Id header."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        started = perf_counter()

        with bound_request_id(request_id):
            logger.info("%s %s from %s", request.method, request.url.path, request.headers.get("origin") or "no-origin")
            response = await call_next(request)
            logger.info(
                "%s %s -> %s in %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                (perf_counter() - started) * 1000,
            )

        response.headers["X-Request-Id"] = request_id
        return response
