"""HTTP request correlation and timing.

Every request gets an id (echoed in X-Request-ID) and one completion log
line carrying the matched route and, for document routes, the document id.
Durations go to the siteverify_http_request_duration_seconds histogram
labelled by route template, so /documents/{document_id} is one series.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .metrics import http_request_duration_seconds
from .request_id import accept_request_id, reset_request_id, set_request_id

logger = get_logger(__name__)


def route_template(request: Request) -> str:
    """Path template of the matched route; "unmatched" for 404s."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and time it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = accept_request_id(request.headers.get("X-Request-ID"))
        token = set_request_id(request_id)
        start = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception:
                self._observe(request, 500, start)
                logger.error(f"{request.method} {request.url.path} failed", exc_info=True)
                raise

            self._observe(request, response.status_code, start)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            reset_request_id(token)

    def _observe(self, request: Request, status_code: int, start: float) -> None:
        duration = time.perf_counter() - start
        template = route_template(request)
        http_request_duration_seconds.labels(
            method=request.method, route=template, status=str(status_code)
        ).observe(duration)

        extra = {}
        document_id = request.path_params.get("document_id")
        if document_id:
            extra["document_id"] = document_id
        logger.info(
            f"{request.method} {template} -> {status_code} in {duration * 1000:.1f}ms",
            extra=extra,
        )
