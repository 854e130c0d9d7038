"""Request correlation middleware.

Accepts the caller's request id (``LOG_REQUEST_ID_HEADER``, default
``X-Request-ID``) or generates one, exposes it to every log record emitted
while the request is served, and writes one ``request.completed`` access
record per request.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from showroom.core.config import settings
from showroom.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


def _request_id_header(request: Request) -> str:
    app_settings = getattr(request.app.state, "settings", None) or settings
    return app_settings.log.request_id_header


async def request_id_middleware(request: Request, call_next) -> Response:
    header_name = _request_id_header(request)
    request_id = request.headers.get(header_name) or uuid.uuid4().hex
    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers["X-Request-Duration-ms"] = f"{duration_ms:.2f}"
    return response
