"""Global exception handlers.

Domain errors become ``{"error": {code, message, request_id, details?}}``
with the status declared on the error class. Anything unexpected becomes a
generic 500 whose body never echoes the exception. FastAPI keeps its own
handling of ``HTTPException`` (auth 403, rate limit 429) and request
validation (422).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from showroom.core.errors import AppError
from showroom.core.logging import get_request_id

logger = logging.getLogger(__name__)

_INTERNAL_ERROR = {
    "code": "internal_server_error",
    "message": "An unexpected error occurred. Please try again later.",
}


def _error_response(status_code: int, error: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {**error, "request_id": get_request_id()}},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": exc.status_code,
            "request_path": request.url.path,
        },
    )
    return _error_response(exc.status_code, exc.to_dict())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Safety net: log the failure with traceback, answer with a generic 500."""

    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )
    return _error_response(500, _INTERNAL_ERROR)


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
