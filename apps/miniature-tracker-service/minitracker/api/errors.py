"""
HTTP translation of tracker errors.

Every ``TrackerError`` becomes a JSON body of the form
``{"error": {"error_type", "message", "retryable", "timestamp", ...}}``
with a status code chosen by error class.
"""
from __future__ import annotations

import logging
from datetime import datetime, UTC

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from minitracker.errors import (
    BlobNotFoundError,
    ConflictError,
    NotFoundError,
    RelationalError,
    StorageError,
    TrackerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific class first
STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (BlobNotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 503),
    (RelationalError, 503),
)


def status_for(exc: TrackerError) -> int:
    for error_cls, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return 500


def error_body(exc: TrackerError) -> dict:
    payload = exc.to_dict()
    payload["timestamp"] = datetime.now(UTC).isoformat()
    return {"error": payload}


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.error_type, exc.message)
    return JSONResponse(status_code=status_code, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrackerError, tracker_error_handler)
