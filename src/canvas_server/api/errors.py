"""Mapping of domain and infrastructure failures to HTTP responses.

Every domain rejection carries an ``error`` key naming its kind. FastAPI's own
request-body validation also answers 422 but with only a ``detail`` list, so
clients tell an ``invalid_trait`` rejection apart by the ``error`` key.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from canvas_server.db.errors import DatabaseError
from canvas_server.errors import CanvasError, ErrorKind

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.INSUFFICIENT_PAYMENT: 402,
    ErrorKind.INVALID_TRAIT: 422,  # shared with body validation; see module docstring
    ErrorKind.CUSTOMIZATION_LOCKED: 423,
    ErrorKind.MAX_TRAITS_EXCEEDED: 409,
    ErrorKind.CAPACITY_EXCEEDED: 409,
    ErrorKind.INVALID_INPUT: 400,
}


async def canvas_error_handler(request: Request, exc: CanvasError) -> JSONResponse:
    status = STATUS_BY_KIND.get(exc.kind, 400)
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind.value, exc)
    return JSONResponse(status_code=status, content={"error": exc.kind.value, "detail": exc.detail})


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "database_error", "detail": "Registry storage failure."},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CanvasError, canvas_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
