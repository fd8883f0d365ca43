from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from lession.core.errors import (
    ConflictError,
    LessionError,
    NotFoundError,
    UploadIdentifierRequiredError,
    UploadInvalidStateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; ConflictError is a ValidationError.
_STATUS_BY_ERROR: tuple[tuple[type[LessionError], int], ...] = (
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (UploadIdentifierRequiredError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UploadInvalidStateError, status.HTTP_409_CONFLICT),
)


def status_for(exc: LessionError) -> int:
    for kind, code in _STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_lession_error(request: Request, exc: LessionError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("unmapped domain error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content={"detail": "Internal error"})
    return JSONResponse(status_code=code, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LessionError, _handle_lession_error)  # type: ignore[arg-type]
