from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for repository operations."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(StorageError):
    """Entity is absent or not owned by the requester."""

    status_code = status.HTTP_404_NOT_FOUND


class DuplicateError(StorageError):
    """A unique key (category name, budget period) is already taken."""

    status_code = status.HTTP_400_BAD_REQUEST


class DomainValidationError(StorageError):
    status_code = status.HTTP_400_BAD_REQUEST


def validation_message(exc: RequestValidationError) -> str:
    """Collapse pydantic errors into one comma separated sentence."""
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        msg = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return ", ".join(messages)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": validation_message(exc)},
        )
