"""
Error taxonomy for the file store and the FastAPI handlers that render it.

Every failure the core can report is a `FileStoreError` subclass carrying
the HTTP status and the client-facing message. Handlers turn them into
`{"error": message}` JSON bodies.
"""

import logging
from typing import Dict, Optional

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FileStoreError(Exception):
    """Base class for errors surfaced to the client as a JSON error body"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong"
    log_level: int = logging.ERROR

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class MissingFile(FileStoreError):
    """The request carried no file in the upload field."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "No files were uploaded"
    log_level = logging.INFO


class InvalidUpload(FileStoreError):
    """A file was sent but lacks an attribute required to store it."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Uploaded file is invalid"
    log_level = logging.WARNING


class MissingLocator(FileStoreError):
    """The lookup request carried no id or name to look the file up by."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Missing file id"
    log_level = logging.INFO


class FileTooLarge(FileStoreError):
    """The file is bigger than a single document can hold."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    message = "Uploaded file is too large to store"
    log_level = logging.WARNING


class Conflict(FileStoreError):
    """A file with the same name is already stored."""

    status_code = status.HTTP_409_CONFLICT
    message = "A file with that name already exists"
    log_level = logging.WARNING


class NotFound(FileStoreError):
    """Lookup matched nothing. An expected outcome, not a failure."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "File not found"
    log_level = logging.INFO


class StorageUnavailable(FileStoreError):
    """The document store could not be reached or timed out."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Storage is unavailable, please retry"
    retry_after_seconds = 5

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after_seconds)}


async def handle_file_store_errors(request: Request, exc: FileStoreError) -> JSONResponse:
    """Render a `FileStoreError` as `{"error": message}` with its status code."""
    cause = exc.__cause__
    if cause is not None:
        logger.log(exc.log_level, f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message} ({cause!r})")
    else:
        logger.log(exc.log_level, f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=exc.headers,
    )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """Report model validation failures raised outside of request parsing."""
    errors = exc.errors()
    logger.warning(f"Validation failed for {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Invalid data",
            "detail": [
                {"loc": list(error["loc"]), "msg": error["msg"]} for error in errors
            ],
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception:  # pylint: disable=broad-except
        logger.exception(f"Unhandled error while serving {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
