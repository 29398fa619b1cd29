"""Error taxonomy and HTTP error mapping for the careloop API."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.config import Settings
from src.core.db_client import DatabaseError, DuplicateRecordError, RecordNotFoundError


logger = logging.getLogger(__name__)


class ErrorCode:
    """Machine-readable error codes returned in error responses."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_REJECTED = "ERR_REJECTED"
    ERR_AUTHENTICATION_FAILED = "ERR_AUTHENTICATION_FAILED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_CONFLICT = "ERR_CONFLICT"
    ERR_INTERNAL = "ERR_INTERNAL"


class ErrorResponse(BaseModel):
    """Body of every error response."""

    code: str
    error: str
    detail: str | None = None


class CareloopError(Exception):
    """Base class for errors that map onto an HTTP response."""

    code: str = ErrorCode.ERR_INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(code=self.code, error=self.message)


class ValidationError(CareloopError):
    """Missing or malformed fields, or a value outside its allowed set."""

    code = ErrorCode.ERR_VALIDATION
    status_code = status.HTTP_400_BAD_REQUEST


class RejectedError(ValidationError):
    """Well-formed request that the current entity state does not allow."""

    code = ErrorCode.ERR_REJECTED


class AuthError(CareloopError):
    """Missing or invalid bearer token."""

    code = ErrorCode.ERR_AUTHENTICATION_FAILED
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(CareloopError):
    """Entity id does not resolve."""

    code = ErrorCode.ERR_NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CareloopError):
    """Write rejected by a uniqueness constraint."""

    code = ErrorCode.ERR_CONFLICT
    status_code = status.HTTP_409_CONFLICT


class InternalError(CareloopError):
    """Store failure or other unexpected condition."""


@contextmanager
def store_errors(entity: str) -> Iterator[None]:
    """Translate document store failures into the error taxonomy.

    Usage:
        with store_errors("Care task"):
            record = await store.get_record(collection="care_tasks", record_id=task_id)
    """
    try:
        yield
    except RecordNotFoundError as e:
        raise NotFoundError(f"{entity} not found") from e
    except DuplicateRecordError as e:
        raise ConflictError(f"{entity} already exists") from e
    except DatabaseError as e:
        raise InternalError(str(e)) from e


def _describe_request_validation(exc: RequestValidationError) -> str:
    """Render pydantic request errors as one short message."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Attach the error taxonomy to a FastAPI application."""

    @app.exception_handler(CareloopError)
    async def handle_careloop_error(request: Request, exc: CareloopError) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("request_failed", extra={"path": request.url.path, "code": exc.code, "error": exc.message})
            body = ErrorResponse(
                code=exc.code,
                error="Something went wrong!",
                detail=exc.message if settings.is_development else None,
            )
        else:
            logger.info("request_rejected", extra={"path": request.url.path, "code": exc.code, "error": exc.message})
            body = exc.to_response()
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            body = ErrorResponse(code=ErrorCode.ERR_NOT_FOUND, error="Route not found")
        elif exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
            body = ErrorResponse(code=ErrorCode.ERR_VALIDATION, error=str(exc.detail))
        else:
            body = ErrorResponse(code=ErrorCode.ERR_INTERNAL, error="Something went wrong!")
        return JSONResponse(
            status_code=exc.status_code, content=body.model_dump(exclude_none=True), headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _describe_request_validation(exc)
        logger.info("request_invalid", extra={"path": request.url.path, "error": message})
        body = ErrorResponse(code=ErrorCode.ERR_VALIDATION, error=message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", extra={"path": request.url.path})
        body = ErrorResponse(
            code=ErrorCode.ERR_INTERNAL,
            error="Something went wrong!",
            detail=str(exc) if settings.is_development else None,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(exclude_none=True)
        )
