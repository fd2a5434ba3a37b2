import logging
import traceback
from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from os import getenv

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base class for application errors surfaced to API callers"""
    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail or message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFoundError(AppException):
    """Proposal, vote, member or invitation does not resolve (404)"""
    @property
    def status_code(self) -> int:
        return status.HTTP_404_NOT_FOUND


class ValidationError(AppException):
    """Malformed input (400)"""
    @property
    def status_code(self) -> int:
        return status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(AppException):
    """Operation not permitted in the proposal's current status (400)"""
    @property
    def status_code(self) -> int:
        return status.HTTP_400_BAD_REQUEST


class ConflictError(AppException):
    """Write rejected by the store after validation passed (409)"""
    @property
    def status_code(self) -> int:
        return status.HTTP_409_CONFLICT


class ForbiddenError(AppException):
    """Acting member fails the author / non-author guard (403)"""
    @property
    def status_code(self) -> int:
        return status.HTTP_403_FORBIDDEN


class InternalError(AppException):
    """Unexpected server error (500)"""
    pass


def is_development() -> bool:
    env = getenv("ENVIRONMENT", "development").lower()
    return env in ("development", "dev", "local")


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an AppException as {error, message, detail}"""
    response_data = {
        "error": exc.__class__.__name__,
        "message": exc.message,
        "detail": exc.detail,
    }

    if is_development() and exc.status_code >= 500:
        response_data["traceback"] = traceback.format_exc()

    return JSONResponse(
        status_code=exc.status_code,
        content=response_data,
    )


async def sqlalchemy_integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """IntegrityError (unique / foreign key violations) becomes a ConflictError"""
    error_message = str(exc.orig) if hasattr(exc, 'orig') else str(exc)
    logger.warning("integrity error on %s %s: %s", request.method, request.url.path, error_message)

    if "unique" in error_message.lower() or "duplicate" in error_message.lower():
        app_exc = ConflictError(
            message="Resource conflict",
            detail=f"Resource already exists: {error_message}"
        )
    else:
        app_exc = ConflictError(
            message="Database integrity error",
            detail=error_message
        )

    return await app_exception_handler(request, app_exc)


async def sqlalchemy_operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """OperationalError (connection failures etc.)"""
    error_message = str(exc.orig) if hasattr(exc, 'orig') else str(exc)
    logger.error("database operation failed: %s", error_message)

    app_exc = InternalError(
        message="Database operation failed",
        detail=error_message if is_development() else "Database operation failed"
    )

    return await app_exception_handler(request, app_exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything not mapped above"""
    logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    app_exc = InternalError(
        message="Internal server error",
        detail=str(exc) if is_development() else "An unexpected error occurred"
    )

    return await app_exception_handler(request, app_exc)
