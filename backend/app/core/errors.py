"""
Error taxonomy and the HTTP handlers that surface it.

Services raise ``DigestError`` subclasses; the handlers registered here turn
them into JSON responses so route code does not translate errors by hand.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    "store_unavailable": "The content store is unavailable. Please try again shortly.",
    "server_error": "Something went wrong on our end. Please try again in a few moments.",
}


class DigestError(Exception):
    """Base class for errors raised by the digest services."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class DigestValidationError(DigestError):
    """Caller supplied missing or malformed input; nothing was written."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DigestError):
    """A referenced user, edition, news item or article does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DigestError):
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailableError(DigestError):
    """The content store failed; the write may be partially applied."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def digest_error_handler(request: Request, exc: DigestError) -> JSONResponse:
    log_level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        log_level,
        f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={"request_method": request.method, "request_path": request.url.path},
    )

    content = {"detail": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Surface content store failures as 503.

    There is no transaction spanning the interaction, stats and category
    writes, so a failure here can leave them out of step. It is logged with
    the traceback rather than hidden.
    """
    logger.error(
        f"Content store error in {request.method} {request.url.path}",
        exc_info=exc,
        extra={"request_method": request.method, "request_path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": ERROR_MESSAGES["store_unavailable"]},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all so stack traces never reach the client."""
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}",
        exc_info=exc,
        extra={"request_method": request.method, "request_path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": ERROR_MESSAGES["server_error"]},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DigestError, digest_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
