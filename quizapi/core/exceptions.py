"""Typed application errors and their JSON rendering."""
import logging
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.responses import Response

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error. Please try again later."


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self):
        return None


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request data"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"

    @property
    def headers(self):
        return {"WWW-Authenticate": "Bearer"}


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class DependencyError(AppError):
    """An external collaborator (generator, mailer) failed or misbehaved."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "External service failure"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = SERVER_ERROR_MESSAGE


def _log_app_error(request: Request, exc: AppError) -> None:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message,
            exc_info=exc,
        )
    else:
        logger.warning(
            "%s %s rejected (%d): %s",
            request.method, request.url.path, exc.status_code, exc.message,
        )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    _log_app_error(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s rejected (400): invalid request data", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": InternalError().message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


class RecoveryRoute(APIRoute):
    """Route class for the password-recovery endpoints.

    Failures are rendered as ``{"success": false, "message": ...}`` instead of
    the ``{"error": ...}`` body used everywhere else.
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def recovery_route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except AppError as exc:
                _log_app_error(request, exc)
                return JSONResponse(
                    status_code=exc.status_code,
                    content={"success": False, "message": exc.message},
                )
            except RequestValidationError:
                logger.warning("%s %s rejected (400): invalid request data", request.method, request.url.path)
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"success": False, "message": "Invalid request data"},
                )
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, request.url.path)
                return JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"success": False, "message": "Internal server error"},
                )

        return recovery_route_handler
