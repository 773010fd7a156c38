from __future__ import annotations
import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = structlog.get_logger()


class ServiceError(Exception):
    """Base exception for competition service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    status_code = 404


class CompetitionNotFound(NotFound):
    def __init__(self, message: str = "Competition not found"):
        super().__init__(message)


class UserNotFound(NotFound):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class DuplicateAssignment(ServiceError):
    """Raised when the user already sits on the competition's judge panel."""

    status_code = 400

    def __init__(self, message: str = "User is already a judge or lead judge"):
        super().__init__(message)


class ValidationError(ServiceError):
    status_code = 400


class ExternalServiceError(ServiceError):
    """Raised when a GitHub API call fails or returns a non-success status."""

    def __init__(self, message: str, *, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


async def _service_error(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message, kind=type(exc).__name__,
                  request_id=getattr(request.state, "request_id", None))
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _request_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


async def _unhandled_error(request: Request, exc: Exception):
    # runs outside the request-id middleware, whose context is already cleared
    log.error("unhandled_error", path=request.url.path,
              request_id=getattr(request.state, "request_id", None), exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unhandled_error)
