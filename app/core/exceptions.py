# app/core/exceptions.py
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base for errors raised by the service layer and rendered by `service_error_handler`."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Expired(ServiceError):
    code = "expired"


class AlreadyUsed(ServiceError):
    code = "already_used"


class RateLimited(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"

    def __init__(self, message: str, retry_after_seconds: int):
        super().__init__(message, retry_after_seconds=retry_after_seconds)
        self.retry_after_seconds = retry_after_seconds


class ValidationError(ServiceError):
    code = "validation_error"


class UpstreamError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "upstream_error"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


async def service_error_handler(request: Request, exc: ServiceError):
    logger.info(
        "Service error on %s %s: %s",
        request.method, request.url.path, exc.message,
        extra={"error_code": exc.code, "status_code": exc.status_code},
    )
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **exc.context},
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Validation error on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                        content={"detail": jsonable_encoder(exc.errors())})
