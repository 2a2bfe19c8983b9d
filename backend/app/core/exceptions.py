"""Error taxonomy for the reservation service and its HTTP mapping."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class DomainError(Exception):
    kind = "domain_error"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainError):
    kind = "not_found"

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ValidationError(DomainError):
    kind = "validation_error"

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)


class UnauthorizedError(DomainError):
    kind = "unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(DomainError):
    kind = "forbidden"

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class InternalError(DomainError):
    """Store or transport failure; the underlying message is exposed to callers."""

    kind = "internal_error"

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class NotificationError(InternalError):
    """The change was persisted but the guest could not be notified."""

    kind = "notification_failed"

    def __init__(self, message: str, reservation_id: str | None = None):
        super().__init__(message)
        self.reservation_id = reservation_id


def _error_response(exc: DomainError) -> JSONResponse:
    content = {"detail": exc.message, "kind": exc.kind}
    reservation_id = getattr(exc, "reservation_id", None)
    if reservation_id is not None:
        content["reservationId"] = reservation_id
    return JSONResponse(status_code=exc.status_code, content=content)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return _error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.warning(f"Validation error on {request.url.path}: {errors}")
    message = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}" for err in errors
    )
    return _error_response(ValidationError(message or "Invalid request"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled exception on {request.url.path}: {exc}")
    return _error_response(InternalError(str(exc)))


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
