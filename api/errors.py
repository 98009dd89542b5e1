"""Global exception handlers for FastAPI.

Domain exceptions carry no HTTP knowledge; this module is the one place
that maps them to status codes and error codes.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from api.middleware import get_request_id
from auth.exceptions import RateLimitedError, UnauthorizedError
from core.exceptions import (
    ConflictError,
    InternalError,
    InvalidStatusTransitionError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def _json_error(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(
            code, message, details=details, request_id=get_request_id(request)
        ).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(InvalidStatusTransitionError)
    async def status_transition_handler(request: Request, exc: InvalidStatusTransitionError):
        return _json_error(
            request, 409, ErrorCodes.INVALID_STATUS_TRANSITION, exc.message, exc.details
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _json_error(request, 400, ErrorCodes.VALIDATION_ERROR, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return _json_error(
            request, 400, ErrorCodes.VALIDATION_ERROR, "Input validation failed", details
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _json_error(request, 404, ErrorCodes.NOT_FOUND, str(exc))

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):
        return _json_error(request, 401, ErrorCodes.UNAUTHORIZED, str(exc))

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        return _json_error(
            request,
            429,
            ErrorCodes.RATE_LIMIT_EXCEEDED,
            "Too many requests",
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _json_error(request, 409, ErrorCodes.VERSION_CONFLICT, str(exc))

    @app.exception_handler(InternalError)
    async def internal_error_handler(request: Request, exc: InternalError):
        # Service layer already logged the cause
        return _json_error(request, 500, ErrorCodes.INTERNAL_ERROR, GENERIC_ERROR_MESSAGE)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Store failure: {exc}")
        return _json_error(request, 500, ErrorCodes.INTERNAL_ERROR, GENERIC_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(request, 500, ErrorCodes.INTERNAL_ERROR, GENERIC_ERROR_MESSAGE)
