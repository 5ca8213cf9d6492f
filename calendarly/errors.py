"""Error responses.

Pages raise an ``APIError`` subclass and get a JSON body of the form
``{"error": ..., "detail": ..., "error_code": ..., "context": ...}`` from the
registered handler. Form actions never raise; they return ``action_error()``,
whose body is just ``{"error": true}``.

    if not event:
        raise NotFoundError(detail="Event not found", resource_type="event", resource_id=event_id)

    if user_id is None:
        return action_error(status_code=401)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_ERROR_TYPES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
    500: "internal_error",
    503: "service_unavailable",
}


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class ActionErrorResponse(BaseModel):
    """Body returned by a failed form action."""

    error: bool = True


class APIError(Exception):
    """Base for errors raised by page endpoints.

    Subclasses set ``status_code``, ``error`` and a default ``detail``. Extra
    keyword arguments end up in the response ``context``.
    """

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None, error_code: str | None = None, **context: Any) -> None:
        self.detail = detail or type(self).detail
        self.error_code = error_code
        self.context = context or None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class NotFoundError(APIError):
    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class BadRequestError(APIError):
    status_code = 400
    error = "bad_request"
    detail = "Invalid request"


class UnauthorizedError(APIError):
    status_code = 401
    error = "unauthorized"
    detail = "Authentication required"


def action_error(status_code: int = 400) -> JSONResponse:
    """The ``{"error": true}`` response of a failed form action."""
    return JSONResponse(status_code=status_code, content=ActionErrorResponse().model_dump())


def _status_to_error_type(status_code: int) -> str:
    return _ERROR_TYPES.get(status_code, "error")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown path, wrong method) in the same shape as ``APIError``."""
    body = ErrorResponse(error=_status_to_error_type(exc.status_code), detail=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Actions whose body cannot be parsed at all (malformed JSON) still get the error flag."""
    if request.method in ("GET", "HEAD"):
        return await request_validation_exception_handler(request, exc)
    logger.info("Rejected unparseable body %s %s: %d errors", request.method, request.url.path, len(exc.errors()))
    return action_error()


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
