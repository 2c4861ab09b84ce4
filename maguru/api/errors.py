"""Translation of service outcomes and framework errors into the response envelope."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from maguru.api.schemas.common import Envelope, ErrorDetail
from maguru.domain.errors import ErrorCode, FieldError, Result

T = TypeVar("T")

logger = structlog.get_logger()

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UPLOAD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_PUBLISHED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND_OR_DENIED: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class ApiError(Exception):
    """An error that should reach the client as an envelope with ``status_code``."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: Sequence[FieldError] | None = None,
        code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = list(details or [])
        self.code = code

    @classmethod
    def from_result(cls, result: Result[Any]) -> ApiError:
        code = result.code or ErrorCode.INTERNAL
        return cls(
            STATUS_BY_CODE[code],
            result.message or "Internal server error",
            result.details,
            code=code,
        )


def unwrap(result: Result[T]) -> T:
    """Return the value of a successful result or raise the mapped :class:`ApiError`."""
    if not result.success:
        raise ApiError.from_result(result)
    return result.value  # type: ignore[return-value]


def error_response(
    status_code: int,
    message: str,
    details: Sequence[FieldError | ErrorDetail] | None = None,
) -> JSONResponse:
    envelope = Envelope[None](
        success=False,
        error=message,
        details=[ErrorDetail(field=d.field, message=d.message) for d in details]
        if details
        else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(by_alias=True, exclude_none=True),
    )


def _field_from_loc(loc: Sequence[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
        return error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            FieldError(field=_field_from_loc(error.get("loc", ())), message=error.get("msg", ""))
            for error in exc.errors()
        ]
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response


async def unhandled_error_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Map anything that escaped the handlers to a 500 envelope."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception("unhandled_error", path=str(request.url.path), method=request.method)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
