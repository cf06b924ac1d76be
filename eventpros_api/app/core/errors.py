"""
Error types and JSON error envelopes.

Services signal failures by raising ``ValueError`` subclasses defined
here; endpoints translate them into ``HTTPException`` with the
matching status code (see ``raise_http``).  The exception handlers
registered by ``register_exception_handlers`` render every error as
``{"error": ..., "message": ..., "details": ...}`` so clients always
receive the same envelope, including for request validation failures
and unhandled exceptions.
"""

import logging
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class NotFoundError(ValueError):
    """Requested record does not exist."""


class ConflictError(ValueError):
    """Record already exists or the change conflicts with current state."""


class PermissionDeniedError(ValueError):
    """Authenticated user may not act on this record."""


_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
)


def raise_http(exc: ValueError) -> NoReturn:
    """Re‑raise a service error as an ``HTTPException``.

    Plain ``ValueError`` is treated as a client error (400).
    """
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            raise HTTPException(status_code=code, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def error_body(error: str, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error}
    if message:
        body["message"] = message
    if details:
        body["details"] = details
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render pydantic validation errors as 400 with field‑level detail."""
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query" segment so fields read naturally.
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "unknown", "message": err.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", details=details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", message="An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
