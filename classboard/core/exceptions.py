"""
Application error taxonomy and global exception handlers.

Every handler answers with a JSON ``{"message": ..., "success": false}``
body so stack traces never leak to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class ClassboardError(Exception):
    """Base class for errors converted to HTTP responses at the boundary."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class BadRequestError(ClassboardError):
    pass


class DuplicateEmailError(ClassboardError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already in use"


class UnauthorizedError(ClassboardError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsError(ClassboardError):
    """Login failure. Unknown email, wrong password and disabled account look the same."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class ForbiddenError(ClassboardError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class NotFoundError(ClassboardError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class InvalidTokenError(Exception):
    """Raised by the token codec for bad signature, malformed or expired tokens."""


# ── Handlers ────────────────────────────────────────────────────────
def _error_body(message: str, **extra: object) -> dict:
    return {"message": message, "success": False, **extra}


async def _classboard_error_handler(_request: Request, exc: ClassboardError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message),
        headers=exc.headers,
    )


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("Validation failed", errors=jsonable_encoder(exc.errors())),
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body("Database constraint violation"),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal database error"),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(ClassboardError, _classboard_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
