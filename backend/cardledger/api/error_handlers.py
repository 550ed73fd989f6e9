"""Error Handlers — global exception handlers for the CardLedger API.

Invariants:
    - CardLedgerError → structured JSON with code, kind, message, retryable
    - RequestValidationError → 400 with field-level details, kind "invalid_input"
    - Exception (catch-all) → 500, never leaks internal details

Design Decisions:
    - Three-layer handler: domain (CardLedgerError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep the app factory short
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from cardledger.core.errors import CardLedgerError, ErrorKind, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register CardLedger domain/store error handler."""

    @app.exception_handler(CardLedgerError)
    async def cardledger_error_handler(request: Request, exc: CardLedgerError):
        """Handle all CardLedger domain/store errors."""
        level = logging.ERROR if exc.retryable else logging.WARNING
        logger.log(
            level,
            f"CardLedgerError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "card_id": exc.context.card_id,
                "uid": exc.context.uid,
                "assignment_id": exc.context.assignment_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "kind": "internal",
                    "message": "An unexpected error occurred",
                    "severity": ErrorSeverity.CRITICAL.value,
                    "retryable": False,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "kind": ErrorKind.INVALID_INPUT.value,
            "message": "Invalid request data",
            "severity": ErrorSeverity.WARNING.value,
            "retryable": False,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
