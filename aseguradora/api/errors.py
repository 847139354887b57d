"""
Exception handlers that render every error as ``{"error": <message>}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from aseguradora.services.policy_service import DuplicatePolicyNumberError


logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def format_validation_errors(errors) -> str:
    """Flatten pydantic validation errors into one readable message."""
    parts = []
    for error in errors:
        loc = [str(item) for item in error.get("loc", ()) if item != "body"]
        msg = error.get("msg", "Invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request body"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, format_validation_errors(exc.errors()))


async def duplicate_policy_number_handler(request: Request, exc: DuplicatePolicyNumberError):
    return error_response(400, str(exc))


async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return error_response(500, "Storage error")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DuplicatePolicyNumberError, duplicate_policy_number_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
    # Served by ServerErrorMiddleware, which re-raises after responding
    app.add_exception_handler(Exception, unhandled_exception_handler)
