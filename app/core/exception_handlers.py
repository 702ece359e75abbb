"""
Exception handlers for the FastAPI application.

Every failure leaves the API in the same envelope shape used by successful
responses, so clients only ever branch on ``success``.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import CoachFitError
from app.utils.logger import api_logger

logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create a standardized error envelope."""
    content: Dict[str, Any] = {"success": False, "error": error}
    if message:
        content["message"] = message
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def coachfit_error_handler(request: Request, exc: CoachFitError) -> JSONResponse:
    """Handle domain errors raised by services."""
    if exc.status_code >= 500:
        api_logger.error(exc.message, "errors", path=request.url.path)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return create_error_response(exc.status_code, exc.message, details=exc.details or None, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTPException raised by FastAPI internals and dependencies."""
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return create_error_response(exc.status_code, detail, headers=getattr(exc, "headers", None))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing fields as a 400 validation error."""
    errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error["loc"] if x != "body")
        errors.append({"field": loc, "message": error["msg"]})

    first = errors[0] if errors else None
    message = f"{first['field']}: {first['message']}" if first else "Request validation failed"
    return create_error_response(400, "Validation failed", message=message, details={"errors": errors})


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}\n{traceback.format_exc()}")
    return create_error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(CoachFitError, coachfit_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Must stay last: catches everything the handlers above do not
    app.add_exception_handler(Exception, generic_exception_handler)
