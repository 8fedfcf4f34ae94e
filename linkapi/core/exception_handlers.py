"""
Error responses

Every error leaves the API in the same envelope:

    {"success": false, "error": {"code": ..., "message": ..., "details": {...}}}

Client errors are logged at WARNING with the request line; server errors at
ERROR with the traceback.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import BaseAPIException, InternalServerError

logger = logging.getLogger("linkapi.errors")


def error_body(
    code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url.path} from {client}"


def _log(request: Request, status_code: int, summary: str, exc: Exception) -> None:
    line = f"{_describe(request)} -> {status_code}: {summary}"
    if status_code >= 500:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"{line}\n{trace}")
    else:
        logger.warning(line)


async def handle_api_exception(request: Request, exc: BaseAPIException):
    _log(request, exc.status_code, f"{exc.error_code} {exc.message}", exc)
    return JSONResponse(
        status_code=exc.status_code, content=exc.detail, headers=exc.headers
    )


async def handle_http_exception(request: Request, exc: HTTPException):
    """Framework-raised errors (404 route miss, 405) in the common envelope."""
    _log(request, exc.status_code, str(exc.detail), exc)
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = error_body("HTTP_ERROR", str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    _log(request, 422, f"{len(errors)} invalid field(s)", exc)
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in errors
    ]
    return JSONResponse(
        status_code=422,
        content=error_body("VALIDATION_001", "Validation failed", {"errors": fields}),
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError):
    # payout writes are never retried, so the caller sees the failure
    _log(request, 500, f"storage error {type(exc).__name__}", exc)
    internal = InternalServerError("Storage unavailable, please retry later")
    return JSONResponse(status_code=internal.status_code, content=internal.detail)


async def handle_unexpected_error(request: Request, exc: Exception):
    _log(request, 500, f"unhandled {type(exc).__name__}: {exc}", exc)
    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAPIException, handle_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
