"""Map every failure to the response envelope.

Error response format:

    {"status": "error", "message": "Human-readable message"}

plus an `error` field with the exception text for unexpected failures when the
app runs in development mode.
"""

from __future__ import annotations

import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from student_portal.config import Config
from student_portal.errors import PortalError


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def error_response(
    status_code: int,
    message: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"status": "error", "message": message}
    if extra:
        body.update(extra)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"Invalid request: {loc} - {msg}" if loc else f"Invalid request: {msg}"


def setup_exception_handlers(app: FastAPI, cfg: Config) -> None:
    async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
        if exc.status_code >= 500:
            _debug(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.status_code, exc.message, headers=exc.headers)

    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # An unknown method on a known path is just another unmatched route.
        if exc.status_code in (404, 405):
            return error_response(404, "Route not found")
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, _describe_validation(exc))

    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        _debug(
            f"Unhandled error on {request.method} {request.url.path}: {exc!r}\n"
            + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        )
        extra = {"error": str(exc)} if cfg.is_development else None
        return error_response(500, "Something went wrong!", extra=extra)

    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
