"""
studio_authz.api.errors

Exception handlers that render the authorization error taxonomy as JSON.

Responsibilities:
- Map every `AuthzError` to its status code and body.
- Render request validation failures as `ValidationError` (400).
- Add `WWW-Authenticate` to 401 responses.
- Log programming errors (unknown feature, missing projection) loudly.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from studio_authz.authz.errors import (
    AuthzError,
    ProjectionNotDefinedError,
    UnauthorizedError,
    UnknownFeatureError,
    ValidationError,
)
from studio_authz.observability.logging import get_logger

log = get_logger(__name__)


async def _authz_error_handler(request: Request, exc: AuthzError) -> JSONResponse:
    headers: dict[str, str] = {}
    if isinstance(exc, UnauthorizedError):
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, UnknownFeatureError | ProjectionNotDefinedError):
        log.error("authz_configuration_error", error=exc.name, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", ValidationError.default_message)
    error = ValidationError(f"{location}: {message}" if location else message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthzError, _authz_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _request_validation_handler  # type: ignore[arg-type]
    )
