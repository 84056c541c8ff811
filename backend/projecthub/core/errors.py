"""
Domain errors and their single mapping to HTTP responses.

Services raise these; routers never build error responses themselves.

  • NotFoundError       → 404 {"message": "404 Not found"}
  • AccessDeniedError   → identical to NotFoundError, so a probing client
                          cannot tell "exists but forbidden" from "missing"
  • ValidationFailedError → settings.VALIDATION_ERROR_STATUS (404 by default)
  • AuthenticationError → 401 {"message": "401 Unauthorized"}
  • unmatched route, or a path parameter of the wrong type → 404 as above
  • other request validation (query, body) → like ValidationFailedError
  • other framework HTTP errors → {"message": "<code> <phrase>"}
  • anything else       → 500 {"message": "500 Internal Server Error"}
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from projecthub.core.config import settings

logger = logging.getLogger(__name__)

NOT_FOUND_BODY = {"message": "404 Not found"}
UNAUTHORIZED_BODY = {"message": "401 Unauthorized"}
SERVER_ERROR_BODY = {"message": "500 Internal Server Error"}


class NotFoundError(Exception):
    """No matching resource, or a revision / file that does not exist."""


class AccessDeniedError(NotFoundError):
    """Valid credential, insufficient access level.

    Subclasses NotFoundError so every handler treats both the same way.
    """


class ValidationFailedError(Exception):
    """Missing or invalid input on create / update."""


class AuthenticationError(Exception):
    """Missing, unknown, or inactive API key.

    The message is only logged; every client gets the same 401 body.
    """


def _not_found_response() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NOT_FOUND_BODY)


async def _handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    if isinstance(exc, AccessDeniedError):
        # The client still sees a plain 404.
        logger.info("Access denied on %s %s: %s", request.method, request.url.path, exc)
    return _not_found_response()


def _validation_response(reason: str) -> JSONResponse:
    if settings.VALIDATION_ERROR_STATUS == status.HTTP_404_NOT_FOUND:
        return _not_found_response()
    return JSONResponse(
        status_code=settings.VALIDATION_ERROR_STATUS,
        content={"message": reason},
    )


async def _handle_validation(request: Request, exc: ValidationFailedError) -> JSONResponse:
    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, exc)
    return _validation_response(str(exc))


async def _handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    errors = exc.errors()
    # A path segment that cannot be parsed names no resource.
    if any(error["loc"][0] == "path" for error in errors):
        return _not_found_response()

    reason = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:]) or error['loc'][0]}: {error['msg']}"
        for error in errors
    )
    logger.info("Invalid request on %s %s: %s", request.method, request.url.path, reason)
    return _validation_response(reason)


async def _handle_http(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return _not_found_response()
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": f"{exc.status_code} {HTTPStatus(exc.status_code).phrase}"},
        headers=exc.headers,
    )


async def _handle_authentication(request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=UNAUTHORIZED_BODY,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=SERVER_ERROR_BODY,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error → status mapping on the app."""
    app.add_exception_handler(NotFoundError, _handle_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationFailedError, _handle_validation)  # type: ignore[arg-type]
    app.add_exception_handler(AuthenticationError, _handle_authentication)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
