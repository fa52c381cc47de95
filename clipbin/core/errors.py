"""Error taxonomy and the FastAPI handlers that render it.

Every failure leaves the API as the standard envelope
``{"status": "error", "message": ...}``. Storage errors and unexpected
exceptions are logged server-side with their details and reported to the
client with a generic message only.
"""
import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("clipbin.errors")

GENERIC_AUTH_MESSAGE = "Invalid or missing authentication token"
GENERIC_INTERNAL_MESSAGE = "Internal server error"


class ClipbinError(Exception):
    status_code: int = 500
    message: str = GENERIC_INTERNAL_MESSAGE

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.message
        self.headers = headers
        super().__init__(self.message)


class BadRequest(ClipbinError):
    status_code = 400
    message = "Bad request"


class DuplicateUsername(BadRequest):
    message = "Username already exists"


class DuplicateEmail(BadRequest):
    message = "Email already registered"


class InvalidCredentials(ClipbinError):
    status_code = 401
    message = "Invalid username or password"


class AuthenticationError(ClipbinError):
    """Base for gate rejections; all subclasses share one outward message."""

    status_code = 401

    def __init__(self, reason: Optional[str] = None):
        # reason is for server logs only
        self.reason = reason
        super().__init__(GENERIC_AUTH_MESSAGE, headers={"WWW-Authenticate": "Bearer"})


class TokenMissing(AuthenticationError):
    pass


class TokenMalformed(AuthenticationError):
    pass


class TokenInvalid(AuthenticationError):
    pass


class SessionNotFound(AuthenticationError):
    pass


class UserDisabled(ClipbinError):
    status_code = 403
    message = "User is disabled"


class NotFound(ClipbinError):
    status_code = 404
    message = "Not found"


class InternalFailure(ClipbinError):
    status_code = 500
    message = GENERIC_INTERNAL_MESSAGE


class StoreUnavailable(InternalFailure):
    pass


def error_body(message: str) -> dict:
    return {"status": "error", "message": message}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ClipbinError)
    async def clipbin_error_handler(request: Request, exc: ClipbinError):
        if isinstance(exc, AuthenticationError):
            logger.info("auth rejected %s %s: %s", request.method, request.url.path, exc.reason or type(exc).__name__)
        elif exc.status_code >= 500:
            logger.error("%s on %s %s", type(exc).__name__, request.method, request.url.path)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("validation error on %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=422, content=error_body("Invalid request parameters"))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body(GENERIC_INTERNAL_MESSAGE))
