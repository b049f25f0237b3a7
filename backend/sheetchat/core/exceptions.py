"""
Error taxonomy and FastAPI handlers

Services raise these; the handlers registered by setup_error_handlers
translate them into {"error": message} JSON responses.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SheetChatError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthError(SheetChatError):
    """Missing or invalid credential (identity token or Google access token)"""

    status_code = status.HTTP_401_UNAUTHORIZED


class UpstreamError(SheetChatError):
    """A third-party provider (Google Sheets, AI model) failed"""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, provider_status: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.provider_status = provider_status


class ValidationError(SheetChatError):
    """A required request field is missing or malformed"""

    status_code = status.HTTP_400_BAD_REQUEST


class ShapeError(SheetChatError):
    """AI output did not match the expected response schema"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFoundError(SheetChatError):
    status_code = status.HTTP_404_NOT_FOUND


def setup_error_handlers(app: FastAPI):
    """Register handlers translating errors into {"error": message} JSON responses"""

    @app.exception_handler(SheetChatError)
    async def sheetchat_error_handler(request: Request, exc: SheetChatError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
