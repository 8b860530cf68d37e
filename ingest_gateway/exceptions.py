from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class GatewayException(Exception):
    """Base exception for the ingestion gateway"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class DecodeError(GatewayException):
    """Payload is not valid YAML/JSON or could not be read"""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnsafePathError(GatewayException):
    """Upload path attempts directory traversal"""

    def __init__(self, message: str = "relative paths are not allowed"):
        super().__init__(message, status_code=400)


class MalformedInputError(GatewayException):
    """Top-level structure does not match the route's shape"""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class MissingIdFieldError(GatewayException):
    """Entity lacks the field its id is derived from"""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(
            message or f"id field '{field}' is missing or invalid", status_code=400
        )


class PayloadTooLarge(GatewayException):
    """Upload exceeds the configured size limit"""

    def __init__(self, message: str = "payload too large"):
        super().__init__(message, status_code=413)


class RateLimited(GatewayException):
    """Admission denied for the current window"""

    def __init__(
        self, message: str = "Too many requests", retry_after: float = 0, limit: int = 0
    ):
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(message, status_code=429)


class StoreError(GatewayException):
    """Document store call failed (including timeouts)"""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message, status_code=status_code)


async def gateway_exception_handler(request: Request, exc: GatewayException):
    """Handle gateway exceptions"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{exc.__class__.__name__}: {exc.message}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "client_ip": getattr(request.client, "host", None),
        },
    )

    headers = None
    if isinstance(exc, RateLimited):
        reset = str(max(1, int(round(exc.retry_after))))
        headers = {
            "Retry-After": reset,
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": reset,
        }

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "type": exc.__class__.__name__,
        },
        headers=headers,
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.exception(
        f"Unexpected error: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    # Don't leak implementation details
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An internal error occurred. Please try again later.",
        },
    )
