from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ingest_gateway.exceptions import PayloadTooLarge, gateway_exception_handler

MUTATING_METHODS = {"POST", "PUT", "PATCH"}


def _declared_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class MaxSizeMiddleware(BaseHTTPMiddleware):
    """
    Rejects request bodies whose declared Content-Length exceeds ``max_bytes``.

    The 413 is rendered by ``gateway_exception_handler`` so it has the same
    ``{"detail", "type"}`` body as every other gateway error. Middleware runs
    outside FastAPI's exception handling, so the handler is called directly.

    Uploads sent without a Content-Length are bounded while they are spooled
    (see ingest_gateway/api/payload.py).
    """

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        if request.method in MUTATING_METHODS:
            length = _declared_length(request)
            if length is not None and length > self.max_bytes:
                exc = PayloadTooLarge(
                    f"request body of {length} bytes exceeds {self.max_bytes} bytes"
                )
                return await gateway_exception_handler(request, exc)
        return await call_next(request)
