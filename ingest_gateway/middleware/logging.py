import json
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware

from ingest_gateway.logging_config import ACCESS_LOGGER_NAME

# Logger for emitting one JSON line per request (configured in setup_logging).
access_logger = logging.getLogger(ACCESS_LOGGER_NAME)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    FastAPI/Starlette middleware to log a single JSON line for each HTTP request.

    Logs:
        - request_id (UUID4, or the caller's X-Request-Id)
        - method, path, status
        - elapsed_ms (wall time)
        - client_ip
        - content_length (from headers)
    Adds X-Request-Id to every response for traceability.
    """

    def _log(self, request, rid: str, status_code: int, start: float) -> None:
        access_logger.info(
            json.dumps(
                {
                    "request_id": rid,
                    "method": request.method,
                    "path": request.url.path,
                    "status": status_code,
                    "elapsed_ms": int((time.perf_counter() - start) * 1000),
                    "client_ip": request.headers.get("x-forwarded-for")
                    or getattr(request.client, "host", None),
                    "content_length": request.headers.get("content-length"),
                },
                separators=(",", ":"),
            )
        )

    async def dispatch(self, request, call_next):
        """
        Handles incoming request, logging on completion (even on exceptions).
        """
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(request, rid, 500, start)
            raise

        self._log(request, rid, response.status_code, start)
        response.headers["X-Request-Id"] = rid
        return response
