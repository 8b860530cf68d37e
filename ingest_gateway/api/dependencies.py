"""
API dependencies for the ingestion gateway.

Shared objects (admission controller, writer, pipeline) are built once in the
application lifespan and stored on ``app.state``; these dependencies hand
them to each request.
"""

import logging
from typing import Union

from fastapi import Depends, Request, Response

from ingest_gateway.ingest import (
    AdmissionController,
    FanOutWriter,
    IngestionPipeline,
    NoOpAdmissionController,
)
from ingest_gateway.ingest.admission import GLOBAL_KEY
from ingest_gateway.settings import settings

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    """Identify the caller by peer address.

    X-Forwarded-For is client-controlled, so its first hop is used only when
    RATE_LIMIT_TRUST_FORWARDED is set (deployments behind a known proxy).
    """
    if settings.rate_limit.trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return getattr(request.client, "host", None) or "unknown"


def get_admission_controller(
    request: Request,
) -> Union[AdmissionController, NoOpAdmissionController]:
    return request.app.state.admission


def get_writer(request: Request) -> FanOutWriter:
    return request.app.state.writer


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def enforce_admission(
    request: Request,
    response: Response,
    controller: Union[AdmissionController, NoOpAdmissionController] = Depends(
        get_admission_controller
    ),
) -> None:
    """Count the request against its rate-limit window.

    Raises:
        RateLimited: If the window's budget is used up (rendered as 429)
    """
    key = client_key(request) if settings.rate_limit.scope == "client" else GLOBAL_KEY
    decision = controller.admit(key)
    if decision is None:
        return

    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    response.headers["X-RateLimit-Reset"] = str(int(round(decision.reset_after)))


__all__ = [
    "client_key",
    "enforce_admission",
    "get_admission_controller",
    "get_pipeline",
    "get_writer",
]
