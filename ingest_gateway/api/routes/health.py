"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends, Request

from ingest_gateway.api.dependencies import get_admission_controller, get_writer
from ingest_gateway.ingest import FanOutWriter
from ingest_gateway.models import HealthResponse
from ingest_gateway.settings import settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(
    request: Request,
    writer: FanOutWriter = Depends(get_writer),
):
    """Report store reachability; not rate limited."""
    reachable = await writer.ping()
    admission = get_admission_controller(request)

    return HealthResponse(
        status="healthy" if reachable else "degraded",
        store={
            "backend": settings.store.backend,
            "url": settings.store.url,
            "reachable": reachable,
        },
        admission=admission.get_stats(),
    )
