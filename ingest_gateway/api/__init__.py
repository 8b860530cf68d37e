"""
API layer for the ingestion gateway.

Contains FastAPI routes and HTTP-related functionality.
"""

from fastapi import APIRouter
from ingest_gateway.api.routes import delete, health, ingest


def create_api_router() -> APIRouter:
    """Create the main API router with all sub-routers included."""
    api_router = APIRouter()

    api_router.include_router(health.router, tags=["Health"])
    api_router.include_router(ingest.router, tags=["Ingest"])
    api_router.include_router(delete.router, tags=["Delete"])

    return api_router


__all__ = ["create_api_router"]
