"""
API routes for the ingestion gateway.
"""

from ingest_gateway.api.routes import delete, health, ingest

__all__ = ["delete", "health", "ingest"]
