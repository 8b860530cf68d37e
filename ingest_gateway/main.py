"""
Ingestion Gateway - Main Application

Application setup: logging, shared pipeline objects, middleware, routes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from ingest_gateway.api import create_api_router
from ingest_gateway.middleware.logging import LoggingMiddleware
from ingest_gateway.middleware.max_size import MaxSizeMiddleware
from ingest_gateway.settings import RateLimitSettings, settings
from ingest_gateway.config_validator import validate_config
from ingest_gateway.logging_config import setup_logging
from ingest_gateway.ingest import (
    AdmissionController,
    FanOutWriter,
    IngestionPipeline,
    NoOpAdmissionController,
)
from ingest_gateway.storage import create_document_store

from ingest_gateway.exceptions import (
    GatewayException,
    gateway_exception_handler,
    generic_exception_handler,
)

# Configure structured logging (JSON in production, colored in development)
setup_logging()
logger = logging.getLogger(__name__)


def build_admission_controller(config: RateLimitSettings):
    """Create the single admission controller shared by all requests."""
    if not config.enabled:
        return NoOpAdmissionController()
    return AdmissionController(
        max_requests=config.max_requests,
        window_seconds=config.window_seconds,
    )


# ------------------------------------------------------------------------------
# Lifespan event handler
# ------------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store, writer and admission controller; release them on shutdown."""
    logger.info("Starting application...")
    validate_config(settings)

    store = create_document_store(settings.store)
    writer = FanOutWriter(store, max_workers=settings.store.write_workers)

    app.state.document_store = store
    app.state.writer = writer
    app.state.pipeline = IngestionPipeline(writer)
    app.state.admission = build_admission_controller(settings.rate_limit)

    yield

    logger.info("Initiating graceful shutdown...")
    writer.close()
    logger.info("Graceful shutdown complete")


# ------------------------------------------------------------------------------
# FastAPI app setup
# ------------------------------------------------------------------------------

app = FastAPI(
    title=settings.api.title,
    description=settings.api.description,
    version=settings.api.version,
    lifespan=lifespan,
)

# ------------------------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------------------------

app.add_exception_handler(GatewayException, gateway_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# ------------------------------------------------------------------------------
# Middleware configuration
# ------------------------------------------------------------------------------

app.add_middleware(MaxSizeMiddleware, max_bytes=settings.upload.max_bytes)
app.add_middleware(LoggingMiddleware)

# ------------------------------------------------------------------------------
# Prometheus metrics
# ------------------------------------------------------------------------------

Instrumentator().instrument(app).expose(app)

# ------------------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------------------

app.include_router(create_api_router())

logger.info(f"Application started: {settings.api.title} v{settings.api.version}")
