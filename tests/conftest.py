"""
Shared pytest fixtures for the ingestion gateway tests.

This file contains reusable fixtures for:
- Environment setup (in-memory store, before the package is imported)
- FastAPI test client
- The in-memory document store behind the client
- A manual clock for admission window tests
"""

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Must be set before ingest_gateway.settings is first imported
os.environ["STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ.pop("ACCESS_LOG_PATH", None)


# ============================================================================
# FastAPI Test Client
# ============================================================================


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a FastAPI test client.

    Entering the client runs the lifespan, so every test gets a fresh
    in-memory store and a fresh admission controller.
    """
    from ingest_gateway.main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def store(client):
    """The in-memory document store used by ``client``."""
    return client.app.state.document_store


# ============================================================================
# Time
# ============================================================================


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
