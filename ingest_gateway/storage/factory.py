"""
Factory for document store creation.

Two backends:

1. PRIMARY: OpenSearch (STORE_BACKEND=opensearch)
2. FALLBACK: In-memory (STORE_BACKEND=memory) for development and tests

There is no silent fallback: if OpenSearch is
selected, writes must reach OpenSearch or fail with StoreError.
"""

import logging

from ingest_gateway.settings import StoreSettings
from ingest_gateway.storage.base import DocumentStore
from ingest_gateway.storage.fallback import InMemoryDocumentStore
from ingest_gateway.storage.primary import OpenSearchDocumentStore

logger = logging.getLogger(__name__)


def create_document_store(config: StoreSettings) -> DocumentStore:
    """Create the document store selected by ``config.backend``.

    Args:
        config: Store settings

    Returns:
        DocumentStore implementation
    """
    if config.backend == "memory":
        logger.warning("Using in-memory document store; documents will not persist")
        return InMemoryDocumentStore()

    return OpenSearchDocumentStore(config)
