"""
Document store backends.
"""

from ingest_gateway.storage.base import DocumentStore
from ingest_gateway.storage.factory import create_document_store

__all__ = ["DocumentStore", "create_document_store"]
