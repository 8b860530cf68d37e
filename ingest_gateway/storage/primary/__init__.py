from ingest_gateway.storage.primary.opensearch_store import OpenSearchDocumentStore

__all__ = ["OpenSearchDocumentStore"]
