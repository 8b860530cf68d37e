from ingest_gateway.storage.fallback.memory import InMemoryDocumentStore

__all__ = ["InMemoryDocumentStore"]
