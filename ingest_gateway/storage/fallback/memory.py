"""
============================================================================
FALLBACK IMPLEMENTATION: In-Memory Document Store
============================================================================

Dictionary-backed store for local development and tests.

LIMITATIONS:
------------
* Non-Persistent: Documents lost on server restart
* Single-Instance: Cannot be shared across multiple servers
* No search: only the put/delete surface the gateway uses

WHEN THIS IS USED:
------------------
Explicitly set STORE_BACKEND=memory (dev/testing).

Acknowledgements mimic the OpenSearch response bodies so callers see the
same shapes regardless of backend.
"""

import copy
import logging
import threading
from typing import Any, Dict, Optional

from ingest_gateway.exceptions import StoreError
from ingest_gateway.storage.base import DocumentStore

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe in-memory document store."""

    def __init__(self):
        self._indices: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._versions: Dict[tuple, int] = {}
        self._lock = threading.Lock()

    def upsert(self, index_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        doc_id = document["id"]
        with self._lock:
            index = self._indices.setdefault(index_name, {})
            result = "updated" if doc_id in index else "created"
            index[doc_id] = copy.deepcopy(document)
            version = self._versions.get((index_name, doc_id), 0) + 1
            self._versions[(index_name, doc_id)] = version

        logger.info(f"Upserted '{doc_id}' into '{index_name}': {result}")
        return {
            "_index": index_name,
            "_id": doc_id,
            "_version": version,
            "result": result,
            "forced_refresh": True,
        }

    def delete(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        with self._lock:
            index = self._indices.get(index_name)
            if index is None or doc_id not in index:
                raise StoreError(f"delete failed: 404 document '{doc_id}' not found")
            del index[doc_id]
            version = self._versions.pop((index_name, doc_id), 0) + 1

        logger.info(f"Deleted '{doc_id}' from '{index_name}'")
        return {
            "_index": index_name,
            "_id": doc_id,
            "_version": version,
            "result": "deleted",
        }

    def delete_index(self, index_name: str) -> Dict[str, Any]:
        with self._lock:
            if index_name not in self._indices:
                raise StoreError(f"delete_index failed: 404 no such index [{index_name}]")
            del self._indices[index_name]
            for key in [k for k in self._versions if k[0] == index_name]:
                del self._versions[key]

        logger.info(f"Deleted index '{index_name}'")
        return {"acknowledged": True}

    def get(self, index_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of a stored document, or None."""
        with self._lock:
            doc = self._indices.get(index_name, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def documents(self, index_name: str) -> Dict[str, Dict[str, Any]]:
        """Return a copy of every document in ``index_name`` keyed by id."""
        with self._lock:
            return copy.deepcopy(self._indices.get(index_name, {}))

    def ping(self) -> bool:
        return True
