"""
Abstract base class for document stores.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class DocumentStore(ABC):
    """Put/delete-by-id interface to the external search store.

    Implementations raise ``StoreError`` for every failure, timeouts included.
    """

    @abstractmethod
    def upsert(self, index_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Write ``document`` under ``document["id"]``, visible to reads on return."""
        pass

    @abstractmethod
    def delete(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        """Delete one document by id."""
        pass

    @abstractmethod
    def delete_index(self, index_name: str) -> Dict[str, Any]:
        """Delete an entire index."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store is reachable."""
        pass

    def close(self) -> None:
        """Release connections held by the store."""
        pass
