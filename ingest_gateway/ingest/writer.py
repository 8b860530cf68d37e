"""
Fan-out Writer

Issues one upsert per document against the document store. Writes run
concurrently on a thread pool (the store client is blocking) and every
write is awaited before results are returned. A failed write never stops
the others and is never retried.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, List, Optional, Sequence

from ingest_gateway.exceptions import StoreError
from ingest_gateway.metrics import (
    gateway_document_write_failures_total,
    gateway_documents_written_total,
)
from ingest_gateway.storage.base import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class WriteOutcome:
    """Result of one document write: a store response or an error."""

    document_id: str
    response: Optional[Dict[str, Any]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FanOutWriter:
    """Runs per-document store calls off the event loop."""

    def __init__(self, store: DocumentStore, max_workers: int = 8):
        self.store = store
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="store-write"
        )

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args))

    async def _write_one(
        self, index_name: str, document: Dict[str, Any], variant: str
    ) -> WriteOutcome:
        doc_id = document["id"]
        try:
            response = await self._run(self.store.upsert, index_name, document)
        except Exception as e:
            logger.error(f"Write of '{doc_id}' to '{index_name}' failed: {e}")
            gateway_document_write_failures_total.labels(variant=variant).inc()
            error = e if isinstance(e, StoreError) else StoreError(f"upsert failed: {e}")
            return WriteOutcome(document_id=doc_id, error=error)

        gateway_documents_written_total.labels(variant=variant).inc()
        return WriteOutcome(document_id=doc_id, response=response)

    async def write_all(
        self,
        index_name: str,
        documents: Sequence[Dict[str, Any]],
        variant: str = "unknown",
    ) -> List[WriteOutcome]:
        """Upsert every document; outcomes are returned in input order.

        Args:
            index_name: Target index
            documents: Documents carrying a non-empty ``id``
            variant: Shape label for metrics

        Returns:
            One WriteOutcome per document
        """
        if not documents:
            return []

        outcomes = await asyncio.gather(
            *(self._write_one(index_name, doc, variant) for doc in documents)
        )
        failed = sum(1 for o in outcomes if not o.ok)
        logger.info(
            f"Wrote {len(outcomes) - failed}/{len(outcomes)} documents to '{index_name}'"
        )
        return list(outcomes)

    async def delete_index(self, index_name: str) -> Dict[str, Any]:
        """Delete a whole index. Raises StoreError on failure."""
        return await self._run(self.store.delete_index, index_name)

    async def delete_by_id(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        """Delete one document. Raises StoreError on failure."""
        return await self._run(self.store.delete, index_name, doc_id)

    async def ping(self) -> bool:
        return await self._run(self.store.ping)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.store.close()
