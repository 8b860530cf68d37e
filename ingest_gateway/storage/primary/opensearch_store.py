"""
============================================================================
PRIMARY IMPLEMENTATION: OpenSearch Document Store
============================================================================

Production backend. One ``opensearchpy.OpenSearch`` client is built at
startup and shared by all requests (the client is thread-safe and pools
its connections).

USAGE:
------
Selected when STORE_BACKEND=opensearch (the default). Endpoint, credentials
and TLS verification come from StoreSettings.

See: ingest_gateway/storage/factory.py for backend selection
See: ingest_gateway/storage/fallback/memory.py for the in-memory backend
"""

import logging
import time
from typing import Any, Dict, Optional

from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException, TransportError

from ingest_gateway.exceptions import StoreError
from ingest_gateway.metrics import gateway_store_latency_seconds
from ingest_gateway.settings import StoreSettings
from ingest_gateway.storage.base import DocumentStore

logger = logging.getLogger(__name__)


def _describe(exc: OpenSearchException) -> str:
    if isinstance(exc, TransportError) and exc.status_code != "N/A":
        return f"{exc.status_code} {exc.error}"
    return str(exc) or exc.__class__.__name__


class OpenSearchDocumentStore(DocumentStore):
    """OpenSearch-backed document store."""

    def __init__(self, config: StoreSettings, client: Optional[OpenSearch] = None):
        """Initialize the store.

        Args:
            config: Store connection settings
            client: Pre-built client (tests); built from ``config`` when omitted
        """
        self.config = config
        self._client = client or self._build_client(config)
        logger.info(f"OpenSearch document store configured for {config.url}")

    @staticmethod
    def _build_client(config: StoreSettings) -> OpenSearch:
        return OpenSearch(
            hosts=[{"host": config.host, "port": config.port}],
            http_auth=config.credentials if config.auth else None,
            use_ssl=config.protocol == "https",
            verify_certs=config.verify_certs,
            ssl_show_warn=config.verify_certs,
            timeout=config.timeout_seconds,
        )

    def _call(self, operation: str, index_name: str, fn, **kwargs) -> Dict[str, Any]:
        start = time.perf_counter()
        try:
            return fn(index=index_name, **kwargs)
        except OpenSearchException as e:
            logger.error(f"OpenSearch {operation} on '{index_name}' failed: {_describe(e)}")
            raise StoreError(f"{operation} failed: {_describe(e)}") from e
        finally:
            gateway_store_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )

    def upsert(self, index_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        response = self._call(
            "upsert",
            index_name,
            self._client.index,
            id=document["id"],
            body=document,
            refresh=True,
        )
        logger.info(f"Upserted '{document['id']}' into '{index_name}': {response.get('result')}")
        return response

    def delete(self, index_name: str, doc_id: str) -> Dict[str, Any]:
        response = self._call("delete", index_name, self._client.delete, id=doc_id)
        logger.info(f"Deleted '{doc_id}' from '{index_name}'")
        return response

    def delete_index(self, index_name: str) -> Dict[str, Any]:
        response = self._call("delete_index", index_name, self._client.indices.delete)
        logger.info(f"Deleted index '{index_name}'")
        return response

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except OpenSearchException as e:
            logger.warning(f"OpenSearch ping failed: {_describe(e)}")
            return False

    def close(self) -> None:
        self._client.close()
        logger.info("Closed OpenSearch client")
