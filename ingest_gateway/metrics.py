# ingest_gateway/metrics.py
"""
Prometheus metrics for the ingestion gateway.

Metrics are organized by pipeline stage:
- Admission: rate limit rejections
- Normalization: bulk items rejected before any write
- Writes: per-document outcomes and store latency
"""

from prometheus_client import Counter, Histogram

# ============================================================================
# ADMISSION METRICS
# ============================================================================

gateway_admission_rejections_total = Counter(
    "gateway_admission_rejections_total",
    "Mutating requests rejected by the rate limiter",
)

# ============================================================================
# NORMALIZATION METRICS
# ============================================================================

gateway_items_rejected_total = Counter(
    "gateway_items_rejected_total",
    "Bulk items skipped before writing",
    ["reason"],  # label: e.g. "missing_id_field", "not_a_mapping"
)

# ============================================================================
# WRITE METRICS
# ============================================================================

gateway_documents_written_total = Counter(
    "gateway_documents_written_total",
    "Documents successfully upserted into the store",
    ["variant"],  # "single_typed", "keyed_bulk", "list_bulk"
)

gateway_document_write_failures_total = Counter(
    "gateway_document_write_failures_total",
    "Document upserts that failed",
    ["variant"],
)

gateway_store_latency_seconds = Histogram(
    "gateway_store_latency_seconds",
    "Time spent in document store calls",
    ["operation"],  # "upsert", "delete", "delete_index"
    buckets=(0.01, 0.05, 0.1, 0.2, 0.5, 1, 2, 5, 10),
)
