"""
Ingest Package - payload normalization and fan-out

Decodes uploaded YAML/JSON, derives document ids per route shape, gates
requests through admission control and writes documents to the store.
"""

from ingest_gateway.ingest.admission import AdmissionController, NoOpAdmissionController
from ingest_gateway.ingest.decoder import PayloadKind, RawPayload, decode
from ingest_gateway.ingest.normalizer import RouteParams, ShapeVariant, normalize
from ingest_gateway.ingest.paths import sanitize_path
from ingest_gateway.ingest.pipeline import IngestionPipeline, IngestReport
from ingest_gateway.ingest.writer import FanOutWriter, WriteOutcome

__all__ = [
    "AdmissionController",
    "NoOpAdmissionController",
    "PayloadKind",
    "RawPayload",
    "decode",
    "RouteParams",
    "ShapeVariant",
    "normalize",
    "sanitize_path",
    "IngestionPipeline",
    "IngestReport",
    "FanOutWriter",
    "WriteOutcome",
]
