"""
Ingestion Pipeline

Runs one admitted request through the stages in order:

    (file payloads) sanitize path -> decode -> normalize -> fan-out write

Admission control happens before the pipeline is entered.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from ingest_gateway.ingest.decoder import PayloadKind, RawPayload, decode
from ingest_gateway.ingest.normalizer import (
    Document,
    RejectedItem,
    RouteParams,
    ShapeVariant,
    normalize,
)
from ingest_gateway.ingest.paths import sanitize_path
from ingest_gateway.ingest.writer import FanOutWriter, WriteOutcome

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Aggregate result of one ingestion request."""

    index_name: str
    variant: ShapeVariant
    documents: List[Document] = field(default_factory=list)
    rejected: List[RejectedItem] = field(default_factory=list)
    outcomes: List[WriteOutcome] = field(default_factory=list)

    @property
    def written(self) -> List[WriteOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed_writes(self) -> List[WriteOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def has_failures(self) -> bool:
        return bool(self.rejected) or bool(self.failed_writes)


class IngestionPipeline:
    """Decode, normalize and write one payload."""

    def __init__(self, writer: FanOutWriter):
        self.writer = writer

    async def ingest(
        self, payload: RawPayload, variant: ShapeVariant, params: RouteParams
    ) -> IngestReport:
        """Run ``payload`` through the pipeline for ``variant``.

        Raises:
            UnsafePathError: File payload path attempts traversal (nothing is written)
            DecodeError: Payload is not valid YAML/JSON
            MalformedInputError: Top-level structure does not fit the variant
            MissingIdFieldError: SINGLE_TYPED entity has no id field
        """
        if payload.kind is PayloadKind.FILE:
            payload = RawPayload.from_file(sanitize_path(payload.path))

        parsed = decode(payload)
        batch = normalize(parsed, variant, params)
        outcomes = await self.writer.write_all(
            params.index_name, batch.documents, variant.value
        )

        report = IngestReport(
            index_name=params.index_name,
            variant=variant,
            documents=batch.documents,
            rejected=batch.rejected,
            outcomes=outcomes,
        )
        if report.has_failures:
            logger.warning(
                f"{variant.value} ingest into '{params.index_name}' finished with "
                f"{len(report.rejected)} rejected and {len(report.failed_writes)} failed items"
            )
        return report
