"""
Ingestion endpoints.

- ``/put/{index_name}/{index_type}``: one entity per payload (intents)
- ``/bulk/{index_name}``: many named entries in one mapping (config, domain)
- ``/bulk/{index_name}/{index_type}``: one list of same-typed entities
  (rules, regexes, stories)
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, Response

from ingest_gateway.api.dependencies import enforce_admission, get_pipeline
from ingest_gateway.api.payload import read_payload
from ingest_gateway.ingest import IngestionPipeline, IngestReport, RouteParams, ShapeVariant
from ingest_gateway.models import BulkDispatchResponse, BulkListResponse, ItemFailure

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(enforce_admission)])


def _item_failures(report: IngestReport) -> List[ItemFailure]:
    failures = [
        ItemFailure(
            position=item.position,
            type=item.error.__class__.__name__,
            detail=item.error.message,
        )
        for item in report.rejected
    ]
    failures.extend(
        ItemFailure(
            id=outcome.document_id,
            type=outcome.error.__class__.__name__,
            detail=str(outcome.error),
        )
        for outcome in report.failed_writes
    )
    return failures


@router.post("/put/{index_name}/{index_type}")
async def put_document(
    index_name: str,
    index_type: str,
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Write a single entity, id derived from its ``index_type`` field.

    Returns:
        The store's response for the write (400 if the id field is missing,
        500 if the store rejects the write)
    """
    async with read_payload(request) as payload:
        report = await pipeline.ingest(
            payload, ShapeVariant.SINGLE_TYPED, RouteParams(index_name, index_type)
        )

    outcome = report.outcomes[0]
    if not outcome.ok:
        raise outcome.error

    logger.info(f"Put object '{outcome.document_id}' into '{index_name}'")
    return outcome.response


@router.post("/bulk/{index_name}", response_model=BulkDispatchResponse)
async def bulk_keyed(
    index_name: str,
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """Write every top-level entry except ``version`` as its own document.

    Always 200 once the payload is accepted; failed entries are logged.
    """
    async with read_payload(request) as payload:
        report = await pipeline.ingest(
            payload, ShapeVariant.KEYED_BULK, RouteParams(index_name)
        )

    for failure in _item_failures(report):
        logger.error(f"Bulk put into '{index_name}' item failed: {failure.model_dump()}")

    logger.info(f"Bulk put completed for index: {index_name}")
    return BulkDispatchResponse(
        index=index_name,
        dispatched=len(report.outcomes),
        failed=len(report.rejected) + len(report.failed_writes),
    )


@router.post("/bulk/{index_name}/{index_type}", response_model=BulkListResponse)
async def bulk_list(
    index_name: str,
    index_type: str,
    request: Request,
    response: Response,
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """Write each element of ``payload[index_name]``, id from its ``index_type`` field.

    Returns 500 with the failed elements when any element was skipped or
    could not be written; the remaining elements are still written.
    """
    async with read_payload(request) as payload:
        report = await pipeline.ingest(
            payload, ShapeVariant.LIST_BULK, RouteParams(index_name, index_type)
        )

    if report.has_failures:
        response.status_code = 500

    logger.info(
        f"Bulk put completed for index: {index_name} with type: {index_type}"
    )
    return BulkListResponse(
        index=index_name,
        written=[outcome.document_id for outcome in report.written],
        failed=_item_failures(report),
    )
