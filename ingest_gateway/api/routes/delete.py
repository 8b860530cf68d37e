"""
Deletion endpoints: whole index, or one document by id (body or path).
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ingest_gateway.api.dependencies import enforce_admission, get_writer
from ingest_gateway.api.payload import read_field
from ingest_gateway.exceptions import MalformedInputError
from ingest_gateway.ingest import FanOutWriter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/delete", dependencies=[Depends(enforce_admission)])


# Registered before "/{index_name}/{obj_id}" so the literal segment wins
@router.post("/object/{index_name}")
async def delete_object(
    index_name: str,
    request: Request,
    writer: FanOutWriter = Depends(get_writer),
) -> Dict[str, Any]:
    """Delete the document whose id is given in the body field ``id``."""
    obj_id = await read_field(request, "id")
    if not obj_id:
        raise MalformedInputError("body field 'id' is required")

    ack = await writer.delete_by_id(index_name, obj_id)
    logger.info(f"Deleted object with ID: {obj_id}")
    return ack


@router.post("/{index_name}/{obj_id}")
async def delete_object_by_path(
    index_name: str,
    obj_id: str,
    writer: FanOutWriter = Depends(get_writer),
) -> Dict[str, Any]:
    """Delete one document by path id."""
    ack = await writer.delete_by_id(index_name, obj_id)
    logger.info(f"Deleted object with ID: {obj_id} from index: {index_name}")
    return ack


@router.post("/{index_name}")
async def delete_index(
    index_name: str,
    writer: FanOutWriter = Depends(get_writer),
) -> Dict[str, Any]:
    """Delete an entire index."""
    ack = await writer.delete_index(index_name)
    logger.info(f"Deleted index: {index_name}")
    return ack
