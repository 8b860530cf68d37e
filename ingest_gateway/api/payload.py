"""
Request payload extraction.

Reads the ``input`` field from multipart, urlencoded or JSON bodies. File
uploads are copied to a temporary file that exists only for the duration of
the ``read_payload`` block.
"""

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from ingest_gateway.exceptions import DecodeError, PayloadTooLarge
from ingest_gateway.ingest.decoder import RawPayload
from ingest_gateway.settings import settings

logger = logging.getLogger(__name__)

INPUT_FIELD = "input"
COPY_CHUNK_SIZE = 1024 * 1024


def _is_json(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("application/json")


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise DecodeError(f"malformed JSON body: {e}") from e


async def _spool_upload(upload: UploadFile) -> str:
    """Copy an upload to a temp file, enforcing the size limit. Returns its path."""
    max_bytes = settings.upload.max_bytes
    written = 0
    fd, path = tempfile.mkstemp(prefix="upload-", dir=settings.upload.tmp_dir)
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := await upload.read(COPY_CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLarge(f"upload exceeds {max_bytes} bytes")
                out.write(chunk)
    except BaseException:
        Path(path).unlink(missing_ok=True)
        raise
    logger.debug(f"Spooled upload '{upload.filename}' ({written} bytes) to {path}")
    return path


@asynccontextmanager
async def read_payload(request: Request) -> AsyncIterator[RawPayload]:
    """Yield the request's ``input`` as a RawPayload.

    Raises:
        DecodeError: If the request carries no ``input`` field
        PayloadTooLarge: If an uploaded file exceeds the configured limit
    """
    if _is_json(request):
        body = await _json_body(request)
        value = body.get(INPUT_FIELD) if isinstance(body, dict) else None
        if value is None:
            raise DecodeError(f"request has no '{INPUT_FIELD}' file or field")
        # Objects and arrays were already decoded by the JSON parser
        if isinstance(value, str):
            yield RawPayload.inline(value)
        else:
            yield RawPayload.parsed(value)
        return

    async with request.form(max_part_size=settings.upload.max_bytes) as form:
        value = form.get(INPUT_FIELD)
        if value is None:
            raise DecodeError(f"request has no '{INPUT_FIELD}' file or field")

        if not isinstance(value, UploadFile):
            yield RawPayload.inline(value)
            return

        path = await _spool_upload(value)
        try:
            yield RawPayload.from_file(path)
        finally:
            Path(path).unlink(missing_ok=True)


async def read_field(request: Request, name: str) -> Optional[str]:
    """Read a single text field from a JSON or form body."""
    if _is_json(request):
        body = await _json_body(request)
        if not isinstance(body, dict):
            return None
        value = body.get(name)
        return None if value is None else str(value)

    form = await request.form()
    value = form.get(name)
    return value if isinstance(value, str) else None
