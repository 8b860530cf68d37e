"""
Input Decoder

Turns a request payload (uploaded file, inline text or an already-parsed
JSON body value) into a parsed structured value. Text is read as YAML 1.2,
which also accepts JSON. Path safety is checked by the caller before
decoding.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ingest_gateway.exceptions import DecodeError

logger = logging.getLogger(__name__)


class PayloadKind(str, Enum):
    FILE = "file"
    INLINE = "inline"
    PARSED = "parsed"


@dataclass(frozen=True)
class RawPayload:
    """Request payload before decoding. Consumed once, never persisted."""

    kind: PayloadKind
    path: Optional[str] = None
    text: Optional[str] = None
    value: Any = None

    @classmethod
    def from_file(cls, path: str) -> "RawPayload":
        return cls(kind=PayloadKind.FILE, path=path)

    @classmethod
    def inline(cls, text: str) -> "RawPayload":
        return cls(kind=PayloadKind.INLINE, text=text)

    @classmethod
    def parsed(cls, value: Any) -> "RawPayload":
        """Wrap a value the transport already decoded (JSON body objects)."""
        return cls(kind=PayloadKind.PARSED, value=value)


def _read_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read uploaded file {path}: {e}")
        raise DecodeError(f"unreadable upload: {e}") from e


def _load(text: str) -> Any:
    # A YAML instance keeps parser state, so each payload gets its own
    return YAML(typ="safe", pure=True).load(text)


def decode(payload: RawPayload) -> Any:
    """Parse the payload as YAML 1.2 (which also accepts JSON).

    Args:
        payload: File-backed, inline or pre-parsed payload

    Returns:
        Parsed value: dict, list or scalar (None for an empty document)

    Raises:
        DecodeError: If the text is not valid YAML/JSON or the file is unreadable
    """
    if payload.kind is PayloadKind.PARSED:
        return payload.value

    if payload.kind is PayloadKind.FILE:
        text = _read_file(payload.path)
    else:
        text = payload.text

    if text is None:
        raise DecodeError("no input provided")

    try:
        return _load(text)
    except YAMLError as e:
        logger.warning(f"Malformed {payload.kind.value} payload: {e}")
        raise DecodeError(f"malformed input: {e}") from e
