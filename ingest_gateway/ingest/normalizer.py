"""
Shape Normalizer

Extracts the documents to write from a parsed payload and assigns each one
its id. One dispatcher serves all three route shapes so the id rules live in
a single place:

- SINGLE_TYPED (``/put/{index}/{type}``): one entity per payload. The payload
  is unwrapped through ``nlu`` and then ``data`` (in that order, each only if
  present) and the first element of the resulting list is the entity. Its id
  is ``entity[type]`` with whitespace runs replaced by ``_``.
- KEYED_BULK (``/bulk/{index}``): every top-level key except ``version``
  becomes ``{key: value, "id": key}``.
- LIST_BULK (``/bulk/{index}/{type}``): ``payload[index]`` is a list of
  entities; each id is the alphanumeric tokens of ``entity[type]`` joined by
  ``-``. Entities that cannot produce an id are rejected individually.

The ``nlu``/``data`` unwrap order is a fixed convention of the authoring
format and must not be reordered.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ingest_gateway.exceptions import (
    GatewayException,
    MalformedInputError,
    MissingIdFieldError,
)
from ingest_gateway.metrics import gateway_items_rejected_total

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

RESERVED_VERSION_KEY = "version"
UNWRAP_CHAIN = ("nlu", "data")

_WHITESPACE_RUN = re.compile(r"\s+")
_WORD_TOKEN = re.compile(r"[^\W_]+")


class ShapeVariant(str, Enum):
    SINGLE_TYPED = "single_typed"
    KEYED_BULK = "keyed_bulk"
    LIST_BULK = "list_bulk"


@dataclass(frozen=True)
class RouteParams:
    """Path parameters of the ingesting route."""

    index_name: str
    index_type: Optional[str] = None


@dataclass
class RejectedItem:
    """A bulk element that produced no document."""

    position: int
    error: GatewayException

    @property
    def reason(self) -> str:
        if isinstance(self.error, MissingIdFieldError):
            return "missing_id_field"
        return "not_a_mapping"


@dataclass
class NormalizedBatch:
    """Documents ready to write, plus the elements that were skipped."""

    documents: List[Document] = field(default_factory=list)
    rejected: List[RejectedItem] = field(default_factory=list)


# ============================================================================
# Id derivation
# ============================================================================


def _id_source(entity: Dict[str, Any], field_name: str) -> str:
    value = entity.get(field_name)
    if value is None or isinstance(value, (dict, list, bool)):
        raise MissingIdFieldError(field_name)
    text = str(value)
    if not text.strip():
        raise MissingIdFieldError(field_name)
    return text


def underscore_id(value: str) -> str:
    """Replace every whitespace run with ``_`` ("book  flight" -> "book_flight")."""
    return _WHITESPACE_RUN.sub("_", value)


def dash_id(value: str) -> str:
    """Join the word tokens of ``value`` with ``-`` ("greet, user!" -> "greet-user")."""
    return "-".join(_WORD_TOKEN.findall(value))


# ============================================================================
# Variant handlers
# ============================================================================


def _normalize_single_typed(parsed: Any, params: RouteParams) -> NormalizedBatch:
    value = parsed
    for key in UNWRAP_CHAIN:
        if isinstance(value, dict) and value.get(key):
            value = value[key]

    if not isinstance(value, list) or not value:
        raise MalformedInputError("expected a non-empty list of entities")

    entity = value[0]
    if not isinstance(entity, dict):
        raise MalformedInputError("expected the first entity to be a mapping")

    if not params.index_type:
        raise MissingIdFieldError("", "index_type is missing or invalid")

    doc_id = underscore_id(_id_source(entity, params.index_type))
    return NormalizedBatch(documents=[{**entity, "id": doc_id}])


def _normalize_keyed_bulk(parsed: Any, params: RouteParams) -> NormalizedBatch:
    if not isinstance(parsed, dict):
        raise MalformedInputError("expected a mapping of named entries")

    batch = NormalizedBatch()
    for position, (key, value) in enumerate(parsed.items()):
        if key == RESERVED_VERSION_KEY:
            continue
        doc_id = str(key)
        if not doc_id.strip():
            batch.rejected.append(RejectedItem(position, MissingIdFieldError("key")))
            continue
        batch.documents.append({key: value, "id": doc_id})
    return batch


def _normalize_list_bulk(parsed: Any, params: RouteParams) -> NormalizedBatch:
    if not isinstance(parsed, dict):
        raise MalformedInputError("expected a mapping at the top level")

    items = parsed.get(params.index_name)
    if not isinstance(items, list):
        raise MalformedInputError(f"expected a list under '{params.index_name}'")

    batch = NormalizedBatch()
    for position, entity in enumerate(items):
        try:
            if not isinstance(entity, dict):
                raise MalformedInputError("entity is not a mapping")
            doc_id = dash_id(_id_source(entity, params.index_type or ""))
            if not doc_id:
                raise MissingIdFieldError(
                    params.index_type or "",
                    f"id field '{params.index_type}' has no usable characters",
                )
        except (MalformedInputError, MissingIdFieldError) as e:
            logger.error(
                f"Skipping {params.index_name}[{position}]: {e.message} ({entity!r})"
            )
            batch.rejected.append(RejectedItem(position, e))
            continue
        batch.documents.append({**entity, "id": doc_id})
    return batch


_HANDLERS: Dict[ShapeVariant, Callable[[Any, RouteParams], NormalizedBatch]] = {
    ShapeVariant.SINGLE_TYPED: _normalize_single_typed,
    ShapeVariant.KEYED_BULK: _normalize_keyed_bulk,
    ShapeVariant.LIST_BULK: _normalize_list_bulk,
}


def normalize(parsed: Any, variant: ShapeVariant, params: RouteParams) -> NormalizedBatch:
    """Extract the documents for ``variant`` from a parsed payload.

    Args:
        parsed: Decoded YAML/JSON value
        variant: Route shape
        params: Index name and, for typed routes, the id-source field

    Returns:
        NormalizedBatch with one document per accepted entity

    Raises:
        MalformedInputError: If the expected top-level structure is absent
        MissingIdFieldError: If the single entity of SINGLE_TYPED has no id field
    """
    batch = _HANDLERS[variant](parsed, params)
    for item in batch.rejected:
        gateway_items_rejected_total.labels(reason=item.reason).inc()
    logger.debug(
        f"Normalized {variant.value} payload for '{params.index_name}': "
        f"{len(batch.documents)} documents, {len(batch.rejected)} rejected"
    )
    return batch
