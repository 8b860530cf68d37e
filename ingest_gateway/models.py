"""
Pydantic response models for the ingestion gateway API.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class ItemFailure(BaseModel):
    """A bulk element that was skipped or whose write failed."""

    position: Optional[int] = Field(
        default=None,
        description="Position of the element in the submitted list (skipped elements)",
        json_schema_extra={"example": 1},
    )
    id: Optional[str] = Field(
        default=None,
        description="Derived document id (failed writes)",
        json_schema_extra={"example": "greet-user"},
    )
    type: str = Field(
        description="Error class",
        json_schema_extra={"example": "MissingIdFieldError"},
    )
    detail: str = Field(
        description="Error message",
        json_schema_extra={"example": "id field 'rule' is missing or invalid"},
    )


class BulkDispatchResponse(BaseModel):
    """Response from a keyed bulk upload. Per-item errors are only logged."""

    index: str = Field(description="Target index", json_schema_extra={"example": "config"})
    dispatched: int = Field(
        description="Documents sent to the store", json_schema_extra={"example": 2}
    )
    failed: int = Field(
        description="Documents that could not be written", json_schema_extra={"example": 0}
    )


class BulkListResponse(BaseModel):
    """Response from a list bulk upload."""

    index: str = Field(description="Target index", json_schema_extra={"example": "rules"})
    written: List[str] = Field(
        default_factory=list,
        description="Ids of the documents written",
        json_schema_extra={"example": ["greet-user"]},
    )
    failed: List[ItemFailure] = Field(
        default_factory=list,
        description="Elements skipped or not written",
    )


class HealthResponse(BaseModel):
    """Service and store health."""

    status: str = Field(description="'healthy' or 'degraded'")
    store: Dict[str, Any] = Field(description="Store backend and reachability")
    admission: Dict[str, Any] = Field(description="Admission controller statistics")
