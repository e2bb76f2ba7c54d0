"""
Type definitions for CATALOG_ENGINE structures.
"""

from typing import Any, Literal, TypedDict

BulkUniqueness = Literal["none", "per-item"]
"""Slug policy of insert-many: skip the store probe, or resolve every item."""


class _ResponseBase(TypedDict):
    success: bool
    message: str


class ResponsePayload(_ResponseBase, total=False):
    """Envelope returned by every record-service operation."""

    data: Any
    count: int


class CascadeIntentDict(TypedDict, total=False):
    """Document stored by the cascade journal."""

    _id: Any
    collection: str
    field: str
    ids: list[Any]
    status: Literal["pending", "done", "aborted"]
    createdAt: Any
    completedAt: Any
