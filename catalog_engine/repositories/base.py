"""
Abstract Repository Pattern

Defines the catalog entity model and the repository interface the record
service works against. ``MongoRepository`` is the store-backed
implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..constants import (
    FIELD_CREATED_AT,
    FIELD_ID,
    FIELD_NAME,
    FIELD_SLUG,
    FIELD_UPDATED_AT,
    SERVER_ASSIGNED_FIELDS,
)


@dataclass
class CatalogEntity:
    """
    A named, slugged catalog entity (orientation, region, hair color, ...).

    Fields other than name/slug are kept in ``extra`` and stored as given.
    Timestamps are server-assigned; values supplied by clients are dropped.

    Example:
        entity = CatalogEntity.from_payload({"name": "Landscape", "visibility": True})
        doc = entity.to_document()
    """

    name: str
    slug: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    id: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CatalogEntity":
        """
        Build an entity from a client payload.

        Raises:
            ValueError: If ``name`` is missing or blank
        """
        name = payload.get(FIELD_NAME)
        if not isinstance(name, str) or not name.strip():
            raise ValueError("name is required")
        slug = payload.get(FIELD_SLUG) or None
        extra = {
            key: value
            for key, value in payload.items()
            if key not in (FIELD_NAME, FIELD_SLUG) and key not in SERVER_ASSIGNED_FIELDS
        }
        return cls(name=name.strip(), slug=slug, extra=extra)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "CatalogEntity":
        extra = {
            key: value
            for key, value in doc.items()
            if key not in (FIELD_NAME, FIELD_SLUG) and key not in SERVER_ASSIGNED_FIELDS
        }
        return cls(
            name=doc.get(FIELD_NAME, ""),
            slug=doc.get(FIELD_SLUG),
            extra=extra,
            id=doc.get(FIELD_ID),
            created_at=doc.get(FIELD_CREATED_AT),
            updated_at=doc.get(FIELD_UPDATED_AT),
        )

    def to_document(self) -> dict[str, Any]:
        """Convert to a storage document (``_id`` only when already assigned)."""
        doc: dict[str, Any] = {**self.extra, FIELD_NAME: self.name}
        if self.slug is not None:
            doc[FIELD_SLUG] = self.slug
        if self.id is not None:
            doc[FIELD_ID] = self.id
        if self.created_at is not None:
            doc[FIELD_CREATED_AT] = self.created_at
        if self.updated_at is not None:
            doc[FIELD_UPDATED_AT] = self.updated_at
        return doc


class Repository(ABC):
    """
    Data access interface for one catalog collection.

    Identifiers are ObjectIds by the time they reach a repository; string
    validation happens in the service layer.
    """

    @abstractmethod
    async def get(self, id: Any, projection: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """
        Get a single document by ID.

        Returns:
            Document if found, None otherwise
        """

    @abstractmethod
    async def find_page(
        self,
        filter: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Plain find/skip/limit without aggregation."""

    @abstractmethod
    async def add(self, entity: CatalogEntity) -> Any:
        """
        Insert a new entity.

        Returns:
            ID of the created document
        """

    @abstractmethod
    async def add_many(self, entities: list[CatalogEntity]) -> list[Any]:
        """
        Insert several entities in one batch.

        Returns:
            List of created IDs
        """

    @abstractmethod
    async def update_fields(self, id: Any, fields: dict[str, Any]) -> bool:
        """
        ``$set`` the given fields on one document.

        Returns:
            True if a document matched
        """

    @abstractmethod
    async def update_fields_many(self, ids: list[Any], fields: dict[str, Any]) -> int:
        """
        ``$set`` the same fields on every listed document.

        Returns:
            Number of matched documents
        """

    @abstractmethod
    async def delete(self, id: Any) -> bool:
        """
        Delete one document.

        Returns:
            True if a document was deleted
        """

    @abstractmethod
    async def delete_many(self, ids: list[Any] | None) -> int:
        """
        Delete the listed documents, or every document when ``ids`` is None.

        Returns:
            Number of deleted documents
        """

    @abstractmethod
    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Run an aggregation pipeline."""
