"""
MongoDB Repository Implementation

Implements the Repository interface on top of the error-translating
``Collection`` adapter, so every failure arrives as a CatalogEngineError.
"""

import logging
from typing import Any

from ..constants import FIELD_CREATED_AT, FIELD_ID, FIELD_UPDATED_AT
from ..database.collection import Collection
from ..utils.mongo import utcnow
from .base import CatalogEntity, Repository

logger = logging.getLogger(__name__)


class MongoRepository(Repository):
    """
    MongoDB implementation of the Repository interface.

    Example:
        repo = MongoRepository(Collection(db["orientations"]))
        new_id = await repo.add(CatalogEntity(name="Landscape", slug="landscape"))
        doc = await repo.get(new_id, projection={"name": 1})
    """

    def __init__(self, collection: Collection):
        """
        Initialize the MongoDB repository.

        Args:
            collection: Collection adapter for the entity collection
        """
        self._collection = collection

    @property
    def collection(self) -> Collection:
        return self._collection

    async def get(self, id: Any, projection: dict[str, Any] | None = None) -> dict[str, Any] | None:
        return await self._collection.find_one({FIELD_ID: id}, projection=projection)

    async def find_page(
        self,
        filter: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        return await self._collection.find(filter, skip=skip, limit=limit, sort=sort)

    async def add(self, entity: CatalogEntity) -> Any:
        """Insert an entity, stamping both timestamps, and return its ID."""
        now = utcnow()
        entity.created_at = now
        entity.updated_at = now
        doc = entity.to_document()
        doc.pop(FIELD_ID, None)

        result = await self._collection.insert_one(doc)
        entity.id = result.inserted_id

        logger.debug(f"Added entity to '{self._collection.name}' with id={entity.id}")
        return entity.id

    async def add_many(self, entities: list[CatalogEntity]) -> list[Any]:
        """Insert entities in one batch and return their IDs."""
        now = utcnow()
        docs = []
        for entity in entities:
            entity.created_at = now
            entity.updated_at = now
            doc = entity.to_document()
            doc.pop(FIELD_ID, None)
            docs.append(doc)

        result = await self._collection.insert_many(docs)
        ids = list(result.inserted_ids)
        for entity, new_id in zip(entities, ids):
            entity.id = new_id

        logger.debug(f"Added {len(ids)} entities to '{self._collection.name}'")
        return ids

    async def update_fields(self, id: Any, fields: dict[str, Any]) -> bool:
        """``$set`` fields on one document, refreshing ``updatedAt``."""
        update = {key: value for key, value in fields.items() if key != FIELD_CREATED_AT}
        update[FIELD_UPDATED_AT] = utcnow()
        result = await self._collection.update_one({FIELD_ID: id}, {"$set": update})
        return result.matched_count > 0

    async def update_fields_many(self, ids: list[Any], fields: dict[str, Any]) -> int:
        update = {key: value for key, value in fields.items() if key != FIELD_CREATED_AT}
        update[FIELD_UPDATED_AT] = utcnow()
        result = await self._collection.update_many({FIELD_ID: {"$in": ids}}, {"$set": update})
        return result.matched_count

    async def delete(self, id: Any) -> bool:
        result = await self._collection.delete_one({FIELD_ID: id})
        return result.deleted_count > 0

    async def delete_many(self, ids: list[Any] | None) -> int:
        filter = {} if ids is None else {FIELD_ID: {"$in": ids}}
        result = await self._collection.delete_many(filter)
        return result.deleted_count

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self._collection.aggregate(pipeline)
