"""
Document store adapter.

Wraps a motor collection with the MongoDB-style methods the catalog engine
consumes (find/insert/update/delete/aggregate) and translates every driver
failure into the engine's error taxonomy in one place:

- duplicate key (code 11000)          -> ConflictError
- projection mismatch (31253, 31254)  -> ProjectionMismatchError
- any other driver/store failure      -> InternalError

Nothing is retried and nothing is swallowed.

Usage:
    from catalog_engine.database import Collection

    orientations = Collection(db["orientations"])
    doc = await orientations.find_one({"slug": "landscape"})
    rows = await orientations.aggregate([{"$match": {"visibility": True}}])
"""

import logging
from typing import Any

from pymongo.errors import BulkWriteError, OperationFailure, PyMongoError
from pymongo.results import DeleteResult, InsertManyResult, InsertOneResult, UpdateResult

from ..constants import DUPLICATE_KEY_ERROR_CODE, PROJECTION_MISMATCH_ERROR_CODES
from ..exceptions import (
    CatalogEngineError,
    ConflictError,
    InternalError,
    ProjectionMismatchError,
)

logger = logging.getLogger(__name__)


def _is_duplicate_key(error: PyMongoError) -> bool:
    if isinstance(error, BulkWriteError):
        write_errors = (error.details or {}).get("writeErrors", [])
        return any(e.get("code") == DUPLICATE_KEY_ERROR_CODE for e in write_errors)
    return getattr(error, "code", None) == DUPLICATE_KEY_ERROR_CODE


def translate_store_error(
    error: Exception, operation: str, collection_name: str | None = None
) -> CatalogEngineError:
    """
    Map a driver exception onto the engine's error taxonomy.

    Args:
        error: Exception raised by motor/pymongo
        operation: Store operation that failed (e.g. "insert_one")
        collection_name: Collection the operation targeted

    Returns:
        The CatalogEngineError to raise (the caller chains ``error``)
    """
    context = {"operation": operation}
    if collection_name:
        context["collection"] = collection_name

    if isinstance(error, PyMongoError) and _is_duplicate_key(error):
        return ConflictError(context=context)

    if isinstance(error, OperationFailure) and error.code in PROJECTION_MISMATCH_ERROR_CODES:
        return ProjectionMismatchError(context=context)

    message = str(error) or type(error).__name__
    return InternalError(message, context=context)


class Collection:
    """
    A MongoDB collection wrapper that follows MongoDB API conventions and
    raises only CatalogEngineError subclasses.

    Example:
        collection = Collection(motor_db.orientations)
        doc = await collection.find_one({"_id": oid})
        await collection.update_one({"_id": oid}, {"$set": {"name": "Portrait"}})
    """

    def __init__(self, motor_collection: Any):
        """
        Initialize a Collection wrapper.

        Args:
            motor_collection: An AsyncIOMotorCollection (or compatible object)
        """
        self._collection = motor_collection

    @property
    def name(self) -> str:
        return getattr(self._collection, "name", "<unknown>")

    def _fail(self, error: Exception, operation: str) -> CatalogEngineError:
        translated = translate_store_error(error, operation, self.name)
        if isinstance(translated, InternalError):
            logger.exception(f"Database operation failed in {operation} on '{self.name}'")
        else:
            logger.warning(
                f"{type(translated).__name__} in {operation} on '{self.name}': {error}"
            )
        return translated

    async def find_one(
        self,
        filter: dict[str, Any] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """
        Find a single document matching the filter.

        Args:
            filter: Optional dict of field/value pairs to filter by
            projection: Optional projection document

        Returns:
            The document as a dict, or None if not found
        """
        try:
            if projection:
                return await self._collection.find_one(filter or {}, projection)
            return await self._collection.find_one(filter or {})
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "find_one") from e

    async def find(
        self,
        filter: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: list[tuple[str, int]] | None = None,
        projection: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Find documents and materialize them as a list.

        Args:
            filter: Optional filter
            skip: Number of documents to skip
            limit: Maximum number of documents (0 means no limit)
            sort: List of (field, direction) tuples
            projection: Optional projection document

        Returns:
            List of matching documents
        """
        try:
            if projection:
                cursor = self._collection.find(filter or {}, projection)
            else:
                cursor = self._collection.find(filter or {})
            if sort:
                cursor = cursor.sort(sort)
            if skip > 0:
                cursor = cursor.skip(skip)
            if limit > 0:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=limit or None)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "find") from e

    async def insert_one(self, document: dict[str, Any]) -> InsertOneResult:
        """
        Insert a single document.

        Raises:
            ConflictError: If a unique index rejects the document
        """
        try:
            return await self._collection.insert_one(document)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "insert_one") from e

    async def insert_many(self, documents: list[dict[str, Any]]) -> InsertManyResult:
        """
        Insert multiple documents at once.

        A duplicate key anywhere in the batch raises one ConflictError for
        the whole batch.
        """
        try:
            return await self._collection.insert_many(documents)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "insert_many") from e

    async def update_one(self, filter: dict[str, Any], update: dict[str, Any]) -> UpdateResult:
        try:
            return await self._collection.update_one(filter, update)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "update_one") from e

    async def update_many(self, filter: dict[str, Any], update: dict[str, Any]) -> UpdateResult:
        try:
            return await self._collection.update_many(filter, update)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "update_many") from e

    async def delete_one(self, filter: dict[str, Any]) -> DeleteResult:
        try:
            return await self._collection.delete_one(filter)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "delete_one") from e

    async def delete_many(self, filter: dict[str, Any]) -> DeleteResult:
        try:
            return await self._collection.delete_many(filter)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "delete_many") from e

    async def count_documents(self, filter: dict[str, Any] | None = None) -> int:
        try:
            return await self._collection.count_documents(filter or {})
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "count_documents") from e

    async def aggregate(self, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Run an aggregation pipeline and return every result document.

        Raises:
            ProjectionMismatchError: If the store rejects a $project stage
            InternalError: For any other store failure
        """
        try:
            cursor = self._collection.aggregate(pipeline)
            return await cursor.to_list(length=None)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "aggregate") from e

    async def create_index(self, keys: list[tuple[str, int]], **kwargs: Any) -> str:
        """
        Create an index (idempotent when the definition is unchanged).

        Returns:
            The index name
        """
        try:
            return await self._collection.create_index(keys, **kwargs)
        except (PyMongoError, TypeError, ValueError) as e:
            raise self._fail(e, "create_index") from e
