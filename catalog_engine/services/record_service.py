"""
Record service: create/read/update/delete for one catalog entity type.

Orchestrates the slug resolver, the query compiler, the result shaper and
the cascade coordinator, and applies the business rules around them
(uniqueness conflicts, not-found, bulk operations). Every public operation
returns the ``{success, message, data?, count?}`` envelope and raises a
CatalogEngineError subclass on failure.

Usage:
    from catalog_engine.entities import get_entity_config
    from catalog_engine.services import RecordService

    service = RecordService.from_database(db, get_entity_config("orientation"))
    created = await service.add({"name": "Landscape"})
    page = await service.get_all(
        {"filter": {"visibility": True}, "pagination": {"pageSize": 10, "currentPage": 0}}
    )
    await service.delete_by_id(str(created["data"]["_id"]), check_usage=True)
"""

from collections.abc import Mapping
from typing import Any

from ..constants import (
    BULK_UPDATE_STRIPPED_FIELDS,
    CASCADE_INTENT_COLLECTION,
    FIELD_ID,
    FIELD_NAME,
    FIELD_SLUG,
    MESSAGE_ADDED,
    MESSAGE_ADDED_MANY,
    MESSAGE_SUCCESS,
    MESSAGE_UPDATED,
    SERVER_ASSIGNED_FIELDS,
)
from ..database.collection import Collection
from ..entities import EntityConfig
from ..exceptions import (
    BadRequestError,
    CatalogEngineError,
    ConfigurationError,
    NotFoundError,
)
from ..observability import entity_scope, get_logger, log_operation, timed_operation
from ..query import QueryCompiler, QueryRequest, shape_result
from ..repositories import CatalogEntity, MongoRepository, Repository
from ..slugs import SlugResolver, transform_to_slug
from ..types import ResponsePayload
from ..utils.mongo import to_object_id, to_object_ids
from .cascade import CascadeCoordinator
from .journal import CascadeJournal

logger = get_logger(__name__)


class RecordService:
    """
    CRUD service for one catalog entity type.

    The service holds no per-request state; one instance per entity type is
    shared by every request.
    """

    def __init__(
        self,
        config: EntityConfig,
        collection: Collection,
        dependent: Collection,
        intents: Collection | None = None,
        repository: Repository | None = None,
    ):
        """
        Args:
            config: Entity configuration
            collection: Entity collection adapter
            dependent: Dependent collection (products) adapter
            intents: Cascade intent collection; required when
                ``config.journal_cascades`` is set
            repository: Repository override (defaults to MongoRepository)
        """
        self.config = config
        self.collection = collection
        self.dependent = dependent
        self.repository = repository or MongoRepository(collection)
        self.slugs = SlugResolver(collection)
        self.compiler = QueryCompiler(
            default_sort=config.default_sort,
            default_select=config.default_select,
            search_field=config.search_field,
        )
        self.cascade = CascadeCoordinator(dependent, config.reference_field)
        self.journal: CascadeJournal | None = None
        if config.journal_cascades:
            if intents is None:
                raise ConfigurationError(
                    "journal_cascades requires an intent collection",
                    config_key="journal_cascades",
                    context={"entity": config.key},
                )
            self.journal = CascadeJournal(intents, self.cascade, config.collection)

    @property
    def metrics_namespace(self) -> str:
        return f"catalog.{self.config.key}"

    @classmethod
    def from_database(cls, db: Any, config: EntityConfig) -> "RecordService":
        """
        Build a service from a motor database handle.

        Args:
            db: AsyncIOMotorDatabase
            config: Entity configuration
        """
        dependent_name = config.dependent_collection
        return cls(
            config,
            Collection(db[config.collection]),
            Collection(db[dependent_name]),
            intents=Collection(db[CASCADE_INTENT_COLLECTION]) if config.journal_cascades else None,
        )

    def _entity(self, payload: Mapping[str, Any]) -> CatalogEntity:
        if not isinstance(payload, Mapping):
            raise BadRequestError("Payload must be an object", context={"entity": self.config.key})
        try:
            return CatalogEntity.from_payload(payload)
        except ValueError as e:
            raise BadRequestError(str(e), context={"entity": self.config.key}) from e

    def _patch(self, payload: Mapping[str, Any], stripped: tuple[str, ...]) -> dict[str, Any]:
        if not isinstance(payload, Mapping):
            raise BadRequestError("Payload must be an object", context={"entity": self.config.key})
        fields = {key: value for key, value in payload.items() if key not in stripped}
        if FIELD_NAME in fields:
            name = fields[FIELD_NAME]
            if not isinstance(name, str) or not name.strip():
                raise BadRequestError("name is required", context={"entity": self.config.key})
            fields[FIELD_NAME] = name.strip()
        return fields

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @timed_operation("add")
    async def add(self, payload: Mapping[str, Any]) -> ResponsePayload:
        """
        Create one record.

        The slug (given, or derived from ``name``) is checked against the
        collection once; a taken slug is replaced by a forced-unique variant.

        Raises:
            BadRequestError: If the payload has no name
            ConflictError: If the unique slug index still rejects the insert
        """
        with entity_scope(self.config.key, operation="add"):
            entity = self._entity(payload)
            candidate = entity.slug or transform_to_slug(entity.name)
            if candidate:
                entity.slug = await self.slugs.resolve(candidate)
            else:
                entity.slug = transform_to_slug(entity.name, force_unique=True)

            new_id = await self.repository.add(entity)
            log_operation(logger, f"{self.config.key}.add", entity_id=str(new_id), slug=entity.slug)
            return {"success": True, "message": MESSAGE_ADDED, "data": {FIELD_ID: new_id}}

    @timed_operation("insert_many")
    async def insert_many(
        self, payloads: list[Mapping[str, Any]], delete_existing: bool = False
    ) -> ResponsePayload:
        """
        Create many records in one batch.

        Every payload is validated before anything is written, so a bad item
        never leaves the collection emptied by ``delete_existing``.

        Args:
            payloads: Records to insert
            delete_existing: Delete every existing record first

        Raises:
            ConflictError: If any slug collides; the batch fails as a whole
        """
        with entity_scope(self.config.key, operation="insert_many"):
            entities = [self._entity(payload) for payload in payloads]

            if delete_existing:
                removed = await self.repository.delete_many(None)
                logger.info(f"Deleted {removed} existing record(s) before bulk insert")

            if self.config.bulk_uniqueness == "per-item":
                await self._resolve_batch_slugs(entities)
            else:
                for entity in entities:
                    entity.slug = transform_to_slug(entity.name)

            ids = await self.repository.add_many(entities) if entities else []
            log_operation(logger, f"{self.config.key}.insert_many", count=len(ids))
            return {"success": True, "message": MESSAGE_ADDED_MANY.format(count=len(ids))}

    async def _resolve_batch_slugs(self, entities: list[CatalogEntity]) -> None:
        seen: set[str] = set()
        for entity in entities:
            candidate = entity.slug or transform_to_slug(entity.name)
            slug = await self.slugs.resolve(candidate) if candidate else ""
            while not slug or slug in seen:
                slug = transform_to_slug(candidate, force_unique=True)
            seen.add(slug)
            entity.slug = slug

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @timed_operation("get_all")
    async def get_all(
        self,
        query: QueryRequest | Mapping[str, Any] | None = None,
        search_term: str | None = None,
    ) -> ResponsePayload:
        """
        Filtered, sorted and optionally paginated read.

        Without pagination ``data`` is the flat list and ``count`` its
        length. With pagination ``data`` is one page and ``count`` the total
        number of matches.

        Raises:
            QueryValidationError: If the query is malformed or unsafe
            ProjectionMismatchError: If the select mixes inclusion and exclusion
        """
        with entity_scope(self.config.key, operation="get_all"):
            request = QueryRequest.parse(dict(query) if isinstance(query, Mapping) else query)
            pipeline = self.compiler.compile(
                filter=request.filter,
                search_term=search_term,
                sort=request.sort,
                select=request.select,
                pagination=request.pagination,
            )
            raw = await self.repository.aggregate(pipeline)
            result = shape_result(raw, paginated=request.pagination is not None)
            logger.debug(f"get_all returned {len(result['data'])} of {result['count']}")
            return result

    @timed_operation("get_all_basic")
    async def get_all_basic(
        self, page_size: int | None = None, current_page: int = 0
    ) -> ResponsePayload:
        """
        Plain find/skip/limit listing without aggregation (zero-based pages).
        """
        with entity_scope(self.config.key, operation="get_all_basic"):
            pagination = QueryRequest.parse(
                {
                    "pagination": {
                        "pageSize": page_size or self.config.basic_page_size,
                        "currentPage": current_page,
                    }
                }
            ).pagination
            docs = await self.repository.find_page(
                skip=pagination.skip,
                limit=pagination.page_size,
                sort=list(self.config.default_sort.items()),
            )
            return shape_result(docs, paginated=False)

    @timed_operation("get_by_id")
    async def get_by_id(
        self, id: Any, select: Mapping[str, Any] | None = None, strict: bool = False
    ) -> ResponsePayload:
        """
        Fetch one record.

        Args:
            id: 24-character hex ObjectId string
            select: Optional projection
            strict: Raise NotFoundError instead of returning ``data: None``

        Raises:
            InvalidIdError: If ``id`` is malformed
            NotFoundError: If ``strict`` and no record exists
        """
        with entity_scope(self.config.key, operation="get_by_id"):
            oid = to_object_id(id)
            projection = QueryRequest.parse({"select": dict(select)}).select if select else None
            doc = await self.repository.get(oid, projection=projection)
            if doc is None and strict:
                raise NotFoundError(entity_id=str(oid))
            return {"success": True, "message": MESSAGE_SUCCESS, "data": doc}

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @timed_operation("update_by_id")
    async def update_by_id(self, id: Any, payload: Mapping[str, Any]) -> ResponsePayload:
        """
        Patch one record with ``$set``.

        A slug that differs from the stored one is checked for uniqueness
        again; an omitted or unchanged slug is kept as is.

        Raises:
            BadRequestError: If the payload is not an object or ``name`` is blank
            InvalidIdError: If ``id`` is malformed
            NotFoundError: If no record exists
            ConflictError: If the unique slug index rejects the update
        """
        with entity_scope(self.config.key, operation="update_by_id"):
            oid = to_object_id(id)
            fields = self._patch(payload, SERVER_ASSIGNED_FIELDS)
            existing = await self.repository.get(oid, projection={FIELD_SLUG: 1})
            if existing is None:
                raise NotFoundError(entity_id=str(oid))

            requested = fields.pop(FIELD_SLUG, None)
            if requested:
                fields[FIELD_SLUG] = await self.slugs.resolve_change(
                    existing.get(FIELD_SLUG), requested
                )

            if not await self.repository.update_fields(oid, fields):
                raise NotFoundError(entity_id=str(oid))
            log_operation(logger, f"{self.config.key}.update_by_id", entity_id=str(oid))
            return {"success": True, "message": MESSAGE_UPDATED}

    @timed_operation("update_many")
    async def update_many(self, ids: list[Any], payload: Mapping[str, Any]) -> ResponsePayload:
        """
        Apply one patch to many records. ``slug`` is never bulk-updated.

        Raises:
            BadRequestError: If the payload is not an object or ``name`` is blank
            InvalidIdError: If any identifier is malformed
        """
        with entity_scope(self.config.key, operation="update_many"):
            oids = to_object_ids(ids)
            fields = self._patch(payload, BULK_UPDATE_STRIPPED_FIELDS)
            matched = await self.repository.update_fields_many(oids, fields) if oids else 0
            log_operation(logger, f"{self.config.key}.update_many", count=matched)
            return {"success": True, "message": MESSAGE_SUCCESS}

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    @timed_operation("delete_by_id")
    async def delete_by_id(self, id: Any, check_usage: bool = False) -> ResponsePayload:
        """
        Delete one record, optionally pulling it from every product.

        Raises:
            InvalidIdError: If ``id`` is malformed
            NotFoundError: If no record exists
        """
        with entity_scope(self.config.key, operation="delete_by_id"):
            oid = to_object_id(id)
            existing = await self.repository.get(oid, projection={FIELD_ID: 1})
            if existing is None:
                raise NotFoundError(entity_id=str(oid))

            await self._delete_and_cascade([oid], check_usage)
            log_operation(
                logger,
                f"{self.config.key}.delete_by_id",
                entity_id=str(oid),
                check_usage=check_usage,
            )
            return {"success": True, "message": MESSAGE_SUCCESS}

    @timed_operation("delete_many")
    async def delete_many(self, ids: list[Any], check_usage: bool = False) -> ResponsePayload:
        """
        Delete many records without an existence check. The cascade, if
        requested, runs once for the whole set.

        Raises:
            InvalidIdError: If any identifier is malformed
        """
        with entity_scope(self.config.key, operation="delete_many"):
            oids = to_object_ids(ids)
            if not oids:
                return {"success": True, "message": MESSAGE_SUCCESS}

            deleted = await self._delete_and_cascade(oids, check_usage)
            log_operation(
                logger, f"{self.config.key}.delete_many", count=deleted, check_usage=check_usage
            )
            return {"success": True, "message": MESSAGE_SUCCESS}

    async def _delete_and_cascade(self, oids: list[Any], check_usage: bool) -> int:
        intent_id = None
        if check_usage and self.journal is not None:
            intent_id = await self.journal.record_pending(oids)

        try:
            if len(oids) == 1:
                deleted = int(await self.repository.delete(oids[0]))
            else:
                deleted = await self.repository.delete_many(oids)
        except CatalogEngineError as e:
            if intent_id is not None:
                await self.journal.mark_aborted(intent_id, e.message)
                logger.warning(f"Aborted cascade intent {intent_id}: delete failed")
            raise

        if check_usage:
            await self.cascade.pull_references(oids)
            if intent_id is not None:
                await self.journal.mark_done(intent_id)
        return deleted

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def replay_cascades(self) -> int:
        """
        Finish cascades interrupted between delete and pull.

        Returns:
            Number of intents replayed (0 when journaling is off)
        """
        if self.journal is None:
            return 0
        with entity_scope(self.config.key, operation="replay_cascades"):
            return await self.journal.replay_pending()

    async def ensure_indexes(self) -> list[str]:
        """
        Create the unique slug index and the dependent reference index.

        Returns:
            Names of the ensured indexes
        """
        with entity_scope(self.config.key, operation="ensure_indexes"):
            slug_index = await self.collection.create_index(
                [(FIELD_SLUG, 1)], unique=True, name=f"{self.config.collection}_slug_unique"
            )
            reference_index = await self.dependent.create_index(
                [(self.config.reference_field, 1)],
                name=f"{self.config.reference_field}_ref",
            )
            logger.debug(
                f"Ensured indexes {slug_index}, {reference_index} for '{self.config.key}'"
            )
            return [slug_index, reference_index]
