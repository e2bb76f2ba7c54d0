"""
Catalog engine facade.

Owns the database handle and one RecordService per registered entity type.

Usage:
    from catalog_engine import CatalogEngine, EngineConfig

    async with CatalogEngine(EngineConfig()) as engine:
        orientations = engine.service("orientation")
        await orientations.add({"name": "Landscape"})
"""

import logging
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from .config import EngineConfig
from .constants import DEFAULT_PRODUCT_COLLECTION
from .database.connection import close_shared_client, get_database, verify_shared_client
from .entities import EntityConfig, get_entity_config, list_entities
from .exceptions import ConfigurationError, InternalError
from .observability import get_metrics_collector
from .services import RecordService

logger = logging.getLogger(__name__)


class CatalogEngine:
    """
    Entry point for the catalog engine.

    Services are built lazily, once per entity key. Entities registered
    after a service was built are picked up on first use.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        database: AsyncIOMotorDatabase | None = None,
    ) -> None:
        """
        Args:
            config: Engine configuration (defaults to environment variables)
            database: Use this database handle instead of the shared client
        """
        self.config = config or EngineConfig()
        self._database = database
        self._owns_client = database is None
        self._services: dict[str, RecordService] = {}

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            self._database = get_database(self.config)
        return self._database

    async def initialize(self, ensure_indexes: bool = True) -> None:
        """
        Connect, verify the connection and (optionally) create indexes for
        every registered entity.

        Raises:
            ConfigurationError: If the configuration is invalid
            InternalError: If MongoDB is unreachable or an index cannot be built
        """
        database = self.database
        if self._owns_client and not await verify_shared_client():
            raise InternalError(
                "MongoDB is not reachable", context={"db_name": self.config.db_name}
            )
        logger.info(f"Catalog engine connected to database '{database.name}'")

        if ensure_indexes:
            for key in list_entities():
                await self.service(key).ensure_indexes()

    def service(self, key: str) -> RecordService:
        """
        Get the record service for an entity type.

        Raises:
            ConfigurationError: If the entity is not registered
        """
        service = self._services.get(key)
        if service is None:
            service = self.build_service(get_entity_config(key))
            self._services[key] = service
        return service

    def build_service(self, config: EntityConfig) -> RecordService:
        """
        Build an unregistered, uncached service for an ad-hoc entity config.

        Entities left on the default dependent collection cascade into the
        engine's configured product collection instead.
        """
        if (
            config.dependent_collection == DEFAULT_PRODUCT_COLLECTION
            and self.config.product_collection != DEFAULT_PRODUCT_COLLECTION
        ):
            config = config.with_overrides(dependent_collection=self.config.product_collection)
            logger.debug(
                f"Entity '{config.key}' cascades into '{config.dependent_collection}'"
            )
        return RecordService.from_database(self.database, config)

    async def replay_cascades(self) -> dict[str, int]:
        """
        Replay pending cascade intents for every journaling entity.

        Returns:
            Mapping of entity key to number of intents replayed
        """
        replayed = {}
        for key in list_entities():
            if get_entity_config(key).journal_cascades:
                replayed[key] = await self.service(key).replay_cascades()
        return replayed

    def get_metrics(self) -> dict[str, Any]:
        """Operation metrics of every catalog service."""
        return get_metrics_collector().get_metrics(prefix="catalog.")

    async def shutdown(self) -> None:
        """Drop cached services and close the shared client if we own it."""
        self._services.clear()
        if self._owns_client:
            close_shared_client()
            self._database = None

    async def __aenter__(self) -> "CatalogEngine":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()


def build_service(db: AsyncIOMotorDatabase, key: str) -> RecordService:
    """
    Build a record service for a registered entity on a database handle.

    Raises:
        ConfigurationError: If the entity is not registered
    """
    if db is None:
        raise ConfigurationError("A database handle is required", config_key="db")
    return RecordService.from_database(db, get_entity_config(key))
