"""
Shared MongoDB connection for the catalog engine.

One motor client per process; every entity service built by the catalog
registry draws its collections from the same pool.

Usage:
    from catalog_engine.config import EngineConfig
    from catalog_engine.database import get_database

    db = get_database(EngineConfig())
    orientations = db["orientations"]
"""

import logging
import threading

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import (
    ConfigurationError as PyMongoConfigurationError,
    ConnectionFailure,
    OperationFailure,
    ServerSelectionTimeoutError,
)

from ..config import EngineConfig
from ..constants import DEFAULT_MAX_IDLE_TIME_MS
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_shared_client: AsyncIOMotorClient | None = None
_init_lock = threading.Lock()


def get_shared_mongo_client(config: EngineConfig) -> AsyncIOMotorClient:
    """
    Get or create the process-wide motor client.

    The config is validated on first creation. Later calls return the
    existing client regardless of the config they pass.

    Raises:
        ConfigurationError: If the configuration is invalid or the URI is rejected
    """
    global _shared_client

    if _shared_client is not None:
        return _shared_client

    with _init_lock:
        # Another thread may have initialized while we waited
        if _shared_client is not None:
            return _shared_client

        config.validate()
        logger.info(
            f"Creating shared MongoDB client (max_pool_size={config.max_pool_size}, "
            f"min_pool_size={config.min_pool_size})"
        )
        try:
            _shared_client = AsyncIOMotorClient(
                config.mongo_uri,
                serverSelectionTimeoutMS=config.server_selection_timeout_ms,
                appname="CATALOG_ENGINE",
                maxPoolSize=config.max_pool_size,
                minPoolSize=config.min_pool_size,
                maxIdleTimeMS=DEFAULT_MAX_IDLE_TIME_MS,
                # No retries at the engine level: every store failure surfaces at once
                retryWrites=False,
                retryReads=False,
            )
        except (PyMongoConfigurationError, ValueError, TypeError) as e:
            logger.error(f"Failed to create shared MongoDB client: {e}", exc_info=True)
            raise ConfigurationError(
                f"Invalid MongoDB configuration: {e}", config_key="mongo_uri"
            ) from e

    return _shared_client


def get_database(config: EngineConfig) -> AsyncIOMotorDatabase:
    """Return the configured database on the shared client."""
    return get_shared_mongo_client(config)[config.db_name]


async def verify_shared_client() -> bool:
    """
    Ping the shared client.

    Returns:
        True if the client is connected and responsive, False otherwise
    """
    if _shared_client is None:
        logger.warning("Shared MongoDB client is None - cannot verify")
        return False

    try:
        await _shared_client.admin.command("ping")
        return True
    except (ConnectionFailure, ServerSelectionTimeoutError, OperationFailure) as e:
        logger.exception(f"Shared MongoDB client verification failed: {e}")
        return False


def close_shared_client() -> None:
    """Close and forget the shared client (used on shutdown and in tests)."""
    global _shared_client

    with _init_lock:
        if _shared_client is not None:
            _shared_client.close()
            logger.info("Shared MongoDB client closed")
        _shared_client = None
