"""
Pytest configuration and shared fixtures for CATALOG_ENGINE tests.

This module provides:
- Mock motor collection fixtures (unit tests)
- Record service fixtures wired to mock collections
- Testcontainers fixtures (real MongoDB for integration tests)
- Common test utilities
"""

import os
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection

from catalog_engine.database import Collection, close_shared_client
from catalog_engine.entities import EntityConfig
from catalog_engine.observability import clear_correlation_id, get_metrics_collector
from catalog_engine.services import RecordService

# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_cursor(documents: Optional[List[Dict[str, Any]]] = None) -> MagicMock:
    """Create a mock motor cursor whose chained calls return itself."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(documents or []))
    return cursor


def make_motor_collection(name: str) -> MagicMock:
    """
    Create a mock motor collection.

    ``find`` and ``aggregate`` are synchronous in motor (they return
    cursors); everything else is a coroutine.
    """
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = name
    collection.find = MagicMock(return_value=make_cursor())
    collection.aggregate = MagicMock(return_value=make_cursor())
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock(
        return_value=MagicMock(inserted_ids=[ObjectId(), ObjectId()])
    )
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.update_many = AsyncMock(return_value=MagicMock(matched_count=2, modified_count=2))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.count_documents = AsyncMock(return_value=0)
    collection.create_index = AsyncMock(side_effect=lambda keys, **kwargs: kwargs.get("name"))
    return collection


@pytest.fixture
def cursor_factory():
    """Provide the mock cursor factory to tests."""
    return make_cursor


@pytest.fixture
def mock_mongo_collection() -> MagicMock:
    """Create a mock entity collection."""
    return make_motor_collection("orientations")


@pytest.fixture
def mock_product_collection() -> MagicMock:
    """Create a mock dependent (products) collection."""
    return make_motor_collection("products")


@pytest.fixture
def mock_intent_collection() -> MagicMock:
    """Create a mock cascade intent collection."""
    return make_motor_collection("cascade_intents")


@pytest.fixture
def mock_mongo_database() -> MagicMock:
    """
    Create a mock motor database. Item access returns one mock collection
    per name, created on first access.
    """
    collections: Dict[str, MagicMock] = {}
    db = MagicMock()
    db.name = "test_db"
    db.collections = collections
    db.__getitem__.side_effect = lambda name: collections.setdefault(
        name, make_motor_collection(name)
    )
    return db


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def orientation_config() -> EntityConfig:
    """Provide the orientation entity configuration."""
    return EntityConfig(
        key="orientation", collection="orientations", reference_field="orientations"
    )


@pytest.fixture
def record_service(
    orientation_config: EntityConfig,
    mock_mongo_collection: MagicMock,
    mock_product_collection: MagicMock,
) -> RecordService:
    """Create a RecordService wired to mock collections."""
    return RecordService(
        orientation_config,
        Collection(mock_mongo_collection),
        Collection(mock_product_collection),
    )


@pytest.fixture
def journaled_service(
    orientation_config: EntityConfig,
    mock_mongo_collection: MagicMock,
    mock_product_collection: MagicMock,
    mock_intent_collection: MagicMock,
) -> RecordService:
    """Create a RecordService that journals its cascades."""
    return RecordService(
        orientation_config.with_overrides(journal_cascades=True),
        Collection(mock_mongo_collection),
        Collection(mock_product_collection),
        intents=Collection(mock_intent_collection),
    )


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================


@pytest.fixture
def sample_orientation() -> Dict[str, Any]:
    """Provide a stored orientation document."""
    return {
        "_id": ObjectId(),
        "name": "Landscape",
        "slug": "landscape",
        "visibility": True,
    }


# ============================================================================
# ENVIRONMENT AND GLOBAL STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Reset environment variables before each test."""
    env_vars_to_clear = [
        "MONGO_URI",
        "DB_NAME",
        "MONGO_MAX_POOL_SIZE",
        "MONGO_MIN_POOL_SIZE",
        "MONGO_SERVER_SELECTION_TIMEOUT_MS",
        "CATALOG_PRODUCT_COLLECTION",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_global_state():
    """Clear metrics, correlation ID and the shared client around each test."""
    get_metrics_collector().reset()
    clear_correlation_id()
    yield
    get_metrics_collector().reset()
    clear_correlation_id()
    close_shared_client()


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: the container starts once and is reused for all
    integration tests.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    try:
        container = MongoDbContainer(image="mongo:7.0")
        container.start()
    except Exception as e:  # noqa: BLE001 - Docker may be missing entirely
        pytest.skip(f"Could not start MongoDB container: {e}")

    yield container
    container.stop()


@pytest.fixture
def mongodb_connection_string(mongodb_container) -> str:
    """Connection string (with credentials) of the test container."""
    return mongodb_container.get_connection_url()


@pytest.fixture
async def real_mongo_client(mongodb_connection_string):
    """
    Create a real motor client connected to the container.

    Automatically closes the client after the test.
    """
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(mongodb_connection_string)
    try:
        await client.admin.command("ping")
    except (RuntimeError, OSError) as e:
        pytest.fail(f"Failed to connect to MongoDB container: {e}")

    yield client

    client.close()


@pytest.fixture
async def real_mongo_db(real_mongo_client):
    """
    Create a real database for one test.

    Uses a unique database name per test and drops it afterwards.
    """
    db_name = f"test_catalog_{os.getpid()}_{ObjectId()}"
    db = real_mongo_client[db_name]

    yield db

    await real_mongo_client.drop_database(db_name)


@pytest.fixture
async def real_orientation_service(real_mongo_db, orientation_config) -> RecordService:
    """Orientation service on a real database, with its indexes in place."""
    service = RecordService.from_database(real_mongo_db, orientation_config)
    await service.ensure_indexes()
    return service
