"""
Unit tests for CatalogEntity and MongoRepository.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from catalog_engine.database import Collection
from catalog_engine.repositories import CatalogEntity, MongoRepository


class TestCatalogEntity:
    def test_from_payload(self):
        entity = CatalogEntity.from_payload(
            {"name": " Landscape ", "slug": "landscape", "visibility": True, "updatedAt": "x"}
        )
        assert entity.name == "Landscape"
        assert entity.slug == "landscape"
        assert entity.extra == {"visibility": True}

    @pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": "   "}, {"name": 5}])
    def test_from_payload_requires_name(self, payload):
        with pytest.raises(ValueError):
            CatalogEntity.from_payload(payload)

    def test_document_round_trip(self):
        doc = {"_id": ObjectId(), "name": "Region", "slug": "region", "priority": 2}
        assert CatalogEntity.from_document(doc).to_document() == doc


class TestMongoRepository:
    @pytest.mark.asyncio
    async def test_add_stamps_timestamps(self, mock_mongo_collection):
        repo = MongoRepository(Collection(mock_mongo_collection))
        entity = CatalogEntity(name="Landscape", slug="landscape")

        new_id = await repo.add(entity)

        assert new_id == entity.id
        document = mock_mongo_collection.insert_one.call_args[0][0]
        assert document["createdAt"] == document["updatedAt"]
        assert "_id" not in document

    @pytest.mark.asyncio
    async def test_add_many_assigns_ids(self, mock_mongo_collection):
        ids = [ObjectId(), ObjectId()]
        mock_mongo_collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=ids))
        repo = MongoRepository(Collection(mock_mongo_collection))
        entities = [CatalogEntity(name="a"), CatalogEntity(name="b")]

        assert await repo.add_many(entities) == ids
        assert [entity.id for entity in entities] == ids

    @pytest.mark.asyncio
    async def test_update_fields_never_touches_created_at(self, mock_mongo_collection):
        repo = MongoRepository(Collection(mock_mongo_collection))
        oid = ObjectId()

        assert await repo.update_fields(oid, {"name": "x", "createdAt": "y"}) is True

        filter, update = mock_mongo_collection.update_one.call_args[0]
        assert filter == {"_id": oid}
        assert set(update["$set"]) == {"name", "updatedAt"}

    @pytest.mark.asyncio
    async def test_update_fields_no_match(self, mock_mongo_collection):
        mock_mongo_collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))
        repo = MongoRepository(Collection(mock_mongo_collection))

        assert await repo.update_fields(ObjectId(), {"name": "x"}) is False

    @pytest.mark.asyncio
    async def test_delete_many_all(self, mock_mongo_collection):
        repo = MongoRepository(Collection(mock_mongo_collection))

        assert await repo.delete_many(None) == 2
        mock_mongo_collection.delete_many.assert_called_once_with({})
