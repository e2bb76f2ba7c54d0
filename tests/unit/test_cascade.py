"""
Unit tests for CascadeCoordinator and CascadeJournal.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from catalog_engine.database import Collection
from catalog_engine.services import CascadeCoordinator, CascadeJournal


class TestCascadeCoordinator:
    """Test reference pulls."""

    @pytest.mark.asyncio
    async def test_pull_references(self, mock_product_collection):
        ids = [ObjectId(), ObjectId()]
        coordinator = CascadeCoordinator(Collection(mock_product_collection), "hairColors")

        modified = await coordinator.pull_references(ids)

        assert modified == 2
        mock_product_collection.update_many.assert_called_once_with(
            {}, {"$pull": {"hairColors": {"$in": ids}}}
        )

    @pytest.mark.asyncio
    async def test_no_ids_is_noop(self, mock_product_collection):
        coordinator = CascadeCoordinator(Collection(mock_product_collection), "regions")

        assert await coordinator.pull_references([]) == 0
        mock_product_collection.update_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_zero_matches_is_not_an_error(self, mock_product_collection):
        mock_product_collection.update_many = AsyncMock(
            return_value=MagicMock(matched_count=0, modified_count=0)
        )
        coordinator = CascadeCoordinator(Collection(mock_product_collection), "types")

        assert await coordinator.pull_references([ObjectId()]) == 0


class TestCascadeJournal:
    """Test the cascade intent journal."""

    @pytest.fixture
    def journal(self, mock_product_collection, mock_intent_collection):
        coordinator = CascadeCoordinator(Collection(mock_product_collection), "orientations")
        return CascadeJournal(Collection(mock_intent_collection), coordinator, "orientations")

    @pytest.mark.asyncio
    async def test_record_pending(self, journal, mock_intent_collection):
        oid = ObjectId()
        intent_id = await journal.record_pending([oid])

        assert intent_id == mock_intent_collection.insert_one.return_value.inserted_id
        document = mock_intent_collection.insert_one.call_args[0][0]
        assert document["collection"] == "orientations"
        assert document["field"] == "orientations"
        assert document["ids"] == [oid]
        assert document["status"] == "pending"
        assert "createdAt" in document

    @pytest.mark.asyncio
    async def test_mark_done(self, journal, mock_intent_collection):
        intent_id = ObjectId()
        await journal.mark_done(intent_id)

        filter, update = mock_intent_collection.update_one.call_args[0]
        assert filter == {"_id": intent_id}
        assert update["$set"]["status"] == "done"

    @pytest.mark.asyncio
    async def test_replay_pending(
        self, journal, mock_intent_collection, mock_product_collection, cursor_factory
    ):
        first, second = ObjectId(), ObjectId()
        pending = [
            {"_id": ObjectId(), "ids": [first], "status": "pending"},
            {"_id": ObjectId(), "ids": [second], "status": "pending"},
        ]
        mock_intent_collection.find = MagicMock(return_value=cursor_factory(pending))

        replayed = await journal.replay_pending()

        assert replayed == 2
        query = mock_intent_collection.find.call_args[0][0]
        assert query == {"collection": "orientations", "field": "orientations", "status": "pending"}
        pulled = [call.args[1]["$pull"]["orientations"]["$in"] for call in
                  mock_product_collection.update_many.call_args_list]
        assert pulled == [[first], [second]]
        assert mock_intent_collection.update_one.call_count == 2

    @pytest.mark.asyncio
    async def test_replay_nothing_pending(self, journal, mock_product_collection):
        assert await journal.replay_pending() == 0
        mock_product_collection.update_many.assert_not_called()
