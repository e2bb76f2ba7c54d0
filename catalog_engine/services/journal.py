"""
Cascade intent journal.

Makes delete-then-cascade recoverable. An intent is written before the
entities are deleted and marked done after the references are pulled, so a
crash in between leaves a pending intent that ``replay_pending`` finishes.
``$pull`` is idempotent, which is what makes replaying safe. An intent
whose delete fails is marked aborted, since its entities still exist.
"""

import logging
from typing import Any

from ..constants import (
    FIELD_CREATED_AT,
    FIELD_ID,
    INTENT_STATUS_ABORTED,
    INTENT_STATUS_DONE,
    INTENT_STATUS_PENDING,
)
from ..database.collection import Collection
from ..types import CascadeIntentDict
from ..utils.mongo import utcnow
from .cascade import CascadeCoordinator

logger = logging.getLogger(__name__)


class CascadeJournal:
    """
    Intent log for cascades of one entity collection.

    Example:
        journal = CascadeJournal(Collection(db["cascade_intents"]), coordinator, "orientations")
        intent_id = await journal.record_pending([oid])
        ...  # delete + pull
        await journal.mark_done(intent_id)
    """

    def __init__(
        self,
        intents: Collection,
        coordinator: CascadeCoordinator,
        source_collection: str,
    ):
        self.intents = intents
        self.coordinator = coordinator
        self.source_collection = source_collection

    def _scope(self) -> dict[str, Any]:
        return {
            "collection": self.source_collection,
            "field": self.coordinator.reference_field,
        }

    async def record_pending(self, ids: list[Any]) -> Any:
        """Insert a pending intent and return its ID."""
        intent: CascadeIntentDict = {
            **self._scope(),
            "ids": list(ids),
            "status": INTENT_STATUS_PENDING,
            FIELD_CREATED_AT: utcnow(),
        }
        result = await self.intents.insert_one(dict(intent))
        return result.inserted_id

    async def mark_done(self, intent_id: Any) -> None:
        await self.intents.update_one(
            {FIELD_ID: intent_id},
            {"$set": {"status": INTENT_STATUS_DONE, "completedAt": utcnow()}},
        )

    async def mark_aborted(self, intent_id: Any, reason: str) -> None:
        """Close an intent whose delete failed so replay leaves its ids alone."""
        await self.intents.update_one(
            {FIELD_ID: intent_id},
            {"$set": {"status": INTENT_STATUS_ABORTED, "error": reason, "completedAt": utcnow()}},
        )

    async def pending(self) -> list[CascadeIntentDict]:
        return await self.intents.find(
            {**self._scope(), "status": INTENT_STATUS_PENDING},
            sort=[(FIELD_CREATED_AT, 1)],
        )

    async def replay_pending(self) -> int:
        """
        Re-run the pull of every pending intent, oldest first, and mark each
        one done.

        Returns:
            Number of intents replayed
        """
        intents = await self.pending()
        for intent in intents:
            await self.coordinator.pull_references(intent.get("ids") or [])
            await self.mark_done(intent[FIELD_ID])
        if intents:
            logger.info(
                f"Replayed {len(intents)} pending cascade intent(s) for '{self.source_collection}'"
            )
        return len(intents)
