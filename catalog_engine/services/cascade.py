"""
Reference cleanup in the dependent collection.

When catalog entities are deleted, every product still listing them in its
reference array has those identifiers pulled. The store enforces no
referential integrity, so this is the only thing that keeps products clean.
"""

import logging
from typing import Any

from ..database.collection import Collection

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    """
    Pulls removed identifiers out of one array field of a dependent
    collection.

    Example:
        coordinator = CascadeCoordinator(Collection(db["products"]), "orientations")
        await coordinator.pull_references([orientation_id])
    """

    def __init__(self, dependent: Collection, reference_field: str):
        self.dependent = dependent
        self.reference_field = reference_field

    async def pull_references(self, removed_ids: list[Any]) -> int:
        """
        Remove ``removed_ids`` from ``reference_field`` on every dependent
        document. Identifiers that are not referenced anywhere are no-ops.

        Returns:
            Number of dependent documents modified
        """
        if not removed_ids:
            return 0
        result = await self.dependent.update_many(
            {}, {"$pull": {self.reference_field: {"$in": list(removed_ids)}}}
        )
        modified = result.modified_count
        logger.debug(
            f"Pulled {len(removed_ids)} id(s) from '{self.dependent.name}.{self.reference_field}', "
            f"{modified} document(s) modified"
        )
        return modified
