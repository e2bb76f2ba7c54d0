"""
Slug generation and collision resolution.
"""

import logging
import re
import unicodedata
import uuid

from .constants import FIELD_SLUG, SLUG_SEPARATOR, SLUG_UNIQUE_TOKEN_LENGTH
from .database.collection import Collection

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def transform_to_slug(value: str, force_unique: bool = False) -> str:
    """
    Turn a display string into a URL-safe slug.

    ASCII-folds, lower-cases and collapses every run of whitespace or
    punctuation into a single "-". Deterministic unless ``force_unique``,
    which appends "-" and a random hex token so the result does not
    collide with an existing slug.

    Example:
        transform_to_slug("Hair Color: Red")        -> "hair-color-red"
        transform_to_slug("Landscape", True)        -> "landscape-3f9c2a1b"
    """
    ascii_value = (
        unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_SLUG_CHARS.sub(SLUG_SEPARATOR, ascii_value.lower()).strip(SLUG_SEPARATOR)
    if force_unique:
        token = uuid.uuid4().hex[:SLUG_UNIQUE_TOKEN_LENGTH]
        slug = f"{slug}{SLUG_SEPARATOR}{token}" if slug else token
    return slug


class SlugResolver:
    """
    Resolves a candidate slug against one collection.

    A single probe, no retry loop: if the forced-unique slug still collides
    the unique index rejects the write and the caller sees a ConflictError.
    """

    def __init__(self, collection: Collection):
        self._collection = collection

    async def exists(self, slug: str) -> bool:
        doc = await self._collection.find_one({FIELD_SLUG: slug}, projection={"_id": 1})
        return doc is not None

    async def resolve(self, candidate: str) -> str:
        """
        Return ``candidate`` if it is free, else a forced-unique variant.
        """
        if not await self.exists(candidate):
            return candidate
        final_slug = transform_to_slug(candidate, force_unique=True)
        logger.info(f"Slug '{candidate}' taken in '{self._collection.name}', using '{final_slug}'")
        return final_slug

    async def resolve_change(self, current: str | None, requested: str | None) -> str | None:
        """
        Resolve the slug requested by an update.

        An omitted or unchanged slug is kept without probing the store.
        """
        if not requested or requested == current:
            return current
        return await self.resolve(requested)
