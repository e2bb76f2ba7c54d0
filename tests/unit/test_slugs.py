"""
Unit tests for slug generation and resolution.
"""

import re
from unittest.mock import AsyncMock

import pytest

from catalog_engine.database import Collection
from catalog_engine.slugs import SlugResolver, transform_to_slug


class TestTransformToSlug:
    """Test transform_to_slug."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Landscape", "landscape"),
            ("Hair Color: Red", "hair-color-red"),
            ("  Curly   & Wavy  ", "curly-wavy"),
            ("Café Crème", "cafe-creme"),
            ("Type_2 / Type-3", "type-2-type-3"),
            ("---", ""),
        ],
    )
    def test_deterministic(self, value, expected):
        assert transform_to_slug(value) == expected
        assert transform_to_slug(value) == transform_to_slug(value)

    def test_force_unique_appends_token(self):
        slug = transform_to_slug("Landscape", force_unique=True)
        assert re.fullmatch(r"landscape-[0-9a-f]{8}", slug)

    def test_force_unique_differs_between_calls(self):
        assert transform_to_slug("x", force_unique=True) != transform_to_slug(
            "x", force_unique=True
        )

    def test_force_unique_on_empty(self):
        assert re.fullmatch(r"[0-9a-f]{8}", transform_to_slug("", force_unique=True))


class TestSlugResolver:
    """Test SlugResolver against a mock collection."""

    @pytest.mark.asyncio
    async def test_free_slug_is_kept(self, mock_mongo_collection):
        resolver = SlugResolver(Collection(mock_mongo_collection))

        assert await resolver.resolve("landscape") == "landscape"
        mock_mongo_collection.find_one.assert_called_once_with({"slug": "landscape"}, {"_id": 1})

    @pytest.mark.asyncio
    async def test_taken_slug_is_made_unique(self, mock_mongo_collection):
        mock_mongo_collection.find_one = AsyncMock(return_value={"_id": "existing"})
        resolver = SlugResolver(Collection(mock_mongo_collection))

        slug = await resolver.resolve("landscape")

        assert slug != "landscape"
        assert slug.startswith("landscape-")

    @pytest.mark.asyncio
    async def test_resolve_change_unchanged_skips_probe(self, mock_mongo_collection):
        resolver = SlugResolver(Collection(mock_mongo_collection))

        assert await resolver.resolve_change("landscape", "landscape") == "landscape"
        assert await resolver.resolve_change("landscape", None) == "landscape"
        mock_mongo_collection.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolve_change_new_slug_is_probed(self, mock_mongo_collection):
        mock_mongo_collection.find_one = AsyncMock(return_value={"_id": "other"})
        resolver = SlugResolver(Collection(mock_mongo_collection))

        slug = await resolver.resolve_change("landscape", "portrait")

        assert slug.startswith("portrait-")
        mock_mongo_collection.find_one.assert_called_once()
