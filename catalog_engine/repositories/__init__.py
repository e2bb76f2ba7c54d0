"""
Catalog Repository Pattern

Provides the repository interface and its MongoDB implementation.

Usage:
    from catalog_engine.repositories import CatalogEntity, MongoRepository

    repo = MongoRepository(Collection(db["regions"]))
    region_id = await repo.add(CatalogEntity(name="Dhaka", slug="dhaka"))
"""

from .base import CatalogEntity, Repository
from .mongo import MongoRepository

__all__ = [
    "Repository",
    "CatalogEntity",
    "MongoRepository",
]
