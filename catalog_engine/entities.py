"""
Catalog entity configuration and registry.

Every catalog entity type (orientation, hair color, region, ...) is served by
the same record service; what differs between them lives in an
``EntityConfig``. The built-in types are registered at import time and
callers can register their own.

Usage:
    from catalog_engine.entities import EntityConfig, get_entity_config, register_entity

    config = get_entity_config("orientation")

    register_entity(
        EntityConfig(key="zone", collection="zones", reference_field="zones")
    )
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any

from .constants import (
    DEFAULT_BASIC_PAGE_SIZE,
    DEFAULT_PRODUCT_COLLECTION,
    DEFAULT_SELECT,
    DEFAULT_SORT,
    SEARCH_FIELD,
)
from .exceptions import ConfigurationError
from .types import BulkUniqueness

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")
_BULK_UNIQUENESS_POLICIES = ("none", "per-item")


@dataclass(frozen=True)
class EntityConfig:
    """
    Everything the record service needs to know about one entity type.

    Attributes:
        key: Registry key, also used in metric and log names
        collection: Collection holding the entities
        reference_field: Array field of the dependent collection that
            references these entities
        dependent_collection: Collection cleaned up by cascades
        default_sort: Sort used when a read carries none
        default_select: Projection used by non-paginated reads without one
        search_field: Field matched by the free-text search term
        basic_page_size: Page size of the plain listing
        bulk_uniqueness: Slug policy of insert-many
        journal_cascades: Record cascade intents so interrupted deletes can
            be replayed
    """

    key: str
    collection: str
    reference_field: str
    dependent_collection: str = DEFAULT_PRODUCT_COLLECTION
    default_sort: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_SORT))
    default_select: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_SELECT))
    search_field: str = SEARCH_FIELD
    basic_page_size: int = DEFAULT_BASIC_PAGE_SIZE
    bulk_uniqueness: BulkUniqueness = "none"
    journal_cascades: bool = False

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If any field is missing or invalid
        """
        if not isinstance(self.key, str) or not _KEY_PATTERN.match(self.key):
            raise ConfigurationError(
                "Entity key must be lower snake_case", config_key="key", config_value=self.key
            )
        for name in ("collection", "reference_field", "dependent_collection", "search_field"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value or value.startswith("$"):
                raise ConfigurationError(
                    f"{name} must be a non-empty name not starting with '$'",
                    config_key=name,
                    config_value=value,
                    context={"entity": self.key},
                )
        if not self.default_sort:
            raise ConfigurationError(
                "default_sort must not be empty",
                config_key="default_sort",
                context={"entity": self.key},
            )
        for sort_field, direction in self.default_sort.items():
            if direction not in (1, -1) or isinstance(direction, bool):
                raise ConfigurationError(
                    f"default_sort direction for '{sort_field}' must be 1 or -1",
                    config_key="default_sort",
                    config_value=direction,
                    context={"entity": self.key},
                )
        if not isinstance(self.basic_page_size, int) or self.basic_page_size < 1:
            raise ConfigurationError(
                "basic_page_size must be a positive integer",
                config_key="basic_page_size",
                config_value=self.basic_page_size,
                context={"entity": self.key},
            )
        if self.bulk_uniqueness not in _BULK_UNIQUENESS_POLICIES:
            raise ConfigurationError(
                f"bulk_uniqueness must be one of {_BULK_UNIQUENESS_POLICIES}",
                config_key="bulk_uniqueness",
                config_value=self.bulk_uniqueness,
                context={"entity": self.key},
            )

    def with_overrides(self, **overrides: Any) -> "EntityConfig":
        """Return a copy with some fields replaced (validated again)."""
        values = {name: getattr(self, name) for name in self.__dataclass_fields__}
        values.update(overrides)
        return EntityConfig(**values)


BUILTIN_ENTITIES: tuple[EntityConfig, ...] = (
    EntityConfig(key="orientation", collection="orientations", reference_field="orientations"),
    EntityConfig(key="hair_color", collection="haircolors", reference_field="hairColors"),
    EntityConfig(key="body_type", collection="bodytypes", reference_field="bodyTypes"),
    EntityConfig(key="intimate_hair", collection="intimatehairs", reference_field="intimateHairs"),
    EntityConfig(key="region", collection="regions", reference_field="regions"),
    EntityConfig(key="type", collection="types", reference_field="types"),
)

_registry: dict[str, EntityConfig] = {config.key: config for config in BUILTIN_ENTITIES}
_registry_lock = threading.Lock()


def register_entity(config: EntityConfig, replace: bool = False) -> EntityConfig:
    """
    Add an entity type to the registry.

    Args:
        config: Entity configuration
        replace: Overwrite an existing registration with the same key

    Raises:
        ConfigurationError: If the key is taken and ``replace`` is False
    """
    with _registry_lock:
        if config.key in _registry and not replace:
            raise ConfigurationError(
                f"Entity '{config.key}' is already registered",
                config_key="key",
                config_value=config.key,
            )
        _registry[config.key] = config
    logger.debug(f"Registered catalog entity '{config.key}' -> '{config.collection}'")
    return config


def unregister_entity(key: str) -> None:
    with _registry_lock:
        _registry.pop(key, None)


def get_entity_config(key: str) -> EntityConfig:
    """
    Raises:
        ConfigurationError: If no entity is registered under ``key``
    """
    with _registry_lock:
        config = _registry.get(key)
    if config is None:
        raise ConfigurationError(
            f"Unknown catalog entity '{key}'", config_key="key", config_value=key
        )
    return config


def list_entities() -> list[str]:
    with _registry_lock:
        return sorted(_registry)
