"""
CATALOG_ENGINE - Catalog Aggregation Engine

Filtered, sorted and paginated reads over MongoDB catalog collections, slug
uniqueness, and reference cleanup in the products that point at them.
"""

# Catalog facade
from .catalog import CatalogEngine, build_service
# Configuration
from .config import EngineConfig
# Entity registry
from .entities import (BUILTIN_ENTITIES, EntityConfig, get_entity_config,
                       list_entities, register_entity)
# Errors
from .exceptions import (BadRequestError, CatalogEngineError,
                         ConfigurationError, ConflictError, InternalError,
                         InvalidIdError, NotFoundError,
                         ProjectionMismatchError, QueryValidationError)
# Query engine
from .query import QueryCompiler, QueryRequest, shape_result
# Services
from .services import CascadeCoordinator, RecordService
from .slugs import SlugResolver, transform_to_slug

__version__ = "0.1.0"

__all__ = [
    # Core
    "CatalogEngine",
    "build_service",
    "EngineConfig",
    # Entities
    "EntityConfig",
    "BUILTIN_ENTITIES",
    "register_entity",
    "get_entity_config",
    "list_entities",
    # Services
    "RecordService",
    "CascadeCoordinator",
    "SlugResolver",
    "transform_to_slug",
    # Query
    "QueryCompiler",
    "QueryRequest",
    "shape_result",
    # Errors
    "CatalogEngineError",
    "ConflictError",
    "NotFoundError",
    "BadRequestError",
    "ProjectionMismatchError",
    "QueryValidationError",
    "InvalidIdError",
    "InternalError",
    "ConfigurationError",
]
