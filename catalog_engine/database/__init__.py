"""
Database layer.

Provides the error-translating collection adapter, the shared motor client
and the query validator.
"""

from .collection import Collection, translate_store_error
from .connection import (close_shared_client, get_database,
                         get_shared_mongo_client, verify_shared_client)
from .query_validator import QueryValidator

__all__ = [
    # Collection adapter
    "Collection",
    "translate_store_error",
    # Query security
    "QueryValidator",
    # Connection
    "get_shared_mongo_client",
    "get_database",
    "verify_shared_client",
    "close_shared_client",
]
