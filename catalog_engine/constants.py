"""
Constants for CATALOG_ENGINE.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# QUERY DEFAULTS
# ============================================================================

DEFAULT_SORT: Final[dict[str, int]] = {"createdAt": -1}
"""Sort applied when a request carries no (or an empty) sort spec."""

DEFAULT_SELECT: Final[dict[str, int]] = {"name": 1}
"""Projection applied to non-paginated reads without a select spec."""

SEARCH_FIELD: Final[str] = "name"
"""Field matched by the free-text search term."""

DEFAULT_BASIC_PAGE_SIZE: Final[int] = 10
"""Page size of the plain find/skip/limit listing."""

# ============================================================================
# DOCUMENT FIELDS
# ============================================================================

FIELD_ID: Final[str] = "_id"
FIELD_NAME: Final[str] = "name"
FIELD_SLUG: Final[str] = "slug"
FIELD_CREATED_AT: Final[str] = "createdAt"
FIELD_UPDATED_AT: Final[str] = "updatedAt"

SERVER_ASSIGNED_FIELDS: Final[tuple[str, ...]] = (
    FIELD_ID,
    FIELD_CREATED_AT,
    FIELD_UPDATED_AT,
)
"""Fields clients may never write."""

BULK_UPDATE_STRIPPED_FIELDS: Final[tuple[str, ...]] = (
    FIELD_SLUG,
    "ids",
    *SERVER_ASSIGNED_FIELDS,
)
"""Fields removed from a shared patch before a bulk update."""

# ============================================================================
# SLUG CONSTANTS
# ============================================================================

SLUG_SEPARATOR: Final[str] = "-"
SLUG_UNIQUE_TOKEN_LENGTH: Final[int] = 8
"""Length of the random hex suffix appended by a forced-unique slug."""

# ============================================================================
# COLLECTION CONSTANTS
# ============================================================================

DEFAULT_PRODUCT_COLLECTION: Final[str] = "products"
"""Dependent collection holding arrays of catalog entity references."""

CASCADE_INTENT_COLLECTION: Final[str] = "cascade_intents"
"""Collection used by the cascade journal."""

INTENT_STATUS_PENDING: Final[str] = "pending"
INTENT_STATUS_DONE: Final[str] = "done"
INTENT_STATUS_ABORTED: Final[str] = "aborted"
"""Status of an intent whose delete failed; never replayed."""

# ============================================================================
# STORE ERROR CODES
# ============================================================================

DUPLICATE_KEY_ERROR_CODE: Final[int] = 11000
"""MongoDB duplicate key error (unique index violation)."""

PROJECTION_MISMATCH_ERROR_CODES: Final[tuple[int, ...]] = (31253, 31254)
"""Inclusion/exclusion mixed inside one $project stage."""

# ============================================================================
# RESPONSE MESSAGES
# ============================================================================

MESSAGE_SUCCESS: Final[str] = "Success"
MESSAGE_ADDED: Final[str] = "Data Added Successfully"
MESSAGE_ADDED_MANY: Final[str] = "{count} Data Added Success"
MESSAGE_UPDATED: Final[str] = "Update Successfully"
MESSAGE_SLUG_CONFLICT: Final[str] = "Slug Must be Unique"
MESSAGE_NOT_FOUND: Final[str] = "No Data found!"
MESSAGE_PROJECTION_MISMATCH: Final[str] = "Error! Projection mismatch"

# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

# ============================================================================
# QUERY VALIDATION CONSTANTS
# ============================================================================

MAX_QUERY_DEPTH: Final[int] = 10
"""Maximum nesting depth of a compiled query."""

MAX_PIPELINE_STAGES: Final[int] = 50
"""Maximum number of stages in an aggregation pipeline."""

MAX_SORT_FIELDS: Final[int] = 10
"""Maximum number of fields in a sort specification."""

MAX_REGEX_LENGTH: Final[int] = 1000
"""Maximum length of a regex pattern."""

MAX_REGEX_COMPLEXITY: Final[int] = 50
"""Maximum complexity score of a regex pattern."""

DANGEROUS_OPERATORS: Final[tuple[str, ...]] = (
    "$where",
    "$eval",
    "$function",
    "$accumulator",
)
"""Operators that execute server-side JavaScript."""

RANGE_OPERATORS: Final[tuple[str, ...]] = ("$gt", "$gte", "$lt", "$lte")
"""Operators accepted inside a range constraint."""

TEXT_MATCH_OPERATOR: Final[str] = "$contains"
"""Operator marking a case-insensitive substring constraint."""
