"""
Custom exceptions for CATALOG_ENGINE.

Every failure surfaced by the engine is one of these types. Each carries a
stable ``kind`` so callers (an HTTP layer, a CLI) can map it to a status
without inspecting messages.
"""

from typing import Any, Dict, Optional

from .constants import (
    MESSAGE_NOT_FOUND,
    MESSAGE_PROJECTION_MISMATCH,
    MESSAGE_SLUG_CONFLICT,
)


class CatalogEngineError(RuntimeError):
    """
    Base exception for catalog engine errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (entity,
                 collection_name, operation, etc.)
        kind: Stable, caller-facing error kind
    """

    kind: str = "internal"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConflictError(CatalogEngineError):
    """
    Raised when a uniqueness constraint (slug) is violated on insert/update.
    """

    kind = "conflict"

    def __init__(
        self,
        message: str = MESSAGE_SLUG_CONFLICT,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)


class NotFoundError(CatalogEngineError):
    """
    Raised when a fetch-then-act operation finds no matching record.

    Attributes:
        entity_id: Identifier that was looked up (if available)
    """

    kind = "not_found"

    def __init__(
        self,
        message: str = MESSAGE_NOT_FOUND,
        entity_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if entity_id:
            context["entity_id"] = entity_id
        super().__init__(message, context=context)
        self.entity_id = entity_id


class BadRequestError(CatalogEngineError):
    """Raised when a request cannot be executed as given."""

    kind = "bad_request"


class ProjectionMismatchError(BadRequestError):
    """
    Raised when the store rejects the compiled projection, e.g. a select
    spec mixing inclusion and exclusion flags.
    """

    def __init__(
        self,
        message: str = MESSAGE_PROJECTION_MISMATCH,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)


class QueryValidationError(BadRequestError):
    """
    Raised when a filter, sort, select or pagination fragment is unsafe or
    malformed.

    Attributes:
        query_type: Which part of the request failed ("filter", "sort", ...)
        operator: Offending operator (if any)
        path: Path of the offending fragment (if any)
    """

    def __init__(
        self,
        message: str,
        query_type: Optional[str] = None,
        operator: Optional[str] = None,
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if query_type:
            context["query_type"] = query_type
        if operator:
            context["operator"] = operator
        if path:
            context["path"] = path
        super().__init__(message, context=context)
        self.query_type = query_type
        self.operator = operator
        self.path = path


class InvalidIdError(BadRequestError):
    """
    Raised when an identifier is not a valid ObjectId.

    Attributes:
        value: The rejected identifier
    """

    def __init__(self, value: Any, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(f'"{value}" is an invalid _id', context=context)
        self.value = value


class InternalError(CatalogEngineError):
    """
    Raised for any other store failure (network, malformed query,
    unexpected driver error). The original exception is chained.
    """

    kind = "internal"


class ConfigurationError(CatalogEngineError):
    """
    Raised when engine or entity configuration is invalid or missing.

    Attributes:
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
    """

    kind = "configuration"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
