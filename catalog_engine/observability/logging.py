"""
Contextual logging for CATALOG_ENGINE.

Log records emitted through ``get_logger`` carry the request correlation ID
and the catalog entity being operated on, both taken from ``contextvars`` so
concurrent requests on one event loop never mix their context.
"""

import contextvars
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "catalog_correlation_id", default=None
)

_entity_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "catalog_entity_context", default=None
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set a correlation ID in the current context.

    Args:
        correlation_id: Optional correlation ID (generates new one if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def entity_scope(entity: str, **kwargs: Any) -> Iterator[dict[str, Any]]:
    """
    Bind an entity (and extra fields) to every log record emitted inside
    the block. Scopes nest; the outer context is restored on exit.

    Example:
        with entity_scope("orientation", operation="delete_by_id"):
            logger.info("Deleting")  # record carries entity=orientation
    """
    parent = _entity_context.get() or {}
    context = {**parent, "entity": entity, **kwargs}
    token = _entity_context.set(context)
    try:
        yield context
    finally:
        _entity_context.reset(token)


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context (timestamp, correlation ID, entity context).
    """
    context: dict[str, Any] = {"timestamp": datetime.now().isoformat()}

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    entity_context = _entity_context.get()
    if entity_context:
        context.update(entity_context)

    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that merges the current context into ``extra``."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()
        extra = kwargs.get("extra") or {}
        context.update(extra)
        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a contextual logger.

    Args:
        name: Logger name (typically __name__)
    """
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log a catalog operation with structured context.

    Args:
        logger: Logger or adapter
        operation: Operation name (e.g. "orientation.add")
        level: Log level
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context (entity_id, count, check_usage, ...)
    """
    log_context: dict[str, Any] = {"operation": operation, "success": success}
    if duration_ms is not None:
        log_context["duration_ms"] = round(duration_ms, 2)
    log_context.update(context)

    message = f"Operation: {operation}" if success else f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=log_context)
