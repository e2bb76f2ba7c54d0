"""
MongoDB helpers shared by the catalog services.
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId

from ..exceptions import InvalidIdError


def to_object_id(value: Any) -> ObjectId:
    """
    Convert a 24-character hex string (or an ObjectId) into an ObjectId.

    Raises:
        InvalidIdError: If the value is not a valid ObjectId
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise InvalidIdError(value)


def to_object_ids(values: Iterable[Any]) -> list[ObjectId]:
    """
    Convert every identifier, rejecting the whole list if any one is invalid.

    Raises:
        InvalidIdError: On the first invalid identifier
    """
    return [to_object_id(value) for value in values]


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for server-assigned timestamps."""
    return datetime.now(timezone.utc)
