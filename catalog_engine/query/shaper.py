"""
Result shaping.

Both read branches leave the engine in the same envelope, so callers never
special-case pagination.
"""

from typing import Any

from ..constants import MESSAGE_SUCCESS
from ..types import ResponsePayload


def shape_result(raw: list[dict[str, Any]], paginated: bool) -> ResponsePayload:
    """
    Normalize raw aggregation output into ``{success, message, data, count}``.

    Args:
        raw: Documents returned by the aggregation
        paginated: Whether the facet branch produced ``raw``

    Returns:
        Flat branch: ``data`` is ``raw`` and ``count`` its length.
        Paginated branch: ``data``/``count`` come from the single facet
        document, defaulting to ``[]``/``0`` when absent.
    """
    if not paginated:
        return {
            "success": True,
            "message": MESSAGE_SUCCESS,
            "data": list(raw),
            "count": len(raw),
        }

    page = raw[0] if raw else {}
    count = page.get("count")
    return {
        "success": True,
        "message": MESSAGE_SUCCESS,
        "data": list(page.get("data") or []),
        "count": count if isinstance(count, int) else 0,
    }
