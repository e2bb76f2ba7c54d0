"""
Request models for filtered reads.

``QueryRequest`` accepts the camelCase payload admin clients already send
(``pageSize``/``currentPage``) as well as snake_case keyword arguments.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import QueryValidationError

_DIRECTIONS = {
    "asc": 1,
    "ascending": 1,
    "desc": -1,
    "descending": -1,
}


class PaginationSpec(BaseModel):
    """Zero-based pagination: page 0 is the first page."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    page_size: int = Field(alias="pageSize", gt=0)
    current_page: int = Field(alias="currentPage", ge=0)

    @property
    def skip(self) -> int:
        return self.page_size * self.current_page


class QueryRequest(BaseModel):
    """
    Filter + sort + select + pagination for one read.

    Example:
        request = QueryRequest.parse(
            {
                "filter": {"visibility": True},
                "sort": {"name": 1},
                "pagination": {"pageSize": 2, "currentPage": 0},
            }
        )
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    filter: dict[str, Any] | None = None
    sort: dict[str, int] | None = None
    select: dict[str, int] | None = None
    pagination: PaginationSpec | None = None

    @field_validator("sort", mode="before")
    @classmethod
    def _normalize_sort(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("sort must be a mapping of field to direction")
        normalized = {}
        for field, direction in value.items():
            if isinstance(direction, str) and direction.lower() in _DIRECTIONS:
                normalized[field] = _DIRECTIONS[direction.lower()]
            elif not isinstance(direction, bool) and direction in (1, -1):
                normalized[field] = int(direction)
            else:
                raise ValueError(f"invalid sort direction for '{field}': {direction!r}")
        return normalized

    @field_validator("select", mode="before")
    @classmethod
    def _normalize_select(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("select must be a mapping of field to 0/1")
        normalized = {}
        for field, flag in value.items():
            if flag in (0, 1):
                normalized[field] = int(flag)
            else:
                raise ValueError(f"invalid select flag for '{field}': {flag!r}")
        return normalized

    @classmethod
    def parse(cls, raw: "QueryRequest | dict[str, Any] | None") -> "QueryRequest":
        """
        Build a request from a loose mapping.

        Raises:
            QueryValidationError: If any part of the payload is malformed
        """
        if raw is None:
            return cls()
        if isinstance(raw, cls):
            return raw
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise QueryValidationError(
                f"Invalid query request: {first.get('msg', str(e))}",
                query_type=location.split(".")[0] if location else "request",
                path=location or None,
            ) from e
