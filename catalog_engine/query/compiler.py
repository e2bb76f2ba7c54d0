"""
Aggregation pipeline compiler.

Turns filter + search term + sort + select + pagination into one ordered
pipeline. Stages are appended in a fixed order:

1. ``$match``  - typed filter constraints plus the search term (omitted if empty)
2. ``$sort``   - requested sort, else the entity default (always present)
3. without pagination: ``$project`` with select (default ``{name: 1}``)
   with pagination:    ``$facet`` {metadata: count, data: skip/limit/project?}
                       then ``$project`` to ``{data, count}``

Pages are zero-based: ``$skip`` is ``pageSize * currentPage``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..constants import DEFAULT_SELECT, DEFAULT_SORT, SEARCH_FIELD
from ..database.query_validator import QueryValidator
from .constraints import TextMatch, build_match, parse_filter
from .specs import PaginationSpec

logger = logging.getLogger(__name__)


class QueryCompiler:
    """
    Compiles read requests for one entity type.

    Defaults are resolved once at construction, never inside the branches.

    Example:
        compiler = QueryCompiler(default_sort={"createdAt": -1})
        pipeline = compiler.compile(
            filter={"visibility": True},
            sort={"name": 1},
            pagination=PaginationSpec(pageSize=2, currentPage=0),
        )
    """

    def __init__(
        self,
        default_sort: Mapping[str, int] | None = None,
        default_select: Mapping[str, int] | None = None,
        search_field: str = SEARCH_FIELD,
        validator: QueryValidator | None = None,
    ):
        self.default_sort = dict(default_sort or DEFAULT_SORT)
        self.default_select = dict(default_select or DEFAULT_SELECT)
        self.search_field = search_field
        self.validator = validator or QueryValidator()

    def compile(
        self,
        filter: Mapping[str, Any] | None = None,
        search_term: str | None = None,
        sort: Mapping[str, int] | None = None,
        select: Mapping[str, int] | None = None,
        pagination: PaginationSpec | None = None,
    ) -> list[dict[str, Any]]:
        """
        Build the aggregation pipeline.

        Args:
            filter: Loose filter mapping (parsed into typed constraints)
            search_term: Case-insensitive substring matched against the search field
            sort: Field -> 1/-1; empty or None falls back to the default sort
            select: Field -> 0/1 projection
            pagination: Switches to the facet branch when present

        Returns:
            Ordered list of pipeline stages

        Raises:
            QueryValidationError: If any fragment is unsafe or malformed
        """
        pipeline: list[dict[str, Any]] = []

        constraints = parse_filter(filter, self.validator)
        if search_term:
            constraints.append(TextMatch(self.search_field, search_term))
        match = build_match(constraints)
        if match:
            pipeline.append({"$match": match})

        sort_spec = dict(sort) if sort else dict(self.default_sort)
        for field in sort_spec:
            self.validator.validate_field_name(field, query_type="sort")
        self.validator.validate_sort(sort_spec)
        pipeline.append({"$sort": sort_spec})

        for field in select or {}:
            self.validator.validate_field_name(field, query_type="select")

        if pagination is None:
            pipeline.append({"$project": dict(select) if select else dict(self.default_select)})
        else:
            page_stages: list[dict[str, Any]] = [
                {"$skip": pagination.skip},
                {"$limit": pagination.page_size},
            ]
            # An empty select here means full documents
            if select:
                page_stages.append({"$project": dict(select)})
            pipeline.append(
                {
                    "$facet": {
                        "metadata": [{"$count": "total"}],
                        "data": page_stages,
                    }
                }
            )
            pipeline.append(
                {
                    "$project": {
                        "data": 1,
                        "count": {
                            "$ifNull": [{"$arrayElemAt": ["$metadata.total", 0]}, 0]
                        },
                    }
                }
            )

        self.validator.validate_pipeline(pipeline)
        logger.debug(f"Compiled pipeline with {len(pipeline)} stage(s)")
        return pipeline
