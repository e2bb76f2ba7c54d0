"""
Filtered/sorted/paginated read engine.

Usage:
    from catalog_engine.query import QueryCompiler, QueryRequest, shape_result

    request = QueryRequest.parse(payload)
    pipeline = QueryCompiler().compile(
        request.filter, search_term, request.sort, request.select, request.pagination
    )
    envelope = shape_result(await collection.aggregate(pipeline), request.pagination is not None)
"""

from .compiler import QueryCompiler
from .constraints import Constraint, Equals, Range, TextMatch, build_match, parse_filter
from .shaper import shape_result
from .specs import PaginationSpec, QueryRequest

__all__ = [
    "QueryCompiler",
    "QueryRequest",
    "PaginationSpec",
    "shape_result",
    # Constraints
    "Constraint",
    "Equals",
    "Range",
    "TextMatch",
    "parse_filter",
    "build_match",
]
