"""
Query validation for the catalog engine.

Compiled pipelines are checked here before they reach the store:

- field names may not be empty or start with "$" (operator injection)
- server-side JavaScript operators ($where, $function, ...) are blocked
- nesting depth and pipeline length are bounded
- regex patterns are bounded in length and complexity (ReDoS)
- sort specs are bounded in field count
"""

import logging
import re
from typing import Any

from ..constants import (
    DANGEROUS_OPERATORS,
    MAX_PIPELINE_STAGES,
    MAX_QUERY_DEPTH,
    MAX_REGEX_COMPLEXITY,
    MAX_REGEX_LENGTH,
    MAX_SORT_FIELDS,
)
from ..exceptions import QueryValidationError

logger = logging.getLogger(__name__)

_ESCAPED_CHAR = re.compile(r"\\.", re.DOTALL)


class QueryValidator:
    """
    Validates query fragments and compiled pipelines.

    Example:
        validator = QueryValidator()
        validator.validate_field_name("visibility", query_type="filter")
        validator.validate_pipeline(pipeline)
    """

    def __init__(
        self,
        max_depth: int = MAX_QUERY_DEPTH,
        max_pipeline_stages: int = MAX_PIPELINE_STAGES,
        max_regex_length: int = MAX_REGEX_LENGTH,
        max_regex_complexity: int = MAX_REGEX_COMPLEXITY,
        max_sort_fields: int = MAX_SORT_FIELDS,
    ):
        """
        Initialize the query validator.

        Args:
            max_depth: Maximum nesting depth for a stage
            max_pipeline_stages: Maximum stages in aggregation pipelines
            max_regex_length: Maximum length for regex patterns
            max_regex_complexity: Maximum complexity score for regex patterns
            max_sort_fields: Maximum number of fields in a sort spec
        """
        self.max_depth = max_depth
        self.max_pipeline_stages = max_pipeline_stages
        self.max_regex_length = max_regex_length
        self.max_regex_complexity = max_regex_complexity
        self.max_sort_fields = max_sort_fields
        self.dangerous_operators = set(DANGEROUS_OPERATORS)

    def validate_field_name(self, field: Any, query_type: str) -> None:
        """
        Reject field names that are not plain document paths.

        Raises:
            QueryValidationError: If the name is empty, not a string, or an operator
        """
        if not isinstance(field, str) or not field.strip():
            raise QueryValidationError(
                f"Field name must be a non-empty string, got {field!r}",
                query_type=query_type,
            )
        if field.startswith("$"):
            logger.warning(f"Security: operator used as field name in {query_type}: {field!r}")
            raise QueryValidationError(
                f"Field name '{field}' may not start with '$'",
                query_type=query_type,
                operator=field,
                path=field,
            )

    def validate_sort(self, sort: dict[str, int]) -> None:
        """
        Validate the field count of a sort spec.

        Raises:
            QueryValidationError: If the sort spec has too many fields
        """
        if len(sort) > self.max_sort_fields:
            raise QueryValidationError(
                f"Sort specification exceeds maximum fields: "
                f"{len(sort)} > {self.max_sort_fields}",
                query_type="sort",
                context={"fields": len(sort), "max_fields": self.max_sort_fields},
            )

    def validate_pipeline(self, pipeline: list[dict[str, Any]]) -> None:
        """
        Validate an aggregation pipeline.

        Raises:
            QueryValidationError: If the pipeline exceeds limits or contains
                dangerous operators
        """
        if len(pipeline) > self.max_pipeline_stages:
            raise QueryValidationError(
                f"Aggregation pipeline exceeds maximum stages: "
                f"{len(pipeline)} > {self.max_pipeline_stages}",
                query_type="pipeline",
                context={"stages": len(pipeline), "max_stages": self.max_pipeline_stages},
            )

        for idx, stage in enumerate(pipeline):
            if not isinstance(stage, dict):
                raise QueryValidationError(
                    f"Pipeline stage {idx} must be a dictionary, got {type(stage).__name__}",
                    query_type="pipeline",
                    path=f"$[{idx}]",
                )
            self._check_stage(stage, f"$[{idx}]", depth=0)

    def validate_regex(self, pattern: str, path: str = "") -> None:
        """
        Validate a regex pattern to prevent ReDoS attacks.

        Raises:
            QueryValidationError: If the regex pattern is too complex, too long
                or does not compile
        """
        if len(pattern) > self.max_regex_length:
            raise QueryValidationError(
                f"Regex pattern exceeds maximum length: "
                f"{len(pattern)} > {self.max_regex_length}",
                query_type="regex",
                path=path,
                context={"length": len(pattern), "max_length": self.max_regex_length},
            )

        complexity = self._calculate_regex_complexity(pattern)
        if complexity > self.max_regex_complexity:
            raise QueryValidationError(
                f"Regex pattern exceeds maximum complexity: "
                f"{complexity} > {self.max_regex_complexity}",
                query_type="regex",
                path=path,
                context={"complexity": complexity, "max_complexity": self.max_regex_complexity},
            )

        try:
            re.compile(pattern)
        except re.error as e:
            raise QueryValidationError(
                f"Invalid regex pattern: {e}", query_type="regex", path=path
            ) from e

    def _check_stage(self, node: dict[str, Any], path: str, depth: int) -> None:
        if depth > self.max_depth:
            raise QueryValidationError(
                f"Query exceeds maximum nesting depth: {depth} > {self.max_depth}",
                query_type="pipeline",
                path=path,
                context={"depth": depth, "max_depth": self.max_depth},
            )

        for key, value in node.items():
            current_path = f"{path}.{key}"

            if key in self.dangerous_operators:
                logger.warning(
                    f"Security: Dangerous operator '{key}' detected at path '{current_path}'"
                )
                raise QueryValidationError(
                    f"Dangerous operator '{key}' is not allowed for security reasons. "
                    f"Found at path: {current_path}",
                    query_type="pipeline",
                    operator=key,
                    path=current_path,
                )

            if key == "$regex" and isinstance(value, str):
                self.validate_regex(value, current_path)
            elif isinstance(value, dict):
                self._check_stage(value, current_path, depth + 1)
            elif isinstance(value, list):
                for idx, item in enumerate(value):
                    if isinstance(item, dict):
                        self._check_stage(item, f"{current_path}[{idx}]", depth + 1)

    def _calculate_regex_complexity(self, pattern: str) -> int:
        """
        Heuristic complexity score: quantifiers, alternations, nested groups
        and lookarounds each add to it. Escaped characters are literals and
        do not count.
        """
        pattern = _ESCAPED_CHAR.sub("", pattern)
        complexity = 0
        complexity += len(re.findall(r"[*+?{]", pattern))
        complexity += len(re.findall(r"\|", pattern))
        complexity += len(re.findall(r"\([^)]*\([^)]*\)", pattern))
        complexity += len(re.findall(r"\(\?[=!<>]", pattern))
        return complexity
