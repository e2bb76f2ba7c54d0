"""
Typed filter constraints.

Loose filter mappings coming from callers are parsed into a closed set of
constraint types before anything is compiled into a ``$match`` stage:

    {"visibility": True}                -> Equals("visibility", True)
    {"price": {"$gte": 10, "$lt": 50}}  -> Range("price", gte=10, lt=50)
    {"name": {"$contains": "land"}}     -> TextMatch("name", "land")

Any other shape is rejected, so arbitrary operators never reach the store.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from bson import ObjectId

from ..constants import FIELD_ID, RANGE_OPERATORS, TEXT_MATCH_OPERATOR
from ..database.query_validator import QueryValidator
from ..exceptions import QueryValidationError

SCALAR_TYPES = (str, int, float, bool, ObjectId, datetime)
RANGE_VALUE_TYPES = (int, float, str, datetime, ObjectId)


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def to_match(self) -> dict[str, Any]:
        return {self.field: self.value}


@dataclass(frozen=True)
class Range:
    field: str
    gt: Any = None
    gte: Any = None
    lt: Any = None
    lte: Any = None

    def to_match(self) -> dict[str, Any]:
        bounds = {
            "$gt": self.gt,
            "$gte": self.gte,
            "$lt": self.lt,
            "$lte": self.lte,
        }
        return {self.field: {op: value for op, value in bounds.items() if value is not None}}


@dataclass(frozen=True)
class TextMatch:
    """Case-insensitive substring match; ``text`` is matched literally."""

    field: str
    text: str

    def to_match(self) -> dict[str, Any]:
        return {self.field: {"$regex": re.escape(self.text), "$options": "i"}}


Constraint = Union[Equals, Range, TextMatch]


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, SCALAR_TYPES)


def _parse_operator_mapping(field: str, spec: Mapping[str, Any]) -> Constraint:
    keys = set(spec)

    if keys == {TEXT_MATCH_OPERATOR}:
        text = spec[TEXT_MATCH_OPERATOR]
        if not isinstance(text, str):
            raise QueryValidationError(
                f"'{TEXT_MATCH_OPERATOR}' on '{field}' expects a string",
                query_type="filter",
                operator=TEXT_MATCH_OPERATOR,
                path=field,
            )
        return TextMatch(field, text)

    if keys and keys <= set(RANGE_OPERATORS):
        for op, value in spec.items():
            if isinstance(value, bool) or not isinstance(value, RANGE_VALUE_TYPES):
                raise QueryValidationError(
                    f"Range bound '{op}' on '{field}' must be a number, string or date",
                    query_type="filter",
                    operator=op,
                    path=field,
                )
        return Range(
            field,
            gt=spec.get("$gt"),
            gte=spec.get("$gte"),
            lt=spec.get("$lt"),
            lte=spec.get("$lte"),
        )

    unsupported = sorted(keys - set(RANGE_OPERATORS) - {TEXT_MATCH_OPERATOR}) or sorted(keys)
    raise QueryValidationError(
        f"Unsupported filter on '{field}': {unsupported}",
        query_type="filter",
        operator=unsupported[0] if unsupported else None,
        path=field,
    )


def parse_constraint(field: str, raw: Any, validator: QueryValidator) -> Constraint:
    """
    Parse one ``field: raw`` filter entry.

    Raises:
        QueryValidationError: If the field name or value shape is not supported
    """
    validator.validate_field_name(field, query_type="filter")

    if isinstance(raw, Mapping):
        return _parse_operator_mapping(field, raw)

    if not _is_scalar(raw):
        raise QueryValidationError(
            f"Filter value for '{field}' must be a scalar, got {type(raw).__name__}",
            query_type="filter",
            path=field,
        )

    if field == FIELD_ID and isinstance(raw, str) and ObjectId.is_valid(raw):
        raw = ObjectId(raw)
    return Equals(field, raw)


def parse_filter(
    raw: Mapping[str, Any] | None, validator: QueryValidator | None = None
) -> list[Constraint]:
    """
    Parse a loose filter mapping into typed constraints (insertion order kept).
    """
    if not raw:
        return []
    if not isinstance(raw, Mapping):
        raise QueryValidationError(
            f"Filter must be a mapping, got {type(raw).__name__}", query_type="filter"
        )
    validator = validator or QueryValidator()
    return [parse_constraint(field, value, validator) for field, value in raw.items()]


def build_match(constraints: list[Constraint]) -> dict[str, Any]:
    """
    Merge constraints into a ``$match`` document. A later constraint on the
    same field replaces an earlier one.
    """
    match: dict[str, Any] = {}
    for constraint in constraints:
        match.update(constraint.to_match())
    return match
