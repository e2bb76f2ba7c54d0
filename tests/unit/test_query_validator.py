"""
Unit tests for QueryValidator.
"""

import pytest

from catalog_engine.database.query_validator import QueryValidator
from catalog_engine.exceptions import QueryValidationError


class TestFieldNames:
    """Test field name validation."""

    @pytest.mark.parametrize("field", ["name", "visibility", "meta.rank", "_id"])
    def test_plain_names_pass(self, field):
        QueryValidator().validate_field_name(field, query_type="filter")

    @pytest.mark.parametrize("field", ["", "   ", None, 3])
    def test_empty_or_non_string(self, field):
        with pytest.raises(QueryValidationError):
            QueryValidator().validate_field_name(field, query_type="sort")

    def test_operator_as_field(self):
        with pytest.raises(QueryValidationError) as exc_info:
            QueryValidator().validate_field_name("$where", query_type="filter")
        assert exc_info.value.operator == "$where"
        assert exc_info.value.query_type == "filter"


class TestPipelineValidation:
    """Test pipeline validation."""

    def test_valid_pipeline(self):
        QueryValidator().validate_pipeline(
            [
                {"$match": {"name": {"$regex": "land", "$options": "i"}}},
                {"$sort": {"createdAt": -1}},
                {"$project": {"name": 1}},
            ]
        )

    @pytest.mark.parametrize("operator", ["$where", "$function", "$accumulator", "$eval"])
    def test_dangerous_operator(self, operator):
        pipeline = [{"$match": {"$and": [{operator: "return true"}]}}]
        with pytest.raises(QueryValidationError) as exc_info:
            QueryValidator().validate_pipeline(pipeline)
        assert exc_info.value.operator == operator

    def test_too_many_stages(self):
        validator = QueryValidator(max_pipeline_stages=2)
        with pytest.raises(QueryValidationError, match="maximum stages"):
            validator.validate_pipeline([{"$match": {}}] * 3)

    def test_non_dict_stage(self):
        with pytest.raises(QueryValidationError, match="must be a dictionary"):
            QueryValidator().validate_pipeline([["$match"]])

    def test_too_deep(self):
        node = {"leaf": 1}
        for _ in range(5):
            node = {"nested": node}
        with pytest.raises(QueryValidationError, match="nesting depth"):
            QueryValidator(max_depth=3).validate_pipeline([{"$match": node}])


class TestRegexValidation:
    """Test regex limits."""

    def test_too_long(self):
        with pytest.raises(QueryValidationError, match="maximum length"):
            QueryValidator(max_regex_length=5).validate_regex("abcdef")

    def test_too_complex(self):
        with pytest.raises(QueryValidationError, match="maximum complexity"):
            QueryValidator(max_regex_complexity=2).validate_regex("a+b*c?")

    def test_escaped_metacharacters_are_not_scored(self):
        QueryValidator(max_regex_complexity=2).validate_regex(r"a\+b\*c\?\|d\{2\}")

    def test_unescaped_metacharacters_still_scored(self):
        with pytest.raises(QueryValidationError, match="maximum complexity"):
            QueryValidator(max_regex_complexity=2).validate_regex(r"\\a+b*c?")

    def test_invalid(self):
        with pytest.raises(QueryValidationError, match="Invalid regex"):
            QueryValidator().validate_regex("(unclosed")

    def test_regex_inside_pipeline(self):
        pipeline = [{"$match": {"name": {"$regex": "x" * 20}}}]
        with pytest.raises(QueryValidationError):
            QueryValidator(max_regex_length=10).validate_pipeline(pipeline)


class TestSortValidation:
    def test_too_many_fields(self):
        sort = {f"field{i}": 1 for i in range(4)}
        with pytest.raises(QueryValidationError, match="maximum fields"):
            QueryValidator(max_sort_fields=3).validate_sort(sort)
