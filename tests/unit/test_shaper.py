"""
Unit tests for shape_result.
"""

from catalog_engine.query.shaper import shape_result


class TestFlatShape:
    def test_list_and_length(self):
        raw = [{"name": "a"}, {"name": "b"}]
        assert shape_result(raw, paginated=False) == {
            "success": True,
            "message": "Success",
            "data": raw,
            "count": 2,
        }

    def test_empty(self):
        result = shape_result([], paginated=False)
        assert result["data"] == []
        assert result["count"] == 0


class TestPaginatedShape:
    def test_unwraps_facet_document(self):
        raw = [{"data": [{"name": "a"}], "count": 5}]
        assert shape_result(raw, paginated=True) == {
            "success": True,
            "message": "Success",
            "data": [{"name": "a"}],
            "count": 5,
        }

    def test_missing_first_document(self):
        result = shape_result([], paginated=True)
        assert result["data"] == []
        assert result["count"] == 0

    def test_missing_fields(self):
        result = shape_result([{}], paginated=True)
        assert result["data"] == []
        assert result["count"] == 0

    def test_count_never_undefined(self):
        result = shape_result([{"data": [], "count": None}], paginated=True)
        assert result["count"] == 0
