"""
Unit tests for MongoDB helpers.
"""

import pytest
from bson import ObjectId

from catalog_engine.exceptions import InvalidIdError
from catalog_engine.utils import to_object_id, to_object_ids, utcnow


class TestToObjectId:
    def test_hex_string(self):
        oid = ObjectId()
        assert to_object_id(str(oid)) == oid

    def test_object_id_passthrough(self):
        oid = ObjectId()
        assert to_object_id(oid) is oid

    @pytest.mark.parametrize("value", ["", "abc", "zz" * 12, None, 12345])
    def test_invalid(self, value):
        with pytest.raises(InvalidIdError):
            to_object_id(value)

    def test_many_rejects_whole_list(self):
        with pytest.raises(InvalidIdError) as exc_info:
            to_object_ids([str(ObjectId()), "bad"])
        assert exc_info.value.value == "bad"


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None
