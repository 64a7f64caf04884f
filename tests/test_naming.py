"""Tests for the naming module."""

import pytest

from routegen.errors import InvalidIdentifier
from routegen.naming import (
    check_identifier,
    fallback_operation_id,
    join_class_name,
    to_class_name,
    to_identifier,
)


class TestFallbackOperationId:
    """Test handler names derived from HTTP method + path."""

    def test_plan(self):
        assert fallback_operation_id("get", "/api/v1/plan") == "plan"

    def test_get_by_id(self):
        assert fallback_operation_id("get", "/items/{id}") == "get_items"

    def test_create(self):
        assert fallback_operation_id("POST", "/items") == "create_items"

    def test_update(self):
        assert fallback_operation_id("put", "/items/{id}") == "update_items"

    def test_delete(self):
        assert fallback_operation_id("delete", "/items/{id}") == "delete_items"

    def test_root(self):
        assert fallback_operation_id("get", "/") == "root"

    def test_camel_segment(self):
        assert fallback_operation_id("get", "/api/stopTimes") == "stop_times"

    def test_dashed_segment(self):
        assert fallback_operation_id("get", "/one-to-many") == "one_to_many"

    def test_leading_digit(self):
        assert fallback_operation_id("get", "/api/2fa") == "op_2fa"

    def test_keyword_segment(self):
        assert fallback_operation_id("get", "/import") == "import_"


class TestCheckIdentifier:
    def test_valid(self):
        assert check_identifier("getItem", "operationId") == "getItem"

    @pytest.mark.parametrize("name", ["get-item", "1st", "class", "self", "", "__init__", 42])
    def test_invalid(self, name):
        with pytest.raises(InvalidIdentifier):
            check_identifier(name, "operationId")


class TestToIdentifier:
    def test_unchanged(self):
        assert to_identifier("startTime") == "startTime"

    def test_keyword(self):
        assert to_identifier("from") == "from_"

    def test_header_name(self):
        assert to_identifier("X-Request-Id") == "x_request_id"

    def test_leading_digit(self):
        assert to_identifier("3d") == "_3d"

    def test_nothing_left(self):
        assert to_identifier("$$") == "value"


class TestClassNames:
    def test_valid_passes_through(self):
        assert to_class_name("FeedScopedId") == "FeedScopedId"

    def test_dotted(self):
        assert to_class_name("feed.scoped-id") == "FeedScopedId"

    def test_join(self):
        assert join_class_name("Leg", "legGeometry") == "LegLegGeometry"

    def test_join_with_spaces(self):
        assert join_class_name("plan Response") == "PlanResponse"
