"""Tests for tools/call argument coercion."""

import pytest
from docmcp.server.coercion import (
    ArgumentError,
    coerce_arguments,
    coerce_raw_value,
    stringify_loose_value,
    INT32_MAX,
    INT32_MIN,
)
from docmcp.tools.catalog import get_tool

RECENT = get_tool("get_recent_documents")["inputSchema"]
FIND = get_tool("find_document_by_id")["inputSchema"]

N_ONLY = {
    "type": "object",
    "properties": {"n": {"type": "integer"}},
    "required": ["n"],
}


class TestRawValues:
    def test_string_kept(self):
        assert coerce_raw_value("k", "abc") == "abc"

    def test_integer_kept(self):
        assert coerce_raw_value("k", 7) == 7

    def test_integral_float(self):
        assert coerce_raw_value("k", 5.0) == 5
        assert isinstance(coerce_raw_value("k", 5.0), int)

    def test_fractional_float_rejected(self):
        with pytest.raises(ArgumentError, match="'k'"):
            coerce_raw_value("k", 2.5)

    def test_out_of_int32_range_rejected(self):
        with pytest.raises(ArgumentError, match="'k'"):
            coerce_raw_value("k", INT32_MAX + 1)

    def test_int32_bounds_accepted(self):
        assert coerce_raw_value("k", INT32_MAX) == INT32_MAX
        assert coerce_raw_value("k", INT32_MIN) == INT32_MIN

    def test_bool_is_stringified_not_numeric(self):
        assert coerce_raw_value("k", True) == "true"
        assert coerce_raw_value("k", False) == "false"

    def test_other_kinds_stringified(self):
        assert coerce_raw_value("k", None) == ""
        assert coerce_raw_value("k", {"a": 1}) == '{"a":1}'
        assert coerce_raw_value("k", [1, 2]) == "[1,2]"


class TestStringifyPolicy:
    def test_null(self):
        assert stringify_loose_value(None) == ""

    def test_booleans(self):
        assert stringify_loose_value(True) == "true"

    def test_nested(self):
        assert stringify_loose_value({"a": [1, {"b": None}]}) == '{"a":[1,{"b":null}]}'


class TestCoerceArguments:
    def test_numeric_string_to_int(self):
        assert coerce_arguments({"n": "5"}, N_ONLY) == {"n": 5}

    def test_signed_padded_string(self):
        assert coerce_arguments({"n": " -3 "}, N_ONLY) == {"n": -3}

    def test_non_numeric_string_fails_naming_key(self):
        with pytest.raises(ArgumentError) as info:
            coerce_arguments({"n": "abc"}, N_ONLY)
        assert "'n'" in str(info.value)
        assert "integer" in str(info.value)

    def test_decimal_string_fails(self):
        with pytest.raises(ArgumentError, match="'n'"):
            coerce_arguments({"n": "2.5"}, N_ONLY)

    def test_oversized_string_fails(self):
        with pytest.raises(ArgumentError, match="'n'"):
            coerce_arguments({"n": str(INT32_MAX + 1)}, N_ONLY)

    def test_bool_for_integer_fails(self):
        with pytest.raises(ArgumentError, match="'n'"):
            coerce_arguments({"n": True}, N_ONLY)

    def test_missing_required_fails_naming_key(self):
        with pytest.raises(ArgumentError) as info:
            coerce_arguments({"databaseId": "db", "containerId": "c"}, RECENT)
        assert str(info.value) == "Required parameter 'n' is missing"

    def test_all_or_nothing(self):
        with pytest.raises(ArgumentError):
            coerce_arguments({"databaseId": "db", "n": 3}, RECENT)

    def test_full_recent(self):
        args = coerce_arguments({"databaseId": "db", "containerId": "c", "n": 3}, RECENT)
        assert args == {"databaseId": "db", "containerId": "c", "n": 3}

    def test_number_for_string_param_rendered(self):
        args = coerce_arguments({"databaseId": "db", "containerId": "c", "id": 42}, FIND)
        assert args["id"] == "42"

    def test_undeclared_keys_dropped(self):
        args = coerce_arguments(
            {"databaseId": "db", "containerId": "c", "id": "x", "extra": 1}, FIND,
        )
        assert "extra" not in args

    @pytest.mark.parametrize("extra", [1.5, 2**40, float("nan")])
    def test_undeclared_values_never_inspected(self, extra):
        args = coerce_arguments(
            {"databaseId": "db", "containerId": "c", "id": "x", "extra": extra}, FIND,
        )
        assert args == {"databaseId": "db", "containerId": "c", "id": "x"}

    def test_optional_absent_omitted(self):
        schema = {"type": "object", "properties": {"q": {"type": "string"}}, "required": []}
        assert coerce_arguments({}, schema) == {}

    def test_none_arguments_treated_as_empty(self):
        schema = {"type": "object", "properties": {}}
        assert coerce_arguments(None, schema) == {}

    def test_non_object_arguments_rejected(self):
        with pytest.raises(ArgumentError):
            coerce_arguments(["n", 5], N_ONLY)

    def test_raw_mapping_not_mutated(self):
        raw = {"n": "5"}
        coerce_arguments(raw, N_ONLY)
        assert raw == {"n": "5"}
