"""Tests for cell value coercion."""

import math

import pytest

from gsheets_gateway.coercion import (
    INVALID_INPUT_KIND,
    CoercionResult,
    coerce_row,
    coerce_value,
    raw_json,
    shortest_float32,
    to_float32,
)


class TestCoerceValue:
    def test_none_becomes_null_placeholder(self) -> None:
        result = coerce_value(None)
        assert result.ok is True
        assert result.value == "NULL"

    def test_json_null_becomes_none(self) -> None:
        result = coerce_value("null")
        assert result.ok is True
        assert result.value is None

    def test_string_is_unwrapped(self) -> None:
        assert coerce_value('"TestString"').value == "TestString"

    def test_string_that_looks_like_an_error_is_still_a_value(self) -> None:
        result = coerce_value('"Error: not really"')
        assert result.ok is True
        assert result.value == "Error: not really"

    def test_booleans(self) -> None:
        assert coerce_value("true").value is True
        assert coerce_value("false").value is False

    def test_integer_becomes_float(self) -> None:
        value = coerce_value("1234").value
        assert isinstance(value, float)
        assert value == 1234.0

    def test_number_is_narrowed_to_single_precision(self) -> None:
        value = coerce_value("1.1").value
        assert value == to_float32(1.1)
        assert value != 1.1

    def test_large_integer_loses_precision(self) -> None:
        assert coerce_value("16777217").value == 16777216.0

    def test_number_out_of_float32_range_is_infinite(self) -> None:
        assert coerce_value("1e39").value == math.inf
        assert coerce_value("-1e39").value == -math.inf

    def test_object_is_kept_as_raw_text(self) -> None:
        assert coerce_value('{"key":"value"}').value == '{"key":"value"}'

    def test_array_is_kept_as_raw_text(self) -> None:
        assert coerce_value("[1,2,3]").value == "[1,2,3]"

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert coerce_value('  {"a": 1}\n').value == '{"a": 1}'

    def test_bytes_input(self) -> None:
        assert coerce_value(b'"bytes"').value == "bytes"

    def test_invalid_json_is_an_error_result(self) -> None:
        result = coerce_value("not json")
        assert result.ok is False
        assert result.value is None
        assert result.error is not None
        assert result.error.kind == INVALID_INPUT_KIND

    def test_nan_literal_is_rejected(self) -> None:
        assert coerce_value("NaN").ok is False

    def test_non_text_input_is_an_error_result(self) -> None:
        class Opaque:
            pass

        result = coerce_value(Opaque())  # type: ignore[arg-type]
        assert result.ok is False
        assert "Opaque" in result.error.message

    def test_deterministic(self) -> None:
        assert coerce_value('{"x": [1, 2]}') == coerce_value('{"x": [1, 2]}')


class TestCoercionResult:
    def test_frozen(self) -> None:
        result = CoercionResult.success(1.0)
        with pytest.raises(Exception):
            result.value = 2.0  # type: ignore[misc]

    def test_failure_carries_kind(self) -> None:
        result = CoercionResult.failure("boom")
        assert result.ok is False
        assert result.error.kind == INVALID_INPUT_KIND
        assert result.error.message == "boom"


class TestCoerceRow:
    def test_mixed_row(self) -> None:
        row, errors = coerce_row(["a", 2, True, None, {"k": "v"}, [1, 2]])
        assert errors == []
        assert row == ["a", 2.0, True, None, '{"k":"v"}', "[1,2]"]

    def test_row_numbers_use_shortest_single_precision_form(self) -> None:
        row, errors = coerce_row([0.1, 19.99, 16777217, 1e39])
        assert errors == []
        assert row == [0.1, 19.99, 16777216.0, math.inf]

    def test_unserializable_cell_is_reported(self) -> None:
        row, errors = coerce_row(["ok", float("nan")])
        assert row == ["ok"]
        assert len(errors) == 1
        assert errors[0].startswith("[1]")

    def test_raw_json_is_compact(self) -> None:
        assert raw_json({"key": "value"}) == '{"key":"value"}'
        assert raw_json("é") == '"é"'


class TestShortestFloat32:
    @pytest.mark.parametrize("number", [0.1, 19.99, 1.1, 3.14159, 1234.0, -0.5])
    def test_short_literals_survive(self, number) -> None:
        assert shortest_float32(to_float32(number)) == number

    def test_value_still_narrows_to_same_single(self) -> None:
        single = to_float32(0.123456789)
        assert to_float32(shortest_float32(single)) == single

    def test_infinity_passes_through(self) -> None:
        assert shortest_float32(-math.inf) == -math.inf
