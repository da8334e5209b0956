"""Tests for service records, locators, and timestamp parsing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from retryhelper import JsonPointerLocator, JsonServiceRecord, JsonServiceValue, TimestampParser, TopLevelLocator
from retryhelper.record import MISSING


class TestTopLevelLocator:
    """Field lookup by name."""

    def test_present(self) -> None:
        assert TopLevelLocator("id").seek({"id": 7}) == 7

    def test_absent(self) -> None:
        assert TopLevelLocator("id").seek({"name": "x"}) is MISSING

    def test_not_an_object(self) -> None:
        assert TopLevelLocator("id").seek([1, 2]) is MISSING


class TestJsonPointerLocator:
    """RFC 6901 lookup."""

    _DOC = {"user": {"addresses": [{"city": "Oslo"}, {"city": "Bergen"}]}, "a/b": 1, "m~n": 2, "": 3}

    @pytest.mark.parametrize(
        ("pointer", "expected"),
        [
            ("/user/addresses/1/city", "Bergen"),
            ("/a~1b", 1),
            ("/m~0n", 2),
            ("/", 3),
        ],
    )
    def test_found(self, pointer: str, expected: object) -> None:
        assert JsonPointerLocator(pointer).seek(self._DOC) == expected

    def test_empty_pointer_is_whole_document(self) -> None:
        assert JsonPointerLocator("").seek(self._DOC) is self._DOC

    @pytest.mark.parametrize("pointer", ["/missing", "/user/addresses/5", "/user/addresses/01", "/user/addresses/x"])
    def test_missing(self, pointer: str) -> None:
        assert JsonPointerLocator(pointer).seek(self._DOC) is MISSING

    def test_through_scalar(self) -> None:
        assert JsonPointerLocator("/a~1b/c").seek(self._DOC) is MISSING

    def test_invalid_pointer(self) -> None:
        with pytest.raises(ValueError, match="must be empty or start with"):
            JsonPointerLocator("user")


class TestJsonServiceValue:
    """Conversions of JSON nodes."""

    def test_null(self) -> None:
        assert JsonServiceValue(None).is_null()
        assert not JsonServiceValue(0).is_null()

    def test_as_float(self) -> None:
        assert JsonServiceValue(3).as_float() == 3.0
        assert JsonServiceValue("2.5").as_float() == 2.5

    def test_as_int(self) -> None:
        assert JsonServiceValue(42).as_int() == 42
        assert JsonServiceValue("17").as_int() == 17
        assert JsonServiceValue(9.9).as_int() == 9

    @pytest.mark.parametrize("node", [True, [1], {"a": 1}])
    def test_numeric_rejects_non_numbers(self, node: object) -> None:
        with pytest.raises(TypeError):
            JsonServiceValue(node).as_float()
        with pytest.raises(TypeError):
            JsonServiceValue(node).as_int()

    def test_as_bool(self) -> None:
        assert JsonServiceValue(True).as_bool() is True
        assert JsonServiceValue("FALSE").as_bool() is False
        with pytest.raises(TypeError):
            JsonServiceValue(1).as_bool()

    def test_as_str(self) -> None:
        assert JsonServiceValue("plain").as_str() == "plain"
        assert JsonServiceValue({"a": [1, 2]}).as_str() == '{"a":[1,2]}'
        assert JsonServiceValue(5).as_str() == "5"

    def test_as_json(self) -> None:
        node = {"nested": [None, True]}
        assert JsonServiceValue(node).as_json() is node


class TestJsonServiceRecord:
    """Record lookup."""

    def test_value_found(self) -> None:
        record = JsonServiceRecord({"price": 1.5})
        value = record.value(TopLevelLocator("price"))
        assert value is not None
        assert value.as_float() == 1.5

    def test_value_missing_is_none(self) -> None:
        assert JsonServiceRecord({}).value(TopLevelLocator("price")) is None

    def test_explicit_null_is_value(self) -> None:
        value = JsonServiceRecord({"price": None}).value(TopLevelLocator("price"))
        assert value is not None
        assert value.is_null()

    def test_from_text(self) -> None:
        record = JsonServiceRecord.from_text(b'{"id": 1}')
        assert record.document == {"id": 1}


class TestTimestampParser:
    """String and epoch parsing."""

    def test_iso_with_offset(self) -> None:
        parsed = TimestampParser().parse("2024-05-01T12:00:00+02:00")
        assert parsed == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    def test_iso_zulu(self) -> None:
        assert TimestampParser().parse("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def test_naive_gets_default_zone(self) -> None:
        parsed = TimestampParser(default_timezone="Asia/Tokyo").parse("2024-05-01T09:00:00")
        assert parsed.utcoffset() == timedelta(hours=9)
        assert parsed.astimezone(UTC) == datetime(2024, 5, 1, 0, 0, tzinfo=UTC)

    def test_format(self) -> None:
        parser = TimestampParser("%Y/%m/%d %H:%M %z")
        parsed = parser.parse("2024/05/01 12:30 -0100")
        assert parsed.tzinfo == timezone(timedelta(hours=-1))
        assert parser.format == "%Y/%m/%d %H:%M %z"

    def test_epoch_seconds(self) -> None:
        assert TimestampParser().parse(0) == datetime(1970, 1, 1, tzinfo=UTC)
        assert TimestampParser().parse(1.5) == datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)

    def test_bad_string(self) -> None:
        with pytest.raises(ValueError):
            TimestampParser("%Y-%m-%d").parse("yesterday")

    @pytest.mark.parametrize("value", [True, None, [1]])
    def test_bad_type(self, value: object) -> None:
        with pytest.raises(TypeError):
            TimestampParser().parse(value)
