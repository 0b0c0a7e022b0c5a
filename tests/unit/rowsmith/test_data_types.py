"""Tests for data type conversion helpers."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

import pytest

from rowsmith.data_types import (
    BlobData,
    ClobData,
    DataType,
    convert_value,
    enum_value,
    infer_data_type,
    is_empty,
    parse_datetime,
    split_decimal_size,
    string_to_boolean,
)


class Color(Enum):
    RED = "r"
    BLUE = 2


def test_type_aliases_share_members():
    """TEXT and DOUBLE are aliases, not separate types."""
    assert DataType.TEXT is DataType.VARCHAR
    assert DataType.DOUBLE is DataType.FLOAT


def test_type_groups():
    assert DataType.AUTOINC.is_numeric
    assert DataType.CLOB.is_text
    assert DataType.TIMESTAMP.is_date
    assert not DataType.BOOL.is_numeric


@pytest.mark.parametrize("value", [None, ""])
def test_is_empty(value):
    assert is_empty(value)


def test_is_empty_rejects_whitespace_and_zero():
    assert not is_empty(" ")
    assert not is_empty(0)


@pytest.mark.parametrize("text,expected", [("1", True), ("TRUE", True), ("y", True), ("0", False), ("no", False)])
def test_string_to_boolean(text, expected):
    assert string_to_boolean(text) is expected


def test_split_decimal_size():
    """The fractional digits of a size give the scale."""
    assert split_decimal_size(10.2) == (10, 2)
    assert split_decimal_size(12) == (12, 0)
    assert split_decimal_size(0) == (0, 0)


def test_enum_value_prefers_string_values():
    assert enum_value(Color.RED) == "r"
    assert enum_value(Color.BLUE) == "BLUE"
    assert enum_value(Color.BLUE, numeric=True) == 2


def test_parse_datetime_formats():
    assert parse_datetime("2024-03-01 10:15:30") == datetime(2024, 3, 1, 10, 15, 30)
    assert parse_datetime("01-03-2024") == datetime(2024, 3, 1)
    assert parse_datetime(date(2024, 3, 1)) == datetime(2024, 3, 1)
    with pytest.raises(ValueError):
        parse_datetime("not a date")


def test_infer_data_type():
    assert infer_data_type(True) is DataType.BOOL
    assert infer_data_type(3) is DataType.INTEGER
    assert infer_data_type(Decimal("1.5")) is DataType.DECIMAL
    assert infer_data_type(datetime(2024, 1, 1)) is DataType.DATETIME
    assert infer_data_type(date(2024, 1, 1)) is DataType.DATE
    assert infer_data_type(b"x") is DataType.BLOB
    assert infer_data_type(object()) is DataType.UNKNOWN


def test_convert_value_numbers_and_booleans():
    assert convert_value(" 42 ", DataType.INTEGER) == 42
    assert convert_value(True, DataType.INTEGER) == 1
    assert convert_value("10.50", DataType.DECIMAL) == Decimal("10.50")
    assert convert_value(1, DataType.BOOL) is True
    assert convert_value("false", DataType.BOOL) is False
    assert convert_value(None, DataType.INTEGER) is None


def test_convert_value_rejects_bad_decimal():
    with pytest.raises(ValueError):
        convert_value("abc", DataType.DECIMAL)


def test_convert_value_dates_uuid_and_bytes():
    assert convert_value("2024-02-29", DataType.DATE) == date(2024, 2, 29)
    assert convert_value(datetime(2024, 2, 29, 8), DataType.DATE) == date(2024, 2, 29)
    ident = uuid.uuid4()
    assert convert_value(str(ident), DataType.UNIQUEID) == ident
    assert convert_value(ident.bytes, DataType.UNIQUEID) == ident
    assert convert_value("abc", DataType.BLOB) == b"abc"
    assert convert_value(b"abc", DataType.VARCHAR) == "abc"


def test_large_objects_respect_length():
    assert BlobData(b"abcdef", 3).read() == b"abc"
    assert BlobData.from_bytes(b"xyz").read() == b"xyz"
    assert ClobData("hello world", 5).read() == "hello"
