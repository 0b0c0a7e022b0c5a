"""Column data types, data modes and conversion of raw values into typed values."""

from __future__ import annotations

import io
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, BinaryIO, Optional, TextIO, Tuple, Union


class DataType(str, Enum):
    """Logical column data types."""

    UNKNOWN = "UNKNOWN"
    INTEGER = "INTEGER"
    AUTOINC = "AUTOINC"
    VARCHAR = "VARCHAR"
    TEXT = "VARCHAR"
    CHAR = "CHAR"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"
    DECIMAL = "DECIMAL"
    FLOAT = "FLOAT"
    DOUBLE = "FLOAT"
    BOOL = "BOOL"
    CLOB = "CLOB"
    BLOB = "BLOB"
    UNIQUEID = "UNIQUEID"

    @property
    def is_numeric(self) -> bool:
        return self in (DataType.INTEGER, DataType.AUTOINC, DataType.DECIMAL, DataType.FLOAT)

    @property
    def is_text(self) -> bool:
        return self in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB)

    @property
    def is_date(self) -> bool:
        return self in (DataType.DATE, DataType.DATETIME, DataType.TIMESTAMP)


class DataMode(str, Enum):
    """How a column's value is supplied."""

    NULLABLE = "NULLABLE"
    NOT_NULL = "NOT_NULL"
    READ_ONLY = "READ_ONLY"
    AUTO_GENERATED = "AUTO_GENERATED"


class _Sentinel:
    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __reduce__(self) -> str:
        return self._name


# Renders as the dialect's current date/time function instead of a literal.
SYSDATE = _Sentinel("SYSDATE")
# Renders as '' where an empty Python string would render as NULL.
EMPTY_STRING = _Sentinel("EMPTY_STRING")
# Returned by single-value queries that produced no row.
NO_VALUE = _Sentinel("NO_VALUE")


@dataclass
class BlobData:
    """Binary large object bound as a statement parameter."""

    source: Union[bytes, bytearray, memoryview, BinaryIO]
    length: Optional[int] = None

    def read(self) -> bytes:
        """Return the object's bytes, reading at most ``length`` from streams."""
        if isinstance(self.source, (bytes, bytearray, memoryview)):
            data = bytes(self.source)
            return data if self.length is None else data[: self.length]
        if self.length is None:
            return self.source.read()
        return self.source.read(self.length)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BlobData":
        return cls(io.BytesIO(data), len(data))


@dataclass
class ClobData:
    """Character large object bound as a statement parameter."""

    source: Union[str, TextIO]
    length: Optional[int] = None

    def read(self) -> str:
        """Return the object's text, reading at most ``length`` from streams."""
        if isinstance(self.source, str):
            return self.source if self.length is None else self.source[: self.length]
        if self.length is None:
            return self.source.read()
        return self.source.read(self.length)


def is_empty(value: Any) -> bool:
    """Return True for None and empty strings."""
    return value is None or (isinstance(value, str) and len(value) == 0)


def string_to_boolean(value: str) -> bool:
    """Interpret "1", "true" and "y" (case-insensitive) as True."""
    text = str(value).strip()
    return text == "1" or text.lower() in ("true", "y")


def enum_value(value: Enum, numeric: bool = False) -> Any:
    """Return the value stored for an enum member."""
    if numeric:
        return value.value if isinstance(value.value, (int, float, Decimal)) else value.name
    return value.value if isinstance(value.value, str) else value.name


def split_decimal_size(size: float) -> Tuple[int, int]:
    """Split a DECIMAL size such as ``10.2`` into (precision, scale)."""
    text = str(Decimal(str(size)))
    if "." not in text:
        return int(text), 0
    precision, scale = text.split(".", 1)
    scale = scale.rstrip("0")
    return int(precision), int(scale) if scale else 0


def parse_datetime(value: Any) -> datetime:
    """Parse a datetime from a date, datetime or ISO formatted string."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for pattern in ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, pattern)
        except ValueError:
            continue
    raise ValueError(f"Invalid date/time value: {value!r}")


def infer_data_type(value: Any) -> DataType:
    """Guess the DataType of a plain Python value."""
    if isinstance(value, bool):
        return DataType.BOOL
    if isinstance(value, int):
        return DataType.INTEGER
    if isinstance(value, Decimal):
        return DataType.DECIMAL
    if isinstance(value, float):
        return DataType.FLOAT
    if isinstance(value, datetime):
        return DataType.DATETIME
    if isinstance(value, date):
        return DataType.DATE
    if isinstance(value, (str, ClobData)):
        return DataType.VARCHAR
    if isinstance(value, (bytes, bytearray, memoryview, BlobData)):
        return DataType.BLOB
    if isinstance(value, uuid.UUID):
        return DataType.UNIQUEID
    return DataType.UNKNOWN


def convert_value(value: Any, data_type: DataType) -> Any:
    """Convert a raw value into the Python type for ``data_type``.

    None passes through unchanged. Conversion errors raise ValueError.
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        value = enum_value(value, data_type.is_numeric)
    if data_type in (DataType.INTEGER, DataType.AUTOINC):
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, (float, Decimal)):
            return int(value)
        return int(str(value).strip())
    if data_type == DataType.DECIMAL:
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid decimal value: {value!r}") from exc
    if data_type == DataType.FLOAT:
        return float(value)
    if data_type == DataType.BOOL:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return value != 0
        return string_to_boolean(str(value))
    if data_type == DataType.DATE:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return parse_datetime(value).date()
    if data_type in (DataType.DATETIME, DataType.TIMESTAMP):
        return parse_datetime(value)
    if data_type in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB):
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).decode("utf-8")
        return str(value)
    if data_type == DataType.BLOB:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)
    if data_type == DataType.UNIQUEID:
        if isinstance(value, uuid.UUID):
            return value
        if isinstance(value, (bytes, bytearray)) and len(value) == 16:
            return uuid.UUID(bytes=bytes(value))
        return uuid.UUID(str(value).strip())
    return value
