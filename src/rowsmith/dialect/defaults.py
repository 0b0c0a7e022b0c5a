"""Shared default behaviour any dialect can call.

These are plain functions over a driver (for phrase lookup) so vendor dialects
reuse them without inheriting from a base driver.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from rowsmith.data_types import (
    EMPTY_STRING,
    SYSDATE,
    BlobData,
    ClobData,
    DataType,
    convert_value,
    enum_value,
    is_empty,
    parse_datetime,
    split_decimal_size,
    string_to_boolean,
)
from rowsmith.dialect.phrases import SqlPhrase
from rowsmith.errors import InvalidArgumentError, NotSupportedError

logger = logging.getLogger(__name__)

GENERAL_SQL_KEYWORDS = frozenset(
    {
        "user",
        "group",
        "table",
        "column",
        "view",
        "index",
        "constraint",
        "select",
        "update",
        "insert",
        "alter",
        "delete",
        "order",
        "from",
        "where",
        "join",
        "union",
        "values",
        "default",
        "primary",
        "foreign",
        "references",
        "check",
        "key",
        "create",
        "drop",
    }
)

_SAFE_NAME_CHARS = frozenset("_$#")

# Default sizes when a text column declares none
DEFAULT_VARCHAR_SIZE = 100
DEFAULT_CHAR_SIZE = 1


def detect_quote_name(name: str, reserved_words: frozenset) -> bool:
    """Return True when ``name`` is reserved or contains characters unsafe in identifiers."""
    if name.lower() in reserved_words:
        return True
    return any(not (ch.isalnum() or ch in _SAFE_NAME_CHARS) for ch in name)


def format_datetime(value: date, pattern: str) -> str:
    """``strftime`` with ``%3f`` rendered as milliseconds."""
    if "%3f" in pattern:
        millis = getattr(value, "microsecond", 0) // 1000
        pattern = pattern.replace("%3f", f"{millis:03d}")
    return value.strftime(pattern)


def parse_with_pattern(text: str, pattern: str) -> datetime:
    return datetime.strptime(text, pattern.replace("%3f", "%f"))


def template_value(template: str, literal: str) -> Optional[str]:
    """Return the part of ``literal`` that fills ``{0}`` in ``template``."""
    regex = re.escape(template).replace(re.escape("{0}"), "(.*)", 1)
    match = re.fullmatch(regex, literal, flags=re.DOTALL)
    return match.group(1) if match else None


def quote_text(value: str, escape_backslashes: bool = False) -> str:
    """Single-quote ``value`` doubling embedded quotes (and backslashes if asked)."""
    if escape_backslashes:
        value = value.replace("\\", "\\\\")
    return "'" + value.replace("'", "''") + "'"


def unquote_text(literal: str, escape_backslashes: bool = False) -> str:
    text = literal.strip()
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        text = text[1:-1]
    text = text.replace("''", "'")
    if escape_backslashes:
        text = text.replace("\\\\", "\\")
    return text


def get_datetime_string(
    driver: Any,
    value: Any,
    template: SqlPhrase,
    pattern: SqlPhrase,
    current: SqlPhrase,
) -> str:
    if value is SYSDATE:
        return driver.get_sql_phrase(current)
    fmt = driver.get_sql_phrase(pattern)
    if isinstance(value, date):
        text = format_datetime(value, fmt)
    else:
        try:
            text = format_datetime(parse_datetime(value), fmt)
        except ValueError:
            logger.warning("Unable to parse date value %r, using it as is", value)
            text = str(value)
    return driver.get_sql_phrase(template).replace("{0}", text)


def get_number_string(value: Any, data_type: DataType) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    try:
        number = convert_value(value, data_type)
    except (ValueError, TypeError, ArithmeticError) as exc:
        raise InvalidArgumentError("value", value, f"{value!r} is not a valid number.") from exc
    if isinstance(number, Decimal):
        return format(number, "f")
    return repr(number) if isinstance(number, float) else str(number)


def get_value_string(driver: Any, value: Any, data_type: DataType) -> str:
    """Encode ``value`` as a SQL literal for ``data_type``."""
    if isinstance(value, Enum):
        converted = enum_value(value, data_type.is_numeric)
        logger.warning("Enum %r used as literal, converted to %r", value, converted)
        value = converted
    if value is EMPTY_STRING:
        if data_type in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB, DataType.UNIQUEID):
            return "''"
        return driver.get_sql_phrase(SqlPhrase.NULL)
    if is_empty(value):
        return driver.get_sql_phrase(SqlPhrase.NULL)
    if data_type == DataType.DATE:
        return get_datetime_string(
            driver, value, SqlPhrase.DATE_TEMPLATE, SqlPhrase.DATE_PATTERN, SqlPhrase.CURRENT_DATE
        )
    if data_type == DataType.DATETIME:
        # a bare date (at most ten characters) uses the date template
        if value is not SYSDATE and not isinstance(value, datetime) and len(str(value)) <= 10:
            return get_datetime_string(
                driver,
                value,
                SqlPhrase.DATE_TEMPLATE,
                SqlPhrase.DATE_PATTERN,
                SqlPhrase.CURRENT_DATETIME,
            )
        return get_datetime_string(
            driver,
            value,
            SqlPhrase.DATETIME_TEMPLATE,
            SqlPhrase.DATETIME_PATTERN,
            SqlPhrase.CURRENT_DATETIME,
        )
    if data_type == DataType.TIMESTAMP:
        return get_datetime_string(
            driver,
            value,
            SqlPhrase.TIMESTAMP_TEMPLATE,
            SqlPhrase.TIMESTAMP_PATTERN,
            SqlPhrase.CURRENT_TIMESTAMP,
        )
    if value is SYSDATE:
        return driver.get_sql_phrase(SqlPhrase.CURRENT_DATETIME)
    if data_type in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB, DataType.UNIQUEID):
        if isinstance(value, ClobData):
            value = value.read()
        return quote_text(str(value), driver.dialect.escape_backslashes)
    if data_type == DataType.BOOL:
        flag = value if isinstance(value, bool) else string_to_boolean(str(value))
        return driver.get_sql_phrase(SqlPhrase.BOOLEAN_TRUE if flag else SqlPhrase.BOOLEAN_FALSE)
    if data_type in (DataType.INTEGER, DataType.DECIMAL, DataType.FLOAT):
        return get_number_string(value, data_type)
    if data_type == DataType.BLOB:
        raise NotSupportedError("Literal encoding of BLOB values", driver.name)
    # AUTOINC and UNKNOWN allow raw expressions
    return str(value)


def decode_value_string(driver: Any, literal: str, data_type: DataType) -> Any:
    """Inverse of ``get_value_string`` for non-streamed types."""
    text = literal.strip()
    if text.lower() == driver.get_sql_phrase(SqlPhrase.NULL).lower():
        return None
    if data_type in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB):
        return unquote_text(text, driver.dialect.escape_backslashes)
    if data_type == DataType.UNIQUEID:
        return uuid.UUID(unquote_text(text))
    if data_type == DataType.BOOL:
        if text == driver.get_sql_phrase(SqlPhrase.BOOLEAN_TRUE):
            return True
        if text == driver.get_sql_phrase(SqlPhrase.BOOLEAN_FALSE):
            return False
        return string_to_boolean(unquote_text(text))
    if data_type in (DataType.INTEGER, DataType.DECIMAL, DataType.FLOAT):
        return convert_value(text, data_type)
    if data_type.is_date:
        return _decode_datetime(driver, text, data_type)
    if data_type == DataType.BLOB:
        raise NotSupportedError("Literal decoding of BLOB values", driver.name)
    return text


def _decode_datetime(driver: Any, text: str, data_type: DataType) -> Any:
    current = {
        DataType.DATE: SqlPhrase.CURRENT_DATE,
        DataType.DATETIME: SqlPhrase.CURRENT_DATETIME,
        DataType.TIMESTAMP: SqlPhrase.CURRENT_TIMESTAMP,
    }[data_type]
    if text == driver.get_sql_phrase(current):
        return SYSDATE
    candidates = {
        DataType.DATE: [(SqlPhrase.DATE_TEMPLATE, SqlPhrase.DATE_PATTERN)],
        DataType.DATETIME: [
            (SqlPhrase.DATETIME_TEMPLATE, SqlPhrase.DATETIME_PATTERN),
            (SqlPhrase.DATE_TEMPLATE, SqlPhrase.DATE_PATTERN),
        ],
        DataType.TIMESTAMP: [(SqlPhrase.TIMESTAMP_TEMPLATE, SqlPhrase.TIMESTAMP_PATTERN)],
    }[data_type]
    for template, pattern in candidates:
        inner = template_value(driver.get_sql_phrase(template), text)
        if inner is None:
            continue
        try:
            parsed = parse_with_pattern(inner, driver.get_sql_phrase(pattern))
        except ValueError:
            continue
        return parsed.date() if data_type == DataType.DATE else parsed
    raise InvalidArgumentError("literal", text, f"Cannot decode {text!r} as {data_type.value}.")


def prepare_param(value: Any) -> Any:
    """Normalise a parameter value before binding."""
    if isinstance(value, (BlobData, ClobData)):
        return value.read()
    if isinstance(value, Enum):
        return enum_value(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if value is SYSDATE:
        return datetime.now()
    if value is EMPTY_STRING:
        return ""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time())
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def get_result_value(row: Any, index: int, data_type: DataType) -> Any:
    """Read column ``index`` of ``row`` as a value of ``data_type``."""
    value = row[index]
    if value is None:
        return None
    if data_type in (DataType.DATETIME, DataType.TIMESTAMP):
        return value if isinstance(value, datetime) else parse_datetime(value)
    if data_type == DataType.CLOB:
        if hasattr(value, "read"):
            value = value.read()
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).decode("utf-8")
        return str(value)
    if data_type == DataType.BLOB:
        if hasattr(value, "read"):
            value = value.read()
        return bytes(value) if not isinstance(value, str) else value.encode("utf-8")
    if data_type == DataType.UNKNOWN:
        return value
    return convert_value(value, data_type)


def column_type(column: Any, type_names: Mapping[DataType, str]) -> Optional[str]:
    """Fill a dialect type template (``{size}``, ``{precision}``, ``{scale}``) for a column."""
    template = type_names.get(column.data_type)
    if template is None:
        return None
    size = abs(int(column.size or 0))
    if column.data_type == DataType.VARCHAR and size == 0:
        size = DEFAULT_VARCHAR_SIZE
    elif column.data_type == DataType.CHAR and size == 0:
        size = DEFAULT_CHAR_SIZE
    precision, scale = split_decimal_size(column.size or 0)
    if column.data_type == DataType.DECIMAL and precision == 0:
        precision, scale = 18, 2
    return template.format(size=size, precision=precision, scale=scale)


def cast_convert_phrase(type_names: Mapping[DataType, str]):
    """Build a convert-phrase function that renders ``CAST(? AS <type>)``."""

    def convert_phrase(dest: DataType, src: DataType, fmt: Optional[str]) -> Optional[str]:
        template = type_names.get(dest)
        if template is None:
            return None
        base = template.split("(", 1)[0]
        return f"CAST(? AS {base})"

    return convert_phrase
