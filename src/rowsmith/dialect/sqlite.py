"""SQLite, through the standard ``sqlite3`` module."""

from datetime import datetime
from decimal import Decimal
from typing import Any, List

from rowsmith.data_types import DataType
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import LimitOffsetPagination
from rowsmith.dialect.phrases import SqlPhrase, phrase_table

PHRASES = phrase_table(
    {
        SqlPhrase.CURRENT_DATE: "date('now')",
        SqlPhrase.CURRENT_DATETIME: "datetime('now')",
        SqlPhrase.CURRENT_TIMESTAMP: "datetime('now')",
        SqlPhrase.FUNC_SUBSTRING: "substr(?, {0})",
        SqlPhrase.FUNC_SUBSTRINGEX: "substr(?, {0}, {1})",
        SqlPhrase.FUNC_TRUNC: "cast(? as integer)",
        SqlPhrase.FUNC_CEILING: "ceil(?)",
        SqlPhrase.FUNC_MOD: "(? % {0})",
        SqlPhrase.FUNC_DAY: "cast(strftime('%d', ?) as integer)",
        SqlPhrase.FUNC_MONTH: "cast(strftime('%m', ?) as integer)",
        SqlPhrase.FUNC_YEAR: "cast(strftime('%Y', ?) as integer)",
    }
)

TYPE_NAMES = {
    DataType.INTEGER: "INTEGER",
    DataType.AUTOINC: "INTEGER",
    DataType.VARCHAR: "VARCHAR({size})",
    DataType.CHAR: "CHAR({size})",
    DataType.DATE: "DATE",
    DataType.DATETIME: "DATETIME",
    DataType.TIMESTAMP: "TIMESTAMP",
    DataType.BOOL: "BOOLEAN",
    DataType.FLOAT: "REAL",
    DataType.DECIMAL: "DECIMAL({precision},{scale})",
    DataType.CLOB: "TEXT",
    DataType.BLOB: "BLOB",
    DataType.UNIQUEID: "CHAR(36)",
}


def adapt_param(value: Any) -> Any:
    """sqlite3 has no native datetime or decimal storage."""
    if isinstance(value, datetime):
        return value.isoformat(" ", timespec="microseconds")
    if isinstance(value, Decimal):
        return str(value)
    return value


def no_database(driver: Any, database: Any) -> List[str]:
    return []


DIALECT = Dialect(
    name="sqlite",
    phrases=PHRASES,
    type_names=TYPE_NAMES,
    reserved_words=frozenset({"limit", "offset", "rowid"}),
    pagination=LimitOffsetPagination(unbounded_limit="-1"),
    paramstyle="qmark",
    # an INTEGER PRIMARY KEY column aliases the rowid
    identity_template="INTEGER NOT NULL",
    create_database=no_database,
    param_adapter=adapt_param,
    alter_column_phrase=None,
    alter_table_constraints=False,
    default_function_template="({0})",
)
