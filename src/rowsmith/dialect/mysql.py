"""MySQL and MariaDB."""

from typing import Any, List, Optional

from rowsmith.data_types import DataType
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import LimitOffsetPagination
from rowsmith.dialect.phrases import SqlPhrase, phrase_table

PHRASES = phrase_table(
    {
        SqlPhrase.QUOTES_OPEN: "`",
        SqlPhrase.QUOTES_CLOSE: "`",
        SqlPhrase.CONCAT_EXPR: "concat(?, {0})",
        SqlPhrase.CURRENT_DATE: "CURRENT_DATE()",
        SqlPhrase.CURRENT_DATETIME: "NOW()",
        SqlPhrase.CURRENT_TIMESTAMP: "NOW()",
        SqlPhrase.FUNC_STRINDEX: "instr(?, {0})",
        SqlPhrase.FUNC_STRINDEXFROM: "locate({0}, ?, {1})",
        SqlPhrase.FUNC_TRUNC: "truncate(?,{0})",
        SqlPhrase.FUNC_CEILING: "ceil(?)",
    }
)

TYPE_NAMES = {
    DataType.INTEGER: "INT",
    DataType.AUTOINC: "INT",
    DataType.VARCHAR: "VARCHAR({size})",
    DataType.CHAR: "CHAR({size})",
    DataType.DATE: "DATE",
    DataType.DATETIME: "DATETIME",
    DataType.TIMESTAMP: "TIMESTAMP",
    DataType.BOOL: "BIT",
    DataType.FLOAT: "DOUBLE",
    DataType.DECIMAL: "DECIMAL({precision},{scale})",
    DataType.CLOB: "LONGTEXT",
    DataType.BLOB: "BLOB",
    DataType.UNIQUEID: "CHAR(36)",
}

RESERVED_WORDS = frozenset({"limit", "offset", "key", "keys", "status", "range", "rank", "interval"})


def convert_phrase(dest: DataType, src: DataType, fmt: Optional[str]) -> Optional[str]:
    if dest == DataType.BOOL:
        return "CAST(? AS UNSIGNED)"
    if dest == DataType.INTEGER:
        return "CAST(? AS SIGNED)"
    if dest in (DataType.DECIMAL, DataType.FLOAT):
        return "CAST(? AS DECIMAL)"
    if dest == DataType.DATE:
        return "CAST(? AS DATE)"
    if dest in (DataType.DATETIME, DataType.TIMESTAMP):
        return "CAST(? AS DATETIME)"
    if dest in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB):
        if fmt:
            return f"CAST(? AS CHAR {fmt})"
        return "CAST(? AS CHAR)"
    if dest == DataType.BLOB:
        return "CAST(? AS BLOB)"
    return None


def create_database(driver: Any, database: Any) -> List[str]:
    name = database.schema or driver.settings.database_name
    if not name:
        return []
    quoted = driver.quote_name(name)
    return [f"CREATE DATABASE IF NOT EXISTS {quoted}", f"USE {quoted}"]


DIALECT = Dialect(
    name="mysql",
    phrases=PHRASES,
    type_names=TYPE_NAMES,
    reserved_words=RESERVED_WORDS,
    pagination=LimitOffsetPagination(unbounded_limit="18446744073709551615"),
    paramstyle="format",
    escape_backslashes=True,
    identity_template="INT NOT NULL AUTO_INCREMENT",
    convert_phrase=convert_phrase,
    create_database=create_database,
    alter_column_phrase="MODIFY",
    drop_relation_keyword="FOREIGN KEY",
)
