"""Microsoft SQL Server."""

from typing import Any, List, Optional

from rowsmith.data_types import DataType
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import TopPagination
from rowsmith.dialect.phrases import SqlPhrase, phrase_table

PHRASES = phrase_table(
    {
        SqlPhrase.QUOTES_OPEN: "[",
        SqlPhrase.QUOTES_CLOSE: "]",
        SqlPhrase.CONCAT_EXPR: " + ",
        SqlPhrase.CURRENT_DATE: "convert(char, getdate(), 111)",
        SqlPhrase.CURRENT_DATETIME: "getdate()",
        SqlPhrase.CURRENT_TIMESTAMP: "getdate()",
        SqlPhrase.DATETIME_PATTERN: "%Y-%m-%d %H:%M:%S.%3f",
        SqlPhrase.TIMESTAMP_PATTERN: "%Y-%m-%d %H:%M:%S.%3f",
        SqlPhrase.FUNC_SUBSTRING: "substring(?, {0}, 4000)",
        SqlPhrase.FUNC_STRINDEX: "charindex({0}, ?)",
        SqlPhrase.FUNC_STRINDEXFROM: "charindex({0}, ?, {1})",
        SqlPhrase.FUNC_LENGTH: "len(?)",
        SqlPhrase.FUNC_LOWER: "lower(?)",
        SqlPhrase.FUNC_TRUNC: "round(?,{0},1)",
        SqlPhrase.FUNC_MOD: "(? % {0})",
    }
)

TYPE_NAMES = {
    DataType.INTEGER: "[int]",
    DataType.AUTOINC: "[int]",
    DataType.VARCHAR: "[nvarchar]({size})",
    DataType.CHAR: "[char]({size})",
    DataType.DATE: "[datetime]",
    DataType.DATETIME: "[datetime]",
    DataType.TIMESTAMP: "[datetime]",
    DataType.BOOL: "[bit]",
    DataType.FLOAT: "[float]",
    DataType.DECIMAL: "[decimal]({precision},{scale})",
    DataType.CLOB: "[ntext]",
    DataType.BLOB: "[image]",
    DataType.UNIQUEID: "[uniqueidentifier]",
}

RESERVED_WORDS = frozenset(
    {"top", "identity", "percent", "plan", "file", "rule", "transaction", "tran", "user"}
)


def convert_phrase(dest: DataType, src: DataType, fmt: Optional[str]) -> Optional[str]:
    if dest == DataType.BOOL:
        return "convert(bit, ?)"
    if dest == DataType.INTEGER:
        return "convert(int, ?)"
    if dest == DataType.DECIMAL:
        return "convert(decimal, ?)"
    if dest == DataType.FLOAT:
        return "convert(float, ?)"
    if dest == DataType.DATE:
        return "convert(datetime, ?, 111)"
    if dest in (DataType.DATETIME, DataType.TIMESTAMP):
        return "convert(datetime, ?, 120)"
    if dest in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB):
        if src == DataType.DATE:
            return "replace(convert(nvarchar, ?, 111), '/', '-')"
        if src == DataType.DATETIME:
            return "convert(nvarchar, ?, 120)"
        return "convert(nvarchar, ?)"
    if dest == DataType.BLOB:
        return "convert(varbinary, ?)"
    return None


def session_setup(driver: Any, database: Any) -> List[str]:
    """``USE`` the configured database, fix the date format and qualify the schema owner."""
    settings = driver.settings
    owner = settings.object_owner
    if database.schema and "." not in database.schema and owner:
        database.schema = f"{database.schema}.{owner}"
    statements = []
    if settings.database_name:
        statements.append(f"USE {driver.quote_name(settings.database_name)}")
    statements.append("SET DATEFORMAT ymd")
    return statements


def create_database(driver: Any, database: Any) -> List[str]:
    name = driver.settings.database_name
    if not name:
        return []
    quoted = driver.quote_name(name)
    return [
        "USE master",
        f"IF NOT EXISTS(SELECT * FROM sys.databases WHERE name = '{name}') CREATE DATABASE {quoted}",
        f"USE {quoted}",
        "SET DATEFORMAT ymd",
    ]


DIALECT = Dialect(
    name="sqlserver",
    phrases=PHRASES,
    type_names=TYPE_NAMES,
    reserved_words=RESERVED_WORDS,
    pagination=TopPagination(),
    paramstyle="qmark",
    identity_template="[int] IDENTITY({min_value}, 1) NOT NULL",
    convert_phrase=convert_phrase,
    uuid_sql="select newid()",
    timestamp_sql="SELECT getdate()",
    session_setup=session_setup,
    create_database=create_database,
    drop_relation_keyword="CONSTRAINT",
)
