"""PostgreSQL."""

from rowsmith.data_types import DataType
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import LimitOffsetPagination
from rowsmith.dialect.phrases import SqlPhrase, phrase_table

PHRASES = phrase_table(
    {
        SqlPhrase.BOOLEAN_TRUE: "TRUE",
        SqlPhrase.BOOLEAN_FALSE: "FALSE",
        SqlPhrase.CURRENT_DATETIME: "NOW()",
        SqlPhrase.CURRENT_TIMESTAMP: "NOW()",
        SqlPhrase.DATE_TEMPLATE: "DATE '{0}'",
        SqlPhrase.DATETIME_TEMPLATE: "TIMESTAMP '{0}'",
        SqlPhrase.TIMESTAMP_TEMPLATE: "TIMESTAMP '{0}'",
        SqlPhrase.FUNC_STRINDEX: "strpos(?, {0})",
        SqlPhrase.FUNC_DAY: "extract(day from ?)",
        SqlPhrase.FUNC_MONTH: "extract(month from ?)",
        SqlPhrase.FUNC_YEAR: "extract(year from ?)",
    }
)

TYPE_NAMES = {
    DataType.INTEGER: "INTEGER",
    DataType.AUTOINC: "INTEGER",
    DataType.VARCHAR: "VARCHAR({size})",
    DataType.CHAR: "CHAR({size})",
    DataType.DATE: "DATE",
    DataType.DATETIME: "TIMESTAMP",
    DataType.TIMESTAMP: "TIMESTAMP",
    DataType.BOOL: "BOOLEAN",
    DataType.FLOAT: "DOUBLE PRECISION",
    DataType.DECIMAL: "DECIMAL({precision},{scale})",
    DataType.CLOB: "TEXT",
    DataType.BLOB: "BYTEA",
    DataType.UNIQUEID: "UUID",
}

DIALECT = Dialect(
    name="postgres",
    phrases=PHRASES,
    type_names=TYPE_NAMES,
    reserved_words=frozenset({"limit", "offset", "analyse", "analyze", "returning"}),
    pagination=LimitOffsetPagination(),
    paramstyle="format",
    sequence_nextval_sql="SELECT nextval('{0}')",
    create_sequence_sql="CREATE SEQUENCE {name} INCREMENT BY 1 START WITH {min_value}",
    alter_column_type_keyword="TYPE",
)
