"""HSQLDB."""

from rowsmith.data_types import DataType
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import LimitOffsetPagination
from rowsmith.dialect.phrases import SqlPhrase, phrase_table

PHRASES = phrase_table(
    {
        SqlPhrase.BOOLEAN_TRUE: "TRUE",
        SqlPhrase.BOOLEAN_FALSE: "FALSE",
        SqlPhrase.PSEUDO_TABLE: "INFORMATION_SCHEMA.SYSTEM_USERS",
        SqlPhrase.FUNC_STRINDEX: "locate({0}, ?)",
        SqlPhrase.FUNC_STRINDEXFROM: "locate({0}, ?, {1})",
        SqlPhrase.FUNC_LENGTH: "char_length(?)",
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
    DataType.FLOAT: "DOUBLE",
    DataType.DECIMAL: "DECIMAL({precision},{scale})",
    DataType.CLOB: "LONGVARCHAR",
    DataType.BLOB: "LONGVARBINARY",
    DataType.UNIQUEID: "CHAR(36)",
}

DIALECT = Dialect(
    name="hsqldb",
    phrases=PHRASES,
    type_names=TYPE_NAMES,
    reserved_words=frozenset({"limit", "offset", "top"}),
    pagination=LimitOffsetPagination(),
    paramstyle="qmark",
    sequence_nextval_sql="CALL NEXT VALUE FOR {0}",
    create_sequence_sql="CREATE SEQUENCE {name} START WITH {min_value}",
)
