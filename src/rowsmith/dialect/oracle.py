"""Oracle."""

from typing import Any, List, Optional

from rowsmith.data_types import DataType
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import RowNumPagination
from rowsmith.dialect.phrases import SqlPhrase, phrase_table

PHRASES = phrase_table(
    {
        SqlPhrase.PSEUDO_TABLE: "DUAL",
        SqlPhrase.CURRENT_DATE: "sysdate",
        SqlPhrase.CURRENT_DATETIME: "sysdate",
        SqlPhrase.CURRENT_TIMESTAMP: "systimestamp",
        SqlPhrase.DATE_TEMPLATE: "TO_DATE('{0}', 'YYYY-MM-DD')",
        SqlPhrase.DATETIME_TEMPLATE: "TO_DATE('{0}', 'YYYY-MM-DD HH24:MI:SS')",
        SqlPhrase.TIMESTAMP_PATTERN: "%Y-%m-%d %H:%M:%S.%f",
        SqlPhrase.TIMESTAMP_TEMPLATE: "TO_TIMESTAMP('{0}', 'YYYY-MM-DD HH24:MI:SS.FF')",
        SqlPhrase.FUNC_COALESCE: "nvl(?, {0})",
        SqlPhrase.FUNC_SUBSTRING: "substr(?, {0})",
        SqlPhrase.FUNC_SUBSTRINGEX: "substr(?, {0}, {1})",
        SqlPhrase.FUNC_STRINDEXFROM: "instr(?, {0}, {1})",
        SqlPhrase.FUNC_CEILING: "ceil(?)",
        SqlPhrase.FUNC_DAY: "extract(day from ?)",
        SqlPhrase.FUNC_MONTH: "extract(month from ?)",
        SqlPhrase.FUNC_YEAR: "extract(year from ?)",
    }
)

TYPE_NAMES = {
    DataType.INTEGER: "NUMBER(10)",
    DataType.AUTOINC: "NUMBER(10)",
    DataType.VARCHAR: "VARCHAR2({size} CHAR)",
    DataType.CHAR: "CHAR({size})",
    DataType.DATE: "DATE",
    DataType.DATETIME: "DATE",
    DataType.TIMESTAMP: "TIMESTAMP",
    DataType.BOOL: "CHAR(1)",
    DataType.FLOAT: "FLOAT(80)",
    DataType.DECIMAL: "NUMBER({precision},{scale})",
    DataType.CLOB: "CLOB",
    DataType.BLOB: "BLOB",
    DataType.UNIQUEID: "RAW(16)",
}


def convert_phrase(dest: DataType, src: DataType, fmt: Optional[str]) -> Optional[str]:
    if dest in (DataType.INTEGER, DataType.DECIMAL, DataType.FLOAT, DataType.BOOL):
        return f"to_number(?, '{fmt}')" if fmt else "to_number(?)"
    if dest in (DataType.DATE, DataType.DATETIME, DataType.TIMESTAMP):
        return f"to_date(?, '{fmt}')" if fmt else "to_date(?)"
    if dest in (DataType.VARCHAR, DataType.CHAR, DataType.CLOB):
        return f"to_char(?, '{fmt}')" if fmt else "to_char(?)"
    return None


def no_database(driver: Any, database: Any) -> List[str]:
    return []


DIALECT = Dialect(
    name="oracle",
    phrases=PHRASES,
    type_names=TYPE_NAMES,
    reserved_words=frozenset({"level", "rownum", "sysdate", "number", "comment", "size", "mode"}),
    pagination=RowNumPagination(),
    paramstyle="numeric",
    convert_phrase=convert_phrase,
    sequence_nextval_sql="SELECT {0}.NEXTVAL FROM DUAL",
    create_sequence_sql="CREATE SEQUENCE {name} INCREMENT BY 1 START WITH {min_value}",
    uuid_sql="SELECT SYS_GUID() FROM DUAL",
    create_database=no_database,
    alter_column_phrase="MODIFY",
)
