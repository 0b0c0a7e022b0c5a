"""rowsmith: SQL generation and dialect abstraction.

Describe a schema with ``Database``/``Table``/``View``, build statements with
``Command`` and render them for a vendor through a ``Driver``.
"""

from rowsmith.command import CombinedCommand, Command, RenderedStatement
from rowsmith.config import DriverSettings
from rowsmith.data_types import EMPTY_STRING, NO_VALUE, SYSDATE, DataMode, DataType
from rowsmith.ddl import DDLOperation, SQLScript
from rowsmith.dialect.capabilities import DriverFeature
from rowsmith.dialect.driver import Driver
from rowsmith.errors import ErrorCode, RowsmithError
from rowsmith.execution import Err, ErrorKind, Ok, QueryRunner, row_count_statement
from rowsmith.schema import Database, Table, View
from rowsmith.sequence import SequenceTable
from rowsmith.dialect.registry import create_driver, create_driver_from_env, get_dialect

__all__ = [
    "EMPTY_STRING",
    "NO_VALUE",
    "SYSDATE",
    "CombinedCommand",
    "Command",
    "DDLOperation",
    "DataMode",
    "DataType",
    "Database",
    "Driver",
    "DriverFeature",
    "DriverSettings",
    "Err",
    "ErrorCode",
    "ErrorKind",
    "Ok",
    "QueryRunner",
    "RenderedStatement",
    "RowsmithError",
    "SQLScript",
    "SequenceTable",
    "Table",
    "View",
    "create_driver",
    "create_driver_from_env",
    "get_dialect",
    "row_count_statement",
]
