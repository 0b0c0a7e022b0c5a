"""Per-vendor dialect description.

A ``Dialect`` is plain data plus a few hook functions; the single ``Driver``
class reads it instead of vendors subclassing a base driver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, List, Mapping, Optional

from rowsmith.data_types import DataType
from rowsmith.dialect.defaults import cast_convert_phrase, column_type
from rowsmith.dialect.pagination import LimitOffsetPagination, Pagination
from rowsmith.dialect.phrases import SqlPhrase

ConvertPhrase = Callable[[DataType, DataType, Optional[str]], Optional[str]]
# (driver, database) -> statements run when a database is attached
SessionSetup = Callable[[Any, Any], List[str]]


def _no_setup(driver: Any, database: Any) -> List[str]:
    return []


def _create_schema(driver: Any, database: Any) -> List[str]:
    if not database.schema:
        return []
    return [f"CREATE SCHEMA {driver.quote_name(database.schema)}"]


@dataclass(frozen=True)
class Dialect:
    """Everything that differs between SQL vendors."""

    name: str
    phrases: Mapping[SqlPhrase, Optional[str]]
    type_names: Mapping[DataType, str]
    reserved_words: FrozenSet[str] = frozenset()
    pagination: Pagination = field(default_factory=LimitOffsetPagination)
    paramstyle: str = "qmark"
    escape_backslashes: bool = False
    # type fragment for AUTOINC identity columns; None means use a sequence
    identity_template: Optional[str] = None
    convert_phrase: Optional[ConvertPhrase] = None
    sequence_nextval_sql: Optional[str] = None
    create_sequence_sql: Optional[str] = None
    uuid_sql: Optional[str] = None
    timestamp_sql: Optional[str] = None
    session_setup: SessionSetup = _no_setup
    create_database: SessionSetup = _create_schema
    param_adapter: Optional[Callable[[Any], Any]] = None
    alter_column_phrase: Optional[str] = "ALTER COLUMN"
    alter_column_type_keyword: Optional[str] = None
    drop_relation_keyword: str = "CONSTRAINT"
    # False where foreign keys can only be declared inside CREATE TABLE
    alter_table_constraints: bool = True
    # wraps a function call used as a column DEFAULT
    default_function_template: str = "{0}"

    def column_type(self, column: Any) -> Optional[str]:
        return column_type(column, self.type_names)

    def get_convert_phrase(
        self, dest: DataType, src: DataType, fmt: Optional[str] = None
    ) -> Optional[str]:
        convert = self.convert_phrase or cast_convert_phrase(self.type_names)
        return convert(dest, src, fmt)
