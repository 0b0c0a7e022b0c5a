"""The single driver: a dialect plus settings, shared read-only across threads."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from itertools import groupby
from typing import Any, Callable, List, Optional, Sequence, Tuple

from rowsmith.config import DriverSettings
from rowsmith.data_types import NO_VALUE, DataType
from rowsmith.dialect import defaults
from rowsmith.dialect.capabilities import DriverFeature, capabilities_for_dialect
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.pagination import Pagination
from rowsmith.dialect.phrases import SqlPhrase
from rowsmith.errors import (
    InvalidArgumentError,
    NotSupportedError,
    QueryNoResultError,
)
from rowsmith.expr.base import SqlBuffer

logger = logging.getLogger(__name__)


def _statement_pair(item: Any) -> Tuple[str, Optional[Sequence[Any]]]:
    if isinstance(item, str):
        return item, None
    sql = getattr(item, "sql", None)
    if sql is not None:
        return sql, item.params
    sql, params = item
    return sql, params


class ScrollableCursor:
    """A fully fetched result that can be re-read and positioned."""

    arraysize = 1

    def __init__(self, description: Any, rows: Sequence[Any]) -> None:
        self.description = description
        self._rows = list(rows)
        self._pos = 0
        self.closed = False

    @property
    def rowcount(self) -> int:
        return len(self._rows)

    @property
    def rownumber(self) -> int:
        return self._pos

    def fetchone(self) -> Optional[Any]:
        if self._pos >= len(self._rows):
            return None
        row = self._rows[self._pos]
        self._pos += 1
        return row

    def fetchmany(self, size: Optional[int] = None) -> List[Any]:
        size = self.arraysize if size is None else size
        rows = self._rows[self._pos : self._pos + size]
        self._pos += len(rows)
        return rows

    def fetchall(self) -> List[Any]:
        rows = self._rows[self._pos :]
        self._pos = len(self._rows)
        return rows

    def scroll(self, value: int, mode: str = "relative") -> None:
        target = self._pos + value if mode == "relative" else value
        if not 0 <= target <= len(self._rows):
            raise IndexError(f"Scroll position {target} out of range")
        self._pos = target

    def close(self) -> None:
        self.closed = True

    def __iter__(self):
        return iter(self.fetchone, None)


class Driver:
    """Renders and executes SQL for one dialect under one set of settings."""

    def __init__(self, dialect: Dialect, settings: Optional[DriverSettings] = None) -> None:
        self.dialect = dialect
        self.settings = settings or DriverSettings()
        self.capabilities = capabilities_for_dialect(
            dialect.name, self.settings.use_sequence_table
        )
        self._reserved_words = (
            defaults.GENERAL_SQL_KEYWORDS
            | frozenset(word.lower() for word in dialect.reserved_words)
            | self.settings.extra_reserved_words
        )

    def __repr__(self) -> str:
        return f"<Driver {self.dialect.name}>"

    @property
    def name(self) -> str:
        return self.dialect.name

    @property
    def paramstyle(self) -> str:
        return self.settings.paramstyle or self.dialect.paramstyle

    @property
    def pagination(self) -> Pagination:
        return self.dialect.pagination

    def is_supported(self, feature: DriverFeature) -> bool:
        return self.capabilities.supports(feature)

    # phrases

    def get_sql_phrase(self, phrase: SqlPhrase) -> str:
        """Return the dialect text for ``phrase``; unknown phrases yield ``?``."""
        text = self.dialect.phrases.get(phrase)
        if text is None:
            logger.error("SQL phrase %r is not defined for dialect %s", phrase, self.name)
            return "?"
        return text

    def get_convert_phrase(
        self, dest: DataType, src: DataType = DataType.UNKNOWN, fmt: Optional[str] = None
    ) -> str:
        phrase = self.dialect.get_convert_phrase(dest, src, fmt)
        if phrase is None:
            logger.error("No conversion to %s defined for dialect %s", dest.value, self.name)
            return "?"
        return phrase

    # names

    def detect_quote_name(self, name: str) -> bool:
        return defaults.detect_quote_name(name, self._reserved_words)

    def quote_name(self, name: str, use_quotes: Optional[bool] = None) -> str:
        if use_quotes is None:
            use_quotes = self.settings.quote_names
        if use_quotes is None:
            use_quotes = self.detect_quote_name(name)
        if not use_quotes:
            return name
        return (
            self.get_sql_phrase(SqlPhrase.QUOTES_OPEN)
            + name
            + self.get_sql_phrase(SqlPhrase.QUOTES_CLOSE)
        )

    def append_object_name(
        self, buf: SqlBuffer, name: str, use_quotes: Optional[bool] = None
    ) -> None:
        """Append a table, view or column name, quoting it when required."""
        buf.append(self.quote_name(name, use_quotes))

    # values

    def get_value_string(self, value: Any, data_type: DataType) -> str:
        return defaults.get_value_string(self, value, data_type)

    def decode_value_string(self, literal: str, data_type: DataType) -> Any:
        return defaults.decode_value_string(self, literal, data_type)

    def prepare_param(self, value: Any) -> Any:
        value = defaults.prepare_param(value)
        if self.dialect.param_adapter is not None:
            value = self.dialect.param_adapter(value)
        return value

    def prepare_params(self, values: Optional[Sequence[Any]]) -> tuple:
        prepared = tuple(self.prepare_param(value) for value in values or ())
        if prepared:
            logger.debug("Binding %d parameter(s): %r", len(prepared), prepared)
        return prepared

    def get_result_value(self, row: Any, index: int, data_type: DataType) -> Any:
        return defaults.get_result_value(row, index, data_type)

    # DB-API helpers

    def close_cursor(self, cursor: Any) -> None:
        if cursor is None:
            return
        try:
            cursor.close()
        except Exception as exc:
            logger.warning("Failed to close cursor: %s", exc)

    def execute_sql(
        self,
        connection: Any,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        gen_keys: Optional[Callable[[Any], None]] = None,
    ) -> int:
        """Execute a statement and return the affected row count.

        When ``gen_keys`` is given the generated identity key is passed to it.
        """
        logger.debug("Executing: %s", sql)
        cursor = connection.cursor()
        try:
            prepared = self.prepare_params(params)
            if prepared:
                cursor.execute(sql, prepared)
            else:
                cursor.execute(sql)
            if gen_keys is not None and self.capabilities.supports_generated_keys:
                key = getattr(cursor, "lastrowid", None)
                if key is not None:
                    gen_keys(key)
            return cursor.rowcount
        finally:
            self.close_cursor(cursor)

    def execute_batch(
        self,
        connection: Any,
        statements: Sequence[Any],
    ) -> List[int]:
        """Execute statements in order on one cursor.

        ``statements`` holds ``(sql, params)`` pairs or rendered statements.
        Consecutive statements with the same SQL text run as one
        ``executemany`` batch. Returns one row count per batch.
        """
        pairs = [_statement_pair(item) for item in statements]
        counts: List[int] = []
        cursor = connection.cursor()
        try:
            for sql, group in groupby(pairs, key=lambda pair: pair[0]):
                batch = [self.prepare_params(params) for _, params in group]
                logger.debug("Executing batch of %d: %s", len(batch), sql)
                if len(batch) > 1 and batch[0]:
                    cursor.executemany(sql, batch)
                    counts.append(cursor.rowcount)
                    continue
                total = 0
                for prepared in batch:
                    if prepared:
                        cursor.execute(sql, prepared)
                    else:
                        cursor.execute(sql)
                    total += max(cursor.rowcount, 0)
                counts.append(total)
            return counts
        finally:
            self.close_cursor(cursor)

    def execute_query(
        self,
        connection: Any,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        scrollable: bool = False,
    ) -> Any:
        """Run a query. A scrollable result is fetched fully and the cursor closed."""
        logger.debug("Querying: %s", sql)
        cursor = connection.cursor()
        try:
            prepared = self.prepare_params(params)
            if prepared:
                cursor.execute(sql, prepared)
            else:
                cursor.execute(sql)
        except Exception:
            self.close_cursor(cursor)
            raise
        if not scrollable:
            return cursor
        try:
            return ScrollableCursor(cursor.description, cursor.fetchall())
        finally:
            self.close_cursor(cursor)

    def query_single_value(
        self,
        connection: Any,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        data_type: DataType = DataType.UNKNOWN,
    ) -> Any:
        """First column of the first row, or NO_VALUE when there is no row."""
        cursor = self.execute_query(connection, sql, params)
        try:
            row = cursor.fetchone()
            if row is None:
                return NO_VALUE
            return self.get_result_value(row, 0, data_type)
        finally:
            self.close_cursor(cursor)

    # auto values

    def get_update_timestamp(self, connection: Any = None) -> datetime:
        """Timestamp used for record updates: server time when the dialect queries it."""
        if self.dialect.timestamp_sql and connection is not None:
            value = self.query_single_value(
                connection, self.dialect.timestamp_sql, data_type=DataType.DATETIME
            )
            if value is not NO_VALUE and value is not None:
                return value
        return datetime.now()

    def get_next_sequence_value(
        self, database: Any, sequence_name: str, min_value: int, connection: Any
    ) -> int:
        if self.capabilities.native_sequences and self.dialect.sequence_nextval_sql:
            sql = self.dialect.sequence_nextval_sql.format(self.quote_name(sequence_name))
            value = self.query_single_value(connection, sql, data_type=DataType.INTEGER)
            if value is NO_VALUE:
                raise QueryNoResultError(sql)
            return value
        if self.settings.use_sequence_table:
            from rowsmith.execution import QueryRunner
            from rowsmith.sequence import SequenceTable

            table = SequenceTable.for_database(database, self.settings.sequence_table_name)
            return table.get_next_value(QueryRunner(self, connection), sequence_name, min_value)
        raise NotSupportedError("Sequences", self.name)

    def get_column_auto_value(self, database: Any, column: Any, connection: Any = None) -> Any:
        """Value for an auto-generated column, or None when the database assigns it."""
        data_type = column.data_type
        if data_type == DataType.AUTOINC:
            if not self.is_supported(DriverFeature.SEQUENCES):
                return None
            return self.get_next_sequence_value(
                database, column.sequence_name, column.min_value, connection
            )
        if data_type == DataType.UNIQUEID:
            if self.dialect.uuid_sql and connection is not None:
                value = self.query_single_value(connection, self.dialect.uuid_sql)
                if value is not NO_VALUE and value is not None:
                    return uuid.UUID(str(value))
            return uuid.uuid4()
        if data_type.is_date:
            if connection is None:
                return None
            timestamp = self.get_update_timestamp(connection)
            return timestamp.date() if data_type == DataType.DATE else timestamp
        raise NotSupportedError(f"Auto values for {data_type.value} columns", self.name)

    # database lifecycle

    def attach_database(self, database: Any, connection: Any = None) -> None:
        """Bind ``database`` to this driver and run the dialect's session setup."""
        if database.driver is not None and database.driver is not self:
            raise InvalidArgumentError(
                "database", database.name, "Database is attached to another driver."
            )
        database.driver = self
        if self.settings.use_sequence_table and not self.capabilities.native_sequences:
            from rowsmith.sequence import SequenceTable

            SequenceTable.for_database(database, self.settings.sequence_table_name)
        statements = self.dialect.session_setup(self, database)
        if connection is None:
            return
        for sql in statements:
            self.execute_sql(connection, sql)
        logger.info("Attached database %s to %s driver", database.name or "<unnamed>", self.name)

    def detach_database(self, database: Any) -> None:
        """Release ``database`` so it can be attached to another driver."""
        if database.driver is None:
            return
        if database.driver is not self:
            raise InvalidArgumentError(
                "database", database.name, "Database is attached to another driver."
            )
        database.driver = None
        logger.info("Detached database %s from %s driver", database.name or "<unnamed>", self.name)

    def check_database(self, database: Any) -> None:
        if database is not None and database.driver is not None and database.driver is not self:
            raise InvalidArgumentError(
                "database", database.name, "Object belongs to a database attached to another driver."
            )

    # commands and DDL

    def create_command(self, database: Any) -> Any:
        from rowsmith.command import Command

        self.check_database(database)
        if database.driver is None:
            database.driver = self
        return Command(database)

    def get_ddl(self, obj: Any, operation: Any) -> List[str]:
        """Ordered DDL statements to CREATE, ALTER or DROP ``obj``."""
        from rowsmith.ddl import DDLGenerator

        return DDLGenerator(self).get_ddl(obj, operation)

    def get_ddl_script(self, operation: Any, obj: Any, script: Any) -> None:
        from rowsmith.ddl import DDLGenerator

        DDLGenerator(self).add_to_script(operation, obj, script)

    def get_enable_relation_ddl(self, relation: Any, enable: bool, script: Any) -> None:
        """Add the statement that re-creates (enable) or drops (disable) ``relation``."""
        from rowsmith.ddl import DDLGenerator

        DDLGenerator(self).enable_relation(relation, enable, script)
