"""Statement execution over a DB-API connection.

``QueryRunner`` is the boundary between rendered SQL and the database. The
``try_*`` methods return ``Ok``/``Err`` outcomes instead of raising so callers
such as the sequence table can branch on constraint violations and empty
results; the plain methods raise the wrapped error.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar, Union

from rowsmith.command import Command, RenderedStatement
from rowsmith.data_types import NO_VALUE, DataType
from rowsmith.errors import (
    ColumnNotFoundError,
    ConstraintViolationError,
    QueryFailedError,
    QueryNoResultError,
    RowsmithError,
    StatementFailedError,
    UnexpectedReturnValueError,
)
from rowsmith.tracing import trace_statement

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DBAPI_ERROR_NAMES = frozenset({"Error", "DatabaseError", "InterfaceError"})


class ErrorKind(str, Enum):
    """Failure categories reported by ``Err``."""

    CONSTRAINT_VIOLATION = "constraint_violation"
    STATEMENT_FAILED = "statement_failed"
    QUERY_FAILED = "query_failed"
    NO_RESULT = "no_result"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    error: RowsmithError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise self.error


Outcome = Union[Ok, Err]


def _class_names(exc: BaseException) -> List[str]:
    return [cls.__name__ for cls in type(exc).__mro__]


def is_dbapi_error(exc: BaseException) -> bool:
    """Return True for exceptions derived from a DB-API module's ``Error``."""
    return any(name in _DBAPI_ERROR_NAMES for name in _class_names(exc))


def is_integrity_error(exc: BaseException) -> bool:
    return "IntegrityError" in _class_names(exc)


def _statement_err(sql: str, exc: BaseException) -> Err:
    if is_integrity_error(exc):
        error: RowsmithError = ConstraintViolationError(sql, str(exc))
        kind = ErrorKind.CONSTRAINT_VIOLATION
    else:
        error = StatementFailedError(sql, str(exc))
        kind = ErrorKind.STATEMENT_FAILED
    error.__cause__ = exc
    logger.warning("Statement failed (%s): %s", kind.value, exc)
    return Err(kind, error)


def row_count_statement(cmd: Command) -> RenderedStatement:
    """Build a statement counting the rows ``cmd`` would return.

    Aggregated (or DISTINCT) selects are wrapped as a derived table; plain
    selects count over their first rowset with the same joins and filters.
    """
    if cmd.has_aggregation() or cmd.distinct:
        inner = cmd.clone().clear_order_by().clear_limit()
        stmt = inner.render_select()
        return RenderedStatement(f"SELECT COUNT(*) FROM ({stmt.sql}) q", stmt.params)
    select = cmd.select_exprs
    if not select:
        raise ColumnNotFoundError("*", "select list")
    source = select[0].get_source_column()
    if source is None:
        inner = cmd.clone().clear_order_by().clear_limit()
        stmt = inner.render_select()
        return RenderedStatement(f"SELECT COUNT(*) FROM ({stmt.sql}) q", stmt.params)
    count_cmd = cmd.clone().clear_select().clear_order_by().clear_limit()
    count_cmd.select(source.rowset.count())
    return count_cmd.render_select()


class QueryRunner:
    """Executes statements for one driver on one caller-owned connection."""

    def __init__(
        self,
        driver: Any,
        connection: Any,
        on_commit: Optional[Callable[[], None]] = None,
        on_rollback: Optional[Callable[[], None]] = None,
    ) -> None:
        self.driver = driver
        self.connection = connection
        self.on_commit = on_commit
        self.on_rollback = on_rollback

    def _log_duration(self, sql: str, started: float) -> None:
        elapsed_ms = (time.monotonic() - started) * 1000
        threshold = self.driver.settings.long_running_threshold_ms
        if threshold and elapsed_ms > threshold:
            logger.warning("Long running statement (%.0f ms): %s", elapsed_ms, sql)
        else:
            logger.debug("Statement finished in %.1f ms", elapsed_ms)

    # statements

    def try_execute_sql(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        gen_keys: Optional[Callable[[Any], None]] = None,
    ) -> Outcome:
        """Execute a statement and return ``Ok(row_count)`` or ``Err``."""
        started = time.monotonic()
        try:
            count = trace_statement(
                "rowsmith.statement.execute",
                self.driver.name,
                sql,
                lambda: self.driver.execute_sql(self.connection, sql, params, gen_keys),
            )
        except Exception as exc:
            if not is_dbapi_error(exc):
                raise
            return _statement_err(sql, exc)
        self._log_duration(sql, started)
        logger.info("Executed statement, %s row(s) affected", count)
        return Ok(count)

    def try_execute_batch(self, statements: Sequence[Any]) -> Outcome:
        """Execute ``(sql, params)`` pairs as batches; ``Ok`` holds one count per batch."""
        if not statements:
            return Ok([])
        started = time.monotonic()
        label = f"batch of {len(statements)} statement(s)"
        try:
            counts = trace_statement(
                "rowsmith.statement.batch",
                self.driver.name,
                label,
                lambda: self.driver.execute_batch(self.connection, statements),
            )
        except Exception as exc:
            if not is_dbapi_error(exc):
                raise
            return _statement_err(label, exc)
        self._log_duration(label, started)
        logger.info("Executed %s, %d batch(es)", label, len(counts))
        return Ok(counts)

    def execute_batch(self, statements: Sequence[Any]) -> List[int]:
        return self.try_execute_batch(statements).unwrap()

    def execute_sql(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        gen_keys: Optional[Callable[[Any], None]] = None,
    ) -> int:
        return self.try_execute_sql(sql, params, gen_keys).unwrap()

    def execute_insert(self, cmd: Command, gen_keys: Optional[Callable[[Any], None]] = None) -> int:
        stmt = cmd.render_insert()
        return self.execute_sql(stmt.sql, stmt.params, gen_keys)

    def execute_update(self, cmd: Command) -> int:
        stmt = cmd.render_update()
        return self.execute_sql(stmt.sql, stmt.params)

    def execute_delete(self, table: Any, cmd: Command) -> int:
        stmt = cmd.render_delete(table)
        return self.execute_sql(stmt.sql, stmt.params)

    # queries

    def execute_query(
        self, sql: str, params: Optional[Sequence[Any]] = None, scrollable: bool = False
    ) -> Any:
        """Open a cursor for ``sql``; the caller closes it with ``driver.close_cursor``."""
        started = time.monotonic()
        try:
            cursor = trace_statement(
                "rowsmith.query.execute",
                self.driver.name,
                sql,
                lambda: self.driver.execute_query(self.connection, sql, params, scrollable),
            )
        except Exception as exc:
            if not is_dbapi_error(exc):
                raise
            logger.error("Query failed: %s", exc)
            raise QueryFailedError(sql, str(exc)) from exc
        self._log_duration(sql, started)
        return cursor

    def query_first_row(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Any]:
        cursor = self.execute_query(sql, params, scrollable=True)
        try:
            return cursor.fetchone()
        finally:
            self.driver.close_cursor(cursor)

    def try_query_single_value(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        data_type: DataType = DataType.UNKNOWN,
    ) -> Outcome:
        try:
            row = self.query_first_row(sql, params)
        except QueryFailedError as exc:
            return Err(ErrorKind.QUERY_FAILED, exc)
        if row is None:
            return Err(ErrorKind.NO_RESULT, QueryNoResultError(sql))
        return Ok(self.driver.get_result_value(row, 0, data_type))

    def query_single_value(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        data_type: DataType = DataType.UNKNOWN,
        force_result: bool = True,
    ) -> Any:
        """Return the first column of the first row.

        Without a row this raises QueryNoResultError, or returns NO_VALUE when
        ``force_result`` is False.
        """
        outcome = self.try_query_single_value(sql, params, data_type)
        if isinstance(outcome, Err) and outcome.kind == ErrorKind.NO_RESULT and not force_result:
            return NO_VALUE
        return outcome.unwrap()

    def query_single_int(
        self, sql: str, params: Optional[Sequence[Any]] = None, default: int = 0
    ) -> int:
        value = self.query_single_value(sql, params, DataType.INTEGER, force_result=False)
        if value is NO_VALUE or value is None:
            return default
        return value

    def query_single_long(
        self, sql: str, params: Optional[Sequence[Any]] = None, default: Optional[int] = None
    ) -> int:
        """Like ``query_single_int``, but without a ``default`` an empty result raises."""
        value = self.query_single_value(
            sql, params, DataType.INTEGER, force_result=default is None
        )
        if value is NO_VALUE or value is None:
            if default is None:
                raise QueryNoResultError(sql)
            return default
        return int(value)

    def query_single_string(
        self, sql: str, params: Optional[Sequence[Any]] = None, default: str = ""
    ) -> str:
        value = self.query_single_value(sql, params, DataType.VARCHAR, force_result=False)
        if value is NO_VALUE or value is None:
            return default
        return value

    def query_simple_list(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        data_type: DataType = DataType.UNKNOWN,
    ) -> List[Any]:
        """Return the first column of every row, capped at ``max_query_rows``."""
        max_rows = self.driver.settings.max_query_rows
        cursor = self.execute_query(sql, params)
        try:
            values: List[Any] = []
            for row in iter(cursor.fetchone, None):
                if 0 <= max_rows <= len(values):
                    logger.warning("Query returned more than %d rows, result truncated", max_rows)
                    break
                values.append(self.driver.get_result_value(row, 0, data_type))
            return values
        finally:
            self.driver.close_cursor(cursor)

    def query_object_list(
        self,
        sql: Union[str, Command],
        params: Optional[Sequence[Any]] = None,
        max_rows: Optional[int] = None,
    ) -> List[tuple]:
        """Return every row as a tuple of raw values.

        Rows are capped at ``max_rows``, or at ``max_query_rows`` with a
        warning when no limit is given. A negative limit reads every row.
        """
        if isinstance(sql, Command):
            stmt = sql.render_select()
            sql, params = stmt.sql, stmt.params
        limit = self.driver.settings.max_query_rows if max_rows is None else max_rows
        cursor = self.execute_query(sql, params)
        try:
            rows: List[tuple] = []
            for row in iter(cursor.fetchone, None):
                if 0 <= limit <= len(rows):
                    if max_rows is None:
                        logger.warning("Query returned more than %d rows, result truncated", limit)
                    break
                rows.append(tuple(row))
            logger.debug("query_object_list returned %d row(s)", len(rows))
            return rows
        finally:
            self.driver.close_cursor(cursor)

    def query_single_row(
        self, sql: Union[str, Command], params: Optional[Sequence[Any]] = None
    ) -> tuple:
        """Return the values of the first row; raises QueryNoResultError without one."""
        rows = self.query_object_list(sql, params, max_rows=1)
        if not rows:
            raise QueryNoResultError(sql if isinstance(sql, str) else sql.get_select())
        return rows[0]

    def query_rows(self, cmd: Command) -> List[tuple]:
        """Run a select and return decoded rows with the client window applied."""
        stmt = cmd.render_select()
        data_types = [expr.data_type for expr in cmd.select_exprs]
        window = cmd.get_client_window()
        cursor = self.execute_query(stmt.sql, stmt.params)
        try:
            rows = window.apply(iter(cursor.fetchone, None))
            return [
                tuple(
                    self.driver.get_result_value(row, index, data_type)
                    for index, data_type in enumerate(data_types)
                )
                for row in rows
            ]
        finally:
            self.driver.close_cursor(cursor)

    def query_row_count(self, cmd: Command) -> int:
        stmt = row_count_statement(cmd)
        return self.query_single_int(stmt.sql, stmt.params)

    def query_objects(
        self,
        cmd: Command,
        factory: Callable[[], T],
        setters: Mapping[Any, Callable[[T, Any], None]],
    ) -> List[T]:
        """Build one object per row, calling the setter registered for each column."""
        select = cmd.select_exprs
        bindings = []
        for expr, setter in setters.items():
            index = next((i for i, item in enumerate(select) if item is expr), None)
            if index is None:
                raise ColumnNotFoundError(getattr(expr, "name", str(expr)), "select list")
            bindings.append((index, setter))
        objects = []
        for row in self.query_rows(cmd):
            obj = factory()
            for index, setter in bindings:
                setter(obj, row[index])
            objects.append(obj)
        return objects

    # records

    def insert_row(self, table: Any, values: Mapping[Any, Any]) -> Dict[Any, Any]:
        """Insert one row, filling auto-generated values and identity keys.

        Returns the values actually stored, keyed by column.
        """
        database = table.database
        result: Dict[Any, Any] = {}
        cmd = Command(database)
        for column in table.columns:
            if column in values:
                value = values[column]
            elif column.auto_generated:
                value = self.driver.get_column_auto_value(database, column, self.connection)
            else:
                value = column.default
            if value is None:
                column.check_value(value)
                continue
            cmd.set(column, value)
            result[column] = value
        identity = table.get_autoinc_column()
        gen_keys = None
        if identity is not None and identity not in result:

            def gen_keys(key: Any) -> None:
                result[identity] = key

        count = self.execute_insert(cmd, gen_keys)
        if count != 1:
            raise UnexpectedReturnValueError(count, "insert_row")
        return result

    # transactions

    def commit(self) -> None:
        self.connection.commit()
        if self.on_commit is not None:
            self.on_commit()

    def rollback(self) -> None:
        self.connection.rollback()
        if self.on_rollback is not None:
            self.on_rollback()
