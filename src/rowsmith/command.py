"""Command builder: accumulates clauses and renders SELECT/INSERT/UPDATE/DELETE.

Parameters are collected while the text is rendered, so the parameter list of
a ``RenderedStatement`` always matches the left-to-right order of the
placeholders in its SQL. For an UPDATE the SET values come before the WHERE
values; for an INSERT values follow the table's column declaration order.
"""

from __future__ import annotations

import copy
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from rowsmith.data_types import DataType
from rowsmith.errors import (
    ColumnNotFoundError,
    InvalidArgumentError,
    InvalidPropertyError,
    NotSupportedError,
)
from rowsmith.expr.base import (
    CTX_ALIAS,
    CTX_ALL,
    CTX_DEFAULT,
    CTX_FULLNAME,
    CTX_NAME,
    CTX_VALUE,
    CmdParam,
    Expr,
    SqlBuffer,
    add_unique,
    new_buffer,
)
from rowsmith.expr.column_expr import ColumnExpr, OrderByExpr, SetExpr
from rowsmith.expr.compare import CompareColExpr, CompareExpr, ParenthesisExpr
from rowsmith.expr.join import JoinExpr, JoinType
from rowsmith.dialect.phrases import SqlPhrase
from rowsmith.schema.rowset import RowSet

logger = logging.getLogger(__name__)

_UNSET = object()

# UPDATE and DELETE address columns of the target table without alias
_CTX_UNQUALIFIED = CTX_NAME | CTX_VALUE


@dataclass(frozen=True)
class RenderedStatement:
    """SQL text plus the values for its placeholders, in order."""

    sql: str
    params: List[Any] = field(default_factory=list)


def _single_column(condition: Any) -> Optional[CompareColExpr]:
    while isinstance(condition, ParenthesisExpr):
        condition = condition.wrapped
    return condition if isinstance(condition, CompareColExpr) else None


def _flatten(items: Iterable[Any]) -> List[Any]:
    flat: List[Any] = []
    for item in items:
        if isinstance(item, RowSet):
            flat.extend(item.columns)
        elif isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat


def _index_in(columns: Sequence[Any], column: Any) -> int:
    for index, candidate in enumerate(columns):
        if candidate is column:
            return index
    raise ColumnNotFoundError(column.name, getattr(column.rowset, "name", None))


def _add_list(buf: SqlBuffer, exprs: Sequence[Expr], context: int, separator: str) -> None:
    for i, expr in enumerate(exprs):
        if i > 0:
            buf.append(separator)
        expr.add_sql(buf, context)


class _Selectable(Expr):
    """Shared behaviour of commands that render a SELECT."""

    _last_params: List[Any]

    def add_select_sql(self, buf: SqlBuffer) -> None:
        raise NotImplementedError

    @property
    def select_exprs(self) -> List[ColumnExpr]:
        raise NotImplementedError

    def _database(self) -> Any:
        raise NotImplementedError

    @property
    def driver(self) -> Any:
        driver = self._database().driver
        if driver is None:
            raise InvalidPropertyError("driver", None, "Database is not attached to a driver.")
        return driver

    def _finish(self, buf: SqlBuffer) -> RenderedStatement:
        sql = buf.getvalue()
        params = buf.param_values()
        self._last_params = params
        return RenderedStatement(sql, params)

    def render_select(self) -> RenderedStatement:
        buf = new_buffer(self.driver)
        self.add_select_sql(buf)
        return self._finish(buf)

    def get_select(self) -> str:
        return self.render_select().sql

    def get_param_values(self) -> List[Any]:
        """Parameter values of the most recent render."""
        return list(self._last_params)

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        self.add_select_sql(buf)

    def union(self, other: "_Selectable") -> "CombinedCommand":
        return CombinedCommand(self, "UNION", other)

    def union_all(self, other: "_Selectable") -> "CombinedCommand":
        return CombinedCommand(self, "UNION ALL", other)

    def intersect(self, other: "_Selectable") -> "CombinedCommand":
        return CombinedCommand(self, "INTERSECT", other)

    def except_(self, other: "_Selectable") -> "CombinedCommand":
        return CombinedCommand(self, "EXCEPT", other)


class Command(_Selectable):
    """Mutable builder for one SQL statement. Not safe to share between threads."""

    def __init__(self, database: Any) -> None:
        self.database = database
        self.clear()

    def _database(self) -> Any:
        return self.database

    def clear(self) -> "Command":
        """Reset every clause and parameter."""
        self._select: List[ColumnExpr] = []
        self._distinct = False
        self._set: List[SetExpr] = []
        self._joins: List[JoinExpr] = []
        self._where: List[CompareExpr] = []
        self._having: List[CompareExpr] = []
        self._group_by: List[ColumnExpr] = []
        self._order_by: List[OrderByExpr] = []
        self._limit: Optional[int] = None
        self._skip = 0
        self._cmd_params: List[CmdParam] = []
        self._last_params: List[Any] = []
        return self

    def clone(self) -> "Command":
        """Return an independent copy; expressions are shared, clause lists are not."""
        other = copy.copy(self)
        for attr in ("_select", "_set", "_joins", "_where", "_having", "_group_by", "_order_by"):
            setattr(other, attr, list(getattr(self, attr)))
        other._cmd_params = list(self._cmd_params)
        other._last_params = []
        return other

    # select list

    def select(self, *exprs: Any) -> "Command":
        for expr in _flatten(exprs):
            if not isinstance(expr, ColumnExpr):
                raise InvalidArgumentError("expr", expr, "Only column expressions can be selected.")
            add_unique(self._select, expr)
        return self

    def select_distinct(self, *exprs: Any) -> "Command":
        self._distinct = True
        return self.select(*exprs)

    @property
    def select_exprs(self) -> List[ColumnExpr]:
        return list(self._select)

    @property
    def distinct(self) -> bool:
        return self._distinct

    def clear_select(self) -> "Command":
        self._select = []
        self._distinct = False
        return self

    # values

    def set(self, column: Any, value: Any = _UNSET) -> "Command":
        """Set a column value for INSERT or UPDATE, replacing an earlier value."""
        if isinstance(column, SetExpr):
            set_expr = column
        else:
            if value is _UNSET:
                raise InvalidArgumentError("value", None, "A value is required.")
            set_expr = SetExpr(column, value)
        target = set_expr.column
        if not hasattr(target, "check_value"):
            raise InvalidArgumentError("column", target, "Only table columns can be set.")
        if not isinstance(set_expr.value, Expr):
            target.check_value(set_expr.value)
        for i, existing in enumerate(self._set):
            if existing.column is target:
                self._set[i] = set_expr
                return self
        self._set.append(set_expr)
        return self

    def has_set_expr(self, column: Any) -> bool:
        return any(s.column is column for s in self._set)

    @property
    def set_exprs(self) -> List[SetExpr]:
        return list(self._set)

    def clear_set(self) -> "Command":
        self._set = []
        return self

    def add_param(self, data_type: DataType = DataType.UNKNOWN, value: Any = None) -> CmdParam:
        """Create a parameter owned by this command."""
        param = CmdParam(data_type, value)
        self._cmd_params.append(param)
        return param

    @property
    def cmd_params(self) -> List[CmdParam]:
        return list(self._cmd_params)

    # sources and filters

    def join(
        self,
        left: Any,
        right: Any = None,
        join_type: JoinType = JoinType.INNER,
        where: Optional[CompareExpr] = None,
    ) -> "Command":
        join = left if isinstance(left, JoinExpr) else JoinExpr(left, right, join_type, where)
        for existing in self._joins:
            if existing.left is join.left and existing.right is join.right:
                return self
        self._joins.append(join)
        return self

    @property
    def joins(self) -> List[JoinExpr]:
        return list(self._joins)

    def clear_joins(self) -> "Command":
        self._joins = []
        return self

    def where(self, condition: CompareExpr) -> "Command":
        """AND a condition; a contradicting condition on the same column replaces the old one.

        Only single-column comparisons are replaced. Compound conditions are
        always AND-ed so none of their other filters is lost.
        """
        replaceable = _single_column(condition) is not None
        for i, existing in enumerate(self._where):
            if existing.is_same_as(condition):
                return self
            if (
                replaceable
                and _single_column(existing) is not None
                and existing.is_mutually_exclusive(condition)
            ):
                logger.debug("Replacing constraint on %s", getattr(condition, "expr", condition))
                self._where[i] = condition
                return self
        self._where.append(condition)
        return self

    @property
    def where_constraints(self) -> List[CompareExpr]:
        return list(self._where)

    def clear_where(self) -> "Command":
        self._where = []
        return self

    def having(self, condition: CompareExpr) -> "Command":
        for existing in self._having:
            if existing.is_same_as(condition):
                return self
        self._having.append(condition)
        return self

    def clear_having(self) -> "Command":
        self._having = []
        return self

    def group_by(self, *exprs: Any) -> "Command":
        for expr in _flatten(exprs):
            add_unique(self._group_by, expr)
        return self

    def clear_group_by(self) -> "Command":
        self._group_by = []
        return self

    def order_by(self, *exprs: Any, desc: bool = False) -> "Command":
        for expr in _flatten(exprs):
            self._order_by.append(expr if isinstance(expr, OrderByExpr) else OrderByExpr(expr, desc))
        return self

    @property
    def order_by_exprs(self) -> List[OrderByExpr]:
        return list(self._order_by)

    def clear_order_by(self) -> "Command":
        self._order_by = []
        return self

    # pagination

    def limit_rows(self, num_rows: int) -> "Command":
        """Limit the result to ``num_rows``, replacing any earlier limit."""
        if num_rows is None or num_rows < 0:
            raise InvalidArgumentError("num_rows", num_rows)
        self._limit = num_rows
        return self

    def skip_rows(self, num_rows: int) -> "Command":
        """Skip the first ``num_rows`` rows, replacing any earlier value."""
        if num_rows is None or num_rows < 0:
            raise InvalidArgumentError("num_rows", num_rows)
        self._skip = num_rows
        return self

    def clear_limit(self) -> "Command":
        self._limit = None
        self._skip = 0
        return self

    @property
    def limit(self) -> Optional[int]:
        return self._limit

    @property
    def skip(self) -> int:
        return self._skip

    def get_client_window(self) -> Any:
        """Skip/limit the dialect could not push into SQL."""
        return self.driver.pagination.client_window(self._limit, self._skip)

    def has_aggregation(self) -> bool:
        return bool(self._group_by) or any(expr.is_aggregate for expr in self._select)

    # SELECT

    def _referenced_rowsets(self) -> List[Any]:
        refs: List[Any] = []
        for expr in itertools.chain(
            self._select, self._where, self._group_by, self._having, self._order_by
        ):
            expr.add_referenced_columns(refs)
        rowsets: List[Any] = []
        for item in refs:
            rowset = item if isinstance(item, RowSet) else getattr(item, "rowset", None)
            if rowset is None:
                raise ColumnNotFoundError(getattr(item, "name", str(item)))
            add_unique(rowsets, rowset)
        return rowsets

    def _add_from(self, buf: SqlBuffer) -> None:
        rowsets = self._referenced_rowsets()
        if not rowsets and not self._joins:
            pseudo = buf.driver.get_sql_phrase(SqlPhrase.PSEUDO_TABLE)
            if pseudo:
                buf.append("\nFROM ")
                buf.append(pseudo)
            return
        buf.append("\nFROM ")
        joined: List[Any] = []
        for join in self._joins:
            left, right = join.left_rowset, join.right_rowset
            left_in = any(rs is left for rs in joined)
            right_in = any(rs is right for rs in joined)
            if not joined:
                join.add_sql(buf, CTX_DEFAULT)
                joined.extend([left, right])
            elif left_in and not right_in:
                join.add_join_sql(buf, right)
                joined.append(right)
            elif right_in and not left_in:
                join.add_join_sql(buf, left)
                joined.append(left)
            elif left_in and right_in:
                raise InvalidArgumentError(
                    "join", join, f"{left.name} and {right.name} are already joined."
                )
            else:
                buf.append(", ")
                join.add_sql(buf, CTX_DEFAULT)
                joined.extend([left, right])
        first = not joined
        for rowset in rowsets:
            if any(rs is rowset for rs in joined):
                continue
            if not first:
                buf.append(", ")
            rowset.add_sql(buf, CTX_DEFAULT | CTX_ALIAS)
            first = False

    def _add_plain_select(self, buf: SqlBuffer, limit: Optional[int], skip: int) -> None:
        pagination = buf.driver.pagination
        buf.append("SELECT ")
        if self._distinct:
            buf.append("DISTINCT ")
        pagination.add_prefix(buf, limit, skip)
        _add_list(buf, self._select, CTX_ALL, ", ")
        self._add_from(buf)
        if self._where:
            buf.append("\nWHERE ")
            _add_list(buf, self._where, CTX_DEFAULT, " AND ")
        if self._group_by:
            buf.append("\nGROUP BY ")
            _add_list(buf, self._group_by, CTX_DEFAULT, ", ")
        if self._having:
            buf.append("\nHAVING ")
            _add_list(buf, self._having, CTX_DEFAULT, " AND ")
        if self._order_by:
            buf.append("\nORDER BY ")
            _add_list(buf, self._order_by, CTX_DEFAULT, ", ")
        pagination.add_suffix(buf, limit, skip)

    def add_select_sql(self, buf: SqlBuffer) -> None:
        if not self._select:
            raise InvalidPropertyError("select", [], "No columns selected.")
        pagination = buf.driver.pagination
        limit, skip = self._limit, self._skip
        if pagination.wraps(limit, skip):
            pagination.add_wrapped(
                buf, limit, skip, lambda inner: self._add_plain_select(inner, None, 0)
            )
        else:
            self._add_plain_select(buf, limit, skip)

    # INSERT

    def _set_table(self) -> Any:
        if not self._set:
            raise InvalidPropertyError("set", [], "No column values set.")
        table = self._set[0].column.rowset
        for set_expr in self._set:
            if set_expr.column.rowset is not table:
                raise InvalidArgumentError(
                    "set", set_expr.column.name, "All columns must belong to the same table."
                )
        return table

    def _add_insert_sql(self, buf: SqlBuffer) -> None:
        table = self._set_table()
        ordered = sorted(self._set, key=lambda s: _index_in(table.columns, s.column))
        buf.append("INSERT INTO ")
        table.add_sql(buf, CTX_FULLNAME)
        buf.append(" (")
        _add_list(buf, [s.column for s in ordered], CTX_NAME, ", ")
        buf.append(") VALUES (")
        for i, set_expr in enumerate(ordered):
            if i > 0:
                buf.append(", ")
            set_expr.add_value_sql(buf, CTX_DEFAULT)
        buf.append(")")

    def render_insert(self) -> RenderedStatement:
        buf = new_buffer(self.driver)
        self._add_insert_sql(buf)
        return self._finish(buf)

    def get_insert(self) -> str:
        return self.render_insert().sql

    def render_insert_into(
        self, table: Any, columns: Optional[Sequence[Any]] = None
    ) -> RenderedStatement:
        """``INSERT INTO table (...) SELECT ...`` from this command's select list."""
        if columns is None:
            columns = [table.column(expr.name) for expr in self._select]
        if len(columns) != len(self._select):
            raise InvalidArgumentError(
                "columns", columns, "Column count does not match the select list."
            )
        for column in columns:
            if column.rowset is not table:
                raise ColumnNotFoundError(column.name, table.name)
        buf = new_buffer(self.driver)
        buf.append("INSERT INTO ")
        table.add_sql(buf, CTX_FULLNAME)
        buf.append(" (")
        _add_list(buf, list(columns), CTX_NAME, ", ")
        buf.append(")\n")
        self.add_select_sql(buf)
        return self._finish(buf)

    def get_insert_into(self, table: Any, columns: Optional[Sequence[Any]] = None) -> str:
        return self.render_insert_into(table, columns).sql

    # UPDATE / DELETE

    def _check_target_columns(self, table: Any, exprs: Iterable[Expr]) -> None:
        refs: List[Any] = []
        for expr in exprs:
            expr.add_referenced_columns(refs)
        for item in refs:
            rowset = item if isinstance(item, RowSet) else getattr(item, "rowset", None)
            if rowset is not table:
                raise ColumnNotFoundError(getattr(item, "name", str(item)), table.name)

    def _add_where_unqualified(self, buf: SqlBuffer) -> None:
        if self._where:
            buf.append("\nWHERE ")
            _add_list(buf, self._where, _CTX_UNQUALIFIED, " AND ")

    def render_update(self) -> RenderedStatement:
        driver = self.driver
        if self._joins:
            raise NotSupportedError("UPDATE with joins", driver.name)
        table = self._set_table()
        self._check_target_columns(table, itertools.chain(self._set, self._where))
        buf = new_buffer(driver)
        buf.append("UPDATE ")
        table.add_sql(buf, CTX_FULLNAME)
        buf.append("\nSET ")
        _add_list(buf, self._set, _CTX_UNQUALIFIED, ", ")
        self._add_where_unqualified(buf)
        return self._finish(buf)

    def get_update(self) -> str:
        return self.render_update().sql

    def render_delete(self, table: Any) -> RenderedStatement:
        driver = self.driver
        if self._joins:
            raise NotSupportedError("DELETE with joins", driver.name)
        self._check_target_columns(table, self._where)
        buf = new_buffer(driver)
        buf.append("DELETE FROM ")
        table.add_sql(buf, CTX_FULLNAME)
        self._add_where_unqualified(buf)
        return self._finish(buf)

    def get_delete(self, table: Any) -> str:
        return self.render_delete(table).sql

    def __repr__(self) -> str:
        return (
            f"<Command select={len(self._select)} where={len(self._where)} "
            f"joins={len(self._joins)} set={len(self._set)}>"
        )


class CombinedCommand(_Selectable):
    """Two selects joined by UNION, UNION ALL, INTERSECT or EXCEPT."""

    def __init__(self, left: _Selectable, keyword: str, right: _Selectable) -> None:
        self.left = left
        self.keyword = keyword
        self.right = right
        self._order_by: List[OrderByExpr] = []
        self._last_params: List[Any] = []

    def _database(self) -> Any:
        return self.left._database()

    @property
    def select_exprs(self) -> List[ColumnExpr]:
        return self.left.select_exprs

    def order_by(self, *exprs: Any, desc: bool = False) -> "CombinedCommand":
        for expr in _flatten(exprs):
            self._order_by.append(expr if isinstance(expr, OrderByExpr) else OrderByExpr(expr, desc))
        return self

    def clear_order_by(self) -> "CombinedCommand":
        self._order_by = []
        return self

    def clone(self) -> "CombinedCommand":
        other = CombinedCommand(self.left.clone(), self.keyword, self.right.clone())
        other._order_by = list(self._order_by)
        return other

    def _check_order_by(self) -> None:
        select = self.select_exprs
        names = {expr.name.lower() for expr in select}
        for order in self._order_by:
            expr = order.expr
            if any(expr is item for item in select) or expr.name.lower() in names:
                continue
            raise ColumnNotFoundError(expr.name, "select list")

    def add_select_sql(self, buf: SqlBuffer) -> None:
        self._check_order_by()
        self.left.add_select_sql(buf)
        buf.append(f"\n{self.keyword}\n")
        self.right.add_select_sql(buf)
        if self._order_by:
            buf.append("\nORDER BY ")
            _add_list(buf, self._order_by, CTX_NAME, ", ")
