"""Column expressions: anything that can appear in a select list."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Sequence, Tuple

from rowsmith.data_types import DataType, infer_data_type
from rowsmith.dialect.phrases import AGGREGATE_PHRASES, SqlPhrase
from rowsmith.expr.base import (
    CTX_ALIAS,
    CTX_NAME,
    CTX_NOPARENTHESES,
    CTX_VALUE,
    Expr,
    SqlBuffer,
    add_unique,
    collect_columns,
    render_value,
)
from rowsmith.expr.compare import CompareColExpr, CompareOp

logger = logging.getLogger(__name__)

_TEMPLATE_TOKEN = re.compile(r"\?|\{(\d+)\}")


class ColumnExpr(Expr):
    """Base class of expressions with a name and a data type."""

    @property
    def name(self) -> str:
        raise NotImplementedError

    @property
    def data_type(self) -> DataType:
        raise NotImplementedError

    @property
    def is_aggregate(self) -> bool:
        return False

    def get_source_column(self) -> Optional[Any]:
        """Return the schema column this expression is based on, if any."""
        return None

    # comparisons

    def cmp(self, op: CompareOp, value: Any = None) -> CompareColExpr:
        return CompareColExpr(self, op, value)

    def is_(self, value: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.EQUAL, value)

    def is_not(self, value: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.NOTEQUAL, value)

    def is_null(self) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.NULL)

    def is_not_null(self) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.NOTNULL)

    def is_less_than(self, value: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.LESSTHAN, value)

    def is_less_or_equal(self, value: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.LESSOREQUAL, value)

    def is_greater_than(self, value: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.GREATERTHAN, value)

    def is_more_or_equal(self, value: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.MOREOREQUAL, value)

    def like(self, pattern: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.LIKE, pattern)

    def not_like(self, pattern: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.NOTLIKE, pattern)

    def is_between(self, low: Any, high: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.BETWEEN, [low, high])

    def is_not_between(self, low: Any, high: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.NOTBETWEEN, [low, high])

    def in_(self, values: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.IN, values)

    def not_in(self, values: Any) -> CompareColExpr:
        return CompareColExpr(self, CompareOp.NOTIN, values)

    # ordering and naming

    def asc(self) -> "OrderByExpr":
        return OrderByExpr(self, descending=False)

    def desc(self) -> "OrderByExpr":
        return OrderByExpr(self, descending=True)

    def as_(self, alias: str) -> "AliasExpr":
        return AliasExpr(self, alias)

    # functions

    def function(
        self,
        phrase: SqlPhrase,
        *params: Any,
        data_type: Optional[DataType] = None,
    ) -> "FuncExpr":
        return FuncExpr(self, phrase, params, data_type=data_type)

    def upper(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_UPPER)

    def lower(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_LOWER)

    def trim(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_TRIM)

    def trim_left(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_LTRIM)

    def trim_right(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_RTRIM)

    def length(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_LENGTH, data_type=DataType.INTEGER)

    def reverse(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_REVERSE)

    def substring(self, pos: Any, length: Any = None) -> "FuncExpr":
        if length is None:
            return self.function(SqlPhrase.FUNC_SUBSTRING, pos)
        return self.function(SqlPhrase.FUNC_SUBSTRINGEX, pos, length)

    def replace(self, match: Any, replacement: Any) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_REPLACE, match, replacement)

    def index_of(self, text: Any, from_pos: Any = None) -> "FuncExpr":
        if from_pos is None:
            return self.function(SqlPhrase.FUNC_STRINDEX, text, data_type=DataType.INTEGER)
        return self.function(
            SqlPhrase.FUNC_STRINDEXFROM, text, from_pos, data_type=DataType.INTEGER
        )

    def coalesce(self, value: Any) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_COALESCE, value)

    def abs(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_ABS)

    def round(self, decimals: int = 0) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_ROUND, decimals)

    def trunc(self, decimals: int = 0) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_TRUNC, decimals)

    def ceiling(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_CEILING)

    def floor(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_FLOOR)

    def modulo(self, divisor: Any) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_MOD, divisor)

    def day(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_DAY, data_type=DataType.INTEGER)

    def month(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_MONTH, data_type=DataType.INTEGER)

    def year(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_YEAR, data_type=DataType.INTEGER)

    def sum(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_SUM)

    def min(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_MIN)

    def max(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_MAX)

    def avg(self) -> "FuncExpr":
        return self.function(SqlPhrase.FUNC_AVG, data_type=DataType.DECIMAL)

    def count(self, distinct: bool = False) -> "CountExpr":
        return CountExpr(self, distinct=distinct)

    def append(self, *values: Any) -> "ConcatExpr":
        return ConcatExpr(self, *values)

    def convert_to(self, data_type: DataType, fmt: Optional[str] = None) -> "ConvertExpr":
        return ConvertExpr(self, data_type, fmt)

    def decode(
        self,
        cases: Sequence[Tuple[Any, Any]],
        otherwise: Any = None,
        data_type: Optional[DataType] = None,
    ) -> "DecodeExpr":
        return DecodeExpr(self, cases, otherwise, data_type)


def _inner_context(context: int) -> int:
    return context & ~(CTX_ALIAS | CTX_NOPARENTHESES)


class ValueExpr(ColumnExpr):
    """A literal value (or bound parameter) used as an expression."""

    def __init__(self, value: Any, data_type: Optional[DataType] = None, name: str = "value"):
        self.value = value
        self._data_type = data_type or infer_data_type(value)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def data_type(self) -> DataType:
        return self._data_type

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        render_value(buf, self.value, self._data_type, _inner_context(context))

    def add_referenced_columns(self, columns: List[Any]) -> None:
        collect_columns(self.value, columns)


def add_template(
    buf: SqlBuffer,
    template: str,
    operand: Optional[Expr],
    params: Sequence[Any],
    context: int,
) -> None:
    """Render a phrase template, replacing ``?`` and ``{n}`` left to right."""
    pos = 0
    for match in _TEMPLATE_TOKEN.finditer(template):
        if match.start() > pos:
            buf.append(template[pos : match.start()])
        if match.group(1) is None:
            if operand is not None:
                operand.add_sql(buf, context)
            else:
                buf.append("?")
        else:
            index = int(match.group(1))
            if index < len(params):
                param = params[index]
                render_value(buf, param, infer_data_type(param), context)
            else:
                logger.error("Template %r references missing argument {%d}", template, index)
        pos = match.end()
    if pos < len(template):
        buf.append(template[pos:])


class FuncExpr(ColumnExpr):
    """A dialect function given by a phrase template."""

    def __init__(
        self,
        expr: ColumnExpr,
        phrase: SqlPhrase,
        params: Sequence[Any] = (),
        data_type: Optional[DataType] = None,
        aggregate: Optional[bool] = None,
    ) -> None:
        self.expr = expr
        self.phrase = phrase
        self.params = list(params)
        self._data_type = data_type
        self._aggregate = phrase in AGGREGATE_PHRASES if aggregate is None else aggregate

    @property
    def name(self) -> str:
        return self.expr.name

    @property
    def data_type(self) -> DataType:
        return self._data_type or self.expr.data_type

    @property
    def is_aggregate(self) -> bool:
        return self._aggregate or self.expr.is_aggregate

    def get_source_column(self) -> Optional[Any]:
        return self.expr.get_source_column()

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        template = buf.driver.get_sql_phrase(self.phrase)
        add_template(buf, template, self.expr, self.params, _inner_context(context))

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)
        collect_columns(self.params, columns)


class CountExpr(ColumnExpr):
    """``count(*)`` over a rowset or ``count([distinct] expr)``."""

    def __init__(self, source: Any, distinct: bool = False) -> None:
        self.source = source
        self.distinct = distinct

    @property
    def name(self) -> str:
        return "count"

    @property
    def data_type(self) -> DataType:
        return DataType.INTEGER

    @property
    def is_aggregate(self) -> bool:
        return True

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        if not isinstance(self.source, ColumnExpr):
            buf.append("count(*)")
            return
        buf.append("count(distinct " if self.distinct else "count(")
        self.source.add_sql(buf, _inner_context(context))
        buf.append(")")

    def add_referenced_columns(self, columns: List[Any]) -> None:
        if isinstance(self.source, Expr) and not isinstance(self.source, ColumnExpr):
            add_unique(columns, self.source)
        else:
            self.source.add_referenced_columns(columns)


class AliasExpr(ColumnExpr):
    """Renames an expression in the select list."""

    def __init__(self, expr: ColumnExpr, alias: str) -> None:
        self.expr = expr
        self.alias = alias

    @property
    def name(self) -> str:
        return self.alias

    @property
    def data_type(self) -> DataType:
        return self.expr.data_type

    @property
    def is_aggregate(self) -> bool:
        return self.expr.is_aggregate

    def get_source_column(self) -> Optional[Any]:
        return self.expr.get_source_column()

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        if context & CTX_ALIAS:
            self.expr.add_sql(buf, _inner_context(context))
            buf.append(buf.driver.get_sql_phrase(SqlPhrase.RENAME_COLUMN))
            buf.driver.append_object_name(buf, self.alias)
        elif context & CTX_NAME and not context & CTX_VALUE:
            buf.driver.append_object_name(buf, self.alias)
        else:
            self.expr.add_sql(buf, context)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)


class ConcatExpr(ColumnExpr):
    """String concatenation with the dialect's concat operator or function."""

    def __init__(self, expr: ColumnExpr, *values: Any) -> None:
        if not values:
            raise ValueError("ConcatExpr requires at least one value to append")
        self.expr = expr
        self.values = list(values)

    @property
    def name(self) -> str:
        return self.expr.name

    @property
    def data_type(self) -> DataType:
        return DataType.VARCHAR

    def get_source_column(self) -> Optional[Any]:
        return self.expr.get_source_column()

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        context = _inner_context(context)
        template = buf.driver.get_sql_phrase(SqlPhrase.CONCAT_EXPR)
        if "?" in template:
            # function style, nested left to right
            head, _, tail = template.partition("?")
            before, _, after = tail.partition("{0}")
            buf.append(head * len(self.values))
            self.expr.add_sql(buf, context)
            for value in self.values:
                buf.append(before)
                render_value(buf, value, DataType.VARCHAR, context)
                buf.append(after)
            return
        self.expr.add_sql(buf, context)
        for value in self.values:
            buf.append(template)
            render_value(buf, value, DataType.VARCHAR, context)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)
        collect_columns(self.values, columns)


class ConvertExpr(ColumnExpr):
    """Converts an expression to another data type via the dialect's convert phrase."""

    def __init__(self, expr: ColumnExpr, data_type: DataType, fmt: Optional[str] = None) -> None:
        self.expr = expr
        self._data_type = data_type
        self.format = fmt

    @property
    def name(self) -> str:
        return self.expr.name

    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def is_aggregate(self) -> bool:
        return self.expr.is_aggregate

    def get_source_column(self) -> Optional[Any]:
        return self.expr.get_source_column()

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        template = buf.driver.get_convert_phrase(self._data_type, self.expr.data_type, self.format)
        add_template(buf, template, self.expr, [], _inner_context(context))

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)


class DecodeExpr(ColumnExpr):
    """``CASE expr WHEN a THEN b ... ELSE c END``."""

    def __init__(
        self,
        expr: ColumnExpr,
        cases: Sequence[Tuple[Any, Any]],
        otherwise: Any = None,
        data_type: Optional[DataType] = None,
    ) -> None:
        self.expr = expr
        self.cases = [tuple(case) for case in cases]
        self.otherwise = otherwise
        self._data_type = data_type

    @property
    def name(self) -> str:
        return self.expr.name

    @property
    def data_type(self) -> DataType:
        if self._data_type is not None:
            return self._data_type
        if self.cases:
            return infer_data_type(self.cases[0][1])
        return self.expr.data_type

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        context = _inner_context(context)
        driver = buf.driver
        template = driver.get_sql_phrase(SqlPhrase.FUNC_DECODE)
        separator = driver.get_sql_phrase(SqlPhrase.FUNC_DECODE_SEP)
        part = driver.get_sql_phrase(SqlPhrase.FUNC_DECODE_PART)
        head, _, rest = template.partition("?")
        middle, _, tail = rest.partition("{0}")
        buf.append(head)
        self.expr.add_sql(buf, context)
        buf.append(middle)
        for i, (when, then) in enumerate(self.cases):
            if i > 0:
                buf.append(separator)
            add_template(buf, part, None, [when, then], context)
        if self.otherwise is not None:
            if self.cases:
                buf.append(separator)
            add_template(
                buf, driver.get_sql_phrase(SqlPhrase.FUNC_DECODE_ELSE), None, [self.otherwise], context
            )
        buf.append(tail)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)
        for when, then in self.cases:
            collect_columns(when, columns)
            collect_columns(then, columns)
        collect_columns(self.otherwise, columns)


class OrderByExpr(Expr):
    """An ORDER BY item."""

    def __init__(self, expr: ColumnExpr, descending: bool = False) -> None:
        self.expr = expr
        self.descending = descending

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        self.expr.add_sql(buf, _inner_context(context))
        if self.descending:
            buf.append(" DESC")

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)


class SetExpr(Expr):
    """``column=value`` in an UPDATE, or a column/value pair of an INSERT."""

    def __init__(self, column: Any, value: Any) -> None:
        self.column = column
        self.value = value

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        self.column.add_sql(buf, CTX_NAME)
        buf.append("=")
        self.add_value_sql(buf, context)

    def add_value_sql(self, buf: SqlBuffer, context: int) -> None:
        render_value(buf, self.value, self.column.data_type, _inner_context(context))

    def add_referenced_columns(self, columns: List[Any]) -> None:
        add_unique(columns, self.column)
        collect_columns(self.value, columns)
