"""Boolean expressions used in WHERE and HAVING clauses."""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from typing import Any, List, Optional

from rowsmith.data_types import DataType
from rowsmith.errors import InvalidArgumentError
from rowsmith.expr.base import (
    CTX_ALIAS,
    CTX_NOPARENTHESES,
    Expr,
    SqlBuffer,
    collect_columns,
    render_value,
)


class CompareOp(str, Enum):
    """Comparison operators."""

    EQUAL = "="
    NOTEQUAL = "<>"
    LESSTHAN = "<"
    LESSOREQUAL = "<="
    GREATERTHAN = ">"
    MOREOREQUAL = ">="
    LIKE = "LIKE"
    NOTLIKE = "NOT LIKE"
    NULL = "IS NULL"
    NOTNULL = "IS NOT NULL"
    BETWEEN = "BETWEEN"
    NOTBETWEEN = "NOT BETWEEN"
    IN = "IN"
    NOTIN = "NOT IN"


_NULL_MARK = object()


class CompareExpr(Expr):
    """Base class of boolean expressions."""

    @abstractmethod
    def is_mutually_exclusive(self, other: "CompareExpr") -> bool:
        """Return True when this and ``other`` can never both hold."""

    def is_same_as(self, other: "CompareExpr") -> bool:
        return other is self

    def and_(self, other: "CompareExpr") -> "CompareAndOrExpr":
        return CompareAndOrExpr(self, other, or_=False)

    def or_(self, other: "CompareExpr") -> "CompareAndOrExpr":
        return CompareAndOrExpr(self, other, or_=True)

    def not_(self) -> "CompareNotExpr":
        return CompareNotExpr(self)

    def parenthesis(self) -> "ParenthesisExpr":
        return ParenthesisExpr(self)


class CompareColExpr(CompareExpr):
    """``<expr> <op> <value>`` for a column expression."""

    def __init__(self, expr: Any, op: CompareOp, value: Any = None) -> None:
        if value is None and op == CompareOp.EQUAL:
            op = CompareOp.NULL
        elif value is None and op == CompareOp.NOTEQUAL:
            op = CompareOp.NOTNULL
        if op in (CompareOp.IN, CompareOp.NOTIN) and not isinstance(value, Expr):
            if isinstance(value, (set, frozenset)):
                value = sorted(value, key=repr)
            elif not isinstance(value, (list, tuple)):
                value = [value]
            if not value:
                raise InvalidArgumentError("value", value, f"{op.value} requires at least one value.")
            value = list(value)
        if op in (CompareOp.BETWEEN, CompareOp.NOTBETWEEN):
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidArgumentError("value", value, f"{op.value} requires two values.")
            value = list(value)
        self.expr = expr
        self.op = op
        self.value = value

    def _value_set(self) -> Optional[frozenset]:
        if self.op == CompareOp.NULL:
            return frozenset([_NULL_MARK])
        if self.op == CompareOp.EQUAL:
            values = [self.value]
        elif self.op == CompareOp.IN and isinstance(self.value, list):
            values = self.value
        else:
            return None
        if any(isinstance(v, Expr) for v in values):
            return None
        try:
            return frozenset(values)
        except TypeError:
            return None

    def is_mutually_exclusive(self, other: CompareExpr) -> bool:
        if isinstance(other, ParenthesisExpr):
            return other.is_mutually_exclusive(self)
        if not isinstance(other, CompareColExpr) or other.expr is not self.expr:
            return False
        ops = {self.op, other.op}
        if ops == {CompareOp.NULL, CompareOp.NOTNULL}:
            return True
        mine, theirs = self._value_set(), other._value_set()
        if mine is None or theirs is None:
            return False
        return mine.isdisjoint(theirs)

    def is_same_as(self, other: CompareExpr) -> bool:
        if not isinstance(other, CompareColExpr):
            return False
        return other.expr is self.expr and other.op == self.op and other.value == self.value

    def _data_type(self) -> DataType:
        data_type = getattr(self.expr, "data_type", DataType.UNKNOWN)
        if self.op in (CompareOp.LIKE, CompareOp.NOTLIKE):
            return DataType.VARCHAR
        return data_type

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        context &= ~(CTX_ALIAS | CTX_NOPARENTHESES)
        self.expr.add_sql(buf, context)
        buf.append(" ")
        buf.append(self.op.value)
        if self.op in (CompareOp.NULL, CompareOp.NOTNULL):
            return
        buf.append(" ")
        data_type = self._data_type()
        if self.op in (CompareOp.BETWEEN, CompareOp.NOTBETWEEN):
            render_value(buf, self.value[0], data_type, context)
            buf.append(" AND ")
            render_value(buf, self.value[1], data_type, context)
        elif self.op in (CompareOp.IN, CompareOp.NOTIN):
            buf.append("(")
            if isinstance(self.value, Expr):
                self.value.add_sql(buf, context)
            else:
                for i, item in enumerate(self.value):
                    if i > 0:
                        buf.append(", ")
                    render_value(buf, item, data_type, context)
            buf.append(")")
        else:
            render_value(buf, self.value, data_type, context)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)
        collect_columns(self.value, columns)


class CompareAndOrExpr(CompareExpr):
    """Two conditions joined by AND or OR."""

    def __init__(self, left: CompareExpr, right: CompareExpr, or_: bool = False) -> None:
        self.left = left
        self.right = right
        self.is_or = or_

    def is_mutually_exclusive(self, other: CompareExpr) -> bool:
        if self.is_or:
            return self.left.is_mutually_exclusive(other) and self.right.is_mutually_exclusive(
                other
            )
        return self.left.is_mutually_exclusive(other) or self.right.is_mutually_exclusive(other)

    def is_same_as(self, other: CompareExpr) -> bool:
        return (
            isinstance(other, CompareAndOrExpr)
            and other.is_or == self.is_or
            and self.left.is_same_as(other.left)
            and self.right.is_same_as(other.right)
        )

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        wrap = self.is_or and not (context & CTX_NOPARENTHESES)
        context &= ~CTX_NOPARENTHESES
        if wrap:
            buf.append("(")
        self.left.add_sql(buf, context)
        buf.append(" OR " if self.is_or else " AND ")
        self.right.add_sql(buf, context)
        if wrap:
            buf.append(")")

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.left.add_referenced_columns(columns)
        self.right.add_referenced_columns(columns)


class CompareNotExpr(CompareExpr):
    """Negation of a condition."""

    def __init__(self, expr: CompareExpr) -> None:
        self.expr = expr

    def is_mutually_exclusive(self, other: CompareExpr) -> bool:
        return False

    def is_same_as(self, other: CompareExpr) -> bool:
        return isinstance(other, CompareNotExpr) and self.expr.is_same_as(other.expr)

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        buf.append("NOT (")
        self.expr.add_sql(buf, context | CTX_NOPARENTHESES)
        buf.append(")")

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.expr.add_referenced_columns(columns)


class ParenthesisExpr(CompareExpr):
    """Forces parentheses around the wrapped condition."""

    def __init__(self, wrapped: CompareExpr) -> None:
        self.wrapped = wrapped

    def is_mutually_exclusive(self, other: CompareExpr) -> bool:
        return self.wrapped.is_mutually_exclusive(other)

    def is_same_as(self, other: CompareExpr) -> bool:
        if isinstance(other, ParenthesisExpr):
            return self.wrapped.is_same_as(other.wrapped)
        return self.wrapped.is_same_as(other)

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        buf.append("(")
        # the wrapped node must not add a second pair
        self.wrapped.add_sql(buf, context | CTX_NOPARENTHESES)
        buf.append(")")

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.wrapped.add_referenced_columns(columns)


class ExistsExpr(CompareExpr):
    """``EXISTS (<subquery>)``."""

    def __init__(self, command: Expr) -> None:
        self.command = command

    def is_mutually_exclusive(self, other: CompareExpr) -> bool:
        return False

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        buf.append("EXISTS (")
        self.command.add_sql(buf, context)
        buf.append(")")
