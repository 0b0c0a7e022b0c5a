"""Join expressions between two rowsets."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from rowsmith.errors import ColumnNotFoundError
from rowsmith.expr.base import CTX_ALIAS, CTX_DEFAULT, Expr, SqlBuffer
from rowsmith.expr.compare import CompareExpr


class JoinType(str, Enum):
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"
    RIGHT = "RIGHT JOIN"

    def reversed(self) -> "JoinType":
        if self == JoinType.LEFT:
            return JoinType.RIGHT
        if self == JoinType.RIGHT:
            return JoinType.LEFT
        return self


def _rowset_of(column: Any) -> Any:
    rowset = getattr(column, "rowset", None)
    if rowset is None:
        raise ColumnNotFoundError(getattr(column, "name", str(column)))
    return rowset


class JoinExpr(Expr):
    """``<left rowset> <JOIN> <right rowset> ON left = right [AND extra]``."""

    def __init__(
        self,
        left: Any,
        right: Any,
        join_type: JoinType = JoinType.INNER,
        compare: Optional[CompareExpr] = None,
    ) -> None:
        self.left = left
        self.right = right
        self.join_type = join_type
        self.compare = compare

    @property
    def left_rowset(self) -> Any:
        return _rowset_of(self.left.get_source_column() or self.left)

    @property
    def right_rowset(self) -> Any:
        return _rowset_of(self.right.get_source_column() or self.right)

    def where(self, compare: CompareExpr) -> "JoinExpr":
        """Add an extra condition to the ON clause."""
        self.compare = compare if self.compare is None else self.compare.and_(compare)
        return self

    def add_condition_sql(self, buf: SqlBuffer) -> None:
        self.left.add_sql(buf, CTX_DEFAULT)
        buf.append(" = ")
        self.right.add_sql(buf, CTX_DEFAULT)
        if self.compare is not None:
            buf.append(" AND ")
            self.compare.add_sql(buf, CTX_DEFAULT)

    def add_join_sql(self, buf: SqlBuffer, rowset: Any) -> None:
        """Render `` <JOIN> <rowset> ON ...`` joining ``rowset`` onto what precedes it."""
        join_type = self.join_type if rowset is self.right_rowset else self.join_type.reversed()
        buf.append(f" {join_type.value} ")
        rowset.add_sql(buf, CTX_DEFAULT | CTX_ALIAS)
        buf.append(" ON ")
        self.add_condition_sql(buf)

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        self.left_rowset.add_sql(buf, CTX_DEFAULT | CTX_ALIAS)
        self.add_join_sql(buf, self.right_rowset)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        self.left.add_referenced_columns(columns)
        self.right.add_referenced_columns(columns)
        if self.compare is not None:
            self.compare.add_referenced_columns(columns)

    def is_joined_on(self, rowset: Any) -> bool:
        return rowset is self.left_rowset or rowset is self.right_rowset
