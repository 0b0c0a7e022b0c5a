"""Common base of tables and views."""

from __future__ import annotations

from typing import Any, List, Optional

from rowsmith.dialect.phrases import SqlPhrase
from rowsmith.errors import ColumnNotFoundError, InvalidArgumentError
from rowsmith.expr.base import CTX_ALIAS, Expr, SqlBuffer, add_unique
from rowsmith.expr.column_expr import CountExpr


class RowSet(Expr):
    """A named source of rows with ordered columns."""

    def __init__(self, name: str, database: Any, alias: Optional[str] = None) -> None:
        if not name:
            raise InvalidArgumentError("name", name)
        self.name = name
        self.database = database
        self.alias = alias if alias is not None else database.next_alias()
        self.columns: List[Any] = []

    @property
    def full_name(self) -> str:
        schema = self.database.schema if self.database is not None else None
        return f"{schema}.{self.name}" if schema else self.name

    def get_column(self, name: str) -> Optional[Any]:
        """Return the column called ``name`` (case-insensitive) or None."""
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        return None

    def column(self, name: str) -> Any:
        """Return the column called ``name`` or raise ColumnNotFoundError."""
        found = self.get_column(name)
        if found is None:
            raise ColumnNotFoundError(name, self.name)
        return found

    def __getitem__(self, name: str) -> Any:
        return self.column(name)

    def count(self) -> CountExpr:
        """``count(*)`` over this rowset."""
        return CountExpr(self)

    def add_name_sql(self, buf: SqlBuffer) -> None:
        driver = buf.driver
        schema = self.database.schema if self.database is not None else None
        if schema:
            # "database.owner" schemas are quoted part by part
            for part in schema.split("."):
                driver.append_object_name(buf, part)
                buf.append(".")
        driver.append_object_name(buf, self.name)

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        self.add_name_sql(buf)
        if context & CTX_ALIAS and self.alias:
            buf.append(buf.driver.get_sql_phrase(SqlPhrase.RENAME_TABLE))
            buf.append(self.alias)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        add_unique(columns, self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.full_name}>"
