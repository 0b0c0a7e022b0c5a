"""Views backed by a select command."""

from __future__ import annotations

from typing import Any, Optional

from rowsmith.data_types import DataType
from rowsmith.errors import InvalidArgumentError, InvalidPropertyError
from rowsmith.schema.column import ViewColumn
from rowsmith.schema.rowset import RowSet


class View(RowSet):
    """A rowset defined by a command. Registers itself with ``database``."""

    def __init__(
        self,
        name: str,
        database: Any,
        command: Optional[Any] = None,
        alias: Optional[str] = None,
    ) -> None:
        super().__init__(name, database, alias)
        self._command = command
        if command is not None:
            for expr in command.select_exprs:
                self.add_column(expr.name, expr.data_type, source=expr)
        database.add_view(self)

    def add_column(
        self,
        name: str,
        data_type: DataType,
        size: float = 0,
        source: Optional[Any] = None,
    ) -> ViewColumn:
        if self.get_column(name) is not None:
            raise InvalidArgumentError("name", name, f"Column '{name}' already exists in {self.name}.")
        column = ViewColumn(self, name, data_type, size, source)
        self.columns.append(column)
        return column

    def create_command(self) -> Any:
        """Return a fresh copy of the defining command."""
        if self._command is None:
            raise InvalidPropertyError("command", None, f"View '{self.name}' has no command.")
        return self._command.clone()
