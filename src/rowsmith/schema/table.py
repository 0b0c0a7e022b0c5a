"""Tables and indexes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence

from rowsmith.data_types import DataMode, DataType
from rowsmith.errors import InvalidArgumentError
from rowsmith.schema.column import TableColumn
from rowsmith.schema.rowset import RowSet

logger = logging.getLogger(__name__)


class IndexType(str, Enum):
    NORMAL = "NORMAL"
    UNIQUE = "UNIQUE"
    PRIMARY_KEY = "PRIMARY_KEY"


@dataclass
class Index:
    """An ordered list of columns of one table."""

    name: str
    columns: List[TableColumn] = field(default_factory=list)
    index_type: IndexType = IndexType.NORMAL
    table: Any = None

    @property
    def unique(self) -> bool:
        return self.index_type in (IndexType.UNIQUE, IndexType.PRIMARY_KEY)

    def contains(self, column: TableColumn) -> bool:
        return any(col is column for col in self.columns)


class Table(RowSet):
    """A database table. Registers itself with ``database`` on creation."""

    def __init__(self, name: str, database: Any, alias: Optional[str] = None) -> None:
        super().__init__(name, database, alias)
        self.primary_key: Optional[Index] = None
        self.indexes: List[Index] = []
        database.add_table(self)

    def add_column(
        self,
        name: str,
        data_type: DataType,
        size: float = 0,
        required: bool = False,
        default: Any = None,
        data_mode: Optional[DataMode] = None,
        quoted: Optional[bool] = None,
        **attributes: Any,
    ) -> TableColumn:
        """Append a column; columns render in the order they were added."""
        if not name:
            raise InvalidArgumentError("name", name)
        if self.get_column(name) is not None:
            raise InvalidArgumentError("name", name, f"Column '{name}' already exists in {self.name}.")
        if data_mode is None:
            data_mode = DataMode.NOT_NULL if required else DataMode.NULLABLE
        column = TableColumn(
            self, name, data_type, size, data_mode, default, quoted=quoted, **attributes
        )
        self.columns.append(column)
        return column

    def _check_own(self, columns: Sequence[TableColumn]) -> List[TableColumn]:
        if not columns:
            raise InvalidArgumentError("columns", columns, "At least one column is required.")
        for column in columns:
            if column.rowset is not self:
                raise InvalidArgumentError(
                    "columns", column.name, f"Column '{column.name}' does not belong to {self.name}."
                )
        return list(columns)

    def set_primary_key(self, *columns: TableColumn) -> Index:
        """Set the primary key; its columns become NOT NULL."""
        columns = self._check_own(columns)
        for column in columns:
            if not column.auto_generated:
                column.data_mode = DataMode.NOT_NULL
        self.primary_key = Index(f"{self.name}_PK", columns, IndexType.PRIMARY_KEY, self)
        return self.primary_key

    @property
    def key_columns(self) -> List[TableColumn]:
        return list(self.primary_key.columns) if self.primary_key else []

    def add_index(self, name: str, unique: bool, *columns: TableColumn) -> Index:
        if not name:
            raise InvalidArgumentError("name", name)
        columns = self._check_own(columns)
        index = Index(name, columns, IndexType.UNIQUE if unique else IndexType.NORMAL, self)
        self.indexes.append(index)
        return index

    def is_key_or_unique(self, column: TableColumn) -> bool:
        if self.primary_key is not None and self.primary_key.contains(column):
            return True
        return any(index.unique and index.contains(column) for index in self.indexes)

    @property
    def relations(self) -> List[Any]:
        """Foreign keys whose source columns live in this table."""
        return [rel for rel in self.database.relations if rel.source_table is self]

    def get_autoinc_column(self) -> Optional[TableColumn]:
        for column in self.columns:
            if column.data_type == DataType.AUTOINC:
                return column
        return None
