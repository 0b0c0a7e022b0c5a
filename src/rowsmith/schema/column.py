"""Table and view columns."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from rowsmith.data_types import (
    EMPTY_STRING,
    SYSDATE,
    DataMode,
    DataType,
    convert_value,
    is_empty,
    parse_datetime,
)
from rowsmith.errors import (
    ColumnNotFoundError,
    FieldInvalidDateFormatError,
    FieldNotNullError,
    FieldNotNumericError,
    FieldValueTooLongError,
    InvalidPropertyError,
)
from rowsmith.expr.base import CTX_FULLNAME, Expr, SqlBuffer, add_unique
from rowsmith.expr.column_expr import ColumnExpr, SetExpr

logger = logging.getLogger(__name__)


class Column(ColumnExpr):
    """A named column owned by a rowset."""

    def __init__(
        self,
        rowset: Any,
        name: str,
        data_type: DataType,
        size: float = 0,
        quoted: Optional[bool] = None,
        **attributes: Any,
    ) -> None:
        self.rowset = rowset
        self._name = name
        self._data_type = data_type
        self.size = size
        self.quoted = quoted
        self.attributes: Dict[str, Any] = dict(attributes)

    @property
    def name(self) -> str:
        return self._name

    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def full_name(self) -> str:
        if self.rowset is None:
            return self._name
        return f"{self.rowset.name}.{self._name}"

    @property
    def required(self) -> bool:
        return False

    @property
    def read_only(self) -> bool:
        return True

    @property
    def auto_generated(self) -> bool:
        return False

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> "Column":
        self.attributes[name] = value
        return self

    def get_source_column(self) -> "Column":
        return self

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        if self.rowset is None:
            raise ColumnNotFoundError(self._name)
        if context & CTX_FULLNAME and self.rowset.alias:
            buf.append(self.rowset.alias)
            buf.append(".")
        buf.driver.append_object_name(buf, self._name, self.quoted)

    def add_referenced_columns(self, columns: List[Any]) -> None:
        add_unique(columns, self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.full_name} {self._data_type.value}>"


class TableColumn(Column):
    """A physical table column with a data mode and optional default."""

    def __init__(
        self,
        table: Any,
        name: str,
        data_type: DataType,
        size: float = 0,
        data_mode: DataMode = DataMode.NULLABLE,
        default: Any = None,
        quoted: Optional[bool] = None,
        **attributes: Any,
    ) -> None:
        if data_type == DataType.AUTOINC:
            data_mode = DataMode.AUTO_GENERATED
        elif data_type == DataType.INTEGER and data_mode == DataMode.AUTO_GENERATED:
            data_type = DataType.AUTOINC
        if data_type == DataType.AUTOINC and isinstance(default, str):
            # a string default on an identity column names its sequence
            attributes.setdefault("sequence_name", default)
            default = None
        super().__init__(table, name, data_type, size, quoted, **attributes)
        self.data_mode = data_mode
        self.default = default

    @property
    def table(self) -> Any:
        return self.rowset

    @property
    def required(self) -> bool:
        return self.data_mode == DataMode.NOT_NULL

    @property
    def read_only(self) -> bool:
        return self.data_mode in (DataMode.READ_ONLY, DataMode.AUTO_GENERATED)

    @property
    def auto_generated(self) -> bool:
        return self.data_mode == DataMode.AUTO_GENERATED

    @property
    def sequence_name(self) -> str:
        return self.attributes.get("sequence_name") or f"{self.rowset.name}_{self._name}"

    @property
    def min_value(self) -> int:
        return int(self.attributes.get("min_value", 1))

    def set_required(self, required: bool) -> "TableColumn":
        if self.auto_generated:
            raise InvalidPropertyError(
                "required", required, f"Column '{self._name}' is auto-generated."
            )
        self.data_mode = DataMode.NOT_NULL if required else DataMode.NULLABLE
        return self

    def set_read_only(self, read_only: bool) -> "TableColumn":
        if self.auto_generated:
            raise InvalidPropertyError(
                "read_only", read_only, f"Column '{self._name}' is auto-generated."
            )
        self.data_mode = DataMode.READ_ONLY if read_only else DataMode.NULLABLE
        return self

    def set_size(self, size: float) -> "TableColumn":
        self.size = size
        return self

    def to(self, value: Any) -> SetExpr:
        """Return ``column=value`` for UPDATE and INSERT commands."""
        return SetExpr(self, value)

    def check_value(self, value: Any) -> None:
        """Validate a value before it is bound to this column."""
        if is_empty(value):
            if self.required and not self.auto_generated:
                raise FieldNotNullError(self._name)
            return
        if value is SYSDATE or value is EMPTY_STRING or isinstance(value, Expr):
            return
        if isinstance(value, Enum):
            value = value.value
        data_type = self._data_type
        if data_type.is_numeric:
            if isinstance(value, (int, float, Decimal)):
                return
            try:
                convert_value(value, data_type)
            except (ValueError, TypeError, ArithmeticError) as exc:
                raise FieldNotNumericError(self._name) from exc
        elif data_type.is_date:
            if isinstance(value, date):
                return
            try:
                parse_datetime(value)
            except ValueError as exc:
                raise FieldInvalidDateFormatError(self._name) from exc
        elif data_type in (DataType.VARCHAR, DataType.CHAR):
            max_length = int(self.size or 0)
            if max_length > 0 and len(str(value)) > max_length:
                raise FieldValueTooLongError(self._name, max_length)

    def clone_to(self, table: Any) -> "TableColumn":
        """Copy this column into ``table`` and return the copy."""
        return table.add_column(
            self._name,
            self._data_type,
            self.size,
            data_mode=self.data_mode,
            default=self.default,
            quoted=self.quoted,
            **self.attributes,
        )

    def reference_on(self, target: "TableColumn") -> "Reference":
        return Reference(self, target)


class ViewColumn(Column):
    """A column of a view, usually derived from its select list."""

    def __init__(
        self,
        view: Any,
        name: str,
        data_type: DataType,
        size: float = 0,
        source: Optional[ColumnExpr] = None,
    ) -> None:
        super().__init__(view, name, data_type, size)
        self.source = source

    @property
    def view(self) -> Any:
        return self.rowset

    @property
    def update_column(self) -> Optional[Column]:
        """The table column this view column maps to, if any."""
        if self.source is None:
            return None
        return self.source.get_source_column()


class Reference:
    """A (source, target) column pair of a foreign key."""

    __slots__ = ("source", "target")

    def __init__(self, source: TableColumn, target: TableColumn) -> None:
        self.source = source
        self.target = target

    def __iter__(self):
        return iter((self.source, self.target))

    def __repr__(self) -> str:
        return f"Reference({self.source.full_name} -> {self.target.full_name})"
