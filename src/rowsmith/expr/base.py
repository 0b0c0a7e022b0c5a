"""Render contexts, the SQL buffer and the expression base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from rowsmith.data_types import (
    EMPTY_STRING,
    SYSDATE,
    BlobData,
    ClobData,
    DataType,
    is_empty,
)

# Render context flags
CTX_NAME = 0x0001
CTX_FULLNAME = 0x0002
CTX_VALUE = 0x0004
CTX_ALIAS = 0x0008
CTX_NOPARENTHESES = 0x0010

CTX_DEFAULT = CTX_FULLNAME | CTX_VALUE
CTX_ALL = CTX_NAME | CTX_FULLNAME | CTX_VALUE | CTX_ALIAS


class _Placeholder:
    __slots__ = ("param",)

    def __init__(self, param: Any) -> None:
        self.param = param


def placeholder_for(paramstyle: str, index: int) -> str:
    """Return the DB-API placeholder for the 1-based parameter ``index``."""
    if paramstyle == "format":
        return "%s"
    if paramstyle == "numeric":
        return f":{index}"
    return "?"


class SqlBuffer:
    """Accumulates SQL text and parameter placeholders in textual order."""

    def __init__(self, driver: Any, auto_prepare: bool = False) -> None:
        self.driver = driver
        self.auto_prepare = auto_prepare
        self._parts: List[Any] = []
        self._params: List[Any] = []

    def append(self, text: str) -> "SqlBuffer":
        self._parts.append(text)
        return self

    def add_param(self, param: Any) -> None:
        """Append a placeholder bound to ``param`` (a CmdParam or a plain value)."""
        self._parts.append(_Placeholder(param))
        self._params.append(param)

    def use_param(self, value: Any, data_type: DataType) -> bool:
        """Return True when ``value`` must be bound instead of inlined."""
        if is_empty(value) or value is SYSDATE or value is EMPTY_STRING:
            return False
        if isinstance(value, (BlobData, ClobData, bytes, bytearray, memoryview)):
            return True
        if data_type in (DataType.BLOB, DataType.CLOB):
            return True
        return self.auto_prepare

    @property
    def params(self) -> List[Any]:
        return list(self._params)

    def param_values(self) -> List[Any]:
        """Return parameter values in placeholder order, resolving CmdParams."""
        return [p.value if isinstance(p, CmdParam) else p for p in self._params]

    def getvalue(self) -> str:
        style = self.driver.paramstyle
        escape_percent = style == "format" and bool(self._params)
        out: List[str] = []
        index = 0
        for part in self._parts:
            if isinstance(part, _Placeholder):
                index += 1
                out.append(placeholder_for(style, index))
            elif escape_percent:
                out.append(part.replace("%", "%%"))
            else:
                out.append(part)
        return "".join(out)

    def __str__(self) -> str:
        return self.getvalue()


class Expr(ABC):
    """Base class of every node that renders into a SQL fragment."""

    @abstractmethod
    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        """Append this node's SQL for ``context`` to ``buf``."""

    def add_referenced_columns(self, columns: List[Any]) -> None:
        """Append the columns (or rowsets) this node references, in order of appearance."""
        return None

    def get_referenced_columns(self) -> List[Any]:
        found: List[Any] = []
        self.add_referenced_columns(found)
        return found


class CmdParam(Expr):
    """A statement parameter whose value is bound at execution time."""

    def __init__(self, data_type: DataType = DataType.UNKNOWN, value: Any = None) -> None:
        self.data_type = data_type
        self.value = value

    def add_sql(self, buf: SqlBuffer, context: int) -> None:
        buf.add_param(self)

    def __repr__(self) -> str:
        return f"CmdParam({self.data_type.value}, {self.value!r})"


def render_value(
    buf: SqlBuffer, value: Any, data_type: DataType, context: int = CTX_DEFAULT
) -> None:
    """Render an expression, a parameter or a plain value at the current position."""
    if isinstance(value, Expr):
        value.add_sql(buf, context)
    elif buf.use_param(value, data_type):
        buf.add_param(value)
    else:
        buf.append(buf.driver.get_value_string(value, data_type))


def add_unique(columns: List[Any], item: Any) -> None:
    if not any(existing is item for existing in columns):
        columns.append(item)


def collect_columns(value: Any, columns: List[Any]) -> None:
    if isinstance(value, Expr):
        value.add_referenced_columns(columns)
    elif isinstance(value, (list, tuple)):
        for item in value:
            collect_columns(item, columns)


def new_buffer(driver: Any, auto_prepare: Optional[bool] = None) -> SqlBuffer:
    if auto_prepare is None:
        auto_prepare = driver.settings.auto_prepare_statements
    return SqlBuffer(driver, auto_prepare)
