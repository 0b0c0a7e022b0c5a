"""Expression tree nodes rendered into SQL fragments."""

from rowsmith.expr.base import (
    CTX_ALIAS,
    CTX_ALL,
    CTX_DEFAULT,
    CTX_FULLNAME,
    CTX_NAME,
    CTX_NOPARENTHESES,
    CTX_VALUE,
    CmdParam,
    Expr,
    SqlBuffer,
)
from rowsmith.expr.column_expr import (
    AliasExpr,
    ColumnExpr,
    ConcatExpr,
    ConvertExpr,
    CountExpr,
    DecodeExpr,
    FuncExpr,
    OrderByExpr,
    SetExpr,
    ValueExpr,
)
from rowsmith.expr.compare import (
    CompareAndOrExpr,
    CompareColExpr,
    CompareExpr,
    CompareNotExpr,
    CompareOp,
    ExistsExpr,
    ParenthesisExpr,
)
from rowsmith.expr.join import JoinExpr, JoinType

__all__ = [
    "CTX_ALIAS",
    "CTX_ALL",
    "CTX_DEFAULT",
    "CTX_FULLNAME",
    "CTX_NAME",
    "CTX_NOPARENTHESES",
    "CTX_VALUE",
    "AliasExpr",
    "CmdParam",
    "ColumnExpr",
    "CompareAndOrExpr",
    "CompareColExpr",
    "CompareExpr",
    "CompareNotExpr",
    "CompareOp",
    "ConcatExpr",
    "ConvertExpr",
    "CountExpr",
    "DecodeExpr",
    "ExistsExpr",
    "Expr",
    "FuncExpr",
    "JoinExpr",
    "JoinType",
    "OrderByExpr",
    "ParenthesisExpr",
    "SetExpr",
    "SqlBuffer",
    "ValueExpr",
]
