"""Symbolic SQL phrases and the default phrase table.

Templates use ``?`` for the operand of a function and ``{0}``, ``{1}`` for its
arguments. Date patterns are ``strftime`` patterns; ``%3f`` stands for
milliseconds.
"""

from enum import Enum
from typing import Dict, Optional


class SqlPhrase(str, Enum):
    """Identifiers of dialect specific SQL fragments."""

    NULL = "null"
    RENAME_TABLE = "rename_table"
    RENAME_COLUMN = "rename_column"
    DATABASE_LINK = "database_link"
    QUOTES_OPEN = "quotes_open"
    QUOTES_CLOSE = "quotes_close"
    CONCAT_EXPR = "concat_expr"
    PSEUDO_TABLE = "pseudo_table"
    BOOLEAN_TRUE = "boolean_true"
    BOOLEAN_FALSE = "boolean_false"

    CURRENT_DATE = "current_date"
    DATE_PATTERN = "date_pattern"
    DATE_TEMPLATE = "date_template"
    CURRENT_DATETIME = "current_datetime"
    DATETIME_PATTERN = "datetime_pattern"
    DATETIME_TEMPLATE = "datetime_template"
    CURRENT_TIMESTAMP = "current_timestamp"
    TIMESTAMP_PATTERN = "timestamp_pattern"
    TIMESTAMP_TEMPLATE = "timestamp_template"

    FUNC_COALESCE = "func_coalesce"
    FUNC_SUBSTRING = "func_substring"
    FUNC_SUBSTRINGEX = "func_substringex"
    FUNC_REPLACE = "func_replace"
    FUNC_REVERSE = "func_reverse"
    FUNC_STRINDEX = "func_strindex"
    FUNC_STRINDEXFROM = "func_strindexfrom"
    FUNC_LENGTH = "func_length"
    FUNC_UPPER = "func_upper"
    FUNC_LOWER = "func_lower"
    FUNC_TRIM = "func_trim"
    FUNC_LTRIM = "func_ltrim"
    FUNC_RTRIM = "func_rtrim"

    FUNC_ABS = "func_abs"
    FUNC_ROUND = "func_round"
    FUNC_TRUNC = "func_trunc"
    FUNC_CEILING = "func_ceiling"
    FUNC_FLOOR = "func_floor"
    FUNC_MOD = "func_mod"

    FUNC_DAY = "func_day"
    FUNC_MONTH = "func_month"
    FUNC_YEAR = "func_year"

    FUNC_SUM = "func_sum"
    FUNC_MAX = "func_max"
    FUNC_MIN = "func_min"
    FUNC_AVG = "func_avg"

    FUNC_DECODE = "func_decode"
    FUNC_DECODE_SEP = "func_decode_sep"
    FUNC_DECODE_PART = "func_decode_part"
    FUNC_DECODE_ELSE = "func_decode_else"


AGGREGATE_PHRASES = frozenset(
    {SqlPhrase.FUNC_SUM, SqlPhrase.FUNC_MAX, SqlPhrase.FUNC_MIN, SqlPhrase.FUNC_AVG}
)

DEFAULT_PHRASES: Dict[SqlPhrase, Optional[str]] = {
    SqlPhrase.NULL: "null",
    SqlPhrase.RENAME_TABLE: " ",
    SqlPhrase.RENAME_COLUMN: " AS ",
    SqlPhrase.DATABASE_LINK: "@",
    SqlPhrase.QUOTES_OPEN: '"',
    SqlPhrase.QUOTES_CLOSE: '"',
    SqlPhrase.CONCAT_EXPR: " || ",
    SqlPhrase.PSEUDO_TABLE: "",
    SqlPhrase.BOOLEAN_TRUE: "1",
    SqlPhrase.BOOLEAN_FALSE: "0",
    SqlPhrase.CURRENT_DATE: "CURRENT_DATE",
    SqlPhrase.DATE_PATTERN: "%Y-%m-%d",
    SqlPhrase.DATE_TEMPLATE: "'{0}'",
    SqlPhrase.CURRENT_DATETIME: "CURRENT_TIMESTAMP",
    SqlPhrase.DATETIME_PATTERN: "%Y-%m-%d %H:%M:%S",
    SqlPhrase.DATETIME_TEMPLATE: "'{0}'",
    SqlPhrase.CURRENT_TIMESTAMP: "CURRENT_TIMESTAMP",
    SqlPhrase.TIMESTAMP_PATTERN: "%Y-%m-%d %H:%M:%S.%f",
    SqlPhrase.TIMESTAMP_TEMPLATE: "'{0}'",
    SqlPhrase.FUNC_COALESCE: "coalesce(?, {0})",
    SqlPhrase.FUNC_SUBSTRING: "substring(?, {0})",
    SqlPhrase.FUNC_SUBSTRINGEX: "substring(?, {0}, {1})",
    SqlPhrase.FUNC_REPLACE: "replace(?, {0}, {1})",
    SqlPhrase.FUNC_REVERSE: "reverse(?)",
    SqlPhrase.FUNC_STRINDEX: "instr(?, {0})",
    SqlPhrase.FUNC_STRINDEXFROM: None,
    SqlPhrase.FUNC_LENGTH: "length(?)",
    SqlPhrase.FUNC_UPPER: "upper(?)",
    SqlPhrase.FUNC_LOWER: "lower(?)",
    SqlPhrase.FUNC_TRIM: "trim(?)",
    SqlPhrase.FUNC_LTRIM: "ltrim(?)",
    SqlPhrase.FUNC_RTRIM: "rtrim(?)",
    SqlPhrase.FUNC_ABS: "abs(?)",
    SqlPhrase.FUNC_ROUND: "round(?,{0})",
    SqlPhrase.FUNC_TRUNC: "trunc(?,{0})",
    SqlPhrase.FUNC_CEILING: "ceiling(?)",
    SqlPhrase.FUNC_FLOOR: "floor(?)",
    SqlPhrase.FUNC_MOD: "mod(?,{0})",
    SqlPhrase.FUNC_DAY: "day(?)",
    SqlPhrase.FUNC_MONTH: "month(?)",
    SqlPhrase.FUNC_YEAR: "year(?)",
    SqlPhrase.FUNC_SUM: "sum(?)",
    SqlPhrase.FUNC_MAX: "max(?)",
    SqlPhrase.FUNC_MIN: "min(?)",
    SqlPhrase.FUNC_AVG: "avg(?)",
    SqlPhrase.FUNC_DECODE: "case ? {0} end",
    SqlPhrase.FUNC_DECODE_SEP: " ",
    SqlPhrase.FUNC_DECODE_PART: "when {0} then {1}",
    SqlPhrase.FUNC_DECODE_ELSE: "else {0}",
}


def phrase_table(
    overrides: Optional[Dict[SqlPhrase, Optional[str]]] = None,
) -> Dict[SqlPhrase, Optional[str]]:
    """Return the default phrase table with dialect overrides applied."""
    table = dict(DEFAULT_PHRASES)
    if overrides:
        table.update(overrides)
    return table
