"""Bridge to sqlglot for formatting and checking generated SQL."""

import logging
from typing import Optional

import sqlglot
from sqlglot.errors import ParseError

logger = logging.getLogger(__name__)

# rowsmith dialect name -> sqlglot dialect; None means sqlglot has no equivalent
SQLGLOT_DIALECTS = {
    "sqlserver": "tsql",
    "mysql": "mysql",
    "sqlite": "sqlite",
    "postgres": "postgres",
    "oracle": "oracle",
    "hsqldb": None,
}


def sqlglot_dialect(dialect: Optional[str]) -> Optional[str]:
    """Map a rowsmith dialect name to the sqlglot dialect it reads and writes."""
    if not dialect:
        return None
    name = dialect.lower().strip()
    return SQLGLOT_DIALECTS.get(name, name)


def pretty_sql(sql: str, dialect: Optional[str] = None) -> str:
    """Pretty print ``sql``; text sqlglot cannot parse is returned unchanged."""
    target = sqlglot_dialect(dialect)
    if dialect and target is None:
        return sql
    try:
        expression = sqlglot.parse_one(sql, read=target)
    except ParseError as exc:
        logger.warning("Could not format SQL for %s: %s", dialect, exc)
        return sql
    return expression.sql(dialect=target, pretty=True)


def is_valid_sql(sql: str, dialect: Optional[str] = None) -> bool:
    """Return True when ``sql`` parses as exactly one statement."""
    try:
        expressions = sqlglot.parse(sql, read=sqlglot_dialect(dialect))
    except ParseError as exc:
        logger.debug("SQL failed to parse: %s", exc)
        return False
    return len([e for e in expressions if e is not None]) == 1
