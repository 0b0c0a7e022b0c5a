"""Dialect lookup and environment driven driver creation.

Canonical dialect IDs (lowercase):
- "sqlserver", "mysql", "sqlite", "postgres", "oracle", "hsqldb"

User-facing aliases (case-insensitive):
- SQL Server: "mssql", "tsql"
- PostgreSQL: "postgresql", "pg"
- MySQL: "mariadb"
- HSQLDB: "hsql"
- SQLite: "sqlite3"

Example:
    >>> normalize_dialect("PostgreSQL")
    'postgres'
    >>> create_driver("mssql").name
    'sqlserver'
"""

import logging
from typing import Dict, Optional

from rowsmith.config import DriverSettings, get_env_str
from rowsmith.dialect import hsqldb, mysql, oracle, postgres, sqlite, sqlserver
from rowsmith.dialect.dialect import Dialect
from rowsmith.dialect.driver import Driver

logger = logging.getLogger(__name__)

DIALECT_ALIASES: Dict[str, str] = {
    "mssql": "sqlserver",
    "tsql": "sqlserver",
    "sqlserver": "sqlserver",
    "postgresql": "postgres",
    "postgres": "postgres",
    "pg": "postgres",
    "mariadb": "mysql",
    "mysql": "mysql",
    "hsql": "hsqldb",
    "hsqldb": "hsqldb",
    "sqlite3": "sqlite",
    "sqlite": "sqlite",
    "oracle": "oracle",
}

DIALECTS: Dict[str, Dialect] = {
    dialect.name: dialect
    for dialect in (
        sqlserver.DIALECT,
        mysql.DIALECT,
        sqlite.DIALECT,
        postgres.DIALECT,
        oracle.DIALECT,
        hsqldb.DIALECT,
    )
}


def normalize_dialect(value: str) -> str:
    """Normalize a dialect name; unknown values pass through lowercased."""
    cleaned = value.strip().lower()
    return DIALECT_ALIASES.get(cleaned, cleaned)


def get_dialect(name: str) -> Dialect:
    """Return the dialect called ``name`` (or one of its aliases).

    Raises:
        ValueError: If no such dialect exists.
    """
    canonical = normalize_dialect(name)
    dialect = DIALECTS.get(canonical)
    if dialect is None:
        allowed = ", ".join(sorted(DIALECTS))
        raise ValueError(f"Unknown dialect: '{name}'. Allowed values: {allowed}")
    return dialect


def create_driver(name: str, settings: Optional[DriverSettings] = None) -> Driver:
    """Create a driver for dialect ``name``."""
    driver = Driver(get_dialect(name), settings)
    logger.debug("Created %s driver", driver.name)
    return driver


def create_driver_from_env() -> Driver:
    """Create a driver from ``ROWSMITH_DIALECT`` and ``ROWSMITH_*`` settings.

    Environment Variables:
        ROWSMITH_DIALECT: Dialect name or alias (default: "sqlite")
    """
    name = get_env_str("ROWSMITH_DIALECT", "sqlite")
    return create_driver(name, DriverSettings.from_env())
