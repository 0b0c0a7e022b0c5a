from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DriverFeature(str, Enum):
    """Features a caller must check before relying on a dialect specific path."""

    CREATE_SCHEMA = "create_schema"
    SEQUENCES = "sequences"
    QUERY_LIMIT_ROWS = "query_limit_rows"
    QUERY_SKIP_ROWS = "query_skip_rows"


@dataclass(frozen=True)
class DialectCapabilities:
    """Capability flags for a dialect under a given set of driver settings."""

    dialect_name: str = "unspecified"
    supports_create_schema: bool = False
    supports_sequences: bool = False
    supports_limit_rows: bool = True
    supports_skip_rows: bool = True
    supports_alter_column: bool = True
    supports_generated_keys: bool = True
    # Native sequences are queried; otherwise a sequence table is used.
    native_sequences: bool = False
    notes: Optional[str] = None

    def supports(self, feature: DriverFeature) -> bool:
        if feature == DriverFeature.CREATE_SCHEMA:
            return self.supports_create_schema
        if feature == DriverFeature.SEQUENCES:
            return self.supports_sequences
        if feature == DriverFeature.QUERY_LIMIT_ROWS:
            return self.supports_limit_rows
        if feature == DriverFeature.QUERY_SKIP_ROWS:
            return self.supports_skip_rows
        return False


def capabilities_for_dialect(name: str, use_sequence_table: bool = False) -> DialectCapabilities:
    """Return capability flags for a dialect name."""
    normalized = (name or "").strip().lower()
    if normalized == "sqlserver":
        return DialectCapabilities(
            dialect_name="sqlserver",
            supports_create_schema=True,
            supports_sequences=use_sequence_table,
            supports_skip_rows=False,
            notes="TOP n pagination; skipped rows are dropped client side",
        )
    if normalized == "mysql":
        return DialectCapabilities(
            dialect_name="mysql",
            supports_create_schema=True,
            supports_sequences=use_sequence_table,
        )
    if normalized == "sqlite":
        return DialectCapabilities(
            dialect_name="sqlite",
            supports_sequences=use_sequence_table,
            supports_alter_column=False,
            notes="ALTER TABLE only supports ADD/DROP COLUMN",
        )
    if normalized == "hsqldb":
        return DialectCapabilities(
            dialect_name="hsqldb",
            supports_create_schema=True,
            supports_sequences=True,
            native_sequences=True,
            supports_generated_keys=False,
        )
    if normalized == "oracle":
        return DialectCapabilities(
            dialect_name="oracle",
            supports_create_schema=False,
            supports_sequences=True,
            native_sequences=True,
            supports_generated_keys=False,
            notes="ROWNUM pagination wraps the query",
        )
    if normalized == "postgres":
        return DialectCapabilities(
            dialect_name="postgres",
            supports_create_schema=True,
            supports_sequences=True,
            native_sequences=True,
        )
    return DialectCapabilities(dialect_name=normalized or "unspecified")
