"""Driver settings and typed environment variable helpers.

Settings are plain immutable values passed to a driver when it is created.
``DriverSettings.from_env()`` reads them from ``ROWSMITH_*`` variables:

- ``ROWSMITH_DATABASE_NAME``
- ``ROWSMITH_OBJECT_OWNER``
- ``ROWSMITH_SEQUENCE_TABLE_NAME``
- ``ROWSMITH_USE_SEQUENCE_TABLE``
- ``ROWSMITH_QUOTE_NAMES``
- ``ROWSMITH_PARAMSTYLE``
- ``ROWSMITH_AUTO_PREPARE_STATEMENTS``
- ``ROWSMITH_DDL_COLUMN_DEFAULTS``
- ``ROWSMITH_SEQUENCE_MAX_RETRIES``
- ``ROWSMITH_LONG_RUNNING_THRESHOLD_MS``
- ``ROWSMITH_MAX_QUERY_ROWS``
- ``ROWSMITH_EXTRA_RESERVED_WORDS`` (comma separated)
"""

import os
from typing import Any, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ParamStyle = Literal["qmark", "format", "numeric"]


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get an environment variable as a string."""
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    return value


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Get an environment variable as an integer."""
    value = get_env_str(name, required=required)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Get an environment variable as a boolean.

    Truthy: true, 1, yes, on
    Falsey: false, 0, no, off, (empty string)
    """
    value = get_env_str(name, required=required)
    if value is None:
        return default

    val_lower = value.strip().lower()
    if val_lower in ("true", "1", "yes", "on"):
        return True
    if val_lower in ("false", "0", "no", "off", ""):
        return False

    raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")


def get_env_list(
    name: str, default: Optional[List[str]] = None, separator: str = ","
) -> Optional[List[str]]:
    """Get an environment variable as a list of non-empty strings."""
    value = get_env_str(name)
    if value is None:
        return default
    return [s.strip() for s in value.split(separator) if s.strip()]


class DriverSettings(BaseModel):
    """Connection-profile settings shared by every command a driver renders."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    database_name: Optional[str] = Field(
        None, description="Database selected on attach (SQL Server) or created by DDL"
    )
    object_owner: Optional[str] = Field(
        "dbo", description="Owner appended to the schema name on SQL Server"
    )
    sequence_table_name: str = Field(
        "Sequences", min_length=1, description="Table backing emulated sequences"
    )
    use_sequence_table: bool = Field(
        False, description="Emulate sequences with a table instead of identity columns"
    )
    quote_names: Optional[bool] = Field(
        None, description="Force (True) or suppress (False) identifier quoting; None detects"
    )
    paramstyle: Optional[ParamStyle] = Field(
        None, description="Placeholder style override; None uses the dialect default"
    )
    auto_prepare_statements: bool = Field(
        False, description="Bind plain values as parameters instead of literals"
    )
    ddl_column_defaults: bool = Field(True, description="Emit DEFAULT clauses in column DDL")
    sequence_max_retries: int = Field(
        100, ge=1, description="Optimistic retries before a table sequence gives up"
    )
    long_running_threshold_ms: int = Field(
        30000, ge=0, description="Statements slower than this are logged as warnings"
    )
    max_query_rows: int = Field(999, description="Row cap for list queries; negative disables")
    extra_reserved_words: FrozenSet[str] = Field(
        frozenset(), description="Additional names that always require quoting"
    )

    @field_validator("extra_reserved_words", mode="before")
    @classmethod
    def _lowercase_words(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        return frozenset(str(word).strip().lower() for word in value if str(word).strip())

    @classmethod
    def from_env(cls, prefix: str = "ROWSMITH_", **overrides: Any) -> "DriverSettings":
        """Build settings from environment variables, applying explicit overrides last."""
        values: Dict[str, Any] = {}
        readers = {
            "database_name": get_env_str,
            "object_owner": get_env_str,
            "sequence_table_name": get_env_str,
            "use_sequence_table": get_env_bool,
            "quote_names": get_env_bool,
            "paramstyle": get_env_str,
            "auto_prepare_statements": get_env_bool,
            "ddl_column_defaults": get_env_bool,
            "sequence_max_retries": get_env_int,
            "long_running_threshold_ms": get_env_int,
            "max_query_rows": get_env_int,
            "extra_reserved_words": get_env_list,
        }
        for field_name, reader in readers.items():
            value = reader(f"{prefix}{field_name.upper()}")
            if value is not None:
                values[field_name] = value
        values.update(overrides)
        return cls(**values)
