"""Error taxonomy for rendering, DDL generation and statement execution."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Bounded canonical error codes attached to every rowsmith error."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_PROPERTY = "INVALID_PROPERTY"
    COLUMN_NOT_FOUND = "COLUMN_NOT_FOUND"
    NOT_SUPPORTED = "NOT_SUPPORTED"
    FIELD_NOT_NULL = "FIELD_NOT_NULL"
    FIELD_VALUE_TOO_LONG = "FIELD_VALUE_TOO_LONG"
    FIELD_NOT_NUMERIC = "FIELD_NOT_NUMERIC"
    FIELD_INVALID_DATE = "FIELD_INVALID_DATE"
    STATEMENT_FAILED = "STATEMENT_FAILED"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    QUERY_FAILED = "QUERY_FAILED"
    QUERY_NO_RESULT = "QUERY_NO_RESULT"
    SEQUENCE_EXHAUSTED = "SEQUENCE_EXHAUSTED"
    UNEXPECTED_RETURN_VALUE = "UNEXPECTED_RETURN_VALUE"


class RowsmithError(Exception):
    """Base class for all errors raised by rowsmith."""

    code: ErrorCode = ErrorCode.INVALID_ARGUMENT

    def __init__(self, message: str, **details: Any) -> None:
        """Attach structured details to the error message."""
        super().__init__(message)
        self.details = details


class InvalidArgumentError(RowsmithError, ValueError):
    """Raised for malformed input to a builder or generator call."""

    code = ErrorCode.INVALID_ARGUMENT

    def __init__(self, name: str, value: Any, message: Optional[str] = None) -> None:
        """Describe the offending argument."""
        super().__init__(
            message or f"Invalid argument '{name}': {value!r}.", name=name, value=value
        )
        self.name = name
        self.value = value


class InvalidPropertyError(InvalidArgumentError):
    """Raised when an object property has a value that blocks the operation."""

    code = ErrorCode.INVALID_PROPERTY


class ColumnNotFoundError(RowsmithError, LookupError):
    """Raised when a column is not reachable from the active sources."""

    code = ErrorCode.COLUMN_NOT_FOUND

    def __init__(self, column_name: str, source: Optional[str] = None) -> None:
        """Name the missing column and, when known, where it was looked up."""
        where = f" in '{source}'" if source else ""
        super().__init__(f"Column '{column_name}' not found{where}.", column=column_name)
        self.column_name = column_name
        self.source = source


class NotSupportedError(RowsmithError):
    """Raised when a dialect has no translation for a requested capability."""

    code = ErrorCode.NOT_SUPPORTED

    def __init__(self, feature: str, dialect: Optional[str] = None) -> None:
        """Name the unsupported feature."""
        suffix = f" by dialect '{dialect}'" if dialect else ""
        super().__init__(f"{feature} is not supported{suffix}.", feature=feature)
        self.feature = feature
        self.dialect = dialect


class FieldValueError(RowsmithError, ValueError):
    """Base class for column value validation failures."""

    def __init__(self, column_name: str, message: str) -> None:
        """Attach the column name to the validation message."""
        super().__init__(message, column=column_name)
        self.column_name = column_name


class FieldNotNullError(FieldValueError):
    """A required column received no value."""

    code = ErrorCode.FIELD_NOT_NULL

    def __init__(self, column_name: str) -> None:
        super().__init__(column_name, f"Column '{column_name}' requires a value.")


class FieldValueTooLongError(FieldValueError):
    """A text value exceeds the column size."""

    code = ErrorCode.FIELD_VALUE_TOO_LONG

    def __init__(self, column_name: str, max_length: int) -> None:
        super().__init__(
            column_name,
            f"Value for column '{column_name}' exceeds the maximum length of {max_length}.",
        )
        self.max_length = max_length


class FieldNotNumericError(FieldValueError):
    """A numeric column received a non-numeric value."""

    code = ErrorCode.FIELD_NOT_NUMERIC

    def __init__(self, column_name: str) -> None:
        super().__init__(column_name, f"Value for column '{column_name}' is not numeric.")


class FieldInvalidDateFormatError(FieldValueError):
    """A date column received a value that cannot be parsed as a date."""

    code = ErrorCode.FIELD_INVALID_DATE

    def __init__(self, column_name: str) -> None:
        super().__init__(column_name, f"Value for column '{column_name}' is not a valid date.")


class StatementFailedError(RowsmithError):
    """Raised when executing a statement fails."""

    code = ErrorCode.STATEMENT_FAILED

    def __init__(self, sql: str, message: str) -> None:
        super().__init__(f"Statement failed: {message}", sql=sql)
        self.sql = sql


class ConstraintViolationError(StatementFailedError):
    """Raised when a statement violates an integrity constraint."""

    code = ErrorCode.CONSTRAINT_VIOLATION


class QueryFailedError(RowsmithError):
    """Raised when executing a query fails."""

    code = ErrorCode.QUERY_FAILED

    def __init__(self, sql: str, message: str) -> None:
        super().__init__(f"Query failed: {message}", sql=sql)
        self.sql = sql


class QueryNoResultError(RowsmithError):
    """Raised when a query required to return a row returned none."""

    code = ErrorCode.QUERY_NO_RESULT

    def __init__(self, sql: str) -> None:
        super().__init__("Query returned no result.", sql=sql)
        self.sql = sql


class SequenceExhaustedError(RowsmithError):
    """Raised when a table-backed sequence loses every optimistic retry."""

    code = ErrorCode.SEQUENCE_EXHAUSTED

    def __init__(self, sequence_name: str, attempts: int) -> None:
        super().__init__(
            f"Failed to increment sequence '{sequence_name}' after {attempts} attempts.",
            sequence=sequence_name,
            attempts=attempts,
        )
        self.sequence_name = sequence_name
        self.attempts = attempts


class UnexpectedReturnValueError(RowsmithError):
    """Raised when a DB-API call returns a value outside its contract."""

    code = ErrorCode.UNEXPECTED_RETURN_VALUE

    def __init__(self, value: Any, operation: str) -> None:
        super().__init__(f"Unexpected return value {value!r} from {operation}.")
        self.value = value
        self.operation = operation
