import hashlib
from typing import Callable, Optional, TypeVar

from rowsmith.config import get_env_bool

T = TypeVar("T")


def trace_enabled() -> bool:
    """Return True when statement tracing is enabled."""
    return bool(get_env_bool("ROWSMITH_TRACE_STATEMENTS", False))


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


def trace_statement(
    name: str,
    dialect: str,
    sql: Optional[str],
    operation: Callable[[], T],
) -> T:
    """Run ``operation`` inside an OTEL span when tracing is enabled."""
    if not trace_enabled():
        return operation()

    from opentelemetry import trace

    tracer = trace.get_tracer("rowsmith")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.system", dialect)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = operation()
            span.set_attribute("db.status", "ok")
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
