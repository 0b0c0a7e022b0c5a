"""Row-limit strategies: TOP prefix, LIMIT/OFFSET suffix and ROWNUM wrapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from rowsmith.expr.base import SqlBuffer

RenderInner = Callable[[SqlBuffer], None]


@dataclass(frozen=True)
class ClientWindow:
    """Rows the caller must skip/limit after fetching because the SQL could not."""

    skip: int = 0
    limit: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.skip == 0 and self.limit is None

    def apply(self, rows):
        """Yield the rows of ``rows`` that fall inside the window."""
        taken = 0
        for index, row in enumerate(rows):
            if index < self.skip:
                continue
            if self.limit is not None and taken >= self.limit:
                break
            taken += 1
            yield row


class Pagination:
    """Base strategy; renders nothing and pushes nothing down."""

    supports_limit = False
    supports_skip = False

    def add_prefix(self, buf: SqlBuffer, limit: Optional[int], skip: int) -> None:
        return None

    def add_suffix(self, buf: SqlBuffer, limit: Optional[int], skip: int) -> None:
        return None

    def wraps(self, limit: Optional[int], skip: int) -> bool:
        return False

    def add_wrapped(
        self, buf: SqlBuffer, limit: Optional[int], skip: int, inner: RenderInner
    ) -> None:
        inner(buf)

    def client_window(self, limit: Optional[int], skip: int) -> ClientWindow:
        if skip and not self.supports_skip:
            return ClientWindow(skip=skip, limit=limit)
        if limit is not None and not self.supports_limit:
            return ClientWindow(limit=limit)
        return ClientWindow()


class TopPagination(Pagination):
    """``SELECT TOP n``; skipped rows are fetched and dropped by the caller."""

    supports_limit = True

    def add_prefix(self, buf: SqlBuffer, limit: Optional[int], skip: int) -> None:
        if limit is None:
            return
        buf.append(f"TOP {limit + skip} ")


class LimitOffsetPagination(Pagination):
    """``LIMIT n OFFSET m`` appended after ORDER BY."""

    supports_limit = True
    supports_skip = True

    def __init__(self, unbounded_limit: Optional[str] = None) -> None:
        # value used as LIMIT when only OFFSET is requested
        self.unbounded_limit = unbounded_limit

    def add_suffix(self, buf: SqlBuffer, limit: Optional[int], skip: int) -> None:
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        elif skip and self.unbounded_limit is not None:
            parts.append(f"LIMIT {self.unbounded_limit}")
        if skip:
            parts.append(f"OFFSET {skip}")
        if parts:
            buf.append("\n" + " ".join(parts))


class RowNumPagination(Pagination):
    """Wraps the query and filters on ROWNUM."""

    supports_limit = True
    supports_skip = True

    def wraps(self, limit: Optional[int], skip: int) -> bool:
        return limit is not None or skip > 0

    def add_wrapped(
        self, buf: SqlBuffer, limit: Optional[int], skip: int, inner: RenderInner
    ) -> None:
        if not skip:
            buf.append("SELECT * FROM (")
            inner(buf)
            buf.append(f") WHERE rownum <= {limit}")
            return
        buf.append("SELECT * FROM (SELECT q.*, rownum rn FROM (")
        inner(buf)
        buf.append(") q")
        if limit is not None:
            buf.append(f" WHERE rownum <= {limit + skip}")
        buf.append(f") WHERE rn > {skip}")
