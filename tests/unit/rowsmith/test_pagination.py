"""Tests for row-limit strategies across dialects."""

import pytest

from rowsmith.dialect.capabilities import DriverFeature
from rowsmith.dialect.pagination import ClientWindow


def _select(model, limit=None, skip=0):
    cmd = model.db.create_command().select(model.last_name)
    cmd.order_by(model.last_name)
    if limit is not None:
        cmd.limit_rows(limit)
    if skip:
        cmd.skip_rows(skip)
    return cmd


def test_sqlserver_top_includes_skipped_rows(make_company):
    """TOP cannot skip, so it fetches limit + skip and reports the skip."""
    model = make_company("sqlserver")
    cmd = _select(model, limit=10, skip=5)

    assert cmd.get_select() == (
        "SELECT TOP 15 t2.LAST_NAME\nFROM EMPLOYEES t2\nORDER BY t2.LAST_NAME"
    )
    assert cmd.get_client_window() == ClientWindow(skip=5, limit=10)
    assert not model.driver.is_supported(DriverFeature.QUERY_SKIP_ROWS)


def test_sqlserver_top_without_skip_needs_no_client_window(make_company):
    model = make_company("sqlserver")
    cmd = _select(model, limit=3)
    assert cmd.get_select().startswith("SELECT TOP 3 ")
    assert cmd.get_client_window().is_empty


def test_sqlserver_skip_only_is_client_side(make_company):
    model = make_company("sqlserver")
    cmd = _select(model, skip=4)
    assert "TOP" not in cmd.get_select()
    assert cmd.get_client_window() == ClientWindow(skip=4)


def test_mysql_offset_only_uses_unbounded_limit(make_company):
    model = make_company("mysql")
    cmd = _select(model, skip=4)
    assert cmd.get_select().endswith("\nLIMIT 18446744073709551615 OFFSET 4")
    assert cmd.get_client_window().is_empty


def test_postgres_offset_only(make_company):
    model = make_company("postgres")
    assert _select(model, skip=4).get_select().endswith("\nOFFSET 4")


def test_sqlite_limit_offset(make_company):
    model = make_company("sqlite")
    assert _select(model, limit=5).get_select().endswith("ORDER BY t2.LAST_NAME\nLIMIT 5")
    assert _select(model, skip=2).get_select().endswith("\nLIMIT -1 OFFSET 2")


def test_oracle_rownum_wraps_query(make_company):
    model = make_company("oracle")
    inner = "SELECT t2.LAST_NAME\nFROM EMPLOYEES t2\nORDER BY t2.LAST_NAME"

    assert _select(model, limit=10).get_select() == (
        f"SELECT * FROM ({inner}) WHERE rownum <= 10"
    )
    assert _select(model, limit=10, skip=20).get_select() == (
        f"SELECT * FROM (SELECT q.*, rownum rn FROM ({inner}) q WHERE rownum <= 30) WHERE rn > 20"
    )
    assert _select(model, skip=20).get_select() == (
        f"SELECT * FROM (SELECT q.*, rownum rn FROM ({inner}) q) WHERE rn > 20"
    )
    assert _select(model).get_select() == inner


@pytest.mark.parametrize(
    "window,expected",
    [
        (ClientWindow(), [0, 1, 2, 3, 4]),
        (ClientWindow(skip=2), [2, 3, 4]),
        (ClientWindow(limit=2), [0, 1]),
        (ClientWindow(skip=1, limit=3), [1, 2, 3]),
        (ClientWindow(skip=9, limit=3), []),
    ],
)
def test_client_window_apply(window, expected):
    assert list(window.apply(range(5))) == expected
