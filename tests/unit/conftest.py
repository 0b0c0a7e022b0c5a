"""Unit test environment helpers and sample schema fixtures."""

import os

import pytest

from rowsmith.config import DriverSettings
from rowsmith.dialect.registry import create_driver
from tests._support.company_schema import build_company_db


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Clear ROWSMITH_* variables so tests never depend on the caller's shell."""
    for name in list(os.environ):
        if name.startswith("ROWSMITH_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def company():
    """Sample schema attached to a SQLite driver."""
    model = build_company_db()
    driver = create_driver("sqlite")
    driver.attach_database(model.db)
    model.driver = driver
    return model


@pytest.fixture
def make_company():
    """Factory attaching a fresh sample schema to any dialect."""

    def _make(dialect, schema=None, **settings):
        model = build_company_db(schema)
        driver = create_driver(dialect, DriverSettings(**settings) if settings else None)
        driver.attach_database(model.db)
        model.driver = driver
        return model

    return _make
