"""Unit tests for the database configuration.

These tests cover:
- Application of SQLite PRAGMAs on connect.
- The engine component and its disposal when the context closes.
"""

from __future__ import annotations

import pytest
from sqlalchemy import event
from sqlalchemy.engine import Engine

from storefront_testkit.configuration.database import (
    SQLITE_PRAGMAS,
    DatabaseConfiguration,
    apply_sqlite_pragmas,
)
from storefront_testkit.context.application_context import ApplicationContext
from storefront_testkit.context.environment import Environment, PropertySource
from storefront_testkit.errors import MissingPropertyError

# pylint: disable=magic-value-comparison


def make_context(properties: dict[str, object]) -> ApplicationContext:
    context = ApplicationContext("siteRoot", Environment([PropertySource("test", properties)]))
    context.refresh([DatabaseConfiguration])
    return context


def test_sqlite_engine_listens_for_connect():
    """SQLite engines register the PRAGMA listener."""
    context = make_context({"database.url": "sqlite://"})
    engine = context.get(Engine)
    assert event.contains(engine, "connect", apply_sqlite_pragmas)
    assert len(SQLITE_PRAGMAS) == 4
    context.close()


def test_sqlite_pragmas_applied(tmp_path):
    """Connections of the engine component have the PRAGMAs applied."""
    context = make_context({"database.url": f"sqlite+pysqlite:///{tmp_path / 'test.db'}"})
    try:
        with context.get(Engine).connect() as cxn:
            fk = cxn.exec_driver_sql("PRAGMA foreign_keys;").scalar()
            jm = cxn.exec_driver_sql("PRAGMA journal_mode;").scalar()
            sync = cxn.exec_driver_sql("PRAGMA synchronous;").scalar()
            tmp = cxn.exec_driver_sql("PRAGMA temp_store;").scalar()
    finally:
        context.close()
    assert fk == 1
    assert jm is not None
    assert jm.lower() == "wal"
    assert sync == 1
    assert tmp == 2


def test_engine_component_is_a_singleton():
    """The context provides one engine built from database.url."""
    context = make_context({"database.url": "sqlite+pysqlite:///:memory:"})
    engine = context.get(Engine)
    assert context.get(Engine) is engine
    assert engine.url.get_backend_name() == "sqlite"
    assert engine.echo is False
    context.close()


def test_engine_echo_property():
    """database.echo turns on SQL logging."""
    context = make_context({"database.url": "sqlite://", "database.echo": True})
    assert context.get(Engine).echo is True
    context.close()


def test_engine_requires_url():
    """Without database.url the engine cannot be built."""
    context = make_context({})
    with pytest.raises(MissingPropertyError, match="database.url"):
        context.get(Engine)


def test_engine_disposed_on_close():
    """Closing the context disposes of the engine."""
    context = make_context({"database.url": "sqlite://"})
    engine = context.get(Engine)
    disposed = []
    event.listen(engine, "engine_disposed", disposed.append)
    context.close()
    assert disposed == [engine]
