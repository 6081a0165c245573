"""Database engine configuration shared by the site and admin test contexts.

The engine is built from the ``database.url`` and ``database.echo``
properties. SQLite connections get `SQLITE_PRAGMAS` applied on connect; other
backends are used as configured.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from injector import Module, provider, singleton
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from storefront_testkit.context.application_context import ApplicationContext
from storefront_testkit.context.environment import Environment

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

logger = logging.getLogger(__name__)

DATABASE_URL_KEY = "database.url"
DATABASE_ECHO_KEY = "database.echo"

SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON;",
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA temp_store=MEMORY;",
)


def apply_sqlite_pragmas(dbapi_conn: SQLiteConnection, conn_record) -> None:  # pylint: disable=W0613
    """``connect`` listener running `SQLITE_PRAGMAS` on a new SQLite connection."""
    cur = dbapi_conn.cursor()
    for pragma in SQLITE_PRAGMAS:
        cur.execute(pragma)
    cur.close()


class DatabaseConfiguration(Module):
    """Provides the test database engine from the ``database.*`` properties."""

    @singleton
    @provider
    def engine(self, environment: Environment, context: ApplicationContext) -> Engine:
        url = environment.require_property(DATABASE_URL_KEY)
        engine = create_engine(url, echo=bool(environment.get_property(DATABASE_ECHO_KEY, False)))
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", apply_sqlite_pragmas)
        context.on_close(engine.dispose)
        logger.debug("Created engine for %s in context %s", engine.url, context.name)
        return engine
