"""SQLite adapter using stdlib sqlite3."""

from __future__ import annotations

import sqlite3

from txsql.adapters.dbapi import DbapiConnection, parse_dsn
from txsql.core.exceptions import DriverError


class SqliteConnection(DbapiConnection):
    """sqlite3 connection in autocommit mode with explicit BEGIN."""

    paramstyle = "qmark"
    error_types = (sqlite3.Error,)

    @property
    def in_transaction(self) -> bool:
        return bool(self._raw.in_transaction)

    def _describe_error(self, error: BaseException) -> tuple[str | None, int | None]:
        errno = getattr(error, "sqlite_errorcode", None)
        sqlstate = "23000" if isinstance(error, sqlite3.IntegrityError) else None
        return sqlstate, errno


class SqliteDriver:
    """Driver for ``sqlite:///path`` DSNs (``sqlite:///:memory:`` for in-memory)."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    def connect(
        self, dsn: str, user: str | None = None, password: str | None = None
    ) -> SqliteConnection:
        database = parse_dsn(dsn)["database"] or ":memory:"
        try:
            raw = sqlite3.connect(database, isolation_level=None, check_same_thread=False)
        except sqlite3.Error as e:
            raise DriverError(str(e)) from e
        return SqliteConnection(raw)
