"""PostgreSQL adapter using psycopg (v3+)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from txsql.adapters.dbapi import DbapiConnection, parse_dsn
from txsql.core.exceptions import DriverError


def _build_conninfo(dsn: str, user: str | None, password: str | None) -> str:
    """Build a libpq connection string from DSN parts and credentials."""
    parts = parse_dsn(dsn)
    fields: list[str] = []
    if parts["host"] is not None:
        fields.append(f"host={parts['host']}")
    if parts["port"] is not None:
        fields.append(f"port={parts['port']}")
    if user is not None:
        fields.append(f"user={user}")
    if password is not None:
        fields.append(f"password={password}")
    fields.append(f"dbname={parts['database']}")
    return " ".join(fields)


class PostgresqlConnection(DbapiConnection):
    """psycopg connection in autocommit mode with explicit BEGIN/COMMIT.

    PostgreSQL has no connection-level last insert id; use ``RETURNING``.
    """

    paramstyle = "format"

    def __init__(self, raw: Any) -> None:
        import psycopg

        super().__init__(raw)
        self.error_types = (psycopg.Error,)

    @property
    def in_transaction(self) -> bool:
        from psycopg.pq import TransactionStatus

        return self._raw.info.transaction_status != TransactionStatus.IDLE

    def _describe_error(self, error: BaseException) -> tuple[str | None, int | None]:
        return getattr(error, "sqlstate", None), None

    def _run(self, cursor: Any, sql: str, params: Sequence[Any] | None) -> None:
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, tuple(params), prepare=True)

    def commit(self) -> None:
        with self.translate_errors():
            self._raw.execute("COMMIT")

    def rollback(self) -> None:
        with self.translate_errors():
            self._raw.execute("ROLLBACK")


class PostgresqlDriver:
    """Driver for ``postgresql://host:port/db`` DSNs."""

    @property
    def paramstyle(self) -> str:
        return "format"

    def connect(
        self, dsn: str, user: str | None, password: str | None
    ) -> PostgresqlConnection:
        import psycopg
        import psycopg.rows

        try:
            raw = psycopg.connect(
                _build_conninfo(dsn, user, password),
                autocommit=True,
                row_factory=psycopg.rows.dict_row,
            )
        except psycopg.Error as e:
            raise DriverError(str(e), sqlstate=getattr(e, "sqlstate", None)) from e
        return PostgresqlConnection(raw)
