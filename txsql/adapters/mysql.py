"""MySQL adapter using mysql-connector-python."""

from __future__ import annotations

from typing import Any

from txsql.adapters.dbapi import DbapiConnection, parse_dsn
from txsql.core.exceptions import DriverError


class MysqlConnection(DbapiConnection):
    """MySQL connection in autocommit mode with server-side prepared statements."""

    paramstyle = "qmark"

    def __init__(self, raw: Any) -> None:
        import mysql.connector

        super().__init__(raw)
        self.error_types = (mysql.connector.Error,)

    @property
    def in_transaction(self) -> bool:
        return bool(self._raw.in_transaction)

    def _describe_error(self, error: BaseException) -> tuple[str | None, int | None]:
        return getattr(error, "sqlstate", None), getattr(error, "errno", None)

    def _cursor(self, prepared: bool) -> Any:
        if prepared:
            return self._raw.cursor(prepared=True)
        return self._raw.cursor(dictionary=True, buffered=True)

    def begin(self) -> None:
        with self.translate_errors():
            self._raw.start_transaction()


class MysqlDriver:
    """Driver for ``mysql://host:port/db?charset=utf8mb4`` DSNs."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    def connect(self, dsn: str, user: str | None, password: str | None) -> MysqlConnection:
        import mysql.connector

        parts = parse_dsn(dsn)
        try:
            raw = mysql.connector.connect(
                host=parts["host"],
                port=parts["port"] or 3306,
                user=user,
                password=password,
                database=parts["database"],
                charset=parts["options"].get("charset", "utf8mb4"),
                autocommit=True,
            )
        except mysql.connector.Error as e:
            raise DriverError(
                str(e),
                sqlstate=getattr(e, "sqlstate", None),
                errno=getattr(e, "errno", None),
            ) from e
        return MysqlConnection(raw)
