"""Shared DB-API 2.0 connection and statement wrappers.

Adapters subclass DbapiConnection to supply the driver's exception types,
SQLSTATE extraction and transaction probing; everything else is common.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any
from urllib.parse import parse_qs, urlsplit

from txsql.core.exceptions import DriverError
from txsql.core.params import normalize_params


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Split a ``driver://host:port/db?opt=val`` DSN into connect keywords."""
    parts = urlsplit(dsn)
    options = {key: values[-1] for key, values in parse_qs(parts.query).items()}
    return {
        "host": parts.hostname,
        "port": parts.port,
        "database": parts.path[1:] if parts.path.startswith("/") else parts.path,
        "options": options,
    }


def _rows_to_dicts(cursor: Any, rows: Sequence[Any]) -> list[dict[str, Any]]:
    """Convert cursor rows to dicts.

    Handles both tuple-like rows and dict-like rows from different drivers.
    """
    if not rows:
        return []

    first_row = rows[0]
    if isinstance(first_row, dict):
        return [dict(row) for row in rows]

    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class DbapiStatement:
    """Statement handle over a DB-API cursor."""

    def __init__(self, owner: DbapiConnection, sql: str, cursor: Any) -> None:
        self._owner = owner
        self._sql = sql
        self._cursor = cursor

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def row_count(self) -> int:
        return int(self._cursor.rowcount)

    def execute(self, params: Sequence[Any] | None = None) -> None:
        with self._owner.translate_errors():
            self._owner._run(self._cursor, self._sql, params)
        self._owner._last_cursor = self._cursor

    def fetch_all(self) -> list[dict[str, Any]]:
        if self._cursor.description is None:
            return []
        with self._owner.translate_errors():
            rows = self._cursor.fetchall()
        return _rows_to_dicts(self._cursor, rows)

    def fetch_one(self) -> dict[str, Any] | None:
        if self._cursor.description is None:
            return None
        with self._owner.translate_errors():
            row = self._cursor.fetchone()
            if row is not None:
                # drain so the connection is free for the next statement
                self._cursor.fetchall()
        if row is None:
            return None
        return _rows_to_dicts(self._cursor, [row])[0]


class DbapiConnection:
    """Base wrapper around a DB-API 2.0 connection."""

    paramstyle = "qmark"
    error_types: tuple[type[BaseException], ...] = ()

    def __init__(self, raw: Any) -> None:
        self._raw = raw
        self._last_cursor: Any = None

    @property
    def raw(self) -> Any:
        """The underlying driver connection."""
        return self._raw

    @property
    def in_transaction(self) -> bool:
        raise NotImplementedError

    @contextmanager
    def translate_errors(self) -> Iterator[None]:
        """Re-raise driver exceptions as DriverError."""
        try:
            yield
        except self.error_types as e:
            sqlstate, errno = self._describe_error(e)
            raise DriverError(str(e), sqlstate=sqlstate, errno=errno) from e

    def _describe_error(self, error: BaseException) -> tuple[str | None, int | None]:
        """Return ``(sqlstate, errno)`` for a driver exception."""
        return None, None

    def _cursor(self, prepared: bool) -> Any:
        return self._raw.cursor()

    def _run(self, cursor: Any, sql: str, params: Sequence[Any] | None) -> None:
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, tuple(params))

    def query(self, sql: str) -> DbapiStatement:
        with self.translate_errors():
            statement = DbapiStatement(self, sql, self._cursor(prepared=False))
        statement.execute()
        return statement

    def prepare(self, sql: str) -> DbapiStatement:
        with self.translate_errors():
            return DbapiStatement(
                self, normalize_params(sql, self.paramstyle), self._cursor(prepared=True)
            )

    def begin(self) -> None:
        with self.translate_errors():
            self._raw.execute("BEGIN")

    def commit(self) -> None:
        with self.translate_errors():
            self._raw.commit()

    def rollback(self) -> None:
        with self.translate_errors():
            self._raw.rollback()

    def last_insert_id(self) -> int | None:
        if self._last_cursor is None:
            return None
        lastrowid = getattr(self._last_cursor, "lastrowid", None)
        return int(lastrowid) if lastrowid else None

    def close(self) -> None:
        with self.translate_errors():
            self._raw.close()
