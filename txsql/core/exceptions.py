"""txsql exception hierarchy.

All exceptions are txsql-specific. Raw driver exceptions are never exposed
to callers: adapters translate them into DriverError at the boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from txsql.core.query import QuerySnapshot


class TxSQLError(Exception):
    """Base exception for all txsql errors."""


# --- Configuration ---


class CredentialsError(TxSQLError):
    """Raised when a credentials file or entry cannot be used."""


# --- Adapter ---


class AdapterError(TxSQLError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised when no credentials resolve or the driver cannot connect."""


class DriverError(AdapterError):
    """A failure reported by the underlying database driver.

    Attributes:
        sqlstate: Five-character SQLSTATE, when the driver reports one.
        errno: Vendor numeric error code, when the driver reports one.
    """

    def __init__(
        self,
        message: str,
        *,
        sqlstate: str | None = None,
        errno: int | None = None,
    ) -> None:
        self.sqlstate = sqlstate
        self.errno = errno
        super().__init__(message)


# --- Execution ---


class ExecutionError(TxSQLError):
    """Base for query execution errors."""


class RequestError(ExecutionError):
    """Raised when a single statement fails at the driver.

    Attributes:
        code: Numeric driver error code, 0 when the driver gave none.
        query: Snapshot of the statement text and parameters that failed.
    """

    def __init__(
        self,
        message: str,
        code: int = 0,
        query: QuerySnapshot | None = None,
    ) -> None:
        self.code = code
        self.query = query
        super().__init__(message)

    def get_erred_query(self) -> QuerySnapshot | None:
        return self.query


class UnsupportedStatementError(ExecutionError):
    """Raised when a statement's leading keyword has no known result shape."""

    def __init__(self, sql: str, detail: str) -> None:
        self.sql = sql
        super().__init__(f"Unsupported statement: {detail}")


# --- Transaction ---


class TransactionError(TxSQLError):
    """Base for transaction errors."""


class RollbackError(TransactionError):
    """Raised when a transaction is rolled back because a statement failed.

    Carries the message, code and erred query of the error that forced the
    rollback; that error is also the ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        code: int = 0,
        query: QuerySnapshot | None = None,
    ) -> None:
        self.code = code
        self.query = query
        super().__init__(message)

    def get_erred_query(self) -> QuerySnapshot | None:
        return self.query
