"""txsql - transactional query execution with per-query history."""

from __future__ import annotations

from txsql.core.connection import (
    CredentialOverride,
    Credentials,
    CredentialStore,
    build_dsn,
    load_driver,
)
from txsql.core.database import Database
from txsql.core.enums import DatabaseBackend, StatementKind
from txsql.core.exceptions import (
    AdapterError,
    ConnectionError,  # noqa: A004
    CredentialsError,
    DriverError,
    ExecutionError,
    RequestError,
    RollbackError,
    TransactionError,
    TxSQLError,
    UnsupportedStatementError,
)
from txsql.core.params import unsafe_fill_escape_values
from txsql.core.query import Generation, MutationResult, Query, QuerySnapshot
from txsql.core.query_error import ERROR_DUPLICATE_KEY, QueryError
from txsql.core.queue import QueryQueue
from txsql.core.registry import DEFAULT_CONNECTION, ConnectionRegistry
from txsql.core.statement import classify_statement
from txsql.core.transaction import TransactionScope

__all__ = [
    # Connection
    "Credentials",
    "CredentialOverride",
    "CredentialStore",
    "build_dsn",
    "load_driver",
    # Registry
    "ConnectionRegistry",
    "DEFAULT_CONNECTION",
    "Database",
    "TransactionScope",
    # Query
    "Query",
    "QueryQueue",
    "QueryError",
    "QuerySnapshot",
    "Generation",
    "MutationResult",
    "ERROR_DUPLICATE_KEY",
    "classify_statement",
    "unsafe_fill_escape_values",
    # Enums
    "DatabaseBackend",
    "StatementKind",
    # Exceptions
    "TxSQLError",
    "CredentialsError",
    "AdapterError",
    "ConnectionError",
    "DriverError",
    "ExecutionError",
    "RequestError",
    "UnsupportedStatementError",
    "TransactionError",
    "RollbackError",
]
