"""Database driver protocols.

Every adapter module MUST implement these protocols. Driver exceptions never
cross them: adapters raise DriverError instead.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DriverStatement(Protocol):
    """A statement handle; prepared statements may be executed repeatedly."""

    @property
    def row_count(self) -> int:
        """Rows affected by the last execution."""
        ...

    def execute(self, params: Sequence[Any] | None = None) -> None:
        """Execute the statement with positional parameters."""
        ...

    def fetch_all(self) -> list[dict[str, Any]]:
        """Fetch all remaining rows as column -> value mappings."""
        ...

    def fetch_one(self) -> dict[str, Any] | None:
        """Fetch the next row, or None when no row is left."""
        ...


@runtime_checkable
class DriverConnection(Protocol):
    """A live driver connection."""

    @property
    def in_transaction(self) -> bool:
        """Whether the server-side session has an open transaction."""
        ...

    def query(self, sql: str) -> DriverStatement:
        """Execute *sql* immediately and return its statement handle."""
        ...

    def prepare(self, sql: str) -> DriverStatement:
        """Prepare *sql* (``?`` placeholders) without executing it."""
        ...

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def last_insert_id(self) -> int | None:
        """Row id generated by the most recent INSERT on this connection."""
        ...

    def close(self) -> None: ...


@runtime_checkable
class Driver(Protocol):
    """Factory for driver connections."""

    @property
    def paramstyle(self) -> str:
        """Placeholder style: 'qmark' (?) or 'format' (%s)."""
        ...

    def connect(self, dsn: str, user: str | None, password: str | None) -> DriverConnection:
        """Open a connection described by *dsn*."""
        ...
