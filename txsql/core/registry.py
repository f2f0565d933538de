"""Connection registry - one live connection per logical database name.

The registry owns the name -> connection map together with each name's
transaction flag and commit lock token. Build one per application and pass it
to whatever needs database access; ``open`` hands out Database handles bound
to a name.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from txsql.adapters.protocol import DriverConnection
from txsql.core.connection import (
    DEFAULT_CREDENTIALS_FILE,
    CredentialOverride,
    Credentials,
    CredentialStore,
    build_dsn,
    load_driver,
)
from txsql.core.exceptions import ConnectionError, DriverError  # noqa: A004

if TYPE_CHECKING:
    from txsql.core.database import Database

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"


@dataclass
class DatabaseState:
    """Connection and transaction state held for one database name."""

    connection: DriverConnection
    credentials: Credentials
    in_transaction: bool = False
    lock_token: str | None = None


class ConnectionRegistry:
    """Maps logical database names to live driver connections.

    Every read or write of the connection map and of a name's transaction
    state happens under one re-entrant lock.

    Args:
        credentials: Named credentials, as a CredentialStore or a plain mapping.
        default_name: Name opened when ``open`` is called without one.
    """

    def __init__(
        self,
        credentials: CredentialStore | Mapping[str, Credentials] | None = None,
        *,
        default_name: str = DEFAULT_CONNECTION,
    ) -> None:
        if isinstance(credentials, CredentialStore):
            self._credentials = credentials
        else:
            self._credentials = CredentialStore(credentials)
        self._default_name = default_name
        self._states: dict[str, DatabaseState] = {}
        self.lock = threading.RLock()

    @classmethod
    def from_file(
        cls,
        path: Path | str = DEFAULT_CREDENTIALS_FILE,
        *,
        default_name: str = DEFAULT_CONNECTION,
    ) -> ConnectionRegistry:
        """Create a registry from a JSON credentials file."""
        store = CredentialStore()
        store.load(path)
        return cls(store, default_name=default_name)

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def default_name(self) -> str:
        return self._default_name

    @property
    def names(self) -> list[str]:
        """Names with a live connection, sorted alphabetically."""
        with self.lock:
            return sorted(self._states)

    def _resolve(self, name: str | Credentials | None) -> tuple[str, Credentials]:
        if isinstance(name, Credentials):
            return name.key, name
        key = self._default_name if name is None else name
        credentials = self._credentials.get(key)
        if credentials is None:
            raise ConnectionError(f"Invalid database: no credentials for '{key}'")
        return key, credentials

    def open(
        self,
        name: str | Credentials | None = None,
        alt_credentials: CredentialOverride | None = None,
    ) -> Database:
        """Connect to a database and return a handle bound to its name.

        Any connection already registered under the name is replaced. A held
        lock token survives the replacement; the transaction flag follows the
        new connection.

        Args:
            name: Credential name, explicit Credentials, or None for the
                default name.
            alt_credentials: User, password or database overriding the
                resolved credentials.

        Raises:
            ConnectionError: If no credentials resolve or the driver cannot
                connect.
        """
        from txsql.core.database import Database

        key, credentials = self._resolve(name)
        override = alt_credentials or CredentialOverride()
        dsn = build_dsn(credentials, override)
        driver = load_driver(credentials.driver)

        try:
            connection = driver.connect(
                dsn,
                override.user if override.user is not None else credentials.user,
                override.password if override.password is not None else credentials.password,
            )
        except DriverError as e:
            raise ConnectionError(f"Could not connect to '{key}': {e}") from e

        with self.lock:
            previous = self._states.get(key)
            if previous is not None:
                logger.debug("Replacing connection for '%s'", key)
            self._states[key] = DatabaseState(
                connection=connection,
                credentials=credentials,
                lock_token=previous.lock_token if previous is not None else None,
            )
        logger.info("Opened connection '%s' (%s)", key, credentials.driver.value)

        database = Database(self, key)
        if connection.in_transaction:
            database.start_transaction()
        return database

    def state(self, name: str) -> DatabaseState:
        """Return the state for *name*.

        Raises:
            ConnectionError: If no connection is open under *name*.
        """
        with self.lock:
            try:
                return self._states[name]
            except KeyError:
                raise ConnectionError(f"No open connection for '{name}'") from None

    def connection(self, name: str | None = None) -> DriverConnection | None:
        """Return the live connection for *name* (default name if None)."""
        with self.lock:
            state = self._states.get(self._default_name if name is None else name)
            return state.connection if state is not None else None

    def close_connections(self) -> None:
        """Close and forget every registered connection."""
        with self.lock:
            for name, state in self._states.items():
                try:
                    state.connection.close()
                except DriverError as e:
                    logger.warning("Error closing connection '%s': %s", name, e)
                else:
                    logger.info("Closed connection '%s'", name)
            self._states.clear()

    def __enter__(self) -> ConnectionRegistry:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close_connections()

    def __contains__(self, name: object) -> bool:
        with self.lock:
            return name in self._states

    def __len__(self) -> int:
        with self.lock:
            return len(self._states)
