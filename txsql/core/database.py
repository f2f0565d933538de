"""Database handle - the registry scoped to one database name."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from txsql.adapters.protocol import DriverConnection
from txsql.core.exceptions import DriverError, RequestError, RollbackError, TransactionError
from txsql.core.query import Query
from txsql.core.transaction import TransactionScope

if TYPE_CHECKING:
    from txsql.core.registry import ConnectionRegistry, DatabaseState

logger = logging.getLogger(__name__)


class Database:
    """Executes queries and manages the transaction for one database name.

    A commit lock token makes a transaction finalizable only by its holder:
    while a token is held, ``commit`` with any other token is a no-op and
    ``start_transaction`` keeps the open transaction.
    """

    def __init__(self, registry: ConnectionRegistry, name: str) -> None:
        self._registry = registry
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def _state(self) -> DatabaseState:
        return self._registry.state(self._name)

    @property
    def connection(self) -> DriverConnection:
        """The live driver connection registered under this name."""
        return self._state.connection

    def get_con(self) -> DriverConnection:
        return self.connection

    @property
    def in_transaction(self) -> bool:
        return self._state.in_transaction

    @property
    def lock_token(self) -> str | None:
        return self._state.lock_token

    # --- Execution ---

    def execute(
        self,
        raw_query: str,
        params: Sequence[Any] | None = None,
        single: bool = False,
    ) -> Query:
        """Create a Query on this connection, execute it, and return the Query.

        Raises:
            RequestError: The statement failed outside a transaction.
            RollbackError: The statement failed inside a transaction, which
                has been rolled back.
        """
        query = Query(self.connection)
        self.rerun(query, raw_query, params, single)
        return query

    def rerun(
        self,
        query: Query,
        raw_query: str | None = None,
        params: Sequence[Any] | None = None,
        single: bool = False,
    ) -> Any:
        """Execute *query* again, rolling back if it fails inside a transaction."""
        try:
            return query.execute(raw_query, params, single)
        except RequestError as e:
            if self.in_transaction:
                self.rollback(e)
            raise

    # --- Transactions ---

    def start_transaction(self, lock_token: str | None = None) -> bool:
        """Start a transaction unless one is already open.

        Without a held lock token an open transaction is rolled back first
        and *lock_token*, if given, is recorded. With a held token the open
        transaction is kept.

        Returns:
            Whether a transaction is now active.

        Raises:
            RollbackError: Rolling back the previous transaction failed.
            TransactionError: The driver could not begin a transaction.
        """
        with self._registry.lock:
            state = self._state
            if state.lock_token is None:
                if state.in_transaction:
                    self.rollback()
                if lock_token is not None:
                    state.lock_token = lock_token

            connection = state.connection
            if not connection.in_transaction:
                try:
                    connection.begin()
                except DriverError as e:
                    raise TransactionError(f"Could not begin transaction: {e}") from e

            state.in_transaction = connection.in_transaction
            logger.debug("Transaction started on '%s'", self._name)
            return state.in_transaction

    def commit(self, lock_token: str | None = None) -> None:
        """Commit the open transaction if no token is held or *lock_token* matches."""
        with self._registry.lock:
            state = self._state
            if not state.in_transaction:
                return
            if state.lock_token is not None and lock_token != state.lock_token:
                logger.debug("Commit on '%s' skipped: lock token mismatch", self._name)
                return

            try:
                state.connection.commit()
            except DriverError as e:
                raise TransactionError(f"Could not commit: {e}") from e
            state.in_transaction = False
            state.lock_token = None
            logger.debug("Transaction committed on '%s'", self._name)

    def rollback(self, cause: BaseException | None = None) -> None:
        """Roll back the open transaction; no-op when none is open.

        Args:
            cause: The error that forced the rollback. When given, it is
                re-raised as a RollbackError carrying its message, code and
                erred query.

        Raises:
            RollbackError: When *cause* is given, or the driver rollback fails.
        """
        with self._registry.lock:
            state = self._state
            if not state.in_transaction:
                return

            try:
                state.connection.rollback()
            except DriverError as e:
                state.in_transaction = state.connection.in_transaction
                raise RollbackError(f"Rollback failed: {e}", code=e.errno or 0) from e
            state.in_transaction = False
            state.lock_token = None

        if cause is None:
            logger.debug("Transaction rolled back on '%s'", self._name)
            return

        logger.warning("Forced rollback on '%s': %s", self._name, cause)
        raise RollbackError(
            f"Forced rollback: {cause}",
            code=getattr(cause, "code", 0),
            query=getattr(cause, "query", None),
        ) from cause

    def transaction(self, lock_token: str | None = None) -> TransactionScope:
        """Context manager: start, commit on success, roll back on exception."""
        return TransactionScope(self, lock_token)

    def __repr__(self) -> str:
        return f"<Database name={self._name!r}>"
