"""Transaction scope.

Wraps a Database transaction in a context manager. Commits on success,
rolls back on exception. With a lock token, code inside the block cannot
finalize the transaction by accident: only the scope holds the token.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from txsql.core.database import Database


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionScope:
    """Context manager around ``start_transaction``/``commit``/``rollback``."""

    def __init__(self, database: Database, lock_token: str | None = None) -> None:
        self._database = database
        self._lock_token = lock_token
        self._state = _TxState.IDLE

    @property
    def state(self) -> str:
        return self._state.value

    def __enter__(self) -> Database:
        self._database.start_transaction(self._lock_token)
        self._state = _TxState.ACTIVE
        return self._database

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._state != _TxState.ACTIVE:
            return
        if exc_type is not None:
            self._database.rollback()
            self._state = _TxState.ROLLED_BACK
        else:
            self._database.commit(self._lock_token)
            self._state = (
                _TxState.ACTIVE if self._database.in_transaction else _TxState.COMMITTED
            )
