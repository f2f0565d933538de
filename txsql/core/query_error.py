"""Stored failure value for a Query generation."""

from __future__ import annotations

from dataclasses import dataclass

from txsql.core.exceptions import DriverError, RequestError

ERROR_DUPLICATE_KEY = "23000"

_DUPLICATE_KEY_SQLSTATES = frozenset({ERROR_DUPLICATE_KEY, "23505"})


@dataclass(frozen=True)
class QueryError:
    """A RequestError together with the driver failure that caused it.

    QueryError is never raised; it sits in a Query's result/error slot to mark
    that generation's outcome as a failure.
    """

    request_error: RequestError

    @property
    def exception(self) -> DriverError | None:
        """The driver-level failure, if the request error wraps one."""
        cause = self.request_error.__cause__
        return cause if isinstance(cause, DriverError) else None

    @property
    def code(self) -> str | None:
        """SQLSTATE reported by the driver."""
        exc = self.exception
        return exc.sqlstate if exc is not None else None

    @property
    def errno(self) -> int | None:
        """Vendor numeric error code reported by the driver."""
        exc = self.exception
        return exc.errno if exc is not None else None

    @property
    def is_duplicate_key(self) -> bool:
        return self.code in _DUPLICATE_KEY_SQLSTATES

    def __str__(self) -> str:
        return str(self.request_error)
