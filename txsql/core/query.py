"""Query execution with a one-generation history.

A Query runs statements against a driver connection and keeps the current
and the previous execution (raw text, parameters, statement handle, outcome)
so callers can inspect what just happened and what happened before.

Pass only ``query`` to run a basic statement. Pass ``query`` and ``params``
to prepare a statement and run it with a first parameter set. Pass no
``query`` to run the previous statement again, optionally with new params.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from txsql.adapters.protocol import DriverConnection, DriverStatement
from txsql.core.enums import StatementKind
from txsql.core.exceptions import DriverError, RequestError
from txsql.core.params import unsafe_fill_escape_values
from txsql.core.query_error import QueryError
from txsql.core.statement import check_statement, leading_keyword

logger = logging.getLogger(__name__)


class MutationResult(NamedTuple):
    """Outcome of an INSERT, UPDATE or DELETE."""

    insert_id: int | None
    rows_affected: int


@dataclass(frozen=True)
class QuerySnapshot:
    """Immutable copy of the statement text and parameters of one execution."""

    raw_query: str | None
    escape_values: tuple[Any, ...] | None = None

    def __str__(self) -> str:
        return self.raw_query or ""


@dataclass
class Generation:
    """Everything recorded about one execution of a Query."""

    statement: DriverStatement | None = None
    raw_query: str | None = None
    escape_values: list[Any] | None = None
    escaped: bool | None = None
    transaction: bool | None = None
    result: Any = None
    error: QueryError | None = None
    kind: StatementKind | None = field(default=None, repr=False)


class Query:
    """One logical query and its current/previous execution."""

    def __init__(self, connection: DriverConnection) -> None:
        self._connection = connection
        # [0] is the current generation, [1] the previous one
        self._generations: deque[Generation] = deque([Generation(), Generation()], maxlen=2)
        self._executions = 0

    @property
    def connection(self) -> DriverConnection:
        return self._connection

    def _generation(self, previous: bool) -> Generation:
        return self._generations[1 if previous else 0]

    def make_results_previous_results(self) -> None:
        """Move the current generation into the previous slot and start a fresh one."""
        self._generations.appendleft(Generation())

    def execute(
        self,
        query: str | None = None,
        params: Sequence[Any] | None = None,
        single: bool = False,
    ) -> Any:
        """Execute a statement and record it as the current generation.

        Args:
            query: SQL text with ``?`` placeholders, or None to run the
                previous statement again.
            params: Positional parameters. Non-empty params bind through a
                prepared statement.
            single: For SELECT, return one row (or None) instead of a list.

        Returns:
            ``list[dict]`` or ``dict | None`` for SELECT, MutationResult for
            INSERT/UPDATE/DELETE, True for DDL.

        Raises:
            UnsupportedStatementError: The statement has no known result shape.
                Nothing is recorded.
            RequestError: The driver rejected the statement, or there is no
                previous statement to run. The current generation's result
                and error hold a QueryError.
        """
        params = list(params) if params else []
        previous = self._generation(previous=False)

        if query is not None:
            raw_query = query
        elif self._executions > 0 and previous.raw_query is not None:
            raw_query = previous.raw_query
        else:
            raw_query = None
        kind = check_statement(raw_query) if raw_query is not None else None

        if self._executions > 0:
            self.make_results_previous_results()
        else:
            self._generations[0] = Generation()
        current = self._generation(previous=False)
        current.transaction = self._connection.in_transaction
        current.raw_query = raw_query
        current.kind = kind

        try:
            if raw_query is None:
                raise RequestError(
                    "No previous query available to execute", query=self.snapshot()
                )

            if query is not None:
                if params:
                    self._execute_prepared(current, query, params)
                else:
                    self._execute_basic(current, query)
            elif previous.escaped:
                self._rerun_prepared(current, previous, params)
            elif params:
                self._execute_prepared(current, raw_query, params)
            else:
                self._execute_basic(current, raw_query)

            current.result = self._collect(current, single)
        except RequestError as e:
            current.error = current.result = QueryError(e)
            raise

        self._executions += 1
        return current.result

    def _fail(self, current: Generation, error: DriverError) -> RequestError:
        verb = leading_keyword(current.raw_query or "") or "EXECUTE"
        return RequestError(
            f"Could not {verb}: {error}",
            code=error.errno or 0,
            query=self.snapshot(),
        )

    def _execute_basic(self, current: Generation, query: str) -> None:
        current.escaped = False
        logger.debug("Executing: %s", query)
        try:
            current.statement = self._connection.query(query)
        except DriverError as e:
            raise self._fail(current, e) from e

    def _execute_prepared(self, current: Generation, query: str, params: list[Any]) -> None:
        current.escaped = True
        current.escape_values = params
        logger.debug("Preparing: %s", query)
        try:
            current.statement = self._connection.prepare(query)
            current.statement.execute(params)
        except DriverError as e:
            raise self._fail(current, e) from e

    def _rerun_prepared(
        self, current: Generation, previous: Generation, params: list[Any]
    ) -> None:
        current.escaped = True
        current.escape_values = params or list(previous.escape_values or [])
        if previous.statement is None:
            raise RequestError(
                "No previous prepared statement available", query=self.snapshot()
            )
        current.statement = previous.statement
        logger.debug("Re-executing prepared: %s", current.raw_query)
        try:
            current.statement.execute(current.escape_values)
        except DriverError as e:
            raise self._fail(current, e) from e

    def _collect(self, current: Generation, single: bool) -> Any:
        statement = current.statement
        if statement is None:
            raise RequestError("Driver returned no statement handle", query=self.snapshot())
        try:
            if current.kind is StatementKind.SELECT:
                return statement.fetch_one() if single else statement.fetch_all()
            if current.kind is StatementKind.MUTATE:
                return MutationResult(
                    insert_id=self._connection.last_insert_id(),
                    rows_affected=statement.row_count,
                )
        except DriverError as e:
            raise self._fail(current, e) from e
        return True

    # --- Accessors ---

    def get_insert_id(self, previous: bool = False) -> int | None:
        """Insert id of the INSERT/UPDATE/DELETE result, None for other results."""
        result = self._generation(previous).result
        return result.insert_id if isinstance(result, MutationResult) else None

    def get_affected_rows(self, previous: bool = False) -> int | None:
        """Affected row count of the INSERT/UPDATE/DELETE result, None otherwise."""
        result = self._generation(previous).result
        return result.rows_affected if isinstance(result, MutationResult) else None

    def get_raw_query(self, previous: bool = False) -> str | None:
        return self._generation(previous).raw_query

    def get_unsafe_raw_query(self, previous: bool = False) -> str | None:
        """Raw query with parameters pasted in, for logs and debugging ONLY.

        See ``unsafe_fill_escape_values``: the text is not injection-safe and
        must never be executed.
        """
        generation = self._generation(previous)
        if generation.raw_query is None:
            return None
        if generation.escaped and generation.escape_values:
            return unsafe_fill_escape_values(generation.raw_query, generation.escape_values)
        return generation.raw_query

    def get_escape_values(self, previous: bool = False) -> list[Any] | None:
        return self._generation(previous).escape_values

    def get_result(self, previous: bool = False) -> Any:
        """The result, or the QueryError when that execution failed."""
        return self._generation(previous).result

    def get_error(self, previous: bool = False) -> QueryError | None:
        return self._generation(previous).error

    def get_statement(self, previous: bool = False) -> DriverStatement | None:
        return self._generation(previous).statement

    def was_in_transaction(self, previous: bool = False) -> bool | None:
        return self._generation(previous).transaction

    def get_executions(self) -> int:
        return self._executions

    def snapshot(self, previous: bool = False) -> QuerySnapshot:
        generation = self._generation(previous)
        values = generation.escape_values
        return QuerySnapshot(generation.raw_query, tuple(values) if values is not None else None)

    def __str__(self) -> str:
        return self.get_raw_query() or ""

    def __repr__(self) -> str:
        return f"<Query executions={self._executions} raw_query={self.get_raw_query()!r}>"
