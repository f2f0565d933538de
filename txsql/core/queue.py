"""Query queue - forward, single-pass traversal over a batch of queries."""

from __future__ import annotations

from collections.abc import Iterable

from txsql.core.query import Query


class QueryQueue:
    """Ordered Query objects consumed one ``pop`` at a time.

    The cursor starts before the first element. A move that would leave the
    valid range returns None and leaves the cursor where it was, so once the
    queue is exhausted every further ``pop`` returns None.
    """

    def __init__(self, queries: Iterable[object] = ()) -> None:
        self._queries: list[Query] = []
        self._cursor = 0
        for query in queries:
            if isinstance(query, Query):
                self.push(query)

    def push(self, query: Query) -> None:
        self._queries.append(query)

    def pop(self) -> Query | None:
        cursor = self._move_cursor(1)
        return self._queries[cursor - 1] if cursor is not None else None

    def _move_cursor(self, magnitude: int) -> int | None:
        new_cursor = self._cursor + magnitude
        if new_cursor < 1 or new_cursor > len(self._queries):
            return None
        self._cursor = new_cursor
        return new_cursor

    def __len__(self) -> int:
        return len(self._queries)
