"""Integration test for the SQLite full workflow.

Covers: credentials file loading, query execution and history, lock-token
transactions, forced rollback and replay through a QueryQueue against real
file-backed SQLite databases.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from txsql.core.database import Database
from txsql.core.exceptions import RequestError, RollbackError
from txsql.core.query import Query
from txsql.core.queue import QueryQueue
from txsql.core.registry import ConnectionRegistry

# --- Fixtures ---


@pytest.fixture
def credentials_file(tmp_path: Path, write_credentials) -> Path:
    return write_credentials(
        {
            "shop": {"driver": "sqlite", "db": str(tmp_path / "shop.db")},
            "audit": {"driver": "sqlite", "db": str(tmp_path / "audit.db")},
            "broken": {"host": "localhost", "db": "nope"},
        }
    )


@pytest.fixture
def registry(credentials_file: Path):
    reg = ConnectionRegistry.from_file(credentials_file, default_name="shop")
    yield reg
    reg.close_connections()


@pytest.fixture
def shop(registry: ConnectionRegistry) -> Database:
    db = registry.open()
    db.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL, email TEXT NOT NULL UNIQUE)"
    )
    db.execute(
        "CREATE TABLE orders (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "user_id INTEGER NOT NULL, amount REAL NOT NULL)"
    )
    return db


def _place_order(db: Database, user_id: int, amount: float) -> int:
    """Helper that manages its own transaction, unaware of any caller's."""
    db.start_transaction()
    query = db.execute("INSERT INTO orders (user_id, amount) VALUES (?, ?)", [user_id, amount])
    db.commit()
    return query.get_insert_id()


# --- Tests ---


class TestCredentialsFile:
    def test_invalid_entry_skipped(self, registry: ConnectionRegistry) -> None:
        assert sorted(registry.credentials) == ["audit", "shop"]

    def test_names_use_separate_databases(self, registry: ConnectionRegistry, shop) -> None:
        audit = registry.open("audit")
        audit.execute("CREATE TABLE log (msg TEXT)")
        audit.execute("INSERT INTO log VALUES (?)", ["hello"])

        assert registry.names == ["audit", "shop"]
        with pytest.raises(RequestError):
            shop.execute("SELECT * FROM log")


class TestQueryWorkflow:
    def test_insert_select_and_history(self, shop: Database) -> None:
        insert = shop.execute(
            "INSERT INTO users (name, email) VALUES (?, ?)", ["Alice", "alice@ex.com"]
        )
        assert insert.get_insert_id() == 1

        insert.execute(params=["Bob", "bob@ex.com"])
        assert insert.get_insert_id() == 2
        assert insert.get_escape_values() == ["Bob", "bob@ex.com"]
        assert insert.get_executions() == 2

        users = shop.execute("SELECT name FROM users ORDER BY id").get_result()
        assert users == [{"name": "Alice"}, {"name": "Bob"}]

    def test_data_survives_reopen(self, registry: ConnectionRegistry, shop: Database) -> None:
        shop.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["A", "a@ex.com"])
        registry.close_connections()

        reopened = registry.open("shop")
        count = reopened.execute("SELECT COUNT(*) AS n FROM users", single=True)
        assert count.get_result() == {"n": 1}

    def test_duplicate_key_outside_transaction(self, shop: Database) -> None:
        query = shop.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["A", "a@ex.com"])
        with pytest.raises(RequestError) as exc_info:
            shop.rerun(query, params=["B", "a@ex.com"])

        assert exc_info.value.get_erred_query().escape_values == ("B", "a@ex.com")
        assert query.get_error().is_duplicate_key
        assert not shop.in_transaction


class TestTransactions:
    def test_lock_token_keeps_helpers_from_committing(self, shop: Database) -> None:
        shop.start_transaction("checkout")
        user_id = shop.execute(
            "INSERT INTO users (name, email) VALUES (?, ?)", ["Carol", "carol@ex.com"]
        ).get_insert_id()
        _place_order(shop, user_id, 9.5)
        _place_order(shop, user_id, 20.0)

        assert shop.in_transaction
        assert shop.lock_token == "checkout"

        shop.commit("checkout")
        assert not shop.in_transaction
        total = shop.execute("SELECT SUM(amount) AS total FROM orders", single=True)
        assert total.get_result() == {"total": 29.5}

    def test_failure_inside_transaction_rolls_back(self, shop: Database) -> None:
        shop.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["A", "a@ex.com"])

        shop.start_transaction("import")
        shop.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["B", "b@ex.com"])
        with pytest.raises(RollbackError) as exc_info:
            shop.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["C", "a@ex.com"])

        error = exc_info.value
        assert isinstance(error.__cause__, RequestError)
        assert error.get_erred_query().raw_query.startswith("INSERT INTO users")
        assert not shop.in_transaction
        assert shop.lock_token is None

        names = shop.execute("SELECT name FROM users ORDER BY id").get_result()
        assert names == [{"name": "A"}]

    def test_transaction_scope(self, shop: Database) -> None:
        with pytest.raises(RuntimeError):
            with shop.transaction("scope") as db:
                db.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["X", "x@ex.com"])
                raise RuntimeError("abort")
        assert shop.execute("SELECT * FROM users").get_result() == []

        with shop.transaction("scope") as db:
            db.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["Y", "y@ex.com"])
        assert len(shop.execute("SELECT * FROM users").get_result()) == 1


class TestReplay:
    def test_queue_replays_failed_queries(self, shop: Database) -> None:
        shop.execute("INSERT INTO users (name, email) VALUES (?, ?)", ["A", "a@ex.com"])
        failed = QueryQueue()
        for name, email in [("B", "a@ex.com"), ("C", "c@ex.com"), ("D", "a@ex.com")]:
            query = Query(shop.connection)
            try:
                shop.rerun(query, "INSERT INTO users (name, email) VALUES (?, ?)", [name, email])
            except RequestError:
                failed.push(query)

        assert len(failed) == 2
        replayed = []
        while (query := failed.pop()) is not None:
            name = query.get_escape_values()[0]
            # never succeeded, so there is no history to rerun from
            shop.rerun(query, query.get_raw_query(), [name, f"{name.lower()}@ex.com"])
            replayed.append(name)

        assert replayed == ["B", "D"]
        assert len(shop.execute("SELECT * FROM users").get_result()) == 4
