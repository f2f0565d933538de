"""Unit tests for ConnectionRegistry."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from txsql.core.connection import CredentialOverride, Credentials
from txsql.core.database import Database
from txsql.core.exceptions import ConnectionError  # noqa: A004
from txsql.core.query import Query
from txsql.core.registry import ConnectionRegistry


class TestOpen:
    def test_open_default_name(self, registry: ConnectionRegistry) -> None:
        db = registry.open()
        assert isinstance(db, Database)
        assert db.name == "main"
        assert registry.names == ["main"]
        assert not db.in_transaction

    def test_open_named(self, registry: ConnectionRegistry) -> None:
        db = registry.open("main")
        assert registry.connection("main") is db.connection

    def test_open_unknown_name(self, registry: ConnectionRegistry) -> None:
        with pytest.raises(ConnectionError, match="no credentials for 'missing'"):
            registry.open("missing")

    def test_open_without_default_credentials(self) -> None:
        with pytest.raises(ConnectionError, match="'default'"):
            ConnectionRegistry().open()

    def test_open_explicit_credentials(self, tmp_path: Path) -> None:
        registry = ConnectionRegistry()
        credentials = Credentials(driver="sqlite", db=str(tmp_path / "explicit.db"))
        db = registry.open(credentials)
        assert db.name == credentials.key
        assert credentials.key in registry
        registry.close_connections()

    def test_override_db(self, tmp_path: Path) -> None:
        registry = ConnectionRegistry(
            {"main": Credentials(driver="sqlite", db=str(tmp_path / "main.db"))},
            default_name="main",
        )
        db = registry.open(alt_credentials=CredentialOverride(db=str(tmp_path / "alt.db")))
        db.execute("CREATE TABLE t (id INTEGER)")
        registry.close_connections()

        assert (tmp_path / "alt.db").exists()
        assert not (tmp_path / "main.db").exists()

    def test_reopen_replaces_connection(self, registry: ConnectionRegistry) -> None:
        first = registry.open()
        old_connection = first.connection

        second = registry.open()
        assert second.connection is not old_connection
        assert first.connection is second.connection
        assert len(registry) == 1

    def test_reopen_keeps_lock_token(self, registry: ConnectionRegistry) -> None:
        first = registry.open()
        first.start_transaction("tokenA")

        second = registry.open()
        assert first.lock_token == "tokenA"
        assert second.lock_token == "tokenA"
        assert not second.in_transaction

        second.start_transaction("tokenB")
        assert second.lock_token == "tokenA"
        assert second.in_transaction
        second.commit("tokenA")
        assert second.lock_token is None
        assert not second.in_transaction

    def test_open_marks_inherited_transaction(
        self, registry: ConnectionRegistry, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        connection = MagicMock()
        connection.in_transaction = True
        driver = MagicMock()
        driver.connect.return_value = connection
        monkeypatch.setattr("txsql.core.registry.load_driver", lambda backend: driver)

        db = registry.open()
        assert db.in_transaction
        connection.begin.assert_not_called()

    def test_connect_failure(self, tmp_path: Path) -> None:
        registry = ConnectionRegistry(
            {"bad": Credentials(driver="sqlite", db=str(tmp_path / "no" / "such" / "dir.db"))}
        )
        with pytest.raises(ConnectionError, match="Could not connect to 'bad'"):
            registry.open("bad")


class TestRegistry:
    def test_from_file(self, write_credentials) -> None:
        path = write_credentials({"local": {"driver": "sqlite", "db": ":memory:"}})
        registry = ConnectionRegistry.from_file(path, default_name="local")
        assert registry.open().name == "local"
        registry.close_connections()

    def test_execute_returns_query(self, registry: ConnectionRegistry) -> None:
        query = registry.open().execute("SELECT 1 AS one", single=True)
        assert isinstance(query, Query)
        assert query.get_result() == {"one": 1}

    def test_state_of_unopened_name(self, registry: ConnectionRegistry) -> None:
        with pytest.raises(ConnectionError, match="No open connection"):
            registry.state("main")

    def test_connection_of_unopened_name(self, registry: ConnectionRegistry) -> None:
        assert registry.connection() is None

    def test_close_connections(self, registry: ConnectionRegistry) -> None:
        db = registry.open()
        registry.close_connections()
        assert registry.names == []
        with pytest.raises(ConnectionError):
            db.execute("SELECT 1")

    def test_context_manager_closes(self, sqlite_credentials: Credentials) -> None:
        with ConnectionRegistry({"main": sqlite_credentials}, default_name="main") as registry:
            registry.open()
            assert len(registry) == 1
        assert len(registry) == 0

    def test_isolated_registries(self, sqlite_credentials: Credentials) -> None:
        a = ConnectionRegistry({"main": sqlite_credentials}, default_name="main")
        b = ConnectionRegistry({"main": sqlite_credentials}, default_name="main")
        a.open().start_transaction("token")
        db_b = b.open()
        assert not db_b.in_transaction
        assert db_b.lock_token is None
        a.close_connections()
        b.close_connections()
