"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from txsql.core.connection import Credentials
from txsql.core.database import Database
from txsql.core.registry import ConnectionRegistry


@pytest.fixture
def sqlite_credentials() -> Credentials:
    """SQLite in-memory credentials."""
    return Credentials(driver="sqlite", db=":memory:")


@pytest.fixture
def registry(sqlite_credentials: Credentials):
    """Registry with one in-memory SQLite database named 'main'."""
    reg = ConnectionRegistry({"main": sqlite_credentials}, default_name="main")
    yield reg
    reg.close_connections()


@pytest.fixture
def db(registry: ConnectionRegistry) -> Database:
    """Open 'main' database with a users table."""
    database = registry.open()
    database.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL, email TEXT NOT NULL UNIQUE)"
    )
    return database


@pytest.fixture
def mock_connection() -> MagicMock:
    """Driver connection double that is never in a transaction."""
    connection = MagicMock()
    connection.in_transaction = False
    connection.last_insert_id.return_value = None
    return connection


@pytest.fixture
def write_credentials(tmp_path: Path):
    """Helper to write a JSON credentials file.

    Usage:
        write_credentials({"main": {"driver": "sqlite", "db": ":memory:"}})
    """

    def _write(content: dict | str) -> Path:
        file_path = tmp_path / "sql_credentials.json"
        text = content if isinstance(content, str) else json.dumps(content)
        file_path.write_text(text, encoding="utf-8")
        return file_path

    return _write
