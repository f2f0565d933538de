"""Database backend and statement kind enumerations."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


class StatementKind(Enum):
    """Result shape of a statement, decided by its leading keyword."""

    SELECT = "select"
    MUTATE = "mutate"
    DDL = "ddl"
    OTHER = "other"
