"""Credentials, DSN construction and driver loading.

Credentials is a Pydantic model for type-safe connection config. A
CredentialStore loads named credentials from a JSON file once and caches them.
"""

from __future__ import annotations

import importlib
import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from txsql.core.enums import DatabaseBackend
from txsql.core.exceptions import AdapterError, CredentialsError

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_FILE = Path("sql_credentials.json")

DEFAULT_PORTS: dict[DatabaseBackend, int] = {
    DatabaseBackend.MYSQL: 3306,
    DatabaseBackend.POSTGRESQL: 5432,
}


class Credentials(BaseModel):
    """Credentials for one logical database.

    In a credentials file the password key is ``pass``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    driver: DatabaseBackend = DatabaseBackend.MYSQL
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = Field(default=None, alias="pass")
    db: str
    charset: str = "utf8mb4"

    @model_validator(mode="after")
    def _require_server_fields(self) -> Credentials:
        if self.driver is DatabaseBackend.SQLITE:
            return self
        missing = [name for name in ("host", "user", "password") if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.driver.value} credentials require {missing}")
        return self

    @property
    def effective_port(self) -> int | None:
        if self.port is not None:
            return self.port
        return DEFAULT_PORTS.get(self.driver)

    @property
    def key(self) -> str:
        """Registry name used when these credentials are passed explicitly."""
        if self.driver is DatabaseBackend.SQLITE:
            return f"sqlite:{self.db}"
        return f"{self.user}@{self.host}:{self.effective_port}/{self.db}"


class CredentialOverride(BaseModel):
    """Values that take precedence over resolved credentials on open."""

    user: str | None = None
    password: str | None = None
    db: str | None = None


def build_dsn(credentials: Credentials, override: CredentialOverride | None = None) -> str:
    """Build the driver DSN for *credentials*; ``override.db`` wins over ``db``."""
    db = override.db if override is not None and override.db is not None else credentials.db
    if credentials.driver is DatabaseBackend.SQLITE:
        return f"sqlite:///{db}"
    dsn = f"{credentials.driver.value}://{credentials.host}:{credentials.effective_port}/{db}"
    if credentials.driver is DatabaseBackend.MYSQL:
        dsn += f"?charset={credentials.charset}"
    return dsn


class CredentialStore:
    """Named credentials, loaded once and cached.

    Entries that fail validation are skipped with a warning so one bad entry
    does not hide the others.
    """

    def __init__(self, credentials: Mapping[str, Credentials] | None = None) -> None:
        self._credentials: dict[str, Credentials] = dict(credentials or {})

    def load(self, path: Path | str = DEFAULT_CREDENTIALS_FILE) -> bool:
        """Load credentials from a JSON file unless some are already cached.

        Returns:
            True when credentials are available afterwards, False when the
            file is missing or holds no JSON object.
        """
        if self._credentials:
            return True

        path = Path(path)
        if not path.exists():
            logger.debug("Credentials file %s not found", path)
            return False

        try:
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CredentialsError(f"Invalid credentials file '{path}': {e}") from e
        if not isinstance(parsed, dict):
            return False

        for name, entry in parsed.items():
            try:
                self._credentials[name] = Credentials.model_validate(entry)
            except ValidationError as e:
                logger.warning("Skipping credentials entry '%s': %s", name, e)

        logger.info("Loaded %d credential entries from %s", len(self._credentials), path)
        return True

    def add(self, name: str, credentials: Credentials) -> None:
        self._credentials[name] = credentials

    def get(self, name: str) -> Credentials | None:
        return self._credentials.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._credentials

    def __iter__(self) -> Iterator[str]:
        return iter(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)


# Driver module mapping: backend -> (module_path, driver_class)
_DRIVER_MAP: dict[DatabaseBackend, tuple[str, str]] = {
    DatabaseBackend.SQLITE: ("txsql.adapters.sqlite", "SqliteDriver"),
    DatabaseBackend.POSTGRESQL: ("txsql.adapters.postgresql", "PostgresqlDriver"),
    DatabaseBackend.MYSQL: ("txsql.adapters.mysql", "MysqlDriver"),
}


def load_driver(backend: DatabaseBackend | str) -> Any:
    """Load a driver by backend name."""
    try:
        backend = DatabaseBackend(backend)
    except ValueError:
        raise AdapterError(f"Unsupported database driver: {backend}") from None

    module_path, cls_name = _DRIVER_MAP[backend]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load driver for '{backend.value}': {e}") from e
