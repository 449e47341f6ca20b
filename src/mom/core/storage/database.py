"""SQLite database management for client-local state.

Only the alert-dismissal set is persisted; record collections are always
fetched fresh from the backend.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

# version -> DDL, applied in order on open
_MIGRATIONS: dict[int, str] = {
    1: """
CREATE TABLE IF NOT EXISTS dismissed_alerts (
    rule_id      TEXT PRIMARY KEY,
    dismissed_at TEXT NOT NULL DEFAULT (datetime('now'))
);
""",
}
SCHEMA_VERSION = max(_MIGRATIONS)


class DatabaseError(Exception):
    """The database could not be opened or is not open."""


class MomDatabase:
    """One SQLite connection plus its schema migrations.

    Usage::

        with MomDatabase("~/.mom/dismissals.db") as db:
            with db.transaction() as conn:
                conn.execute("DELETE FROM dismissed_alerts")
    """

    def __init__(self, db_path: str = IN_MEMORY) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Open the connection and apply pending migrations. Idempotent.

        Raises:
            DatabaseError: The file or its directory could not be opened.
        """
        if self._conn is not None:
            return
        try:
            self._conn = self._open()
            self._migrate()
        except (sqlite3.Error, OSError) as exc:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            raise DatabaseError(f"Cannot open database {self._db_path}: {exc}") from exc
        logger.info("Database ready: %s (schema v%d)", self._db_path, SCHEMA_VERSION)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back if the block raises."""
        conn = self.connection
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()

    def get_schema_version(self) -> int:
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Database closed: %s", self._db_path)

    def __enter__(self) -> MomDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _open(self) -> sqlite3.Connection:
        if self._db_path == IN_MEMORY:
            return sqlite3.connect(IN_MEMORY)
        db_file = Path(self._db_path).expanduser()
        db_file.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_file))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _migrate(self) -> None:
        conn = self.connection
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "version INTEGER NOT NULL, applied_at TEXT NOT NULL DEFAULT (datetime('now')))"
        )
        current = self.get_schema_version()
        for version in sorted(v for v in _MIGRATIONS if v > current):
            conn.executescript(_MIGRATIONS[version])
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
            conn.commit()
            logger.info("Applied schema migration v%d to %s", version, self._db_path)
