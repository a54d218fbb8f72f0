"""SQLite database connection with schema migrations."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from disco.errors import DatabaseError, MigrationError


def _column(name: str, sql_type: str, *constraints: str) -> str:
    return " ".join((name, sql_type, *constraints))


def _one_of(column: str, *values: str) -> str:
    allowed = ", ".join(f"'{value}'" for value in values)
    return f"CHECK({column} IN ({allowed}))"


_TABLES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "disks",
        (
            _column("disk_id", "TEXT", "PRIMARY KEY"),
            _column("name", "TEXT", "NOT NULL"),
            _column("serial", "TEXT"),
            _column("volume_uuid", "TEXT"),
            _column("volume_label", "TEXT"),
            _column("capacity_bytes", "INTEGER", "NOT NULL"),
            _column("fingerprint", "TEXT", "NOT NULL"),
            _column("first_registered", "TEXT", "NOT NULL"),
            _column("last_mount_point", "TEXT"),
        ),
    ),
    (
        "entries",
        (
            _column("entry_id", "INTEGER", "PRIMARY KEY AUTOINCREMENT"),
            _column("disk_id", "TEXT", "NOT NULL", "REFERENCES disks(disk_id)"),
            _column("disk_name", "TEXT", "NOT NULL"),
            _column("relative_path", "TEXT", "NOT NULL"),
            _column("file_name", "TEXT", "NOT NULL"),
            _column("size", "INTEGER", "NOT NULL"),
            _column("hash", "TEXT"),
            _column("mtime", "TEXT", "NOT NULL"),
            _column("entry_type", "TEXT", "NOT NULL", _one_of("entry_type", "file", "dir")),
            _column("solid_flag", "INTEGER", "NOT NULL", "DEFAULT 0"),
            _column("last_seen_mount_point", "TEXT", "NOT NULL"),
            _column("indexed_at", "TEXT", "NOT NULL"),
            _column(
                "status",
                "TEXT",
                "NOT NULL",
                "DEFAULT 'normal'",
                _one_of("status", "normal", "missing", "pending_confirm"),
            ),
            "UNIQUE(disk_id, relative_path)",
        ),
    ),
    (
        "tasks",
        (
            _column("task_id", "TEXT", "PRIMARY KEY"),
            _column("task_type", "TEXT", "NOT NULL", _one_of("task_type", "store", "scan")),
            _column(
                "status",
                "TEXT",
                "NOT NULL",
                _one_of("status", "pending", "running", "completed", "failed", "interrupted"),
            ),
            _column("payload", "TEXT", "NOT NULL"),
            _column("created_at", "TEXT", "NOT NULL"),
            _column("updated_at", "TEXT", "NOT NULL"),
        ),
    ),
    (
        "config",
        (
            _column("key", "TEXT", "PRIMARY KEY"),
            _column("value", "TEXT", "NOT NULL"),
        ),
    ),
)

_INDEXES: tuple[tuple[str, str], ...] = (
    ("idx_entries_file_name", "entries(file_name)"),
    ("idx_entries_disk_id", "entries(disk_id)"),
    ("idx_entries_hash", "entries(hash) WHERE hash IS NOT NULL"),
    ("idx_entries_file_name_lower", "entries(lower(file_name))"),
)


def _create_script() -> str:
    statements = [
        f"CREATE TABLE {name} (\n    " + ",\n    ".join(columns) + "\n);"
        for name, columns in _TABLES
    ]
    statements.extend(f"CREATE INDEX {name} ON {target};" for name, target in _INDEXES)
    return "\n".join(statements)


def _drop_script() -> str:
    statements = [f"DROP INDEX IF EXISTS {name};" for name, _ in reversed(_INDEXES)]
    statements.extend(f"DROP TABLE IF EXISTS {name};" for name, _ in reversed(_TABLES))
    return "\n".join(statements)


SCHEMA_V1 = _create_script()
SCHEMA_V1_DOWN = _drop_script()

# (up, down) scripts; the schema version is the number of applied migrations.
MIGRATIONS: tuple[tuple[str, str], ...] = ((SCHEMA_V1, SCHEMA_V1_DOWN),)


class Database:
    """A SQLite connection brought to the latest schema on open."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._run_migrations()

    @classmethod
    def open(cls, path: str | Path) -> Database:
        """Open (or create) the database file at ``path``."""
        try:
            conn = sqlite3.connect(str(path), isolation_level=None)
        except sqlite3.Error as exc:
            raise DatabaseError(exc) from exc
        return cls(conn)

    @classmethod
    def open_in_memory(cls) -> Database:
        """Open a fresh in-memory database."""
        return cls(sqlite3.connect(":memory:", isolation_level=None))

    @property
    def conn(self) -> sqlite3.Connection:
        """The underlying connection, in autocommit mode."""
        return self._conn

    def _run_migrations(self) -> None:
        try:
            current = self._conn.execute("PRAGMA user_version").fetchone()[0]
        except sqlite3.Error as exc:
            raise MigrationError(exc) from exc
        if current > len(MIGRATIONS):
            raise MigrationError(
                f"database version {current} is newer than supported "
                f"version {len(MIGRATIONS)}"
            )
        for version, (up, _down) in enumerate(MIGRATIONS[current:], start=current + 1):
            try:
                self._conn.executescript(
                    f"BEGIN;\n{up}\nPRAGMA user_version = {version};\nCOMMIT;"
                )
            except sqlite3.Error as exc:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise MigrationError(exc) from exc

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block in a transaction: commit on success, roll back on error."""
        try:
            self._conn.execute("BEGIN")
        except sqlite3.Error as exc:
            raise DatabaseError(exc) from exc
        try:
            yield self._conn
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")

    def close(self) -> None:
        """Close the connection."""
        self._conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()