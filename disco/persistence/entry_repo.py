"""Index entries: files and directories seen on registered disks."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from disco.errors import DatabaseError, EntryNotFoundError
from disco.persistence.db import Database

_ENTRY_COLUMNS = (
    "entry_id, disk_id, disk_name, relative_path, file_name, size, hash, mtime, "
    "entry_type, solid_flag, last_seen_mount_point, indexed_at, status"
)


class EntryType(Enum):
    """Whether an entry is a file or a directory."""

    FILE = "file"
    DIR = "dir"

    @classmethod
    def parse(cls, text: str, default: EntryType) -> EntryType:
        try:
            return cls(text)
        except ValueError:
            return default


class EntryStatus(Enum):
    """Health of an index entry."""

    NORMAL = "normal"
    MISSING = "missing"
    PENDING_CONFIRM = "pending_confirm"

    @classmethod
    def parse(cls, text: str) -> EntryStatus:
        try:
            return cls(text)
        except ValueError:
            return cls.NORMAL


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds")


def _parse_time(text: str) -> datetime:
    try:
        moment = datetime.fromisoformat(text)
    except (TypeError, ValueError):
        return _now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass
class IndexEntry:
    """One file or directory recorded in the index."""

    disk_id: str
    disk_name: str
    relative_path: str
    file_name: str
    size: int
    last_seen_mount_point: str
    entry_type: EntryType = EntryType.FILE
    hash: str | None = None
    mtime: datetime = field(default_factory=_now)
    solid_flag: bool = False
    indexed_at: datetime = field(default_factory=_now)
    status: EntryStatus = EntryStatus.NORMAL
    entry_id: int = 0


@dataclass
class FolderMatch:
    """A top-level folder found across one or more disks."""

    folder_name: str
    disk_ids: str
    disk_names: str
    file_count: int
    total_size: int

    def disk_id_list(self) -> list[str]:
        """The IDs of the disks holding this folder."""
        return self.disk_ids.split(",")

    def disk_name_list(self) -> list[str]:
        """The names of the disks holding this folder."""
        return self.disk_names.split(",")

    def is_split(self) -> bool:
        """Whether the folder is spread over more than one disk."""
        return "," in self.disk_ids


@contextmanager
def _db_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc


def _entry_from_row(row: tuple, default_type: EntryType = EntryType.FILE) -> IndexEntry:
    (entry_id, disk_id, disk_name, relative_path, file_name, size, hash_value,
     mtime, entry_type, solid_flag, last_seen, indexed_at, status) = row
    return IndexEntry(
        entry_id=int(entry_id),
        disk_id=disk_id,
        disk_name=disk_name,
        relative_path=relative_path,
        file_name=file_name,
        size=int(size),
        hash=hash_value,
        mtime=_parse_time(mtime),
        entry_type=EntryType.parse(entry_type, default_type),
        solid_flag=int(solid_flag) != 0,
        last_seen_mount_point=last_seen,
        indexed_at=_parse_time(indexed_at),
        status=EntryStatus.parse(status),
    )


class EntryRepo:
    """Create, read, update and delete index entries."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _query(self, sql: str, params: tuple = ()) -> list[tuple]:
        with _db_errors():
            return self._db.conn.execute(sql, params).fetchall()

    def upsert_entry(self, entry: IndexEntry) -> int:
        """Insert the entry, or update the one at the same disk and path.

        Returns the entry's ID.
        """
        conn = self._db.conn
        with _db_errors():
            existing = conn.execute(
                "SELECT entry_id FROM entries WHERE disk_id = ? AND relative_path = ?",
                (entry.disk_id, entry.relative_path),
            ).fetchone()
            if existing is not None:
                entry_id = existing[0]
                conn.execute(
                    "UPDATE entries SET file_name = ?, size = ?, hash = ?, mtime = ?, "
                    "entry_type = ?, solid_flag = ?, last_seen_mount_point = ?, "
                    "indexed_at = ?, status = ?, disk_name = ? WHERE entry_id = ?",
                    (
                        entry.file_name,
                        entry.size,
                        entry.hash,
                        _format_time(entry.mtime),
                        entry.entry_type.value,
                        int(entry.solid_flag),
                        entry.last_seen_mount_point,
                        _format_time(entry.indexed_at),
                        entry.status.value,
                        entry.disk_name,
                        entry_id,
                    ),
                )
                return entry_id
            cursor = conn.execute(
                "INSERT INTO entries (disk_id, disk_name, relative_path, file_name, "
                "size, hash, mtime, entry_type, solid_flag, last_seen_mount_point, "
                "indexed_at, status) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.disk_id,
                    entry.disk_name,
                    entry.relative_path,
                    entry.file_name,
                    entry.size,
                    entry.hash,
                    _format_time(entry.mtime),
                    entry.entry_type.value,
                    int(entry.solid_flag),
                    entry.last_seen_mount_point,
                    _format_time(entry.indexed_at),
                    entry.status.value,
                ),
            )
            return cursor.lastrowid

    def batch_upsert(self, entries: Iterable[IndexEntry]) -> list[int]:
        """Upsert many entries; returns their IDs in order."""
        return [self.upsert_entry(entry) for entry in entries]

    def search_by_name(self, keyword: str, limit: int) -> list[IndexEntry]:
        """Entries whose file name or path contains the keyword, newest first."""
        rows = self._query(
            f"SELECT {_ENTRY_COLUMNS} FROM entries "
            "WHERE lower(file_name) LIKE lower(?1) OR lower(relative_path) LIKE lower(?1) "
            "ORDER BY indexed_at DESC LIMIT ?2",
            (f"%{keyword}%", limit),
        )
        return [_entry_from_row(row) for row in rows]

    def get_entry_by_id(self, entry_id: int) -> IndexEntry:
        """Return the entry with this ID; raise EntryNotFoundError otherwise."""
        try:
            row = self._db.conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE entry_id = ?", (entry_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise EntryNotFoundError(entry_id) from exc
        if row is None:
            raise EntryNotFoundError(entry_id)
        return _entry_from_row(row)

    def get_entries_by_disk(self, disk_id: str) -> list[IndexEntry]:
        """All entries of a disk, ordered by path."""
        rows = self._query(
            f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE disk_id = ? "
            "ORDER BY relative_path",
            (disk_id,),
        )
        return [_entry_from_row(row) for row in rows]

    def _execute(self, sql: str, params: tuple) -> None:
        with _db_errors():
            self._db.conn.execute(sql, params)

    def mark_missing(self, disk_id: str, relative_path: str) -> None:
        """Mark an entry as missing from its disk."""
        self._execute(
            "UPDATE entries SET status = 'missing' "
            "WHERE disk_id = ? AND relative_path = ?",
            (disk_id, relative_path),
        )

    def set_solid_flag(self, disk_id: str, relative_path: str) -> None:
        """Mark a directory as Solid."""
        self._execute(
            "UPDATE entries SET solid_flag = 1 WHERE disk_id = ? AND relative_path = ?",
            (disk_id, relative_path),
        )

    def unset_solid_flag(self, disk_id: str, relative_path: str) -> None:
        """Remove the Solid mark from a directory."""
        self._execute(
            "UPDATE entries SET solid_flag = 0 WHERE disk_id = ? AND relative_path = ?",
            (disk_id, relative_path),
        )

    def find_by_hash(self, hash_value: str) -> IndexEntry | None:
        """Any one entry with this content hash, or None."""
        rows = self._query(
            f"SELECT {_ENTRY_COLUMNS} FROM entries WHERE hash = ? LIMIT 1",
            (hash_value,),
        )
        return _entry_from_row(rows[0]) if rows else None

    def search_by_path_prefix(self, path_prefix: str, limit: int) -> list[IndexEntry]:
        """Entries at or below a folder path, ordered by path."""
        if path_prefix.endswith("/"):
            pattern = f"{path_prefix}%"
        else:
            pattern = f"{path_prefix}/%"
        rows = self._query(
            f"SELECT {_ENTRY_COLUMNS} FROM entries "
            "WHERE relative_path LIKE ? OR relative_path = ? "
            "ORDER BY relative_path LIMIT ?",
            (pattern, path_prefix, limit),
        )
        return [_entry_from_row(row) for row in rows]

    def search_directories(self, keyword: str, limit: int) -> list[IndexEntry]:
        """Directory entries whose path contains the keyword.

        The returned entries carry ID -1 and a name taken from the path after
        its first separator.
        """
        rows = self._query(
            """SELECT DISTINCT
                -1 as entry_id,
                disk_id,
                disk_name,
                relative_path,
                substr(relative_path, instr(relative_path, '/') + 1) as folder_name,
                0 as size,
                NULL as hash,
                CURRENT_TIMESTAMP as mtime,
                'dir' as entry_type,
                0 as solid_flag,
                last_seen_mount_point,
                CURRENT_TIMESTAMP as indexed_at,
                'normal' as status
             FROM entries
             WHERE entry_type = 'dir' AND lower(relative_path) LIKE lower(?1)
             GROUP BY disk_id, relative_path
             ORDER BY relative_path
             LIMIT ?2""",
            (f"%{keyword}%", limit),
        )
        return [_entry_from_row(row, EntryType.DIR) for row in rows]

    def search_folder_names(self, keyword: str, limit: int) -> list[FolderMatch]:
        """Top-level folders of matching files, grouped across disks, largest first."""
        rows = self._query(
            """SELECT
                CASE
                    WHEN instr(relative_path, '/') > 0
                    THEN substr(relative_path, 1, instr(relative_path, '/') - 1)
                    ELSE relative_path
                END as top_folder,
                GROUP_CONCAT(DISTINCT disk_id) as disk_ids,
                GROUP_CONCAT(DISTINCT disk_name) as disk_names,
                COUNT(*) as file_count,
                SUM(size) as total_size
             FROM entries
             WHERE entry_type = 'file' AND lower(relative_path) LIKE lower(?1)
             GROUP BY top_folder
             ORDER BY total_size DESC
             LIMIT ?2""",
            (f"%{keyword}%", limit),
        )
        return [
            FolderMatch(
                folder_name=folder,
                disk_ids=disk_ids,
                disk_names=disk_names,
                file_count=int(count),
                total_size=int(total or 0),
            )
            for folder, disk_ids, disk_names, count, total in rows
        ]

    def delete_entry(self, entry_id: int) -> None:
        """Remove an entry."""
        self._execute("DELETE FROM entries WHERE entry_id = ?", (entry_id,))