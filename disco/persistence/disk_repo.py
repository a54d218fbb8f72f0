"""Registered disks and their storage in the database."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from disco.errors import DatabaseError, DiskNotFoundError
from disco.persistence.db import Database

_DISK_COLUMNS = (
    "disk_id, name, serial, volume_uuid, volume_label, capacity_bytes, "
    "fingerprint, first_registered, last_mount_point"
)


class MountStatus(Enum):
    """Whether a registered disk is currently reachable."""

    CONNECTED = "connected"
    OFFLINE = "offline"
    IDENTITY_CONFLICT = "identity_conflict"


@dataclass
class DiskIdentity:
    """The hardware and volume attributes that identify a disk."""

    serial: str | None
    volume_uuid: str | None
    volume_label: str | None
    capacity_bytes: int
    fingerprint: str


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
class Disk:
    """A disk registered in the pool.

    ``mount_status`` and ``current_mount_point`` are computed at runtime and
    never stored.
    """

    disk_id: str
    name: str
    identity: DiskIdentity
    first_registered: datetime = field(default_factory=_now)
    last_mount_point: str | None = None
    mount_status: MountStatus = MountStatus.OFFLINE
    current_mount_point: str | None = None


@contextmanager
def _db_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc


def _disk_from_row(row: tuple) -> Disk:
    (disk_id, name, serial, volume_uuid, volume_label, capacity,
     fingerprint, first_registered, last_mount_point) = row
    return Disk(
        disk_id=disk_id,
        name=name,
        identity=DiskIdentity(
            serial=serial,
            volume_uuid=volume_uuid,
            volume_label=volume_label,
            capacity_bytes=int(capacity),
            fingerprint=fingerprint,
        ),
        first_registered=_parse_time(first_registered),
        last_mount_point=last_mount_point,
    )


class DiskRepo:
    """Create, read, update and delete disk registrations."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def insert_disk(self, disk: Disk) -> None:
        """Register a new disk."""
        identity = disk.identity
        with _db_errors():
            self._db.conn.execute(
                f"INSERT INTO disks ({_DISK_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    disk.disk_id,
                    disk.name,
                    identity.serial,
                    identity.volume_uuid,
                    identity.volume_label,
                    identity.capacity_bytes,
                    identity.fingerprint,
                    _format_time(disk.first_registered),
                    disk.last_mount_point,
                ),
            )

    def get_disk_by_id(self, disk_id: str) -> Disk:
        """Return the disk with this ID; raise DiskNotFoundError otherwise."""
        try:
            row = self._db.conn.execute(
                f"SELECT {_DISK_COLUMNS} FROM disks WHERE disk_id = ?", (disk_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise DiskNotFoundError(disk_id) from exc
        if row is None:
            raise DiskNotFoundError(disk_id)
        return _disk_from_row(row)

    def list_disks(self) -> list[Disk]:
        """Return every registered disk, ordered by name."""
        with _db_errors():
            rows = self._db.conn.execute(
                f"SELECT {_DISK_COLUMNS} FROM disks ORDER BY name"
            ).fetchall()
        return [_disk_from_row(row) for row in rows]

    def update_last_mount_point(self, disk_id: str, mount_point: str) -> None:
        """Record where the disk was last seen mounted."""
        with _db_errors():
            self._db.conn.execute(
                "UPDATE disks SET last_mount_point = ? WHERE disk_id = ?",
                (mount_point, disk_id),
            )

    def update_disk_name(self, disk_id: str, name: str) -> None:
        """Rename a disk."""
        with _db_errors():
            self._db.conn.execute(
                "UPDATE disks SET name = ? WHERE disk_id = ?", (name, disk_id)
            )

    def update_disk_identity(self, disk_id: str, identity: DiskIdentity) -> None:
        """Replace the stored identity attributes of a disk."""
        with _db_errors():
            self._db.conn.execute(
                "UPDATE disks SET serial = ?, volume_uuid = ?, volume_label = ?, "
                "capacity_bytes = ?, fingerprint = ? WHERE disk_id = ?",
                (
                    identity.serial,
                    identity.volume_uuid,
                    identity.volume_label,
                    identity.capacity_bytes,
                    identity.fingerprint,
                    disk_id,
                ),
            )

    def delete_disk(self, disk_id: str) -> None:
        """Remove a disk registration together with all of its index entries."""
        with _db_errors():
            self._db.conn.execute("DELETE FROM entries WHERE disk_id = ?", (disk_id,))
            self._db.conn.execute("DELETE FROM disks WHERE disk_id = ?", (disk_id,))