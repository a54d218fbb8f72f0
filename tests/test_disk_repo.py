from datetime import datetime, timezone

import pytest

from disco.errors import DatabaseError, DiskNotFoundError
from disco.persistence.db import Database
from disco.persistence.disk_repo import (
    Disk,
    DiskIdentity,
    DiskRepo,
    MountStatus,
)


@pytest.fixture
def db():
    database = Database.open_in_memory()
    yield database
    database.close()


def _identity(capacity=100, fingerprint="fp", serial=None, label=None):
    return DiskIdentity(
        serial=serial,
        volume_uuid=None,
        volume_label=label,
        capacity_bytes=capacity,
        fingerprint=fingerprint,
    )


def test_insert_and_get_disk(db):
    repo = DiskRepo(db)
    disk = Disk(
        "test-001",
        "Test Disk",
        DiskIdentity(
            serial="TEST-SERIAL-1",
            volume_uuid=None,
            volume_label="TEST",
            capacity_bytes=1000,
            fingerprint="fp",
        ),
    )
    repo.insert_disk(disk)
    retrieved = repo.get_disk_by_id("test-001")
    assert retrieved.name == "Test Disk"
    assert retrieved.identity.serial == "TEST-SERIAL-1"
    assert retrieved.identity.volume_label == "TEST"
    assert retrieved.identity.volume_uuid is None
    assert retrieved.identity.capacity_bytes == 1000
    assert retrieved.mount_status is MountStatus.OFFLINE
    assert retrieved.current_mount_point is None


def test_list_disks(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("d1", "Disk1", _identity(100, "fp1")))
    repo.insert_disk(Disk("d2", "Disk2", _identity(200, "fp2")))
    disks = repo.list_disks()
    assert len(disks) == 2


def test_list_disks_ordered_by_name(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("a", "Zeta", _identity()))
    repo.insert_disk(Disk("b", "Alpha", _identity()))
    assert [d.name for d in repo.list_disks()] == ["Alpha", "Zeta"]


def test_first_registered_round_trip(db):
    repo = DiskRepo(db)
    moment = datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)
    repo.insert_disk(Disk("d1", "Disk1", _identity(), first_registered=moment))
    assert repo.get_disk_by_id("d1").first_registered == moment


def test_get_missing_disk_raises(db):
    repo = DiskRepo(db)
    with pytest.raises(DiskNotFoundError) as info:
        repo.get_disk_by_id("nope")
    assert info.value.detail == "nope"


def test_duplicate_insert_raises(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("d1", "Disk1", _identity()))
    with pytest.raises(DatabaseError):
        repo.insert_disk(Disk("d1", "Other", _identity()))


def test_update_last_mount_point(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("d1", "Disk1", _identity()))
    repo.update_last_mount_point("d1", "/mnt/backup")
    assert repo.get_disk_by_id("d1").last_mount_point == "/mnt/backup"


def test_update_disk_name(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("d1", "Disk1", _identity()))
    repo.update_disk_name("d1", "Renamed")
    assert repo.get_disk_by_id("d1").name == "Renamed"


def test_update_disk_identity(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("d1", "Disk1", _identity()))
    new_identity = DiskIdentity(
        serial="TEST-SERIAL-2",
        volume_uuid="uuid-1",
        volume_label="NEW",
        capacity_bytes=5000,
        fingerprint="fp-new",
    )
    repo.update_disk_identity("d1", new_identity)
    assert repo.get_disk_by_id("d1").identity == new_identity


def test_delete_disk_removes_entries(db):
    repo = DiskRepo(db)
    repo.insert_disk(Disk("d1", "Disk1", _identity()))
    db.conn.execute(
        "INSERT INTO entries (disk_id, disk_name, relative_path, file_name, size, "
        "mtime, entry_type, last_seen_mount_point, indexed_at) "
        "VALUES ('d1', 'Disk1', 'a.txt', 'a.txt', 1, 't', 'file', '/mnt', 't')"
    )
    repo.delete_disk("d1")
    assert repo.list_disks() == []
    count = db.conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]
    assert count == 0