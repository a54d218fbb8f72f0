# disco

A library for treating several independent disks as one storage pool. disco
keeps an SQLite index of the files on each registered disk. It splits new
files and folders into atomic units according to "SolidLayer" rules and
assigns each unit to a disk with a best-fit strategy.

## Installation

```
pip install .
```

You need Python 3.10 or later. The package has no third-party dependencies.
Disk detection runs the system tools `findmnt`, `lsblk` and `df` on Linux,
and `diskutil`, `df` and `mount` on macOS.

## Modules

- `disco.errors`: `DiscoError` and its subclasses, for example
  `DiskNotFoundError`, `EntryNotFoundError`, `AtomicUnitTooLargeError`,
  `DiskNotMountedError` and `PlatformError`. Every error provides:
  - `severity()`, which returns an `ErrorSeverity` (`WARNING`, `ERROR` or
    `CRITICAL`);
  - `user_description()`, a plain-language message;
  - `suggestion()`, which returns a suggested fix or `None`.
- `disco.persistence.db.Database`: an SQLite connection that creates its
  schema on open. The schema has the tables `disks`, `entries`, `tasks` and
  `config`. Open a database with `Database.open(path)` or
  `Database.open_in_memory()`. `transaction()` is a context manager that
  commits on success and rolls back on error. `close()` closes the
  connection, and the database can also be used in a `with` block.
- `disco.persistence.config.Config`: the data directory layout
  (`index.db`, `disco.log`), default settings (`default_solid_layer`,
  `hash_mode` as a `HashMode`) and key/value settings stored in the
  database. Use `get_value(key, db)` and `set_value(key, value, db)`.
  `Config.load()` creates the per-user data directory.
  `Config.load_from_dir(path)` roots the configuration at a directory you
  choose.
- `disco.persistence.disk_repo`: the `Disk`, `DiskIdentity` and
  `MountStatus` types, and `DiskRepo`. `DiskRepo` registers, lists, renames,
  updates and deletes disks. Deleting a disk also removes its index entries.
- `disco.persistence.entry_repo`: the `IndexEntry`, `EntryType`,
  `EntryStatus` and `FolderMatch` types, and `EntryRepo`. `EntryRepo`
  provides:
  - upserts, single or in batches;
  - lookup by ID or by disk;
  - search by name, by path prefix, by directory, and by top-level folder
    across disks;
  - lookup by hash;
  - missing-marking and Solid flags.
- `disco.persistence.task_repo`: `Task`, `TaskType`, `TaskStatus`,
  `StoreTaskPayload` (JSON round trip with `to_json` / `from_json`) and
  `TaskRepo`. `TaskRepo` stores tasks, updates their status and payload,
  lists resumable tasks, and cleans up old finished tasks.
- `disco.storage.platform`: `DiskDetector` with `LinuxDiskDetector` and
  `MacDiskDetector`. Each detector reads disk identity, free space and total
  capacity, and lists mount points. `get_detector()` picks the detector for
  the running platform. On any other platform it raises `PlatformError`.
  The output parsers `parse_lsblk_info`, `parse_diskutil_info`,
  `parse_df_column` and `parse_size_string` can be used on their own.
- `disco.storage.fs.FsAdapter`: lists paths under a directory, gives file
  and directory sizes, reports free space through the platform detector,
  and checks whether a path exists.
- `disco.planner.splitter`: `split_into_atomic_units` turns a file or
  folder into `AtomicUnit`s by `SolidLayerDepth`:
  - `ZERO`: the whole folder is one unit;
  - `ONE`: each top-level entry is one unit;
  - `INFINITE`: every file is its own unit.

  A `SolidChecker` can mark directories that must stay whole.
- `disco.planner.strategy`: `BestFitStrategy` places units largest first.
  Each unit goes to the connected disk that is left with the least free
  space after taking it. The result is a list of `PlanItem`s.
- `disco.planner.store_planner.StorePlanner`: combines free-space lookup,
  splitting and a strategy into a `StorePlan`.

## Example

```python
from pathlib import Path

from disco.persistence.db import Database
from disco.persistence.disk_repo import Disk, DiskIdentity, MountStatus
from disco.persistence.entry_repo import EntryRepo
from disco.planner.splitter import SolidLayerDepth, split_into_atomic_units
from disco.planner.strategy import BestFitStrategy

db = Database.open_in_memory()
results = EntryRepo(db).search_by_name("report", 20)

units = split_into_atomic_units(Path("photos"), SolidLayerDepth.ONE, None, None)

disk = Disk(
    disk_id="disk-a",
    name="Backup A",
    identity=DiskIdentity(
        serial=None,
        volume_uuid=None,
        volume_label="BACKUP_A",
        capacity_bytes=1_000_000_000_000,
        fingerprint="",
    ),
    mount_status=MountStatus.CONNECTED,
    current_mount_point="/mnt/backup_a",
)
plan = BestFitStrategy().assign(units, [disk], {"disk-a": 500_000_000_000})
for item in plan:
    print(item.target_relative_path, "->", item.target_disk_name)
```

## What it does not do

disco is a library only. It has no command-line program, interactive shell
or terminal interface. It does not do the following:

- scan disks to fill the index;
- copy, store or retrieve files;
- compute file hashes;
- match registered disks against what is currently mounted.

These steps are left to the calling code, which uses the repositories,
detectors and planners described above.

## Running the tests

```
pip install ".[test]"
pytest
```