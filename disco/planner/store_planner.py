"""Turning input paths into a storage plan."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from disco.errors import DiscoError
from disco.persistence.disk_repo import Disk
from disco.persistence.entry_repo import EntryRepo
from disco.planner.splitter import SolidChecker, SolidLayerDepth, split_into_atomic_units
from disco.planner.strategy import DiskSelectionStrategy, PlanItem
from disco.storage.fs import FsAdapter


@dataclass
class StorePlan:
    """The placement of every atomic unit of a store operation."""

    items: list[PlanItem] = field(default_factory=list)


class StorePlanner:
    """Splits inputs into atomic units and assigns them to disks."""

    def __init__(
        self,
        entry_repo: EntryRepo,
        fs_adapter: FsAdapter,
        strategy: DiskSelectionStrategy,
    ) -> None:
        self.entry_repo = entry_repo
        self.fs_adapter = fs_adapter
        self.strategy = strategy

    def plan(
        self,
        input_paths: Iterable[str | Path],
        solid_layer: SolidLayerDepth,
        solid_checker: SolidChecker | None,
        mounted_disks: Sequence[Disk],
    ) -> StorePlan:
        """Build a plan for storing ``input_paths`` on ``mounted_disks``.

        Disks without a current mount point, or whose free space cannot be
        read, are treated as having no space.
        """
        disk_space: dict[str, int] = {}
        for disk in mounted_disks:
            if disk.current_mount_point is None:
                continue
            try:
                disk_space[disk.disk_id] = self.fs_adapter.available_space(
                    Path(disk.current_mount_point)
                )
            except DiscoError:
                continue

        units = [
            unit
            for input_path in input_paths
            for unit in split_into_atomic_units(input_path, solid_layer, solid_checker, None)
        ]
        return StorePlan(self.strategy.assign(units, mounted_disks, disk_space))