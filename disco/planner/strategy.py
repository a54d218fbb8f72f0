"""Strategies that assign atomic units to disks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from disco.errors import AtomicUnitTooLargeError, DiskNotMountedError
from disco.persistence.disk_repo import Disk, MountStatus
from disco.planner.splitter import AtomicUnit


@dataclass
class PlanItem:
    """One atomic unit and the disk it will be stored on."""

    unit: AtomicUnit
    target_disk: str
    target_disk_name: str
    target_relative_path: str


class DiskSelectionStrategy(ABC):
    """Decides which disk each atomic unit goes to."""

    @abstractmethod
    def assign(
        self,
        units: Iterable[AtomicUnit],
        disks: Sequence[Disk],
        disk_space: Mapping[str, int],
    ) -> list[PlanItem]:
        """Assign every unit to a disk or raise if no assignment exists."""


class BestFitStrategy(DiskSelectionStrategy):
    """Best Fit Decreasing.

    Units are placed largest first, each on the connected disk that is left
    with the least free space after taking it.
    """

    def assign(
        self,
        units: Iterable[AtomicUnit],
        disks: Sequence[Disk],
        disk_space: Mapping[str, int],
    ) -> list[PlanItem]:
        available = [d for d in disks if d.mount_status is MountStatus.CONNECTED]
        if not available:
            raise DiskNotMountedError("No disks are currently connected")

        remaining = dict(disk_space)
        items: list[PlanItem] = []

        for unit in sorted(units, key=lambda u: u.size, reverse=True):
            candidates = [
                d for d in available if remaining.get(d.disk_id, 0) >= unit.size
            ]
            if not candidates:
                raise AtomicUnitTooLargeError(unit.size)

            best = min(candidates, key=lambda d: remaining.get(d.disk_id, 0) - unit.size)
            items.append(
                PlanItem(
                    unit=unit,
                    target_disk=best.disk_id,
                    target_disk_name=best.name,
                    target_relative_path=unit.relative_path,
                )
            )
            if best.disk_id in remaining:
                remaining[best.disk_id] = max(remaining[best.disk_id] - unit.size, 0)

        return items