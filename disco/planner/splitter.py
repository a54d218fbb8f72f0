"""Splitting input paths into atomic storage units by SolidLayer rules."""

from __future__ import annotations

import os
import stat
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from disco.errors import DiscoIOError, InvalidPathError


class SolidLayerDepth(Enum):
    """How deep a directory tree may be split before its parts stay whole."""

    ZERO = "0"
    ONE = "1"
    INFINITE = "inf"

    def min_depth(self) -> int | None:
        """The depth at which directories become units; None means no limit."""
        return {"0": 0, "1": 1, "inf": None}[self.value]


@dataclass
class AtomicUnit:
    """A file or directory that must be stored whole on one disk."""

    root_path: str
    name: str
    relative_path: str = ""
    size: int = 0
    file_count: int = 0
    depth: int = 0
    is_solid: bool = False

    def __post_init__(self) -> None:
        if not self.relative_path:
            self.relative_path = self.name


class SolidChecker(ABC):
    """Tells whether a directory is marked Solid."""

    @abstractmethod
    def is_solid(self, path: Path, disk_id: str) -> bool:
        """Whether ``path`` on disk ``disk_id`` must not be split."""


def _stat_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError as exc:
        raise DiscoIOError(exc) from exc


def _dir_stats(directory: Path) -> tuple[int, int]:
    """Total size and count of the regular files under ``directory``."""
    total = count = 0
    for dirpath, _dirnames, filenames in os.walk(directory):
        for filename in filenames:
            try:
                info = os.lstat(os.path.join(dirpath, filename))
            except OSError as exc:
                raise DiscoIOError(exc) from exc
            if stat.S_ISREG(info.st_mode):
                total += info.st_size
                count += 1
    return total, count


def _children(directory: Path) -> list[Path]:
    try:
        with os.scandir(directory) as scan:
            return sorted(Path(entry.path) for entry in scan)
    except OSError:
        return []


def _split(
    directory: Path,
    input_root: Path,
    depth: int,
    target_depth: int | None,
    solid_checker: SolidChecker | None,
    disk_id: str | None,
) -> Iterator[AtomicUnit]:
    for path in _children(directory):
        try:
            relative = str(path.relative_to(input_root))
        except ValueError:
            relative = str(path)
        solid = (
            solid_checker is not None
            and disk_id is not None
            and solid_checker.is_solid(path, disk_id)
        )

        if path.is_file():
            yield AtomicUnit(
                str(path), path.name, relative, _stat_size(path), 1, depth + 1, True
            )
        elif solid:
            size, count = _dir_stats(path)
            yield AtomicUnit(str(path), path.name, relative, size, count, depth + 1, True)
        elif target_depth is not None and depth >= target_depth - 1:
            size, count = _dir_stats(path)
            yield AtomicUnit(str(path), path.name, relative, size, count, depth + 1)
        else:
            yield from _split(
                path, input_root, depth + 1, target_depth, solid_checker, disk_id
            )


def split_into_atomic_units(
    root_path: str | Path,
    solid_layer: SolidLayerDepth,
    solid_checker: SolidChecker | None = None,
    disk_id: str | None = None,
) -> list[AtomicUnit]:
    """Split a file or directory into the units that are stored whole.

    Relative paths of units keep the name of the input folder as their
    first component.
    """
    root = Path(root_path)

    if root.is_file():
        return [AtomicUnit(str(root), root.name, root.name, _stat_size(root), 1, 0)]

    if solid_layer is SolidLayerDepth.ZERO:
        if not root.name:
            raise InvalidPathError(f"Cannot determine name of {root}")
        size, count = _dir_stats(root)
        return [AtomicUnit(str(root), root.name, root.name, size, count, 0)]

    input_root = root.parent
    if input_root == root:
        raise InvalidPathError("Cannot determine parent directory")

    return list(
        _split(root, input_root, 0, solid_layer.min_depth(), solid_checker, disk_id)
    )