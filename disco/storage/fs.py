"""File system helpers used by the planner and executor."""

from __future__ import annotations

import os
import stat
from collections.abc import Iterator
from pathlib import Path

from disco.errors import DiscoIOError
from disco.storage.platform import get_detector


def _walk(root: Path) -> Iterator[tuple[Path, int | None]]:
    """Yield ``root`` and everything below it, depth first.

    Each path comes with its size when it is a regular file, else None.
    Symbolic links below the root are not followed; unreadable entries are
    skipped.
    """
    try:
        info = root.stat()
    except OSError:
        return
    yield root, (info.st_size if stat.S_ISREG(info.st_mode) else None)
    if stat.S_ISDIR(info.st_mode):
        yield from _walk_children(root)


def _walk_children(directory: Path) -> Iterator[tuple[Path, int | None]]:
    try:
        with os.scandir(directory) as scan:
            entries = sorted(scan, key=lambda entry: entry.name)
    except OSError:
        return
    for entry in entries:
        path = Path(entry.path)
        try:
            is_file = entry.is_file(follow_symlinks=False)
            size = entry.stat(follow_symlinks=False).st_size if is_file else None
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        yield path, size
        if is_dir:
            yield from _walk_children(path)


class FsAdapter:
    """Queries about files, directories and free space."""

    def walk_directory(self, directory: str | Path) -> list[Path]:
        """Every path under ``directory``, the directory itself first."""
        return [path for path, _size in _walk(Path(directory))]

    def file_size(self, path: str | Path) -> int:
        """Size of a file in bytes."""
        try:
            return Path(path).stat().st_size
        except OSError as exc:
            raise DiscoIOError(exc) from exc

    def dir_total_size(self, directory: str | Path) -> int:
        """Total size of the regular files under ``directory``."""
        return sum(size for _path, size in _walk(Path(directory)) if size is not None)

    def available_space(self, path: str | Path) -> int:
        """Free bytes on the volume mounted at ``path``."""
        return get_detector().available_space(str(path))

    def exists(self, path: str | Path) -> bool:
        """Whether ``path`` exists."""
        return Path(path).exists()