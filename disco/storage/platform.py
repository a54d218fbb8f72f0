"""Platform-specific disk detection built on the system's disk tools."""

from __future__ import annotations

import math
import os
import re
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path

from disco.errors import DiscoIOError, PlatformError
from disco.persistence.disk_repo import DiskIdentity

_U64_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")
_UNAVAILABLE = ("Not applicable", "Not available")
_SIZE_UNITS = {
    "TB": 1024.0**4,
    "TIB": 1024.0**4,
    "GB": 1024.0**3,
    "GIB": 1024.0**3,
    "MB": 1024.0**2,
    "MIB": 1024.0**2,
    "KB": 1024.0,
    "KIB": 1024.0,
    "B": 1.0,
    "BYTES": 1.0,
}


class DiskDetector(ABC):
    """Finds mounted volumes and reads their identity and space."""

    @abstractmethod
    def detect_identity(self, mount_point: str) -> DiskIdentity:
        """Return the identity of the disk mounted at ``mount_point``."""

    @abstractmethod
    def available_space(self, mount_point: str) -> int:
        """Return the free bytes at ``mount_point``."""

    @abstractmethod
    def total_capacity(self, mount_point: str) -> int:
        """Return the total bytes of the volume at ``mount_point``."""

    @abstractmethod
    def list_mount_points(self) -> list[str]:
        """Return the mount points worth checking for registered disks."""


def _parse_unsigned(text: str) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _U64_MAX else None


def _run(args: list[str], tool: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True, check=False)
    except OSError as exc:
        raise PlatformError(f"Failed to run {tool}: {exc}") from exc


def _stdout(result: subprocess.CompletedProcess) -> str:
    return (result.stdout or b"").decode("utf-8", errors="replace")


def _stderr(result: subprocess.CompletedProcess) -> str:
    return (result.stderr or b"").decode("utf-8", errors="replace")


def parse_df_column(output: str, column: int, multiplier: int) -> int:
    """Read a numeric column from the first data line of ``df`` output.

    The value is multiplied by ``multiplier`` (1024 for ``df -k``).
    """
    for line in output.splitlines()[1:]:
        parts = line.split()
        if len(parts) > column:
            value = _parse_unsigned(parts[column])
            if value is None:
                raise PlatformError(
                    f"Failed to parse df: invalid number {parts[column]!r}"
                )
            return value * multiplier
    raise PlatformError("Could not parse df output")


def parse_lsblk_info(output: str) -> DiskIdentity:
    """Build an identity from ``lsblk -o SERIAL,UUID,LABEL,SIZE`` output."""
    lines = output.splitlines()
    if len(lines) < 2:
        raise PlatformError("Could not parse lsblk output")
    parts = lines[1].split()

    def column(index: int) -> str | None:
        return parts[index] if len(parts) > index and parts[index] else None

    size_text = column(3)
    capacity = _parse_unsigned(size_text) if size_text is not None else None
    return DiskIdentity(
        serial=column(0),
        volume_uuid=column(1),
        volume_label=column(2),
        capacity_bytes=capacity or 0,
        fingerprint="",
    )


def parse_size_string(size_str: str) -> int | None:
    """Convert a size such as ``"500.11 GB"`` or ``"1 TB"`` to bytes."""
    parts = size_str.strip().split()
    if len(parts) < 2:
        return None
    try:
        value = float(parts[0])
    except ValueError:
        return None
    factor = _SIZE_UNITS.get(parts[1].upper())
    if factor is None:
        return None
    total = value * factor
    if math.isnan(total) or total <= 0:
        return 0
    if math.isinf(total) or total >= _U64_MAX:
        return _U64_MAX
    return int(total)


def _field_value(line: str) -> str:
    pieces = line.split(":")
    return pieces[1].strip() if len(pieces) > 1 else ""


def parse_diskutil_info(output: str, mount_point: str) -> DiskIdentity:
    """Build an identity from ``diskutil info`` output.

    The last component of ``mount_point`` is used as the label when the
    output names none.
    """
    serial: str | None = None
    volume_uuid: str | None = None
    volume_label: str | None = None
    capacity: int | None = None

    for raw_line in output.splitlines():
        line = raw_line.strip()

        if line.startswith("Volume Name:"):
            name = _field_value(line)
            if name and name not in _UNAVAILABLE:
                volume_label = name

        if line.startswith("Device / Media Name:") and volume_label is None:
            name = _field_value(line)
            if name and name != "Not applicable":
                volume_label = name

        if line.startswith("Disk Size:") or line.startswith("Total Size:"):
            pieces = line.split("(")
            if len(pieces) > 1:
                number = pieces[1].split(" ")[0].replace("Bytes", "").replace(",", "")
                parsed = _parse_unsigned(number)
                if parsed is not None:
                    capacity = parsed
            if capacity is None:
                capacity = parse_size_string(_field_value(line))

        if "Volume UUID:" in line:
            uuid = _field_value(line)
            if uuid and uuid not in _UNAVAILABLE:
                volume_uuid = uuid

        is_serial = "Serial Number:" in line
        if (
            is_serial
            or "Device Identifier:" in line
            or "Disk / Partition UUID:" in line
        ):
            value = _field_value(line)
            if value and value not in _UNAVAILABLE:
                if is_serial or serial is None:
                    serial = value

    if volume_label is None:
        mount_label = Path(mount_point).name
        if mount_label:
            volume_label = mount_label

    return DiskIdentity(
        serial=serial,
        volume_uuid=volume_uuid,
        volume_label=volume_label,
        capacity_bytes=capacity or 0,
        fingerprint="",
    )


class LinuxDiskDetector(DiskDetector):
    """Disk detection with ``findmnt``, ``lsblk`` and ``df``."""

    def detect_identity(self, mount_point: str) -> DiskIdentity:
        found = _run(["findmnt", "-n", "-o", "SOURCE", mount_point], "findmnt")
        device = _stdout(found).strip()
        if not device:
            raise PlatformError(
                f"Could not find device for mount point: {mount_point}"
            )
        listed = _run(
            ["lsblk", "-b", "-d", "-o", "SERIAL,UUID,LABEL,SIZE", device], "lsblk"
        )
        if listed.returncode != 0:
            raise PlatformError(f"lsblk failed: {_stderr(listed)}")
        return parse_lsblk_info(_stdout(listed))

    def available_space(self, mount_point: str) -> int:
        return parse_df_column(_stdout(_run(["df", "-B1", mount_point], "df")), 3, 1)

    def total_capacity(self, mount_point: str) -> int:
        return parse_df_column(_stdout(_run(["df", "-B1", mount_point], "df")), 1, 1)

    def list_mount_points(self) -> list[str]:
        result = _run(["findmnt", "-l", "-n", "-o", "TARGET"], "findmnt")
        return [
            line.strip()
            for line in _stdout(result).splitlines()
            if not line.startswith(("/proc", "/sys", "/dev"))
        ]


class MacDiskDetector(DiskDetector):
    """Disk detection with ``diskutil``, ``df`` and ``mount``."""

    def detect_identity(self, mount_point: str) -> DiskIdentity:
        device = self._device_for_mount(mount_point)
        info = _run(["diskutil", "info", device], "diskutil")
        if info.returncode == 0:
            return parse_diskutil_info(_stdout(info), mount_point)

        fallback = _run(["diskutil", "info", mount_point], "diskutil fallback")
        if fallback.returncode == 0:
            return parse_diskutil_info(_stdout(fallback), mount_point)
        raise PlatformError(
            f"diskutil failed for device {device} and mount {mount_point}: "
            f"{_stderr(info)}"
        )

    def available_space(self, mount_point: str) -> int:
        return parse_df_column(_stdout(_run(["df", "-k", mount_point], "df")), 3, 1024)

    def total_capacity(self, mount_point: str) -> int:
        return parse_df_column(_stdout(_run(["df", "-k", mount_point], "df")), 1, 1024)

    def list_mount_points(self) -> list[str]:
        mounts: list[str] = []
        try:
            volumes = Path("/Volumes")
            if volumes.exists():
                mounts.extend(
                    str(entry)
                    for entry in volumes.iterdir()
                    if entry.name != "Macintosh HD"
                )

            home = os.environ.get("HOME")
            if home and Path(home).exists():
                for entry in Path(home).iterdir():
                    if not (entry.is_symlink() and entry.is_dir()):
                        continue
                    try:
                        target = entry.resolve(strict=True)
                    except OSError:
                        continue
                    if target.parts[:2] == ("/", "Volumes"):
                        mounts.append(str(entry))
        except OSError as exc:
            raise DiscoIOError(exc) from exc
        return mounts

    def _device_for_mount(self, mount_point: str) -> str:
        """Return the device node (such as ``disk2s1``) behind a mount point."""
        df_lines = _stdout(_run(["df", mount_point], "df")).splitlines()[1:]
        for line in df_lines:
            parts = line.split()
            if parts and parts[0].startswith("/dev/"):
                return parts[0].replace("/dev/", "")

        for line in _stdout(_run(["mount"], "mount")).splitlines():
            if mount_point in line:
                device = line.split(" on ")[0]
                if device.startswith("/dev/"):
                    return device.replace("/dev/", "")

        return mount_point


def get_detector() -> DiskDetector:
    """Return the disk detector for the running platform."""
    if sys.platform == "darwin":
        return MacDiskDetector()
    if sys.platform.startswith("linux"):
        return LinuxDiskDetector()
    raise PlatformError(f"Unsupported platform: {sys.platform}")