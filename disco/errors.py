"""Error types raised throughout the package."""

from __future__ import annotations

from enum import Enum


class ErrorSeverity(Enum):
    """How serious an error is, for user-facing display."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DiscoError(Exception):
    """Base class of every error the package raises."""

    _severity: ErrorSeverity = ErrorSeverity.ERROR
    _suggestion: str | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def severity(self) -> ErrorSeverity:
        """Return the severity level of this error."""
        return self._severity

    def user_description(self) -> str:
        """Return a plain-language description of the error."""
        return str(self)

    def suggestion(self) -> str | None:
        """Return a suggested fix, if there is one."""
        return self._suggestion


class _DetailError(DiscoError):
    """An error that carries a single detail value."""

    _template = "{}"
    _description: str | None = None

    def __init__(self, detail: object) -> None:
        self.detail = detail
        super().__init__(self._template.format(detail))

    def user_description(self) -> str:
        if self._description is None:
            return str(self)
        return self._description.format(self.detail)


class _FixedError(DiscoError):
    """An error whose message never varies."""

    _message = ""
    _description = ""

    def __init__(self) -> None:
        super().__init__(self._message)

    def user_description(self) -> str:
        return self._description


class DiskNotFoundError(_DetailError):
    _severity = ErrorSeverity.WARNING
    _template = "Disk not found: {}"
    _description = "The disk '{}' is not registered in your disk pool."
    _suggestion = (
        "Use 'disk list' to see registered disks, or 'disk add' to register a new one."
    )


class DiskIdentityMismatchError(DiscoError):
    _severity = ErrorSeverity.ERROR
    _suggestion = "Use 'repair' to update the disk identity or reconnect it."

    def __init__(self, expected: str, found: str) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"Disk identity mismatch: expected {expected}, found {found}"
        )

    def user_description(self) -> str:
        return (
            "The connected disk appears to be different from the registered one. "
            f"Expected '{self.expected}', but found '{self.found}'."
        )


class DiskNotMountedError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Disk not mounted: {}"
    _description = (
        "The disk '{}' is not connected to your computer. Please connect it first."
    )
    _suggestion = (
        "Connect the external disk to your computer, "
        "then use 'refresh' to update its status."
    )


class EntryNotFoundError(_DetailError):
    _severity = ErrorSeverity.WARNING
    _template = "Entry not found: {}"
    _description = "Could not find the file with ID {} in the index."
    _suggestion = "Use 'search' to find the file, or 'scan' to update the index."

    def __init__(self, entry_id: int) -> None:
        self.entry_id = entry_id
        super().__init__(entry_id)


class AtomicUnitTooLargeError(DiscoError):
    _severity = ErrorSeverity.CRITICAL
    _suggestion = (
        "Add more disks to your pool, or use a different disk with more free space."
    )

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(
            f"Atomic unit too large: {size} bytes exceeds all available disk space"
        )

    def user_description(self) -> str:
        size_gb = self.size / (1024.0 * 1024.0 * 1024.0)
        return (
            f"The file is too large ({size_gb:.2f} GB) "
            "to fit on any of your connected disks."
        )


class PathNotFoundError(_DetailError):
    _severity = ErrorSeverity.WARNING
    _template = "Path not found: {}"
    _description = "The file or folder '{}' does not exist."
    _suggestion = "Check that the path is correct and the file/folder exists."


class InvalidPathError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Invalid path: {}"
    _description = "The path '{}' is not valid. Please check the spelling."
    _suggestion = (
        "Make sure the path is absolute (starting with /) and properly formatted."
    )


class SolidViolationError(_FixedError):
    _severity = ErrorSeverity.CRITICAL
    _message = "Solid violation: cannot split directory marked as Solid"
    _description = (
        "This folder is marked as 'Solid' and cannot be split across multiple disks. "
        "Choose a single disk or remove the Solid marker."
    )
    _suggestion = (
        "Use 'solid unset <path>' to remove the Solid marker, or choose a single disk."
    )


class TaskInterruptedError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Task interrupted: {}"
    _description = (
        "The {} operation was interrupted. "
        "Some files may not have been completely processed."
    )


class TaskFailedError(_DetailError):
    _severity = ErrorSeverity.CRITICAL
    _template = "Task failed: {}"
    _description = (
        "The {} operation failed. Please check the error details and try again."
    )


class DatabaseError(_DetailError):
    _severity = ErrorSeverity.CRITICAL
    _template = "Database error: {}"
    _description = "A database error occurred: {}. Try restarting the application."


class DiscoIOError(_DetailError):
    _severity = ErrorSeverity.CRITICAL
    _template = "IO error: {}"
    _description = (
        "A file system error occurred: {}. Check if the disk is properly connected."
    )


class ConfigError(_DetailError):
    _severity = ErrorSeverity.CRITICAL
    _template = "Configuration error: {}"
    _description = "A configuration error occurred: {}. Check your settings."


class PlatformError(_DetailError):
    _severity = ErrorSeverity.CRITICAL
    _template = "Platform detection error: {}"
    _description = (
        "Could not detect disk information: {}. Make sure the disk is properly mounted."
    )
    _suggestion = (
        "Make sure the disk is properly connected and mounted in Finder/File Manager."
    )


class StripPrefixError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Path strip error: {}"


class SerdeError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Serialization error: {}"


class WalkDirError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Walk directory error: {}"


class MigrationError(_DetailError):
    _severity = ErrorSeverity.CRITICAL
    _template = "Database migration error: {}"
    _description = (
        "Database upgrade failed: {}. The application may need to be reinstalled."
    )


class NoDisksAvailableError(_FixedError):
    _severity = ErrorSeverity.ERROR
    _message = "No disks available for storage"
    _description = (
        "No disks are connected. Please connect at least one disk to your disk pool."
    )
    _suggestion = "Use 'disk add <mount-point>' to register disks to your pool."


class FileAlreadyExistsError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "File already exists: {}"
    _description = (
        "A file already exists at '{}'. "
        "Choose a different location or use --force to overwrite."
    )


class PermissionDeniedError(_DetailError):
    _severity = ErrorSeverity.ERROR
    _template = "Permission denied: {}"
    _description = (
        "You don't have permission to access '{}'. "
        "Try running with elevated privileges or check the file permissions."
    )
    _suggestion = (
        "Try running with administrator privileges, or check file ownership."
    )


class OperationCancelledError(_FixedError):
    _severity = ErrorSeverity.WARNING
    _message = "Operation cancelled by user"
    _description = "The operation was cancelled."