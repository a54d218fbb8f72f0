import pytest

from disco.errors import (
    AtomicUnitTooLargeError,
    ConfigError,
    DatabaseError,
    DiscoError,
    DiscoIOError,
    DiskIdentityMismatchError,
    DiskNotFoundError,
    DiskNotMountedError,
    EntryNotFoundError,
    ErrorSeverity,
    FileAlreadyExistsError,
    InvalidPathError,
    MigrationError,
    NoDisksAvailableError,
    OperationCancelledError,
    PathNotFoundError,
    PermissionDeniedError,
    PlatformError,
    SerdeError,
    SolidViolationError,
    StripPrefixError,
    TaskFailedError,
    TaskInterruptedError,
    WalkDirError,
)


@pytest.mark.parametrize(
    "error, severity",
    [
        (DiskNotFoundError("d1"), ErrorSeverity.WARNING),
        (EntryNotFoundError(3), ErrorSeverity.WARNING),
        (PathNotFoundError("/x"), ErrorSeverity.WARNING),
        (OperationCancelledError(), ErrorSeverity.WARNING),
        (DiskNotMountedError("d1"), ErrorSeverity.ERROR),
        (DiskIdentityMismatchError("a", "b"), ErrorSeverity.ERROR),
        (InvalidPathError("p"), ErrorSeverity.ERROR),
        (NoDisksAvailableError(), ErrorSeverity.ERROR),
        (FileAlreadyExistsError("p"), ErrorSeverity.ERROR),
        (PermissionDeniedError("p"), ErrorSeverity.ERROR),
        (TaskInterruptedError("store"), ErrorSeverity.ERROR),
        (StripPrefixError("p"), ErrorSeverity.ERROR),
        (SerdeError("p"), ErrorSeverity.ERROR),
        (WalkDirError("p"), ErrorSeverity.ERROR),
        (AtomicUnitTooLargeError(10), ErrorSeverity.CRITICAL),
        (SolidViolationError(), ErrorSeverity.CRITICAL),
        (TaskFailedError("store"), ErrorSeverity.CRITICAL),
        (DatabaseError("x"), ErrorSeverity.CRITICAL),
        (DiscoIOError("x"), ErrorSeverity.CRITICAL),
        (ConfigError("x"), ErrorSeverity.CRITICAL),
        (PlatformError("x"), ErrorSeverity.CRITICAL),
        (MigrationError("x"), ErrorSeverity.CRITICAL),
    ],
)
def test_severity(error, severity):
    assert error.severity() is severity


def test_all_errors_are_disco_errors():
    err = DiskNotFoundError("d1")
    assert isinstance(err, DiscoError)
    assert str(err) == "Disk not found: d1"
    assert err.severity() is ErrorSeverity.WARNING
    assert err.suggestion() == (
        "Use 'disk list' to see registered disks, or 'disk add' to register a new one."
    )


def test_messages():
    assert str(DiskNotFoundError("d1")) == "Disk not found: d1"
    assert str(EntryNotFoundError(42)) == "Entry not found: 42"
    assert (
        str(DiskIdentityMismatchError("a", "b"))
        == "Disk identity mismatch: expected a, found b"
    )
    assert str(NoDisksAvailableError()) == "No disks available for storage"
    assert str(OperationCancelledError()) == "Operation cancelled by user"


def test_atomic_unit_message_and_description():
    err = AtomicUnitTooLargeError(2 * 1024 ** 3)
    assert err.size == 2 * 1024 ** 3
    assert str(err).startswith("Atomic unit too large: ")
    assert "(2.00 GB)" in err.user_description()


def test_user_descriptions():
    assert (
        DiskNotFoundError("d1").user_description()
        == "The disk 'd1' is not registered in your disk pool."
    )
    assert (
        OperationCancelledError().user_description() == "The operation was cancelled."
    )
    assert "Expected 'a', but found 'b'." in DiskIdentityMismatchError(
        "a", "b"
    ).user_description()


def test_description_falls_back_to_message():
    err = SerdeError("bad json")
    assert err.user_description() == str(err)


def test_suggestions():
    assert NoDisksAvailableError().suggestion() == (
        "Use 'disk add <mount-point>' to register disks to your pool."
    )
    assert TaskFailedError("scan").suggestion() is None
    assert OperationCancelledError().suggestion() is None
    assert "solid unset" in SolidViolationError().suggestion()


def test_entry_id_kept():
    err = EntryNotFoundError(7)
    assert err.entry_id == 7
    assert "7" in err.user_description()