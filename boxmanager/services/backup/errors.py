"""Backup and restore error taxonomy."""
import enum


class SnapshotFailure(str, enum.Enum):
    """Why a backup could not be produced."""
    MISSING_STORE = "missing_store"
    WRITE_FAILED = "write_failed"


class RestoreFailure(str, enum.Enum):
    """Why a restore stopped."""
    UPLOAD_TOO_LARGE = "upload_too_large"
    INVALID_FORMAT = "invalid_format"
    UNSUPPORTED_VERSION = "unsupported_version"
    CORRUPT_ARCHIVE = "corrupt_archive"
    MISSING_STORE_IN_ARCHIVE = "missing_store_in_archive"
    RESTORE_IN_PROGRESS = "restore_in_progress"
    # The two below happen after live files were touched
    REPLACE_FAILED = "replace_failed"
    RECONNECT_FAILED = "reconnect_failed"


LIVE_STATE_FAILURES = frozenset({RestoreFailure.REPLACE_FAILED, RestoreFailure.RECONNECT_FAILED})


class BackupError(Exception):
    """Base class for backup and restore failures."""

    def __init__(self, kind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SnapshotError(BackupError):
    """A backup archive could not be created. Nothing is delivered."""

    def __init__(self, kind: SnapshotFailure, message: str):
        super().__init__(kind, message)


class RestoreError(BackupError):
    """A restore failed.

    ``changes_made`` tells whether the live store may have been modified.
    When it is true, ``rolled_back`` tells whether the previous store was
    put back in place.
    """

    def __init__(self, kind: RestoreFailure, message: str, rolled_back: bool = False):
        super().__init__(kind, message)
        self.rolled_back = rolled_back

    @property
    def changes_made(self) -> bool:
        return self.kind in LIVE_STATE_FAILURES


__all__ = [
    "SnapshotFailure",
    "RestoreFailure",
    "LIVE_STATE_FAILURES",
    "BackupError",
    "SnapshotError",
    "RestoreError",
]
