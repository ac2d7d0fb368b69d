"""Full-system backup and restore.

A backup is a ZIP archive holding a consistent copy of the SQLite store,
the upload tree and a manifest. A restore extracts such an archive into a
private staging directory, validates it, swaps it into place and reopens
the store.
"""
from pathlib import Path
from typing import Tuple

from boxmanager.config import Settings
from boxmanager.database import StoreHandle
from boxmanager.services.backup.errors import (
    BackupError,
    RestoreError,
    RestoreFailure,
    SnapshotError,
    SnapshotFailure,
)
from boxmanager.services.backup.manifest import (
    ARCHIVE_DATA_DIR,
    ARCHIVE_UPLOADS_DIR,
    MANIFEST_NAME,
    BackupManifest,
    backup_filename,
)
from boxmanager.services.backup.reader import ArchiveReader, ArchiveSource, StagedBackup
from boxmanager.services.backup.replacer import Rollback, StoreReplacer
from boxmanager.services.backup.restore import RestoreCoordinator, RestoreState, RestoreSummary
from boxmanager.services.backup.snapshot import SnapshotBuilder


class BackupService:
    """Entry point used by the HTTP routes and the CLI."""

    def __init__(self, store: StoreHandle, settings: Settings):
        self.store = store
        self.settings = settings
        self.snapshots = SnapshotBuilder(store, settings)
        self.restores = RestoreCoordinator(store, settings)

    def create_backup_file(self) -> Tuple[Path, BackupManifest]:
        return self.snapshots.create_snapshot_file()

    def restore(self, source: ArchiveSource) -> RestoreSummary:
        return self.restores.restore(source)

    @property
    def restore_state(self) -> RestoreState:
        return self.restores.state

    @property
    def last_restore_error(self):
        return self.restores.last_error


__all__ = [
    "BackupService",
    "BackupError",
    "SnapshotError",
    "SnapshotFailure",
    "RestoreError",
    "RestoreFailure",
    "BackupManifest",
    "backup_filename",
    "ARCHIVE_DATA_DIR",
    "ARCHIVE_UPLOADS_DIR",
    "MANIFEST_NAME",
    "SnapshotBuilder",
    "ArchiveReader",
    "ArchiveSource",
    "StagedBackup",
    "StoreReplacer",
    "Rollback",
    "RestoreCoordinator",
    "RestoreState",
    "RestoreSummary",
]
