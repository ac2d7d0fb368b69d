"""Backup archive creation."""
import os
import shutil
import sqlite3
import tempfile
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Dict, Tuple

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from boxmanager.config import Settings
from boxmanager.database import StoreHandle, StoreUnavailable
from boxmanager.services.backup.archive import ArchiveWriter
from boxmanager.services.backup.errors import SnapshotError, SnapshotFailure
from boxmanager.services.backup.manifest import (
    ARCHIVE_DATA_DIR,
    ARCHIVE_UPLOADS_DIR,
    MANIFEST_NAME,
    BackupManifest,
)

COUNTED_TABLES = ("boxes", "items", "locations", "activity_logs")


def is_transient_upload_entry(relative: PurePosixPath) -> bool:
    """Upload entries that belong to in-flight operations, never to backups."""
    top = relative.parts[0] if relative.parts else ""
    return top == "temp" or top.startswith(".restore-")


def _count_rows(db_path: Path) -> Dict[str, int]:
    counts = {}
    conn = sqlite3.connect(str(db_path))
    try:
        for table in COUNTED_TABLES:
            try:
                counts[table] = conn.execute(f"SELECT count(*) FROM {table}").fetchone()[0]
            except sqlite3.OperationalError:
                continue
    finally:
        conn.close()
    return counts


class SnapshotBuilder:
    """Writes the live store and attachment tree into a ZIP archive.

    Archive layout:

        data/<database file>       consistent copy of the SQLite store
        uploads/...                the attachment tree
        backup-metadata.json       manifest
    """

    def __init__(self, store: StoreHandle, settings: Settings):
        self.store = store
        self.settings = settings

    def write_snapshot(self, fileobj: BinaryIO) -> BackupManifest:
        """Write a complete archive to ``fileobj``.

        Anything written before a SnapshotError is raised must be thrown
        away by the caller.
        """
        db_path = self.store.path
        if not db_path.is_file():
            raise SnapshotError(SnapshotFailure.MISSING_STORE, f"Database file not found: {db_path}")

        self.settings.temp_dir.mkdir(parents=True, exist_ok=True)
        workdir = Path(tempfile.mkdtemp(prefix="snapshot-", dir=self.settings.temp_dir))
        try:
            copy_path = workdir / db_path.name
            try:
                self.store.force_journal_merge()
                self.store.snapshot_to(copy_path)
                counts = _count_rows(copy_path)
            except (SQLAlchemyError, sqlite3.Error, StoreUnavailable, OSError) as e:
                logger.error(f"Failed to copy database for backup: {e}")
                raise SnapshotError(SnapshotFailure.WRITE_FAILED, f"Could not copy database: {e}") from e

            try:
                manifest = self._write_archive(fileobj, copy_path, counts)
            except (OSError, ValueError, RuntimeError) as e:
                logger.error(f"Failed to write backup archive: {e}")
                raise SnapshotError(SnapshotFailure.WRITE_FAILED, f"Could not write archive: {e}") from e
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        logger.info(
            f"Backup created: {manifest.counts.get('boxes', 0)} boxes, "
            f"{manifest.counts.get('items', 0)} items, {manifest.attachments} attachments"
        )
        return manifest

    def _write_archive(self, fileobj: BinaryIO, copy_path: Path, counts: Dict[str, int]) -> BackupManifest:
        name = self.store.path.name
        with ArchiveWriter(fileobj) as writer:
            writer.add_file(copy_path, f"{ARCHIVE_DATA_DIR}/{name}")

            attachments = 0
            upload_dir = self.settings.UPLOAD_DIR
            if upload_dir.is_dir():
                attachments = writer.add_tree(upload_dir, ARCHIVE_UPLOADS_DIR, skip=is_transient_upload_entry)
            else:
                logger.info(f"Upload directory {upload_dir} does not exist, backing up database only")

            manifest = BackupManifest(
                version=self.settings.BACKUP_FORMAT_VERSION,
                created_at=datetime.now(timezone.utc).isoformat(),
                app_name=self.settings.APP_NAME,
                app_version=self.settings.APP_VERSION,
                database_file=name,
                counts=counts,
                attachments=attachments,
            )
            writer.add_bytes(MANIFEST_NAME, manifest.to_json())
        return manifest

    def create_snapshot_file(self) -> Tuple[Path, BackupManifest]:
        """Build an archive into a private temp file and return its path.

        The file is only returned once the archive is complete; on failure
        it is removed.
        """
        self.settings.temp_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="backup-", suffix=".zip", dir=self.settings.temp_dir)
        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as fh:
                manifest = self.write_snapshot(fh)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        return path, manifest
