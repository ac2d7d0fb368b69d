"""Uploaded archive extraction and validation."""
import io
import json
import shutil
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from loguru import logger

from boxmanager.config import Settings
from boxmanager.database import SQLITE_HEADER
from boxmanager.services.backup.archive import ArchiveTooLarge, UnsafeArchiveEntry, extract_archive
from boxmanager.services.backup.errors import RestoreError, RestoreFailure
from boxmanager.services.backup.manifest import (
    ARCHIVE_DATA_DIR,
    ARCHIVE_UPLOADS_DIR,
    MANIFEST_NAME,
    BackupManifest,
    major_version,
)

ArchiveSource = Union[bytes, Path]


@dataclass
class StagedBackup:
    """An extracted archive waiting in a private staging directory."""

    root: Path
    database_file: str
    manifest: Optional[BackupManifest] = None

    @property
    def database_path(self) -> Path:
        return self.root / ARCHIVE_DATA_DIR / self.database_file

    @property
    def wal_path(self) -> Path:
        return self.root / ARCHIVE_DATA_DIR / f"{self.database_file}-wal"

    @property
    def uploads_dir(self) -> Path:
        return self.root / ARCHIVE_UPLOADS_DIR

    def cleanup(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)


class ArchiveReader:
    """Turns uploaded bytes into a validated StagedBackup.

    Nothing outside the staging directory is touched, so every failure
    raised here leaves the live store unchanged.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def extract_to_staging(self, source: ArchiveSource) -> StagedBackup:
        """Extract and validate in one step."""
        staged = self.extract(source)
        try:
            self.validate(staged)
        except BaseException:
            staged.cleanup()
            raise
        return staged

    def extract(self, source: ArchiveSource) -> StagedBackup:
        """Size-check, decode and unpack ``source`` into a new staging directory."""
        size = len(source) if isinstance(source, (bytes, bytearray)) else Path(source).stat().st_size
        limit = self.settings.MAX_RESTORE_SIZE
        if size > limit:
            raise RestoreError(
                RestoreFailure.UPLOAD_TOO_LARGE,
                f"Backup is {size} bytes, the limit is {limit} bytes"
            )

        stream = self._open(source)
        try:
            if not zipfile.is_zipfile(stream):
                raise RestoreError(RestoreFailure.INVALID_FORMAT, "Uploaded file is not a ZIP archive")
            stream.seek(0)

            self.settings.temp_dir.mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix="restore-", dir=self.settings.temp_dir))
            staged = StagedBackup(root=root, database_file=self.settings.DATABASE_FILE)
            try:
                names = extract_archive(stream, root, self.settings.MAX_RESTORE_EXTRACTED_SIZE)
                staged.manifest = self._read_manifest(root)
                if staged.manifest and staged.manifest.database_file:
                    staged.database_file = Path(staged.manifest.database_file).name
            except BaseException:
                staged.cleanup()
                raise
        except UnsafeArchiveEntry as e:
            raise RestoreError(RestoreFailure.CORRUPT_ARCHIVE, str(e)) from e
        except ArchiveTooLarge as e:
            raise RestoreError(RestoreFailure.UPLOAD_TOO_LARGE, str(e)) from e
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as e:
            raise RestoreError(RestoreFailure.CORRUPT_ARCHIVE, f"Archive could not be decoded: {e}") from e
        except OSError as e:
            raise RestoreError(RestoreFailure.CORRUPT_ARCHIVE, f"Archive could not be extracted: {e}") from e
        finally:
            stream.close()

        logger.info(f"Backup extracted to {root} ({len(names)} entries)")
        return staged

    def validate(self, staged: StagedBackup) -> None:
        """Check manifest version and the staged database file."""
        self._check_version(staged.manifest)

        db_path = staged.database_path
        if not db_path.is_file():
            raise RestoreError(
                RestoreFailure.MISSING_STORE_IN_ARCHIVE,
                f"Archive does not contain {ARCHIVE_DATA_DIR}/{staged.database_file}"
            )
        with open(db_path, "rb") as fh:
            header = fh.read(len(SQLITE_HEADER))
        if header != SQLITE_HEADER:
            raise RestoreError(
                RestoreFailure.CORRUPT_ARCHIVE,
                f"{ARCHIVE_DATA_DIR}/{staged.database_file} is not a SQLite database"
            )

    @staticmethod
    def _open(source: ArchiveSource) -> BinaryIO:
        if isinstance(source, (bytes, bytearray)):
            return io.BytesIO(source)
        return open(source, "rb")

    @staticmethod
    def _read_manifest(root: Path) -> Optional[BackupManifest]:
        path = root / MANIFEST_NAME
        if not path.is_file():
            logger.warning("Backup has no manifest, continuing without version information")
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (ValueError, UnicodeDecodeError) as e:
            raise RestoreError(RestoreFailure.CORRUPT_ARCHIVE, f"Manifest is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise RestoreError(RestoreFailure.CORRUPT_ARCHIVE, "Manifest is not a JSON object")
        try:
            return BackupManifest.from_dict(data)
        except ValueError as e:
            raise RestoreError(RestoreFailure.CORRUPT_ARCHIVE, f"Manifest is malformed: {e}") from e

    def _check_version(self, manifest: Optional[BackupManifest]) -> None:
        expected = self.settings.BACKUP_FORMAT_VERSION
        found = manifest.version if manifest else ""
        logger.info(f"Backup format version: {found or 'unknown'} (current {expected})")

        if major_version(found) == major_version(expected):
            return
        if self.settings.BACKUP_STRICT_VERSION:
            raise RestoreError(
                RestoreFailure.UNSUPPORTED_VERSION,
                f"Backup format {found or 'unknown'} is not compatible with {expected}"
            )
        logger.warning(f"Backup format {found or 'unknown'} differs from {expected}, restoring anyway")
