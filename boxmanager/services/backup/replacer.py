"""Swapping staged files into the live data and upload directories."""
import os
import shutil
import tempfile
import uuid
from pathlib import Path, PurePosixPath
from typing import List, Optional

from loguru import logger

from boxmanager.config import Settings
from boxmanager.database import StoreHandle
from boxmanager.services.backup.errors import RestoreError, RestoreFailure
from boxmanager.services.backup.reader import StagedBackup
from boxmanager.services.backup.snapshot import is_transient_upload_entry


def _preserve(src: Path, dest: Path) -> None:
    """Keep a copy of ``src`` at ``dest`` without moving ``src``."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        os.link(src, dest)
    except OSError:
        shutil.copy2(src, dest)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


class Rollback:
    """What the previous live state looked like, kept until reconnect succeeds.

    Database files are kept under ``root`` in the staging area (same
    filesystem as the database). Upload entries are parked in a hidden
    directory inside the upload root (same filesystem as the uploads).
    """

    def __init__(self, root: Path, database_path: Path, upload_dir: Path, token: str):
        self.root = root
        self.database_path = database_path
        self.upload_dir = upload_dir
        self.previous_uploads = upload_dir / f".restore-previous-{token}"
        self.saved_database_files: List[str] = []
        self.parked_uploads: List[str] = []
        self.installed_uploads: List[str] = []
        self.database_replaced = False

    def _saved(self, name: str) -> Path:
        return self.root / "data" / name

    def save_database_file(self, live: Path) -> None:
        _preserve(live, self._saved(live.name))
        self.saved_database_files.append(live.name)

    def park_upload(self, name: str) -> None:
        self.previous_uploads.mkdir(parents=True, exist_ok=True)
        shutil.move(str(self.upload_dir / name), str(self.previous_uploads / name))
        self.parked_uploads.append(name)

    def restore(self) -> None:
        """Put the previous database and upload entries back."""
        for name in self.installed_uploads + self.parked_uploads:
            _remove(self.upload_dir / name)
        for name in self.parked_uploads:
            shutil.move(str(self.previous_uploads / name), str(self.upload_dir / name))

        if self.database_replaced or self.saved_database_files:
            live_files = [self.database_path] + [
                self.database_path.with_name(self.database_path.name + suffix)
                for suffix in ("-wal", "-shm")
            ]
            for live in live_files:
                if live.name not in self.saved_database_files:
                    live.unlink(missing_ok=True)
            for name in self.saved_database_files:
                os.replace(self._saved(name), self.database_path.with_name(name))

        self.discard()
        logger.warning("Previous data restored after failed restore")

    def discard(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)
        shutil.rmtree(self.previous_uploads, ignore_errors=True)


class StoreReplacer:
    """Replaces the live database and attachment tree with a StagedBackup.

    The store handle must be closed before ``replace`` is called. The
    database goes first: the staged file is copied next to the live one
    and renamed over it in a single step. Upload entries are then swapped
    one top-level entry at a time, leaving the upload root itself in place.
    """

    def __init__(self, store: StoreHandle, settings: Settings):
        self.store = store
        self.settings = settings

    def replace(self, staged: StagedBackup) -> Rollback:
        token = uuid.uuid4().hex[:12]
        self.settings.temp_dir.mkdir(parents=True, exist_ok=True)
        rollback = Rollback(
            root=Path(tempfile.mkdtemp(prefix="rollback-", dir=self.settings.temp_dir)),
            database_path=self.store.path,
            upload_dir=self.settings.UPLOAD_DIR,
            token=token,
        )
        try:
            self._replace_database(staged, rollback, token)
            self._replace_uploads(staged, rollback, token)
        except OSError as e:
            logger.critical(f"Restore failed while replacing live files: {e}")
            rolled_back = self._roll_back(rollback)
            raise RestoreError(
                RestoreFailure.REPLACE_FAILED,
                f"Could not replace live files: {e}",
                rolled_back=rolled_back,
            ) from e
        logger.info("Live database and uploads replaced from backup")
        return rollback

    def _replace_database(self, staged: StagedBackup, rollback: Rollback, token: str) -> None:
        live = self.store.path
        live.parent.mkdir(parents=True, exist_ok=True)
        incoming = live.with_name(f"{live.name}.incoming-{token}")
        shutil.copy2(staged.database_path, incoming)
        try:
            if live.exists():
                rollback.save_database_file(live)
            # A WAL left from the old database must never be replayed onto the new one
            for side in self.store.side_file_paths():
                if side.exists():
                    rollback.save_database_file(side)
                    side.unlink()
            rollback.database_replaced = True
            os.replace(incoming, live)
        finally:
            incoming.unlink(missing_ok=True)

        if staged.wal_path.is_file() and staged.wal_path.stat().st_size > 0:
            shutil.copy2(staged.wal_path, live.with_name(live.name + "-wal"))

    def _replace_uploads(self, staged: StagedBackup, rollback: Rollback, token: str) -> None:
        upload_dir = self.settings.UPLOAD_DIR
        upload_dir.mkdir(parents=True, exist_ok=True)

        # Copy onto the upload filesystem first so the swap below is renames only
        incoming = upload_dir / f".restore-incoming-{token}"
        if staged.uploads_dir.is_dir():
            shutil.copytree(
                staged.uploads_dir,
                incoming,
                ignore=lambda d, names: [
                    n for n in names
                    if Path(d) == staged.uploads_dir and is_transient_upload_entry(PurePosixPath(n))
                ],
            )
        else:
            incoming.mkdir()

        try:
            for entry in sorted(upload_dir.iterdir()):
                if is_transient_upload_entry(PurePosixPath(entry.name)):
                    continue
                rollback.park_upload(entry.name)

            for entry in sorted(incoming.iterdir()):
                os.replace(entry, upload_dir / entry.name)
                rollback.installed_uploads.append(entry.name)
        finally:
            shutil.rmtree(incoming, ignore_errors=True)

        self.settings.receipts_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _roll_back(rollback: Optional[Rollback]) -> bool:
        if rollback is None:
            return False
        try:
            rollback.restore()
        except OSError as e:
            logger.critical(f"Rollback failed, live data needs manual repair: {e}")
            return False
        return True
