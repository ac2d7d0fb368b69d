"""Restore pipeline: extract, validate, replace, reconnect, clean up."""
import enum
import sqlite3
import threading
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from boxmanager.config import Settings
from boxmanager.database import StoreHandle, StoreUnavailable
from boxmanager.models import Box, Item, Location
from boxmanager.services.backup.errors import RestoreError, RestoreFailure
from boxmanager.services.backup.manifest import BackupManifest
from boxmanager.services.backup.reader import ArchiveReader, ArchiveSource, StagedBackup
from boxmanager.services.backup.replacer import Rollback, StoreReplacer

RECONNECT_ERRORS = (SQLAlchemyError, sqlite3.Error, StoreUnavailable, OSError)


class RestoreState(str, enum.Enum):
    """Where a restore currently is."""
    IDLE = "idle"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    REPLACING = "replacing"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


@dataclass
class RestoreSummary:
    """What the store holds after a successful restore."""
    manifest: Optional[BackupManifest]
    boxes: int
    items: int
    locations: int
    attachments: int


class RestoreCoordinator:
    """Runs one restore at a time against a StoreHandle.

    Failures before REPLACING leave the live store untouched. From
    REPLACING on, the previous files are kept aside and put back if the
    swap or the reconnect fails; RestoreError.rolled_back reports whether
    that worked.
    """

    def __init__(self, store: StoreHandle, settings: Settings):
        self.store = store
        self.settings = settings
        self.reader = ArchiveReader(settings)
        self.replacer = StoreReplacer(store, settings)
        self.state = RestoreState.IDLE
        self.last_error: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self._lock.locked()

    def _enter(self, state: RestoreState) -> None:
        logger.debug(f"Restore state: {self.state.value} -> {state.value}")
        self.state = state

    def restore(self, source: ArchiveSource) -> RestoreSummary:
        if not self._lock.acquire(blocking=False):
            raise RestoreError(RestoreFailure.RESTORE_IN_PROGRESS, "Another restore is already running")

        staged: Optional[StagedBackup] = None
        try:
            self.last_error = None
            self._enter(RestoreState.EXTRACTING)
            staged = self.reader.extract(source)

            self._enter(RestoreState.VALIDATING)
            self.reader.validate(staged)

            self._enter(RestoreState.REPLACING)
            self.store.close()
            try:
                rollback = self.replacer.replace(staged)
            except RestoreError as e:
                if e.rolled_back:
                    self._reopen_previous()
                raise

            self._enter(RestoreState.RECONNECTING)
            self.reconnect(rollback)
            rollback.discard()

            summary = self._summarize(staged.manifest)
            self._enter(RestoreState.IDLE)
            logger.info(
                f"Restore complete: {summary.boxes} boxes, {summary.items} items, "
                f"{summary.locations} locations, {summary.attachments} attachments"
            )
            return summary
        except RestoreError as e:
            self._enter(RestoreState.FAILED)
            self.last_error = str(e)
            if e.changes_made:
                logger.critical(f"Restore failed after live data was touched (rolled back: {e.rolled_back}): {e}")
            else:
                logger.warning(f"Restore rejected, no changes made: {e}")
            raise
        except Exception as e:
            self._enter(RestoreState.FAILED)
            self.last_error = str(e)
            logger.exception("Unexpected error during restore")
            raise
        finally:
            if staged is not None:
                staged.cleanup()
            self._lock.release()

    def reconnect(self, rollback: Rollback) -> None:
        """Reopen the store on the replaced file; roll back if it cannot be read."""
        try:
            self.store.reconnect()
            return
        except RECONNECT_ERRORS as e:
            logger.critical(f"Could not open restored database: {e}")
            error = e

        rolled_back = False
        self.store.close()
        try:
            rollback.restore()
            self.store.reconnect()
            rolled_back = True
        except RECONNECT_ERRORS as rollback_error:
            logger.critical(f"Rollback after failed reconnect did not succeed: {rollback_error}")
            self.store.close()
        raise RestoreError(
            RestoreFailure.RECONNECT_FAILED,
            f"Restored database could not be opened: {error}",
            rolled_back=rolled_back,
        ) from error

    def _reopen_previous(self) -> None:
        try:
            self.store.reconnect()
        except RECONNECT_ERRORS as e:
            logger.critical(f"Could not reopen previous database after rollback: {e}")
            self.store.close()

    def _summarize(self, manifest: Optional[BackupManifest]) -> RestoreSummary:
        db = self.store.session()
        try:
            boxes = db.query(Box).count()
            items = db.query(Item).count()
            locations = db.query(Location).count()
        finally:
            db.close()
        receipts = self.settings.receipts_dir
        attachments = sum(1 for p in receipts.rglob("*") if p.is_file()) if receipts.is_dir() else 0
        return RestoreSummary(
            manifest=manifest,
            boxes=boxes,
            items=items,
            locations=locations,
            attachments=attachments,
        )
