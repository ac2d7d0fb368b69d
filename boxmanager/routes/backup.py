"""Backup and restore routes."""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from boxmanager.config import settings
from boxmanager.database import store
from boxmanager.models.activity_log import ActivityAction
from boxmanager.schemas.backup import RestoreResponse, RestoreStatusResponse
from boxmanager.services.activity import record_system_activity
from boxmanager.services.backup import (
    BackupService,
    RestoreError,
    RestoreFailure,
    SnapshotError,
    backup_filename,
)

router = APIRouter(tags=["Backup"])

backup_service = BackupService(store, settings)

RESTORE_STATUS_CODES = {
    RestoreFailure.UPLOAD_TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    RestoreFailure.RESTORE_IN_PROGRESS: status.HTTP_409_CONFLICT,
    RestoreFailure.REPLACE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    RestoreFailure.RECONNECT_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

NO_CHANGES_NOTE = "No changes were made to your data."
MANUAL_CHECK_WARNING = (
    "The restore failed after live data was modified. "
    "Verify your boxes, items and receipts before continuing to use the system."
)


def get_backup_service() -> BackupService:
    """Dependency returning the process-wide backup service."""
    return backup_service


def restore_http_error(error: RestoreError) -> HTTPException:
    """Translate a RestoreError into an HTTP error with a JSON detail."""
    detail = {
        "message": error.message,
        "kind": error.kind.value,
        "changes_made": error.changes_made,
    }
    if error.changes_made:
        detail["rolled_back"] = error.rolled_back
        detail["warning"] = MANUAL_CHECK_WARNING
    else:
        detail["note"] = NO_CHANGES_NOTE
    return HTTPException(
        status_code=RESTORE_STATUS_CODES.get(error.kind, status.HTTP_400_BAD_REQUEST),
        detail=detail
    )


@router.get("/backup/full")
@router.post("/backup/full")
async def create_full_backup(service: BackupService = Depends(get_backup_service)):
    """Download a ZIP archive of the database and all receipt files.

    The archive is completed before the first byte is sent, so a failed
    backup never reaches the client as a truncated file.
    """
    try:
        path, manifest = await run_in_threadpool(service.create_backup_file)
    except SnapshotError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": f"Backup failed: {e.message}", "kind": e.kind.value}
        )

    return FileResponse(
        path,
        media_type="application/zip",
        filename=backup_filename(),
        background=BackgroundTask(path.unlink, missing_ok=True),
    )


@router.post("/restore/full", response_model=RestoreResponse)
async def restore_full_backup(
    backup: UploadFile = File(...),
    service: BackupService = Depends(get_backup_service)
):
    """Replace all data with the contents of an uploaded backup archive."""
    if backup.filename and not backup.filename.lower().endswith(".zip"):
        raise restore_http_error(
            RestoreError(RestoreFailure.INVALID_FORMAT, "Please upload a .zip backup file")
        )
    if service.restores.is_active:
        raise restore_http_error(
            RestoreError(RestoreFailure.RESTORE_IN_PROGRESS, "Another restore is already running")
        )

    limit = service.settings.MAX_RESTORE_SIZE
    content = await backup.read(limit + 1)
    if len(content) > limit:
        raise restore_http_error(
            RestoreError(RestoreFailure.UPLOAD_TOO_LARGE, f"Backup exceeds the {limit} byte limit")
        )

    try:
        summary = await run_in_threadpool(service.restore, content)
    except RestoreError as e:
        raise restore_http_error(e)

    manifest = summary.manifest
    record_system_activity(
        service.store, ActivityAction.RESTORE,
        details=f"Restored backup from {manifest.created_at}" if manifest else "Restored backup"
    )
    return RestoreResponse(
        message="Backup restored successfully. Reload the page to see the restored data.",
        backup_created_at=manifest.created_at if manifest else None,
        backup_version=manifest.version if manifest else None,
        boxes=summary.boxes,
        items=summary.items,
        locations=summary.locations,
        attachments=summary.attachments,
    )


@router.get("/restore/status", response_model=RestoreStatusResponse)
async def restore_status(service: BackupService = Depends(get_backup_service)):
    """Current state of the restore pipeline."""
    return RestoreStatusResponse(
        state=service.restore_state.value,
        last_error=service.last_restore_error,
    )
