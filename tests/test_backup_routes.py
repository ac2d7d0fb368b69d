"""Tests for the backup and restore endpoints."""
import io
import zipfile

from boxmanager.services.backup import MANIFEST_NAME
from tests.helpers import RECEIPT_BYTES, build_snapshot, make_zip


def upload(client, data, filename="backup.zip"):
    return client.post(
        "/api/restore/full",
        files={"backup": (filename, data, "application/zip")},
    )


class TestDownload:
    def test_full_backup_download(self, client, stocked_store, settings):
        response = client.get("/api/backup/full")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        disposition = response.headers["content-disposition"]
        assert "box-management-backup-" in disposition
        assert ".zip" in disposition
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            names = zf.namelist()
            assert zf.read("uploads/receipts/r1.pdf") == RECEIPT_BYTES
        assert f"data/{settings.DATABASE_FILE}" in names
        assert MANIFEST_NAME in names
        assert not list(settings.temp_dir.glob("backup-*.zip"))

    def test_post_is_accepted(self, client, stocked_store):
        assert client.post("/api/backup/full").status_code == 200

    def test_backup_leaves_activity_log_untouched(self, client, stocked_store):
        before = len(client.get("/api/activity-logs/").json())

        client.get("/api/backup/full")
        client.post("/api/backup/full")

        assert len(client.get("/api/activity-logs/").json()) == before

    def test_missing_store_is_500(self, client, store):
        store.close()
        store.path.unlink()

        response = client.get("/api/backup/full")
        assert response.status_code == 500
        assert response.json()["detail"]["kind"] == "missing_store"


class TestRestore:
    def test_restore_replaces_everything(self, client, stocked_store, backup_service, settings):
        data = build_snapshot(backup_service)
        client.delete("/api/boxes/box-1")
        client.post("/api/boxes/", json={"name": "Other", "location": "Attic"})
        assert not (settings.receipts_dir / "r1.pdf").exists()

        response = upload(client, data)

        assert response.status_code == 200
        body = response.json()
        assert body["boxes"] == 1
        assert body["items"] == 1
        assert body["attachments"] == 1
        assert body["backup_version"] == settings.BACKUP_FORMAT_VERSION

        boxes = client.get("/api/boxes/").json()
        assert [b["id"] for b in boxes] == ["box-1"]
        item = client.get("/api/items/item-1").json()
        assert item["box_id"] == "box-1"
        receipt = client.get("/api/items/item-1/receipt")
        assert receipt.status_code == 200
        assert receipt.content == RECEIPT_BYTES

        logs = client.get("/api/activity-logs/").json()
        assert logs[0]["action"] == "restore"

    def test_wrong_extension_is_400(self, client, stocked_store):
        response = upload(client, b"whatever", filename="backup.tar")

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["kind"] == "invalid_format"
        assert detail["changes_made"] is False
        assert "note" in detail

    def test_not_a_zip_is_400(self, client, stocked_store):
        response = upload(client, b"this is not an archive")
        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "invalid_format"

    def test_archive_without_database_is_400(self, client, stocked_store):
        response = upload(client, make_zip({MANIFEST_NAME: b'{"version": "1.0"}'}))

        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == "missing_store_in_archive"
        assert len(client.get("/api/boxes/").json()) == 1

    def test_oversized_upload_is_413(self, client, stocked_store, settings):
        settings.MAX_RESTORE_SIZE = 100

        response = upload(client, b"x" * 101)

        assert response.status_code == 413
        assert response.json()["detail"]["kind"] == "upload_too_large"
        assert not [p for p in settings.temp_dir.iterdir() if p.name.startswith("restore-")]

    def test_restore_in_progress_is_409(self, client, stocked_store, backup_service):
        data = build_snapshot(backup_service)
        backup_service.restores._lock.acquire()
        try:
            response = upload(client, data)
        finally:
            backup_service.restores._lock.release()

        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "restore_in_progress"

    def test_status(self, client, stocked_store):
        assert client.get("/api/restore/status").json() == {"state": "idle", "last_error": None}

        upload(client, b"garbage")

        status = client.get("/api/restore/status").json()
        assert status["state"] == "failed"
        assert status["last_error"].startswith("invalid_format")

    def test_api_unavailable_while_store_closed(self, client, store):
        store.close()
        assert client.get("/api/boxes/").status_code == 503
