"""Tests for box and item endpoints."""
import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tests.helpers import RECEIPT_BYTES


@pytest.fixture
def box(client):
    response = client.post("/api/boxes/", json={
        "name": "Winter Clothes",
        "location": "Attic",
        "description": "Coats and scarves",
    })
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def item(client, box):
    response = client.post("/api/items/", json={
        "box_id": box["id"],
        "name": "Wool Coat",
        "quantity": 2,
        "details": "Grey, size M",
        "value": 80.0,
    })
    assert response.status_code == 201
    return response.json()


class TestBoxes:
    def test_create_and_list(self, client, item, box):
        boxes = client.get("/api/boxes/").json()

        assert len(boxes) == 1
        assert boxes[0]["id"] == box["id"]
        assert boxes[0]["item_count"] == 1
        assert boxes[0]["total_value"] == pytest.approx(160.0)
        assert boxes[0]["with_receipts"] == 0

    def test_get_with_items(self, client, item, box):
        body = client.get(f"/api/boxes/{box['id']}").json()
        assert [i["id"] for i in body["items"]] == [item["id"]]

    def test_missing_box_is_404(self, client):
        assert client.get("/api/boxes/nope").status_code == 404

    def test_blank_name_is_rejected(self, client):
        response = client.post("/api/boxes/", json={"name": "", "location": "Attic"})
        assert response.status_code == 422

    def test_update(self, client, box):
        response = client.put(f"/api/boxes/{box['id']}", json={"location": "Basement"})

        assert response.status_code == 200
        assert response.json()["location"] == "Basement"
        assert response.json()["name"] == "Winter Clothes"

    def test_delete_removes_items_and_receipts(self, client, stocked_store, settings):
        response = client.delete("/api/boxes/box-1")

        assert response.status_code == 200
        assert client.get("/api/items/item-1").status_code == 404
        assert not (settings.receipts_dir / "r1.pdf").exists()

    def test_export_csv(self, client, item, box):
        response = client.get("/api/boxes/export/csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0] == "id,name,location,description,item_count,total_value"
        assert lines[1].endswith("1,160.00")

    def test_export_box_items_csv(self, client, item, box):
        response = client.get(f"/api/boxes/{box['id']}/export/csv")

        lines = response.text.strip().splitlines()
        assert lines[1].startswith("Wool Coat,2,")
        assert lines[1].endswith("80.00,160.00,No")


class TestItems:
    def test_item_in_unknown_box_is_404(self, client):
        response = client.post("/api/items/", json={"box_id": "nope", "name": "Lamp"})
        assert response.status_code == 404

    def test_quantity_must_be_positive(self, client, box):
        response = client.post("/api/items/", json={"box_id": box["id"], "name": "Lamp", "quantity": 0})
        assert response.status_code == 422

    def test_update_and_clear_value(self, client, item):
        response = client.put(f"/api/items/{item['id']}", json={"quantity": 3, "value": None})

        assert response.status_code == 200
        assert response.json()["quantity"] == 3
        assert response.json()["value"] is None

    def test_move_to_unknown_box_is_404(self, client, item):
        response = client.put(f"/api/items/{item['id']}", json={"box_id": "nope"})
        assert response.status_code == 404

    def test_delete(self, client, item):
        assert client.delete(f"/api/items/{item['id']}").status_code == 200
        assert client.get(f"/api/items/{item['id']}").status_code == 404

    def test_box_items_listing(self, client, item, box):
        items = client.get(f"/api/boxes/{box['id']}/items").json()
        assert [i["name"] for i in items] == ["Wool Coat"]


class TestReceipts:
    def test_upload_download_delete(self, client, item, settings):
        response = client.post(
            f"/api/items/{item['id']}/receipt",
            files={"receipt": ("coat.pdf", RECEIPT_BYTES, "application/pdf")},
        )
        assert response.status_code == 200
        filename = response.json()["filename"]
        assert filename.endswith(".pdf")
        assert (settings.receipts_dir / filename).read_bytes() == RECEIPT_BYTES

        download = client.get(f"/api/items/{item['id']}/receipt")
        assert download.content == RECEIPT_BYTES

        assert client.delete(f"/api/items/{item['id']}/receipt").status_code == 200
        assert not (settings.receipts_dir / filename).exists()
        assert client.get(f"/api/items/{item['id']}").json()["receipt_filename"] is None

    def test_replacing_receipt_removes_old_file(self, client, stocked_store, settings):
        response = client.post(
            "/api/items/item-1/receipt",
            files={"receipt": ("new.png", b"png", "image/png")},
        )

        assert response.status_code == 200
        assert not (settings.receipts_dir / "r1.pdf").exists()
        assert (settings.receipts_dir / response.json()["filename"]).exists()

    def test_wrong_type_is_400(self, client, item):
        response = client.post(
            f"/api/items/{item['id']}/receipt",
            files={"receipt": ("notes.txt", b"text", "text/plain")},
        )
        assert response.status_code == 400

    def test_too_large_is_413(self, client, item, settings):
        settings.MAX_RECEIPT_SIZE = 10
        response = client.post(
            f"/api/items/{item['id']}/receipt",
            files={"receipt": ("big.pdf", b"x" * 11, "application/pdf")},
        )
        assert response.status_code == 413

    def test_missing_receipt_is_404(self, client, item):
        assert client.get(f"/api/items/{item['id']}/receipt").status_code == 404


class TestFailedCommitKeepsReceipt:
    @pytest.fixture
    def failing_commit(self, monkeypatch):
        def commit(self):
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(Session, "commit", commit)

    @pytest.mark.parametrize("url", [
        "/api/boxes/box-1",
        "/api/items/item-1",
        "/api/items/item-1/receipt",
    ])
    def test_receipt_file_survives(self, client, stocked_store, settings, failing_commit, url):
        with pytest.raises(SQLAlchemyError):
            client.delete(url)

        assert (settings.receipts_dir / "r1.pdf").read_bytes() == RECEIPT_BYTES
