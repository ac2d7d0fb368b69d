"""Tests for search, stats and the activity feed."""
import pytest

from boxmanager.models.box import Box
from boxmanager.models.item import Item
from boxmanager.services.sample_data import SAMPLE_BOXES, SAMPLE_ITEMS, seed_sample_data


def test_api_root(client):
    assert client.get("/api/").json() == {"message": "Box Management API is running"}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_stats(client, stocked_store):
    stats = client.get("/api/stats").json()

    assert stats["total_boxes"] == 1
    assert stats["total_items"] == 1
    assert stats["total_value"] == pytest.approx(129.99)
    assert stats["items_with_receipts"] == 1


@pytest.mark.parametrize("query, boxes, items", [
    ("garage", ["box-1"], []),
    ("drill", [], ["item-1"]),
    ("18v", [], ["item-1"]),
    ("nothing-like-this", [], []),
])
def test_search(client, stocked_store, query, boxes, items):
    body = client.get("/api/search", params={"q": query}).json()

    assert [b["id"] for b in body["boxes"]] == boxes
    assert [i["id"] for i in body["items"]] == items


def test_empty_query_returns_nothing(client, stocked_store):
    assert client.get("/api/search", params={"q": "  "}).json() == {"boxes": [], "items": []}


def test_activity_feed_is_newest_first(client):
    client.post("/api/boxes/", json={"name": "First", "location": "Attic"})
    client.post("/api/boxes/", json={"name": "Second", "location": "Attic"})

    logs = client.get("/api/activity-logs/", params={"limit": 1}).json()
    assert len(logs) == 1
    assert logs[0]["entity_name"] == "Second"
    assert logs[0]["action"] == "create"


def test_seed_only_fills_empty_store(db):
    assert seed_sample_data(db) is True
    assert seed_sample_data(db) is False

    assert db.query(Box).count() == len(SAMPLE_BOXES)
    assert db.query(Item).count() == len(SAMPLE_ITEMS)
