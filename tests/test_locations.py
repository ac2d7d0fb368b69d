"""Tests for location endpoints."""
import pytest


@pytest.fixture
def garage(client):
    response = client.post("/api/locations/", json={"name": "Garage", "description": "Wall shelves"})
    assert response.status_code == 201
    return response.json()


def test_duplicate_name_is_400(client, garage):
    response = client.post("/api/locations/", json={"name": "Garage"})
    assert response.status_code == 400


def test_list_is_sorted_by_name(client, garage):
    client.post("/api/locations/", json={"name": "Attic"})
    names = [loc["name"] for loc in client.get("/api/locations/").json()]
    assert names == ["Attic", "Garage"]


def test_rename_moves_boxes(client, garage, stocked_store):
    response = client.put(f"/api/locations/{garage['id']}", json={"name": "Workshop"})

    assert response.status_code == 200
    assert response.json()["name"] == "Workshop"
    assert client.get("/api/boxes/box-1").json()["location"] == "Workshop"


def test_delete_in_use_is_409(client, garage, stocked_store):
    response = client.delete(f"/api/locations/{garage['id']}")
    assert response.status_code == 409


def test_delete_unused(client, garage):
    assert client.delete(f"/api/locations/{garage['id']}").status_code == 200
    assert client.get(f"/api/locations/{garage['id']}").status_code == 404
