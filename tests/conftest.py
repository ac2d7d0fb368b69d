"""Shared fixtures: an isolated data directory, store and API client per test."""
import pytest
from fastapi.testclient import TestClient

from boxmanager.config import Settings, get_settings
from boxmanager.database import StoreHandle, get_store
from boxmanager.main import app
from boxmanager.models.box import Box
from boxmanager.models.item import Item
from boxmanager.routes.backup import get_backup_service
from boxmanager.services.backup import BackupService
from tests.helpers import RECEIPT_BYTES


@pytest.fixture
def settings(tmp_path):
    config = Settings(
        DATA_DIR=tmp_path / "data",
        UPLOAD_DIR=tmp_path / "uploads",
        SEED_SAMPLE_DATA=False,
        LOG_LEVEL="DEBUG",
    )
    config.ensure_directories()
    return config


@pytest.fixture
def store(settings):
    handle = StoreHandle(settings.database_path)
    handle.open()
    handle.ensure_schema()
    yield handle
    handle.close()


@pytest.fixture
def db(store):
    session = store.session()
    yield session
    session.close()


@pytest.fixture
def backup_service(store, settings):
    return BackupService(store, settings)


@pytest.fixture
def client(settings, store, backup_service):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_backup_service] = lambda: backup_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def stocked_store(store, settings):
    """Box "box-1" holding item "item-1" with receipt r1.pdf on disk."""
    session = store.session()
    try:
        session.add(Box(id="box-1", name="Garage Tools", location="Garage", description="Hand tools"))
        session.add(Item(
            id="item-1", box_id="box-1", name="Cordless Drill",
            quantity=1, details="18V", value=129.99, receipt_filename="r1.pdf",
        ))
        session.commit()
    finally:
        session.close()
    (settings.receipts_dir / "r1.pdf").write_bytes(RECEIPT_BYTES)
    return store

