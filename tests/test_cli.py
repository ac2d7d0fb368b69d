"""Tests for the command line interface."""
import pytest

from boxmanager import cli
from boxmanager.models.activity_log import ActivityLog
from boxmanager.models.box import Box


@pytest.fixture
def cli_env(monkeypatch, settings, store):
    monkeypatch.setattr(cli, "settings", settings)
    monkeypatch.setattr(cli, "store", store)
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    return store


def box_ids(store):
    store.open()
    session = store.session()
    try:
        return sorted(b.id for b in session.query(Box).all())
    finally:
        session.close()


def activity_count(store):
    store.open()
    session = store.session()
    try:
        return session.query(ActivityLog).count()
    finally:
        session.close()


def test_init_seeds_sample_data(cli_env, capsys):
    assert cli.main(["init"]) == 0
    assert "Sample data created." in capsys.readouterr().out
    assert len(box_ids(cli_env)) == 3


def test_init_without_sample_data(cli_env):
    assert cli.main(["init", "--no-sample-data"]) == 0
    assert box_ids(cli_env) == []


def test_backup_then_restore(cli_env, stocked_store, settings, tmp_path, capsys):
    out_dir = tmp_path / "backups"
    out_dir.mkdir()

    assert cli.main(["backup", "-o", str(out_dir)]) == 0
    archives = list(out_dir.glob("box-management-backup-*.zip"))
    assert len(archives) == 1
    assert not list(out_dir.glob("*.part"))
    assert activity_count(cli_env) == 0

    cli_env.open()
    session = cli_env.session()
    try:
        session.query(Box).delete()
        session.commit()
    finally:
        session.close()
    assert box_ids(cli_env) == []

    assert cli.main(["restore", str(archives[0])]) == 0
    assert "Restored 1 boxes, 1 items" in capsys.readouterr().out
    assert box_ids(cli_env) == ["box-1"]
    assert (settings.receipts_dir / "r1.pdf").exists()


def test_restore_missing_file(cli_env, tmp_path, capsys):
    assert cli.main(["restore", str(tmp_path / "absent.zip")]) == 1
    assert "Backup file not found" in capsys.readouterr().err


def test_restore_invalid_archive(cli_env, stocked_store, tmp_path, capsys):
    bogus = tmp_path / "bogus.zip"
    bogus.write_bytes(b"not a zip")

    assert cli.main(["restore", str(bogus)]) == 1
    err = capsys.readouterr().err
    assert "invalid_format" in err
    assert "live data was modified" not in err
    assert box_ids(cli_env) == ["box-1"]
