"""Tests for the leadsync command line."""

import uuid

import pytest
from click.testing import CliRunner

from leadsync.cli import cli
from leadsync.domain.record import Record
from leadsync.storage.record_store import SQLiteRecordStore
from leadsync.sync.preferences import SyncPreferences

from conftest import make_record


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LEADSYNC_PRINCIPAL_ID", "LEADSYNC_API_TOKEN", "LEADSYNC_DATA_DIR",
                 "LEADSYNC_REMOTE_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


def invoke(runner, data_dir, *args):
    return runner.invoke(cli, ["--data-dir", str(data_dir), *args], obj={})


def seed(data_dir, *records):
    store = SQLiteRecordStore(data_dir / "leadsync.db")
    try:
        for record in records:
            store.save(record)
    finally:
        store.close()


def test_status(runner, data_dir):
    seed(data_dir, make_record("Jane"))

    result = invoke(runner, data_dir, "status")

    assert result.exit_code == 0, result.output
    assert "Leads" in result.output
    assert "Not signed in" in result.output


def test_interval_and_auto_sync_persist(runner, data_dir):
    assert invoke(runner, data_dir, "interval", "3hours").exit_code == 0
    assert invoke(runner, data_dir, "auto-sync", "on").exit_code == 0

    preferences = SyncPreferences(data_dir)
    assert preferences.sync_interval.value == "3hours"
    assert preferences.auto_sync_enabled is True


def test_interval_rejects_unknown_preset(runner, data_dir):
    result = invoke(runner, data_dir, "interval", "weekly")

    assert result.exit_code == 2


def test_sync_requires_user(runner, data_dir):
    result = invoke(runner, data_dir, "sync")

    assert result.exit_code == 1
    assert "Not signed in" in result.output


def test_sync_against_in_memory_remote(runner, data_dir):
    seed(data_dir, make_record("Jane"), make_record("Bob"))

    result = runner.invoke(
        cli, ["--data-dir", str(data_dir), "--user", "user-1", "sync", "--no-appointments"], obj={}
    )

    assert result.exit_code == 0, result.output
    assert "Sync successful" in result.output
    assert "Leads uploaded" in result.output


def test_sweep(runner, data_dir):
    seed(data_dir, make_record("Jane"), Record(id=None, name="Broken"))

    result = invoke(runner, data_dir, "sweep")

    assert result.exit_code == 0
    assert "Removed 1 corrupted lead(s)" in result.output


def test_delete(runner, data_dir):
    record = make_record("Jane")
    seed(data_dir, record)

    result = invoke(runner, data_dir, "delete", str(record.id), str(uuid.uuid4()))

    assert result.exit_code == 0, result.output
    assert "Deleted 1 lead(s) locally" in result.output


def test_delete_rejects_bad_id(runner, data_dir):
    result = invoke(runner, data_dir, "delete", "not-an-id")

    assert result.exit_code == 2
