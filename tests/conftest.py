"""Pytest configuration and shared fixtures."""

import sys
import asyncio
import inspect
import uuid
from datetime import timedelta
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from leadsync.auth import StaticAuthSession
from leadsync.domain.record import Record
from leadsync.remote.memory import InMemoryRemoteStore
from leadsync.storage.appointment_store import SQLiteAppointmentStore
from leadsync.storage.record_store import SQLiteRecordStore
from leadsync.sync.appointment_sync import AppointmentSyncer
from leadsync.sync.deletion import DeletionPropagator
from leadsync.sync.orchestrator import SyncOrchestrator
from leadsync.sync.preferences import SyncPreferences
from leadsync.sync.record_sync import RecordSyncer
from leadsync.sync.sweeper import CorruptedRecordSweeper
from leadsync.utils.datetime import now_utc


PRINCIPAL = "user-1"


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute async tests without external plugins."""
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            sig = inspect.signature(testfunction)
            call_kwargs = {name: pyfuncitem.funcargs[name] for name in sig.parameters}
            loop.run_until_complete(testfunction(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


def make_record(name="Jane", address="1 Main St", minutes_ago=0, **kwargs) -> Record:
    """Build a record last modified ``minutes_ago`` minutes in the past."""
    kwargs.setdefault("id", uuid.uuid4())
    return Record(
        name=name,
        address=address,
        updated_at=now_utc() - timedelta(minutes=minutes_ago),
        **kwargs,
    )


@pytest.fixture
def record_store(tmp_path):
    store = SQLiteRecordStore(tmp_path / "leadsync.db")
    yield store
    store.close()


@pytest.fixture
def appointment_store(tmp_path):
    store = SQLiteAppointmentStore(tmp_path / "leadsync.db")
    yield store
    store.close()


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def auth():
    return StaticAuthSession(PRINCIPAL, "token-1")


@pytest.fixture
def orchestrator(tmp_path, record_store, remote, auth):
    """Orchestrator without appointment sync and without retry delays."""
    sweeper = CorruptedRecordSweeper(record_store)
    deletion = DeletionPropagator(record_store, remote, auth)
    return SyncOrchestrator(
        auth=auth,
        record_syncer=RecordSyncer(record_store, remote, sweeper=sweeper,
                                   tombstones=deletion.tombstones),
        sweeper=sweeper,
        deletion=deletion,
        preferences=SyncPreferences(tmp_path),
        max_retries=3,
        retry_delay=0,
    )


@pytest.fixture
def full_orchestrator(tmp_path, record_store, appointment_store, remote, auth):
    """Orchestrator that also syncs appointments."""
    sweeper = CorruptedRecordSweeper(record_store)
    deletion = DeletionPropagator(record_store, remote, auth)
    return SyncOrchestrator(
        auth=auth,
        record_syncer=RecordSyncer(record_store, remote, sweeper=sweeper,
                                   tombstones=deletion.tombstones),
        sweeper=sweeper,
        deletion=deletion,
        preferences=SyncPreferences(tmp_path),
        appointment_syncer=AppointmentSyncer(appointment_store, remote),
        retry_delay=0,
    )
