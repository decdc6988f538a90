"""Tests for local-first deletion."""

import uuid
from datetime import timedelta

import pytest

from leadsync.remote.base import LEADS_COLLECTION
from leadsync.remote.memory import InMemoryRemoteCollection
from leadsync.sync.deletion import DeletionPropagator
from leadsync.sync.errors import NetworkError
from leadsync.utils.datetime import now_utc

from conftest import PRINCIPAL, make_record


@pytest.fixture
def propagator(record_store, remote, auth):
    return DeletionPropagator(record_store, remote, auth)


def seed_synced(record_store, remote, name="Jane"):
    record = record_store.save(make_record(name))
    remote.put(PRINCIPAL, LEADS_COLLECTION, str(record.id), {"name": name})
    return record


@pytest.mark.asyncio
class TestDeletionPropagator:

    async def test_delete_removes_both_copies(self, propagator, record_store, remote):
        record = seed_synced(record_store, remote)

        assert await propagator.delete(record.id) is True
        assert record_store.get(record.id) is None
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == []

    async def test_local_delete_survives_remote_failure(self, propagator, record_store, remote):
        record = seed_synced(record_store, remote)
        remote.queue_error("delete", NetworkError("offline"))

        assert await propagator.delete(record.id) is False
        assert record_store.get(record.id) is None
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == [str(record.id)]

    async def test_signed_out_delete_is_local_only(self, propagator, auth, record_store, remote):
        record = seed_synced(record_store, remote)
        auth.sign_out()

        assert await propagator.delete(record.id) is False
        assert record_store.count() == 0
        assert remote.calls == []

    async def test_delete_many_reports_partial_failure(self, propagator, record_store, remote):
        records = [seed_synced(record_store, remote, f"Lead {i}") for i in range(3)]
        remote.queue_error("delete", NetworkError("flaky"))

        report = await propagator.delete_many([r.id for r in records])

        assert report.local_deleted == 3
        assert report.remote_deleted == 2
        assert report.remote_failed == 1
        assert record_store.count() == 0

    async def test_delete_uses_remote_key(self, propagator, record_store, remote):
        record = make_record("Jane")
        record.remote_key = str(record.id).upper()
        record_store.save(record)
        remote.put(PRINCIPAL, LEADS_COLLECTION, record.remote_key, {"name": "Jane"})

        assert await propagator.delete(record.id) is True
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == []

    async def test_deleted_ids_are_tombstoned(self, propagator, record_store, remote):
        record = seed_synced(record_store, remote)

        task = propagator.schedule_delete([record.id])

        assert record.id in propagator.tombstones
        await task

    async def test_deleting_unknown_id(self, propagator):
        report = await propagator.delete_many([uuid.uuid4()])

        assert report.local_deleted == 0
        assert report.remote_deleted == 1

    async def test_schedule_delete_is_local_before_returning(self, propagator, record_store, remote):
        record = seed_synced(record_store, remote)

        task = propagator.schedule_delete([record.id])
        assert record_store.get(record.id) is None

        report = await task
        assert report.remote_deleted == 1

    async def test_deleted_record_not_resurrected_by_sync(self, orchestrator, record_store, remote):
        record = seed_synced(record_store, remote)
        remote.queue_error("delete", NetworkError("offline"))
        await orchestrator.delete_record(record.id)

        await orchestrator.start_sync()

        uploaded_keys = [key for operation, _, key in remote.calls if operation == "upsert"]
        assert str(record.id) not in uploaded_keys
        assert record_store.get(record.id) is None

    async def test_uppercase_remote_key_round_trip(self, orchestrator, record_store, remote):
        record_id = uuid.uuid4()
        key = str(record_id).upper()
        remote.put(PRINCIPAL, LEADS_COLLECTION, key, {
            "name": "Jane", "dateModified": now_utc() - timedelta(hours=1),
        })

        await orchestrator.start_sync()
        await orchestrator.start_sync()
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == [key]

        assert await orchestrator.delete_record(record_id) is True
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == []

        await orchestrator.start_sync()
        assert record_store.count() == 0

    async def test_delete_while_pass_holds_listing(self, orchestrator, record_store, remote,
                                                   monkeypatch):
        record = seed_synced(record_store, remote)
        list_documents = InMemoryRemoteCollection.list_documents
        deleted = []

        async def list_then_delete(collection):
            documents = await list_documents(collection)
            if not deleted:
                deleted.append(await orchestrator.delete_record(record.id))
            return documents

        monkeypatch.setattr(InMemoryRemoteCollection, "list_documents", list_then_delete)

        result = await orchestrator.start_sync()

        assert deleted == [True]
        assert result.download.deleted == 1
        assert record_store.get(record.id) is None
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == []

        await orchestrator.start_sync()

        assert record_store.count() == 0
        assert remote.keys(PRINCIPAL, LEADS_COLLECTION) == []
        assert record.id not in orchestrator.deletion.tombstones
