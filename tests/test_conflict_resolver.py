"""Tests for the whole-record conflict resolver."""

import uuid
from datetime import timedelta

import pytest

from leadsync.remote.base import RemoteDocument
from leadsync.sync.conflict_resolver import ConflictResolver
from leadsync.sync.models import ResolveAction
from leadsync.utils.datetime import now_utc

from conftest import make_record


@pytest.fixture
def resolver():
    return ConflictResolver()


def document(key, minutes_ago=None, **fields):
    data = dict(fields)
    if minutes_ago is not None:
        data["dateModified"] = now_utc() - timedelta(minutes=minutes_ago)
    return RemoteDocument(key=str(key), data=data)


class TestResolve:

    def test_missing_local_creates(self, resolver):
        assert resolver.resolve(None, document(uuid.uuid4(), name="Jane")) == ResolveAction.CREATE_LOCAL

    def test_stale_local_and_newer_remote_overwrites(self, resolver):
        local = make_record(minutes_ago=10)
        remote = document(local.id, minutes_ago=1, name="Remote")

        assert resolver.resolve(local, remote) == ResolveAction.OVERWRITE_LOCAL

    def test_recent_local_and_older_remote_is_kept(self, resolver):
        local = make_record(minutes_ago=1)
        remote = document(local.id, minutes_ago=60, name="Remote")

        assert resolver.resolve(local, remote) == ResolveAction.SKIP_PRESERVE_LOCAL

    def test_recent_local_and_equal_remote_is_kept(self, resolver):
        local = make_record(minutes_ago=1)
        remote = RemoteDocument(key=str(local.id), data={"dateModified": local.updated_at})

        assert resolver.resolve(local, remote) == ResolveAction.SKIP_PRESERVE_LOCAL

    def test_recent_local_loses_to_strictly_newer_remote(self, resolver):
        local = make_record(minutes_ago=2)
        remote = document(local.id, minutes_ago=1)

        assert resolver.resolve(local, remote) == ResolveAction.OVERWRITE_LOCAL

    def test_stale_local_loses_even_to_older_remote(self, resolver):
        local = make_record(minutes_ago=30)
        remote = document(local.id, minutes_ago=60)

        assert resolver.resolve(local, remote) == ResolveAction.OVERWRITE_LOCAL

    def test_remote_without_timestamp_reads_as_distant_past(self, resolver):
        local = make_record(minutes_ago=1)

        assert resolver.resolve(local, document(local.id)) == ResolveAction.SKIP_PRESERVE_LOCAL

    def test_grace_window_is_configurable(self):
        local = make_record(minutes_ago=3)
        remote = document(local.id, minutes_ago=60)

        assert ConflictResolver(timedelta(minutes=1)).resolve(local, remote) == ResolveAction.OVERWRITE_LOCAL


class TestApplyDocument:

    def test_overwrites_content_and_normalizes_status(self, resolver):
        local = make_record(minutes_ago=30, notes="old notes")
        remote = document(local.id, minutes_ago=1, name="Jane Remote", status="sold", visitCount=3)

        record = resolver.apply_document(local, remote)

        assert record.name == "Jane Remote"
        assert record.status == "converted"
        assert record.visit_count == 3
        assert record.notes is None
        assert record.updated_at == remote.modified_at
        assert record.remote_modified_at == remote.modified_at

    def test_absent_optional_dates_are_preserved(self, resolver):
        follow_up = now_utc() + timedelta(days=2)
        contacted = now_utc() - timedelta(days=1)
        local = make_record(minutes_ago=30, follow_up_date=follow_up, last_contact_date=contacted)
        remote = document(local.id, minutes_ago=1, name="Jane", followUpDate=None)

        record = resolver.apply_document(local, remote)

        assert record.follow_up_date == follow_up
        assert record.last_contact_date == contacted

    def test_present_optional_dates_are_taken(self, resolver):
        local = make_record(minutes_ago=30, follow_up_date=now_utc())
        remote = document(local.id, minutes_ago=1, followUpDate="2030-01-02T03:04:05Z")

        record = resolver.apply_document(local, remote)

        assert record.follow_up_date.year == 2030
        assert record.follow_up_date.tzinfo is not None

    def test_bad_numeric_fields_fall_back_to_zero(self, resolver):
        local = make_record(minutes_ago=30)
        remote = document(local.id, latitude="north", priority=True, estimatedValue="1200.5")

        record = resolver.apply_document(local, remote)

        assert record.latitude == 0.0
        assert record.priority == 0
        assert record.estimated_value == 1200.5


class TestMaterialize:

    def test_document_key_becomes_record_id(self, resolver):
        key = uuid.uuid4()
        record = resolver.materialize(document(key, minutes_ago=5, name="Jane", status="prospect"))

        assert record.id == key
        assert record.status == "interested"

    def test_invalid_key_gets_fresh_id(self, resolver):
        record = resolver.materialize(document("not-a-uuid", name="Jane"))

        assert isinstance(record.id, uuid.UUID)
        assert record.name == "Jane"

    def test_document_key_kept_verbatim(self, resolver):
        key = uuid.uuid4()
        record = resolver.materialize(document(str(key).upper(), name="Jane"))

        assert record.id == key
        assert record.remote_key == str(key).upper()
        assert record.document_key == str(key).upper()

    def test_invalid_key_is_not_kept(self, resolver):
        record = resolver.materialize(document("not-a-uuid", name="Jane"))

        assert record.remote_key is None
        assert record.document_key == str(record.id)
