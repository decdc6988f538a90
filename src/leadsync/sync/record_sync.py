"""Upload and download of the primary (leads) collection."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from .conflict_resolver import ConflictResolver
from .errors import DataCorruptionError
from .models import DownloadReport, ResolveAction
from .sweeper import CorruptedRecordSweeper
from ..domain.record import Record, is_blank, parse_record_id
from ..remote.base import LEADS_COLLECTION, RemoteDocument, RemoteStore
from ..storage.record_store import RecordSession, SQLiteRecordStore
from ..utils.datetime import now_utc


logger = logging.getLogger(__name__)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def record_to_document(record: Record) -> Dict[str, Any]:
    """Fields merged into the remote document for a record.

    Optional dates are only sent when present so a device that never saw a
    follow-up date does not erase one set elsewhere.
    """
    now = now_utc()
    fields: Dict[str, Any] = {
        "name": record.name or "",
        "address": record.address or "",
        "phone": record.phone or "",
        "email": record.email or "",
        "latitude": record.latitude,
        "longitude": record.longitude,
        "status": record.status or "not_contacted",
        "notes": record.notes or "",
        "dateCreated": record.created_at or now,
        "dateModified": record.updated_at or now,
        "priority": record.priority,
        "source": record.source or "",
        "estimatedValue": record.estimated_value,
        "tags": record.tags or "",
        "visitCount": record.visit_count,
    }
    if record.last_contact_date is not None:
        fields["lastContactDate"] = record.last_contact_date
    if record.follow_up_date is not None:
        fields["followUpDate"] = record.follow_up_date
    return fields


class RecordSyncer:
    """Moves lead records between the local store and the remote collection."""

    def __init__(self, store: SQLiteRecordStore, remote: RemoteStore,
                 resolver: Optional[ConflictResolver] = None,
                 sweeper: Optional[CorruptedRecordSweeper] = None,
                 batch_size: int = 200, upload_concurrency: int = 8,
                 clock: Callable[[], datetime] = now_utc,
                 tombstones: Optional[Set[uuid.UUID]] = None):
        self.store = store
        self.remote = remote
        self.resolver = resolver or ConflictResolver()
        self.sweeper = sweeper or CorruptedRecordSweeper(store)
        self.batch_size = batch_size
        self.upload_concurrency = upload_concurrency
        self.clock = clock
        # Ids deleted locally; shared with the deletion propagator
        self.tombstones: Set[uuid.UUID] = tombstones if tombstones is not None else set()

    async def upload(self, principal_id: str,
                     guard: Optional[Callable[[], None]] = None) -> int:
        """Merge-write every local record to the remote collection.

        Upload iterates the store's current contents and skips tombstoned ids,
        so a record deleted locally is never recreated remotely.

        Returns:
            Number of uploaded records
        """
        records = await self.store.perform(lambda session: session.fetch_all())
        collection = self.remote.collection(principal_id, LEADS_COLLECTION)

        unnamed = sum(1 for record in records if is_blank(record.name))
        logger.info(
            f"Uploading {len(records)} leads: {len(records) - unnamed} contacts, "
            f"{unnamed} visited houses"
        )

        uploadable: List[Record] = []
        for record in records:
            if record.id is None:
                error = DataCorruptionError(f"lead without id: {record.display_name}")
                logger.warning(f"Not uploading {error}")
                continue
            if record.id in self.tombstones:
                continue
            uploadable.append(record)

        semaphore = asyncio.Semaphore(max(1, self.upload_concurrency))

        async def upload_one(record: Record):
            async with semaphore:
                await collection.upsert_merge(record.document_key, record_to_document(record))

        uploaded = 0
        for start in range(0, len(uploadable), self.batch_size):
            if guard is not None:
                guard()
            batch = uploadable[start:start + self.batch_size]
            await asyncio.gather(*(upload_one(record) for record in batch))
            uploaded += len(batch)

        logger.info(f"Upload completed: {uploaded} leads")
        return uploaded

    async def download(self, principal_id: str,
                       guard: Optional[Callable[[], None]] = None) -> DownloadReport:
        """Fetch the remote collection and merge it into the local store.

        The merge runs as one store transaction: sweep first, then resolve
        each document. A document that cannot be imported is counted in
        ``invalid`` and skipped; it never fails the download.
        """
        pending = set(self.tombstones)
        collection = self.remote.collection(principal_id, LEADS_COLLECTION)
        documents = await collection.list_documents()
        logger.info(f"Downloaded {len(documents)} lead documents")

        self._release_tombstones(pending, documents)

        if guard is not None:
            guard()

        now = self.clock()
        report = await self.store.perform(
            lambda session: self.merge_documents(session, documents, now)
        )
        logger.info(
            f"Download completed: {report.created} new leads, {report.updated} updated, "
            f"{report.skipped} kept local, {report.invalid} invalid, {report.deleted} deleted locally"
        )
        return report

    def _release_tombstones(self, pending: Set[uuid.UUID], documents: List[RemoteDocument]):
        """Forget tombstones whose document is gone from a listing taken after the delete."""
        listed = {parse_record_id(document.key) for document in documents}
        released = pending - listed
        if released:
            self.tombstones.difference_update(released)
            logger.debug(f"Released {len(released)} tombstones")

    def merge_documents(self, session: RecordSession, documents: List[RemoteDocument],
                        now: datetime) -> DownloadReport:
        """Apply remote documents to the store inside one transaction."""
        report = DownloadReport()
        self.sweeper.sweep_session(session)

        for document in documents:
            try:
                self._merge_document(session, document, now, report)
            except DataCorruptionError as e:
                report.invalid += 1
                logger.warning(f"Skipping remote document {document.key!r}: {e}")

        return report

    def _merge_document(self, session: RecordSession, document: RemoteDocument,
                        now: datetime, report: DownloadReport):
        record_id = parse_record_id(document.key)
        if record_id is None:
            raise DataCorruptionError("document key is not a valid id")
        if is_blank(_text(document.get("name"))) and is_blank(_text(document.get("address"))):
            raise DataCorruptionError("document has neither name nor address")

        if record_id in self.tombstones:
            logger.info(f"Not importing lead {record_id}: deleted locally")
            report.deleted += 1
            return

        local = session.get(record_id)
        action = self.resolver.resolve(local, document, now)

        if action == ResolveAction.CREATE_LOCAL:
            session.save(self.resolver.materialize(document, now))
            report.created += 1
        elif action == ResolveAction.OVERWRITE_LOCAL:
            session.save(self.resolver.apply_document(local, document, now))
            report.updated += 1
        else:
            logger.info(f"Skipping update for recently modified lead: {local.display_name}")
            report.skipped += 1
