"""Local-first record deletion with best-effort remote propagation."""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from .errors import NotAuthenticatedError
from ..auth import AuthSession
from ..remote.base import LEADS_COLLECTION, RemoteStore
from ..storage.record_store import RecordSession, SQLiteRecordStore


logger = logging.getLogger(__name__)


@dataclass
class DeletionReport:
    local_deleted: int = 0
    remote_deleted: int = 0
    remote_failed: int = 0


class DeletionPropagator:
    """Deletes records locally right away and remotely when possible.

    Local deletion is terminal. Every deleted id is tombstoned so that a
    download already holding the document cannot import it again; the record
    syncer releases a tombstone once a later listing no longer contains it.
    A remote delete that fails is logged and dropped.
    """

    def __init__(self, store: SQLiteRecordStore, remote: RemoteStore, auth: AuthSession,
                 tombstones: Optional[Set[uuid.UUID]] = None):
        self.store = store
        self.remote = remote
        self.auth = auth
        self.tombstones: Set[uuid.UUID] = tombstones if tombstones is not None else set()

    async def delete(self, record_id: uuid.UUID) -> bool:
        """Delete one record.

        Returns:
            True if the remote document was deleted as well
        """
        report = await self.delete_many([record_id])
        return report.remote_deleted == 1

    async def delete_many(self, record_ids: Iterable[uuid.UUID]) -> DeletionReport:
        """Delete a batch; partial remote failure never rolls back local deletes."""
        ids: List[uuid.UUID] = list(record_ids)
        report = DeletionReport()

        keys = self._delete_local(ids)
        report.local_deleted = len(keys)

        results = await asyncio.gather(
            *(self._delete_remote(record_id, keys.get(record_id)) for record_id in ids)
        )
        report.remote_deleted = sum(1 for ok in results if ok)
        report.remote_failed = len(results) - report.remote_deleted
        return report

    def schedule_delete(self, record_ids: Iterable[uuid.UUID]) -> "asyncio.Task[DeletionReport]":
        """Fire-and-forget variant; the local part still happens before this returns."""
        ids = list(record_ids)
        keys = self._delete_local(ids)
        return asyncio.get_running_loop().create_task(self._propagate(ids, keys))

    async def _propagate(self, ids: List[uuid.UUID], keys: Dict[uuid.UUID, str]) -> DeletionReport:
        results = await asyncio.gather(
            *(self._delete_remote(record_id, keys.get(record_id)) for record_id in ids)
        )
        remote_deleted = sum(1 for ok in results if ok)
        return DeletionReport(len(keys), remote_deleted, len(results) - remote_deleted)

    def _delete_local(self, ids: List[uuid.UUID]) -> Dict[uuid.UUID, str]:
        """Tombstone and delete ids locally.

        Returns:
            Remote document key of each record that was deleted
        """
        self.tombstones.update(ids)

        def delete(session: RecordSession) -> Dict[uuid.UUID, str]:
            keys = {}
            for record_id in ids:
                record = session.get(record_id)
                if record is not None and session.delete(record_id):
                    keys[record_id] = record.document_key
            return keys

        keys = self.store.run(delete)
        logger.info(f"Deleted {len(keys)} leads locally")
        return keys

    async def _delete_remote(self, record_id: uuid.UUID, key: Optional[str] = None) -> bool:
        try:
            principal_id = self.auth.principal_id
            if not self.auth.is_authenticated or not principal_id:
                raise NotAuthenticatedError()
            collection = self.remote.collection(principal_id, LEADS_COLLECTION)
            await collection.delete(key or str(record_id))
        except Exception as e:
            logger.error(f"Failed to delete lead {record_id} from remote store: {e}")
            return False

        logger.info(f"Lead {record_id} deleted from remote store")
        return True
