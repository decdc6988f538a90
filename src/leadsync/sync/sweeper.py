"""Removes local records that fail the minimal identity/content invariants."""

import logging

from ..storage.record_store import RecordSession, SQLiteRecordStore


logger = logging.getLogger(__name__)


class CorruptedRecordSweeper:
    """Deletes records with no valid id, or with neither a name nor an address.

    Local only; the remote store is never contacted. Idempotent: the sync pass
    runs it before upload and again before the download merge.
    """

    def __init__(self, store: SQLiteRecordStore):
        self.store = store

    async def sweep(self) -> int:
        """Sweep inside the store's serialized context.

        Returns:
            Number of removed records
        """
        return await self.store.perform(self.sweep_session)

    def sweep_session(self, session: RecordSession) -> int:
        """Sweep within an already open store transaction."""
        removed = 0

        for record in session.fetch_all():
            if not record.is_corrupt():
                continue

            if record.id is None:
                logger.info(f"Removing lead with no id: {record.display_name}")
            else:
                logger.info(
                    f"Removing lead with no name or address (id: {record.id})"
                )

            if session.delete_key(record.store_key):
                removed += 1

        if removed:
            logger.info(f"Cleaned up {removed} corrupted leads")
        else:
            logger.debug("No corrupted leads found")
        return removed
