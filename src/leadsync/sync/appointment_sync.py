"""Sync of the secondary (appointments) collection.

Same shape as the lead sync: upload everything local, then import remote
appointments, using the lead conflict rule for ones that exist on both sides.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .conflict_resolver import ConflictResolver
from .models import ResolveAction
from ..domain.appointment import Appointment
from ..domain.record import parse_record_id
from ..remote.base import APPOINTMENTS_COLLECTION, RemoteDocument, RemoteStore
from ..storage.appointment_store import AppointmentSession, SQLiteAppointmentStore
from ..utils.datetime import now_utc


logger = logging.getLogger(__name__)


def appointment_to_document(appointment: Appointment) -> Dict[str, Any]:
    return {
        "title": appointment.title,
        "notes": appointment.notes,
        "startDate": appointment.start_date,
        "endDate": appointment.end_date,
        "location": appointment.location,
        "leadId": str(appointment.lead_id) if appointment.lead_id else None,
        "appointmentType": appointment.appointment_type,
        "status": appointment.status,
        "dateModified": appointment.updated_at or now_utc(),
    }


def apply_appointment_document(appointment: Appointment, document: RemoteDocument,
                               now: datetime) -> Appointment:
    data = document.data
    appointment.title = data.get("title") or ""
    appointment.notes = data.get("notes") or ""
    appointment.start_date = document.get_timestamp("startDate") or appointment.start_date
    appointment.end_date = document.get_timestamp("endDate") or appointment.end_date
    appointment.location = data.get("location") or ""
    appointment.lead_id = parse_record_id(data.get("leadId"))
    appointment.appointment_type = data.get("appointmentType") or appointment.appointment_type
    appointment.status = data.get("status") or appointment.status
    appointment.updated_at = document.modified_at or now
    return appointment


class AppointmentSyncer:
    """Moves appointments between the local store and the remote collection."""

    def __init__(self, store: SQLiteAppointmentStore, remote: RemoteStore,
                 resolver: Optional[ConflictResolver] = None,
                 clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.remote = remote
        self.resolver = resolver or ConflictResolver()
        self.clock = clock

    async def sync(self, principal_id: str,
                   guard: Optional[Callable[[], None]] = None) -> Tuple[int, int]:
        """Upload then download appointments.

        Returns:
            Tuple of (uploaded, downloaded) counts
        """
        collection = self.remote.collection(principal_id, APPOINTMENTS_COLLECTION)

        appointments = await self.store.perform(lambda session: session.fetch_all())
        logger.info(f"Syncing {len(appointments)} appointments")
        for appointment in appointments:
            await collection.upsert_merge(str(appointment.id), appointment_to_document(appointment))

        if guard is not None:
            guard()

        documents = await collection.list_documents()
        now = self.clock()
        downloaded = await self.store.perform(
            lambda session: self._merge(session, documents, now)
        )
        logger.info(f"Appointments sync completed: {len(appointments)} uploaded, {downloaded} downloaded")
        return len(appointments), downloaded

    def _merge(self, session: AppointmentSession, documents: List[RemoteDocument],
               now: datetime) -> int:
        changed = 0
        for document in documents:
            appointment_id = parse_record_id(document.key)
            if appointment_id is None or document.get_timestamp("startDate") is None:
                logger.warning(f"Skipping invalid appointment document {document.key!r}")
                continue

            local = session.get(appointment_id)
            action = self.resolver.resolve(local, document, now)
            if action == ResolveAction.CREATE_LOCAL:
                local = Appointment(id=appointment_id)
            elif action == ResolveAction.SKIP_PRESERVE_LOCAL:
                continue
            elif local.updated_at == document.modified_at:
                # Our own upload coming back
                continue

            session.save(apply_appointment_document(local, document, now))
            changed += 1
        return changed
