"""Composition root: builds the sync engine once for a process."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .auth import AuthSession, StaticAuthSession
from .config import EngineSettings
from .remote.base import RemoteStore
from .remote.http import HttpRemoteStore
from .remote.memory import InMemoryRemoteStore
from .storage.appointment_store import SQLiteAppointmentStore
from .storage.record_store import SQLiteRecordStore
from .sync.appointment_sync import AppointmentSyncer
from .sync.conflict_resolver import ConflictResolver
from .sync.deletion import DeletionPropagator
from .sync.orchestrator import SyncOrchestrator
from .sync.preferences import SyncPreferences
from .sync.record_sync import RecordSyncer
from .sync.sweeper import CorruptedRecordSweeper


logger = logging.getLogger(__name__)


@dataclass
class SyncEngine:
    """The orchestrator plus the resources it owns."""
    orchestrator: SyncOrchestrator
    records: SQLiteRecordStore
    appointments: SQLiteAppointmentStore
    remote: RemoteStore
    auth: AuthSession

    async def aclose(self):
        await self.orchestrator.aclose()
        await self.remote.aclose()
        self.records.close()
        self.appointments.close()


def create_remote_store(settings: EngineSettings, auth: AuthSession) -> RemoteStore:
    if settings.remote_base_url:
        return HttpRemoteStore(
            settings.remote_base_url,
            auth,
            timeout=settings.remote_timeout_seconds,
            page_size=settings.page_size,
        )
    logger.warning("No remote_base_url configured, using an in-memory remote store")
    return InMemoryRemoteStore()


def create_engine(settings: EngineSettings, auth: Optional[AuthSession] = None,
                  remote: Optional[RemoteStore] = None) -> SyncEngine:
    """Wire stores, remote client and sync components into one engine.

    Args:
        settings: Engine settings
        auth: Auth session; defaults to the principal and token from settings
        remote: Remote store; defaults to one built from settings
    """
    if auth is None:
        auth = StaticAuthSession(settings.principal_id, settings.api_token)
    if remote is None:
        remote = create_remote_store(settings, auth)

    settings.data_path.mkdir(parents=True, exist_ok=True)
    records = SQLiteRecordStore(settings.database_path)
    appointments = SQLiteAppointmentStore(settings.database_path)

    resolver = ConflictResolver(timedelta(seconds=settings.grace_window_seconds))
    sweeper = CorruptedRecordSweeper(records)
    deletion = DeletionPropagator(records, remote, auth)
    record_syncer = RecordSyncer(
        records,
        remote,
        resolver=resolver,
        sweeper=sweeper,
        batch_size=settings.batch_size,
        upload_concurrency=settings.upload_concurrency,
        tombstones=deletion.tombstones,
    )

    orchestrator = SyncOrchestrator(
        auth=auth,
        record_syncer=record_syncer,
        sweeper=sweeper,
        deletion=deletion,
        preferences=SyncPreferences(settings.data_path),
        appointment_syncer=AppointmentSyncer(appointments, remote, resolver=resolver),
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay_seconds,
        include_secondary=settings.include_appointments,
    )
    return SyncEngine(orchestrator, records, appointments, remote, auth)


def create_orchestrator(settings: EngineSettings, auth: Optional[AuthSession] = None,
                        remote: Optional[RemoteStore] = None) -> SyncOrchestrator:
    return create_engine(settings, auth, remote).orchestrator
