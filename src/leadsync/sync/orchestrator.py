"""Sync orchestrator: status, lifecycle and the periodic timer.

State machine::

    IDLE -> SYNCING -> COMPLETED | FAILED(reason) -> (next start) SYNCING

A pass runs sweep -> upload -> download -> appointments through the retry
combinator. Only one pass runs at a time: a ``start_sync()`` that arrives
while a pass is in flight joins that pass instead of starting another.
"""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from .appointment_sync import AppointmentSyncer
from .deletion import DeletionPropagator, DeletionReport
from .errors import NotAuthenticatedError, SyncPausedError, is_session_loss
from .events import SyncEventBus, SyncListener
from .models import SyncEvent, SyncInterval, SyncResult, SyncStatus
from .preferences import SyncPreferences
from .record_sync import RecordSyncer
from .retry import RetryableOperation, Step
from .scheduler import PeriodicSyncTimer
from .sweeper import CorruptedRecordSweeper
from ..auth import AuthSession
from ..utils.datetime import now_utc


logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Owns sync status and drives sync passes.

    Construct one per process (see :func:`leadsync.engine.create_orchestrator`)
    and hand it to whatever needs to trigger or observe sync.
    """

    def __init__(self, auth: AuthSession, record_syncer: RecordSyncer,
                 sweeper: CorruptedRecordSweeper, deletion: DeletionPropagator,
                 preferences: SyncPreferences,
                 appointment_syncer: Optional[AppointmentSyncer] = None,
                 max_retries: int = 3, retry_delay: float = 2.0,
                 include_secondary: bool = True,
                 clock: Callable[[], datetime] = now_utc):
        self.auth = auth
        self.record_syncer = record_syncer
        self.sweeper = sweeper
        self.deletion = deletion
        self.preferences = preferences
        self.appointment_syncer = appointment_syncer
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.include_secondary = include_secondary
        self.clock = clock

        self.events = SyncEventBus()
        self.last_sync_date: Optional[datetime] = None
        self.last_result: Optional[SyncResult] = None

        self._status = SyncStatus.idle()
        self._task: Optional[asyncio.Task] = None
        self._paused = False
        self._started = False
        self._timer = PeriodicSyncTimer(self._on_timer_tick, preferences.sync_interval.seconds)

    # Observable state

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def is_syncing(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_auto_sync_enabled(self) -> bool:
        return self.preferences.auto_sync_enabled

    @property
    def sync_interval(self) -> SyncInterval:
        return self.preferences.sync_interval

    @property
    def is_timer_running(self) -> bool:
        return self._timer.is_running

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Observe status changes; returns an unsubscribe callable."""
        return self.events.subscribe(listener)

    def _set_status(self, status: SyncStatus, result: Optional[SyncResult] = None):
        self._status = status
        self.events.emit(SyncEvent(status=status, last_sync_date=self.last_sync_date, result=result))

    # Lifecycle

    def start(self):
        """Arm the periodic timer from persisted preferences; needs a running loop."""
        self._started = True
        if self.preferences.auto_sync_enabled:
            self._timer.restart(self.preferences.sync_interval.seconds)

    async def aclose(self):
        """Stop the timer and wait for an in-flight pass to finish."""
        self._started = False
        self._timer.stop()
        if self.is_syncing:
            await self._task

    # Sync control

    def start_sync(self, include_secondary: Optional[bool] = None) -> Optional["asyncio.Task[SyncResult]"]:
        """Start a sync pass, or join the one in flight.

        Must be called with a running event loop.

        Returns:
            The task running the pass, or None if nobody is signed in
        """
        if not self.auth.is_authenticated:
            # Only move to idle if something was going on; a cold start before
            # sign-in keeps whatever status it had.
            if self._status.is_syncing or self.last_sync_date is not None:
                self._set_status(SyncStatus.idle())
            logger.info("Sync skipped: user not authenticated")
            return None

        if self.is_syncing:
            if self._paused:
                self._paused = False
                self._set_status(SyncStatus.syncing())
            logger.debug("Sync already in progress, joining the running pass")
            return self._task

        if include_secondary is None:
            include_secondary = self.include_secondary

        self._paused = False
        self._set_status(SyncStatus.syncing())
        logger.info(f"Starting sync for user: {self.auth.principal_id}")
        self._task = asyncio.get_running_loop().create_task(self._perform_sync(include_secondary))
        return self._task

    def pause_sync(self):
        """Force idle; an in-flight pass stops at its next step boundary."""
        if self.is_syncing:
            self._paused = True
        self._set_status(SyncStatus.idle())

    def resume_sync(self) -> Optional["asyncio.Task[SyncResult]"]:
        self._paused = False
        if self.preferences.auto_sync_enabled:
            return self.start_sync()
        return None

    def sync_before_teardown(self) -> Optional["asyncio.Task[SyncResult]"]:
        """Best-effort sync before the session goes away (e.g. sign-out).

        Fire-and-forget: nothing guarantees the pass finishes before teardown.
        """
        if not self.auth.is_authenticated:
            logger.info("Skipping pre-teardown sync: user not authenticated")
            return None
        logger.info("Performing sync before sign out")
        return self.start_sync()

    async def wait_for_sync(self) -> Optional[SyncResult]:
        """Wait for the in-flight pass, if any."""
        if self._task is None:
            return None
        return await self._task

    # Preferences and timer

    def toggle_auto_sync(self, enabled: bool):
        self.preferences.auto_sync_enabled = enabled
        self.preferences.save()

        if enabled:
            self._arm_timer()
        else:
            self._timer.stop()
        logger.info(f"Auto-sync {'enabled' if enabled else 'disabled'}")

    def set_sync_interval(self, interval: SyncInterval):
        self.preferences.sync_interval = interval
        self.preferences.save()
        self._timer.interval = interval.seconds

        if self.preferences.auto_sync_enabled:
            self._arm_timer()
        logger.info(f"Sync interval updated to: {interval.display_name}")

    def clear_sync_state(self):
        """Reset everything sync-related, e.g. after sign-out."""
        self._timer.stop()
        if self.is_syncing:
            self._paused = True
        self.last_sync_date = None
        self.last_result = None
        self.preferences.auto_sync_enabled = False
        self.preferences.save()
        self._set_status(SyncStatus.idle())
        logger.info("Sync manager state cleared")

    def _arm_timer(self):
        if self._started:
            self._timer.restart(self.preferences.sync_interval.seconds)

    def _on_timer_tick(self):
        if not self.auth.is_authenticated:
            logger.info("Skipping scheduled sync: user not authenticated")
            return
        logger.info(f"Performing scheduled sync ({self.sync_interval.display_name})")
        self.start_sync()

    # Deletion

    async def delete_record(self, record_id: uuid.UUID) -> bool:
        """Delete locally now and remotely best-effort.

        Returns:
            True if the remote delete succeeded too
        """
        return await self.deletion.delete(record_id)

    async def delete_records(self, record_ids: Iterable[uuid.UUID]) -> DeletionReport:
        return await self.deletion.delete_many(record_ids)

    # The pass itself

    def _check_active(self):
        if self._paused:
            raise SyncPausedError()
        if not self.auth.is_authenticated:
            raise NotAuthenticatedError()

    def _require_principal(self) -> str:
        self._check_active()
        principal_id = self.auth.principal_id
        if not principal_id:
            raise NotAuthenticatedError("No current user available")
        return principal_id

    def _build_steps(self, result: SyncResult, include_secondary: bool) -> List[Step]:
        async def sweep_corrupted():
            result.swept = await self.sweeper.sweep()

        async def upload_records():
            result.uploaded = await self.record_syncer.upload(
                self._require_principal(), guard=self._check_active
            )

        async def download_records():
            result.download = await self.record_syncer.download(
                self._require_principal(), guard=self._check_active
            )

        async def sync_appointments():
            uploaded, downloaded = await self.appointment_syncer.sync(
                self._require_principal(), guard=self._check_active
            )
            result.appointments_uploaded = uploaded
            result.appointments_downloaded = downloaded

        steps: List[Step] = [sweep_corrupted, upload_records, download_records]
        if include_secondary and self.appointment_syncer is not None:
            steps.append(sync_appointments)
        else:
            logger.debug("Skipping appointment sync")
        return steps

    async def _perform_sync(self, include_secondary: bool) -> SyncResult:
        result = SyncResult()
        operation = RetryableOperation(self.max_retries, self.retry_delay)

        def on_error(error: BaseException, attempt: int):
            result.add_error(f"attempt {attempt}: {error}")
            logger.warning(f"Sync attempt {attempt} failed: {error}")

        try:
            await operation.execute(
                self._build_steps(result, include_secondary),
                on_error=on_error,
                guard=self._check_active,
            )
        except Exception as e:
            result.attempts = operation.attempts
            result.complete()
            self.last_result = result
            if is_session_loss(e):
                logger.info(f"Sync stopped due to authentication change: {e}")
                self._paused = False
                self._set_status(SyncStatus.idle(), result)
            elif self._paused:
                logger.info(f"Sync failed after a pause request; staying idle: {e}")
                self._paused = False
                self._set_status(SyncStatus.idle(), result)
            else:
                logger.error(f"Data sync failed: {e}")
                self._set_status(SyncStatus.failed(str(e)), result)
            return result

        result.attempts = operation.attempts
        result.complete()
        self.last_result = result

        if self._paused:
            logger.info("Sync finished after a pause request; staying idle")
            self._paused = False
            return result

        self.last_sync_date = self.clock()
        self._set_status(SyncStatus.completed(), result)
        logger.info("Data sync completed successfully")
        return result
