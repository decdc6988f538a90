"""Synchronization engine."""

from .errors import (
    SyncError,
    NotAuthenticatedError,
    SyncPausedError,
    NetworkError,
    DataCorruptionError,
    ErrorDisposition,
    classify_error,
)
from .models import (
    SyncState,
    SyncStatus,
    SyncInterval,
    ResolveAction,
    DownloadReport,
    SyncResult,
    SyncEvent,
)
from .status_normalizer import normalize_status, normalize_remote_status
from .sweeper import CorruptedRecordSweeper
from .conflict_resolver import ConflictResolver
from .retry import RetryableOperation
from .record_sync import RecordSyncer, record_to_document
from .appointment_sync import AppointmentSyncer
from .deletion import DeletionPropagator, DeletionReport
from .preferences import SyncPreferences
from .scheduler import PeriodicSyncTimer
from .events import SyncEventBus
from .orchestrator import SyncOrchestrator

__all__ = [
    "SyncError",
    "NotAuthenticatedError",
    "SyncPausedError",
    "NetworkError",
    "DataCorruptionError",
    "ErrorDisposition",
    "classify_error",
    "SyncState",
    "SyncStatus",
    "SyncInterval",
    "ResolveAction",
    "DownloadReport",
    "SyncResult",
    "SyncEvent",
    "normalize_status",
    "normalize_remote_status",
    "CorruptedRecordSweeper",
    "ConflictResolver",
    "RetryableOperation",
    "RecordSyncer",
    "record_to_document",
    "AppointmentSyncer",
    "DeletionPropagator",
    "DeletionReport",
    "SyncPreferences",
    "PeriodicSyncTimer",
    "SyncEventBus",
    "SyncOrchestrator",
]
