"""Data structures shared across the sync engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.datetime import now_utc, to_iso_string


class SyncState(Enum):
    """Orchestrator state machine states."""
    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncStatus:
    """Observable sync status; ``reason`` is only set for failures."""
    state: SyncState = SyncState.IDLE
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "SyncStatus":
        return cls(SyncState.IDLE)

    @classmethod
    def syncing(cls) -> "SyncStatus":
        return cls(SyncState.SYNCING)

    @classmethod
    def completed(cls) -> "SyncStatus":
        return cls(SyncState.COMPLETED)

    @classmethod
    def failed(cls, reason: str) -> "SyncStatus":
        return cls(SyncState.FAILED, reason)

    @property
    def is_syncing(self) -> bool:
        return self.state == SyncState.SYNCING

    def __str__(self) -> str:
        if self.state == SyncState.FAILED:
            return f"failed: {self.reason}"
        return self.state.value


class SyncInterval(Enum):
    """Periodic sync presets; values are the persisted strings."""
    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hour"
    THREE_HOURS = "3hours"
    SIX_HOURS = "6hours"
    ONE_DAY = "1day"

    @property
    def seconds(self) -> int:
        return {
            SyncInterval.THIRTY_MINUTES: 30 * 60,
            SyncInterval.ONE_HOUR: 60 * 60,
            SyncInterval.THREE_HOURS: 3 * 60 * 60,
            SyncInterval.SIX_HOURS: 6 * 60 * 60,
            SyncInterval.ONE_DAY: 24 * 60 * 60,
        }[self]

    @property
    def display_name(self) -> str:
        return {
            SyncInterval.THIRTY_MINUTES: "Every 30 minutes",
            SyncInterval.ONE_HOUR: "Every hour",
            SyncInterval.THREE_HOURS: "Every 3 hours",
            SyncInterval.SIX_HOURS: "Every 6 hours",
            SyncInterval.ONE_DAY: "Once daily",
        }[self]


class ResolveAction(Enum):
    """Conflict resolver verdict for one remote document."""
    CREATE_LOCAL = "create_local"
    OVERWRITE_LOCAL = "overwrite_local"
    SKIP_PRESERVE_LOCAL = "skip_preserve_local"


@dataclass
class DownloadReport:
    """Counts from one download merge."""
    created: int = 0
    updated: int = 0
    skipped: int = 0  # preserved recent local edits
    invalid: int = 0  # documents that could not be imported
    deleted: int = 0  # documents for leads deleted locally

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped + self.invalid + self.deleted


@dataclass
class SyncResult:
    """Outcome of one sync pass."""
    started_at: datetime = field(default_factory=now_utc)
    completed_at: Optional[datetime] = None
    swept: int = 0
    uploaded: int = 0
    download: DownloadReport = field(default_factory=DownloadReport)
    appointments_uploaded: int = 0
    appointments_downloaded: int = 0
    attempts: int = 0
    errors: List[str] = field(default_factory=list)

    def add_error(self, error: str):
        self.errors.append(error)

    def complete(self):
        self.completed_at = now_utc()

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": to_iso_string(self.started_at),
            "completed_at": to_iso_string(self.completed_at),
            "swept": self.swept,
            "uploaded": self.uploaded,
            "created": self.download.created,
            "updated": self.download.updated,
            "skipped": self.download.skipped,
            "invalid": self.download.invalid,
            "deleted": self.download.deleted,
            "appointments_uploaded": self.appointments_uploaded,
            "appointments_downloaded": self.appointments_downloaded,
            "attempts": self.attempts,
            "errors": list(self.errors),
        }


@dataclass
class SyncEvent:
    """Delivered to observers on every status change."""
    status: SyncStatus
    last_sync_date: Optional[datetime] = None
    result: Optional[SyncResult] = None
    timestamp: datetime = field(default_factory=now_utc)
