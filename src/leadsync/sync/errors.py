"""Error taxonomy for the sync engine.

Every error a sync step can raise is sorted into one of three dispositions:
abort the whole pass, retry the step sequence, or skip and carry on.
"""

from enum import Enum


class SyncError(Exception):
    """Base exception for sync operations."""
    pass


class NotAuthenticatedError(SyncError):
    """The caller's session is gone; never retried, never user-facing."""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class SyncPausedError(SyncError):
    """A pause request was observed between steps of an in-flight pass."""

    def __init__(self, message: str = "Sync paused"):
        super().__init__(message)


class NetworkError(SyncError):
    """Transient remote failure."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class DataCorruptionError(SyncError):
    """A record or document failed a store-level invariant."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ErrorDisposition(Enum):
    """What the retry combinator does with a failed step."""
    ABORT = "abort"
    RETRY = "retry"
    SKIP = "skip"


def classify_error(error: BaseException) -> ErrorDisposition:
    """Default classifier used by :class:`~leadsync.sync.retry.RetryableOperation`."""
    if isinstance(error, (NotAuthenticatedError, SyncPausedError)):
        return ErrorDisposition.ABORT
    if isinstance(error, DataCorruptionError):
        return ErrorDisposition.SKIP
    return ErrorDisposition.RETRY


def is_session_loss(error: BaseException) -> bool:
    """True for errors that end a pass quietly in the idle state."""
    return isinstance(error, (NotAuthenticatedError, SyncPausedError))
