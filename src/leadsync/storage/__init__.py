"""Local persistence for leadsync."""

from .base import SQLiteStore
from .record_store import SQLiteRecordStore, RecordSession
from .appointment_store import SQLiteAppointmentStore, AppointmentSession

__all__ = [
    "SQLiteStore",
    "SQLiteRecordStore",
    "RecordSession",
    "SQLiteAppointmentStore",
    "AppointmentSession",
]
