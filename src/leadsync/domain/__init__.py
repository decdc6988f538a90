"""Domain models for leadsync."""

from .record import Record, LeadStatus, is_blank, parse_record_id
from .appointment import Appointment

__all__ = [
    "Record",
    "LeadStatus",
    "Appointment",
    "is_blank",
    "parse_record_id",
]
