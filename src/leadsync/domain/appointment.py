"""Appointment model, the secondary synchronized collection."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ..utils.datetime import now_utc, ensure_aware


@dataclass
class Appointment:
    """A scheduled visit, optionally linked to a lead."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    title: str = ""
    notes: str = ""
    start_date: datetime = field(default_factory=now_utc)
    end_date: Optional[datetime] = None
    location: str = ""
    lead_id: Optional[uuid.UUID] = None
    appointment_type: str = "Consultation"
    status: str = "scheduled"
    updated_at: Optional[datetime] = field(default_factory=now_utc)

    def __post_init__(self):
        self.start_date = ensure_aware(self.start_date)
        self.end_date = ensure_aware(self.end_date) or self.start_date + timedelta(hours=1)
        self.updated_at = ensure_aware(self.updated_at)

    def touch(self):
        self.updated_at = now_utc()
