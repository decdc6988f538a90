"""Lead record model synchronized between the device store and the remote store."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.datetime import now_utc, ensure_aware, to_iso_string, parse_timestamp


class LeadStatus(Enum):
    """Canonical in-app lead status vocabulary."""
    NOT_CONTACTED = "not_contacted"
    NOT_HOME = "not_home"
    INTERESTED = "interested"
    CONVERTED = "converted"
    NOT_INTERESTED = "not_interested"

    @property
    def display_name(self) -> str:
        return {
            LeadStatus.NOT_CONTACTED: "Not Contacted",
            LeadStatus.NOT_HOME: "Not Home",
            LeadStatus.INTERESTED: "Interested",
            LeadStatus.CONVERTED: "Sold",
            LeadStatus.NOT_INTERESTED: "No Interest",
        }[self]


def is_blank(value: Optional[str]) -> bool:
    """True when a text field is missing or only whitespace."""
    return value is None or not str(value).strip()


def parse_record_id(value: Any) -> Optional[uuid.UUID]:
    """Parse a record identity, returning None when it is not a valid UUID."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


@dataclass
class Record:
    """A customer lead as held in the local store.

    ``updated_at`` is the local modification time: the application bumps it
    on every content edit (see :meth:`touch`). The sync engine only writes it
    when it applies an incoming remote version.
    """

    # Identity
    id: Optional[uuid.UUID] = field(default_factory=uuid.uuid4)

    # Identity-bearing content
    name: Optional[str] = None
    address: Optional[str] = None

    # Contact and location
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: float = 0.0
    longitude: float = 0.0

    # Pipeline
    status: str = LeadStatus.NOT_CONTACTED.value
    notes: Optional[str] = None
    priority: int = 0
    source: Optional[str] = None
    estimated_value: float = 0.0
    tags: Optional[str] = None  # comma separated
    visit_count: int = 0

    # Timestamps
    created_at: datetime = field(default_factory=now_utc)
    updated_at: Optional[datetime] = field(default_factory=now_utc)
    remote_modified_at: Optional[datetime] = None

    # Optional dates (monotonic presence when merging remote data)
    follow_up_date: Optional[datetime] = None
    last_contact_date: Optional[datetime] = None

    # Key of the remote document this record was imported from
    remote_key: Optional[str] = field(default=None, repr=False)

    # Row key in the local store; not part of the record's identity
    store_key: Optional[int] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        self.created_at = ensure_aware(self.created_at)
        self.updated_at = ensure_aware(self.updated_at)
        self.remote_modified_at = ensure_aware(self.remote_modified_at)
        self.follow_up_date = ensure_aware(self.follow_up_date)
        self.last_contact_date = ensure_aware(self.last_contact_date)

    @property
    def lead_status(self) -> LeadStatus:
        """Status as the canonical enum; unknown stored values read as not contacted."""
        try:
            return LeadStatus(self.status)
        except ValueError:
            return LeadStatus.NOT_CONTACTED

    @lead_status.setter
    def lead_status(self, value: LeadStatus):
        self.status = value.value
        self.touch()

    @property
    def display_name(self) -> str:
        if not is_blank(self.name):
            return self.name.strip()
        if not is_blank(self.address):
            return self.address.strip()
        return "Unnamed lead"

    def has_identity_content(self) -> bool:
        """True when name or address carries something usable."""
        return not is_blank(self.name) or not is_blank(self.address)

    def is_corrupt(self) -> bool:
        """A record with no id, or with neither name nor address, is corrupt."""
        return self.id is None or not self.has_identity_content()

    @property
    def document_key(self) -> str:
        """Key addressing this record in the remote collection."""
        return self.remote_key or str(self.id)

    def touch(self):
        """Record a local content edit."""
        self.updated_at = now_utc()

    def set_follow_up_date(self, date: Optional[datetime]):
        self.follow_up_date = ensure_aware(date)
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a dictionary with ISO timestamps."""
        return {
            "id": str(self.id) if self.id else None,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status,
            "notes": self.notes,
            "priority": self.priority,
            "source": self.source,
            "estimated_value": self.estimated_value,
            "tags": self.tags,
            "visit_count": self.visit_count,
            "created_at": to_iso_string(self.created_at),
            "updated_at": to_iso_string(self.updated_at),
            "remote_modified_at": to_iso_string(self.remote_modified_at),
            "follow_up_date": to_iso_string(self.follow_up_date),
            "last_contact_date": to_iso_string(self.last_contact_date),
            "remote_key": self.remote_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        """Create a record from :meth:`to_dict` output."""
        return cls(
            id=parse_record_id(data.get("id")),
            name=data.get("name"),
            address=data.get("address"),
            phone=data.get("phone"),
            email=data.get("email"),
            latitude=data.get("latitude") or 0.0,
            longitude=data.get("longitude") or 0.0,
            status=data.get("status") or LeadStatus.NOT_CONTACTED.value,
            notes=data.get("notes"),
            priority=data.get("priority") or 0,
            source=data.get("source"),
            estimated_value=data.get("estimated_value") or 0.0,
            tags=data.get("tags"),
            visit_count=data.get("visit_count") or 0,
            created_at=parse_timestamp(data.get("created_at")) or now_utc(),
            updated_at=parse_timestamp(data.get("updated_at")),
            remote_modified_at=parse_timestamp(data.get("remote_modified_at")),
            follow_up_date=parse_timestamp(data.get("follow_up_date")),
            last_contact_date=parse_timestamp(data.get("last_contact_date")),
            remote_key=data.get("remote_key"),
        )
