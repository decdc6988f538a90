"""Decides how an incoming remote document meets the local store.

This is whole-record last-writer-wins with a grace window for recent local
edits, not a field-level merge. A local edit made within the window is kept
even against a newer-looking remote snapshot only when the remote copy is not
strictly newer; two devices editing different fields of the same lead inside
the window still lose the loser's fields entirely.

The one field-level rule is monotonic presence for optional dates: a remote
document that lacks ``followUpDate`` or ``lastContactDate`` never clears the
local value, whichever side wins.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

from .models import ResolveAction
from .status_normalizer import normalize_remote_status
from ..domain.record import Record, parse_record_id
from ..remote.base import RemoteDocument
from ..utils.datetime import now_utc, min_utc


logger = logging.getLogger(__name__)


DEFAULT_GRACE_WINDOW = timedelta(minutes=5)

# Remote field -> record attribute for dates that follow monotonic presence
OPTIONAL_DATE_FIELDS = {
    "followUpDate": "follow_up_date",
    "lastContactDate": "last_contact_date",
}


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class ConflictResolver:
    """Per-record arbitration between a local record and a remote document."""

    def __init__(self, grace_window: timedelta = DEFAULT_GRACE_WINDOW):
        self.grace_window = grace_window

    def resolve(self, local: Optional[Any], remote: RemoteDocument,
                now: Optional[datetime] = None) -> ResolveAction:
        """Pick the action for one remote document.

        Args:
            local: Local object with the same id (anything with ``updated_at``), or None
            remote: Incoming remote document
            now: Reference time, defaults to the current UTC time

        Returns:
            The resolve action
        """
        if local is None:
            return ResolveAction.CREATE_LOCAL

        now = now or now_utc()
        grace_deadline = now - self.grace_window
        remote_modified = remote.modified_at or min_utc()
        local_modified = getattr(local, "updated_at", None) or min_utc()

        if remote_modified > local_modified or local_modified < grace_deadline:
            return ResolveAction.OVERWRITE_LOCAL
        return ResolveAction.SKIP_PRESERVE_LOCAL

    def materialize(self, document: RemoteDocument, now: Optional[datetime] = None) -> Record:
        """Build a new local record from a remote document.

        The document key becomes the record id; a fresh id is generated only
        when the key is not a valid identity, so the content is never dropped.
        """
        record_id = parse_record_id(document.key)
        if record_id is None:
            record_id = uuid.uuid4()
            logger.warning(f"Document key {document.key!r} is not a valid id, assigned {record_id}")

        record = Record(id=record_id, updated_at=None)
        return self.apply_document(record, document, now=now)

    def apply_document(self, record: Record, document: RemoteDocument,
                       now: Optional[datetime] = None) -> Record:
        """Overwrite the record's content with the remote version."""
        now = now or now_utc()
        data = document.data
        modified = document.modified_at

        record.name = _as_text(data.get("name"))
        record.address = _as_text(data.get("address"))
        record.phone = _as_text(data.get("phone"))
        record.email = _as_text(data.get("email"))
        record.latitude = _as_float(data.get("latitude"))
        record.longitude = _as_float(data.get("longitude"))
        record.status = normalize_remote_status(data.get("status"))
        record.notes = _as_text(data.get("notes"))
        record.priority = _as_int(data.get("priority"))
        record.source = _as_text(data.get("source"))
        record.estimated_value = _as_float(data.get("estimatedValue"))
        record.tags = _as_text(data.get("tags"))
        record.visit_count = _as_int(data.get("visitCount"))

        record.created_at = document.get_timestamp("dateCreated") or now
        record.updated_at = modified or now
        record.remote_modified_at = modified
        if parse_record_id(document.key) == record.id:
            record.remote_key = document.key

        for remote_field, attribute in OPTIONAL_DATE_FIELDS.items():
            value = document.get_timestamp(remote_field)
            if value is not None:
                setattr(record, attribute, value)

        return record
