"""UTC datetime helpers for the sync engine.

Every timestamp the engine compares (local modification time, remote
``dateModified``, follow-up dates) goes through these helpers so that naive
and aware values never meet in a comparison.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime; aware values and None pass through."""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def min_utc() -> datetime:
    """The distant past, used when a record or document has no timestamp."""
    return datetime.min.replace(tzinfo=timezone.utc)


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 text for storage and the wire; None stays None."""
    if dt is None:
        return None
    return ensure_aware(dt).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp as it may appear in a stored row or a remote document.

    Accepts datetimes, ISO-8601 strings (a trailing ``Z`` is understood) and
    epoch seconds. Anything else, including ``None`` and booleans, yields
    ``None`` so callers can treat "unparseable" exactly like "absent".

    Args:
        value: Raw value

    Returns:
        Timezone-aware datetime in UTC, or None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return ensure_aware(value)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_aware(datetime.fromisoformat(text))
        except ValueError:
            return None

    return None
