"""Maps legacy status strings found in remote documents to the in-app vocabulary."""

from typing import Any, Dict

from ..domain.record import LeadStatus


STATUS_SYNONYMS: Dict[str, LeadStatus] = {
    "sold": LeadStatus.CONVERTED,
    "closed": LeadStatus.CONVERTED,
    "close": LeadStatus.CONVERTED,
    "won": LeadStatus.CONVERTED,
    "not_interested": LeadStatus.NOT_INTERESTED,
    "no_interest": LeadStatus.NOT_INTERESTED,
    "lost": LeadStatus.NOT_INTERESTED,
    "not_home": LeadStatus.NOT_HOME,
    "no_answer": LeadStatus.NOT_HOME,
    "interested": LeadStatus.INTERESTED,
    "prospect": LeadStatus.INTERESTED,
    "not_contacted": LeadStatus.NOT_CONTACTED,
    "new": LeadStatus.NOT_CONTACTED,
    "cold": LeadStatus.NOT_CONTACTED,
}

_CANONICAL = {status.value: status for status in LeadStatus}


def normalize_status(raw_status: str) -> str:
    """Return the canonical status value for a raw remote status.

    Matching is case-insensitive. Values that are neither a known synonym nor
    a canonical value come back unchanged, so one odd document never blocks
    the rest of a download.
    """
    key = raw_status.strip().lower()
    if key in STATUS_SYNONYMS:
        return STATUS_SYNONYMS[key].value
    if key in _CANONICAL:
        return _CANONICAL[key].value
    return raw_status


def normalize_remote_status(value: Any) -> str:
    """Normalize a status field straight from a document; missing or empty means not contacted."""
    if not isinstance(value, str) or not value.strip():
        return LeadStatus.NOT_CONTACTED.value
    return normalize_status(value)
