"""Utility helpers for leadsync."""

from .datetime import now_utc, ensure_aware, min_utc, to_iso_string, parse_timestamp

__all__ = ["now_utc", "ensure_aware", "min_utc", "to_iso_string", "parse_timestamp"]
