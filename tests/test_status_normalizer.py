"""Tests for remote status normalization."""

import pytest

from leadsync.domain.record import LeadStatus
from leadsync.sync.status_normalizer import normalize_status, normalize_remote_status


class TestNormalizeStatus:

    @pytest.mark.parametrize("raw,expected", [
        ("sold", "converted"),
        ("closed", "converted"),
        ("won", "converted"),
        ("prospect", "interested"),
        ("lost", "not_interested"),
        ("no_answer", "not_home"),
        ("new", "not_contacted"),
    ])
    def test_legacy_synonyms(self, raw, expected):
        assert normalize_status(raw) == expected

    def test_matching_ignores_case_and_whitespace(self):
        assert normalize_status("  SOLD ") == "converted"
        assert normalize_status("Prospect") == "interested"

    def test_canonical_values_are_unchanged(self):
        for status in LeadStatus:
            assert normalize_status(status.value) == status.value

    def test_canonical_value_in_other_case_maps_to_canonical(self):
        assert normalize_status("Not_Home") == "not_home"

    def test_unknown_value_passes_through(self):
        assert normalize_status("callback_tuesday") == "callback_tuesday"


class TestNormalizeRemoteStatus:

    def test_missing_status_reads_as_not_contacted(self):
        assert normalize_remote_status(None) == "not_contacted"
        assert normalize_remote_status("") == "not_contacted"
        assert normalize_remote_status("   ") == "not_contacted"

    def test_non_string_status_reads_as_not_contacted(self):
        assert normalize_remote_status(3) == "not_contacted"

    def test_string_status_is_normalized(self):
        assert normalize_remote_status("sold") == "converted"
