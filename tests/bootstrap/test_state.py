"""Tests for bootstrap state derived from meta rows."""

from bootstrap.schema import META_COMPLETED, META_COMPLETED_AT, META_VERSION
from bootstrap.state import (
    bootstrap_completion_entries,
    get_bootstrap_state,
    meta_entry,
)
from brain import deterministic_id
from shared_types import BootstrapStatus

NOW = "2026-01-15T09:30:00.000Z"


class TestGetBootstrapState:
    def test_not_started(self):
        state = get_bootstrap_state([{"type": "behavior", "text": "x"}])
        assert state.status == BootstrapStatus.NOT_STARTED
        assert state.version is None

    def test_completed(self):
        state = get_bootstrap_state(bootstrap_completion_entries("pa-v1", NOW))
        assert state.status == BootstrapStatus.COMPLETED
        assert state.version == "pa-v1"
        assert state.completed_at == NOW

    def test_string_true_accepted(self):
        entries = [
            meta_entry(META_COMPLETED, "true", NOW),
            meta_entry(META_VERSION, "pa-v2", NOW),
            meta_entry(META_COMPLETED_AT, NOW, NOW),
        ]
        assert get_bootstrap_state(entries).status == BootstrapStatus.COMPLETED

    def test_partial_when_invalid(self):
        entries = [
            meta_entry(META_COMPLETED, True, NOW),
            meta_entry(META_VERSION, "v1", NOW),
            meta_entry(META_COMPLETED_AT, NOW, NOW),
        ]
        assert get_bootstrap_state(entries).status == BootstrapStatus.PARTIAL

    def test_partial_when_only_version(self):
        state = get_bootstrap_state([meta_entry(META_VERSION, "pa-v1", NOW)])
        assert state.status == BootstrapStatus.PARTIAL
        assert state.version == "pa-v1"

    def test_later_rows_win(self):
        entries = [
            *bootstrap_completion_entries("pa-v1", NOW),
            meta_entry(META_COMPLETED, False, NOW),
        ]
        assert get_bootstrap_state(entries).status == BootstrapStatus.PARTIAL


class TestCompletionEntries:
    def test_meta_ids_are_deterministic(self):
        rows = bootstrap_completion_entries("pa-v1", NOW)
        assert [r["key"] for r in rows] == [META_COMPLETED, META_VERSION, META_COMPLETED_AT]
        assert rows[0]["id"] == deterministic_id("meta", META_COMPLETED)
        assert all(r["type"] == "meta" for r in rows)
