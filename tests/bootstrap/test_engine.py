"""Tests for plan_profile / apply_profile_plan against the built-in packs."""

import pytest

from bootstrap.engine import (
    apply_profile_plan,
    build_desired_entries,
    ensure_persistable_entry,
    normalize_current_entries,
    plan_profile,
)
from bootstrap.hashing import compute_entry_content_hash
from bootstrap.models import MergeAction, MergePlan, MergePlanAction
from bootstrap.profile_pack import PERSONAL_ASSISTANT_ID, UnknownProfilePackError
from brain import deterministic_id

NOW = "2026-01-15T09:30:00.000Z"
LATER = "2026-02-01T12:00:00.000Z"
BEHAVIOR_KEY = "behavior:do:ask-before-risky-external-actions"


def _install(version="pa-v1", now=NOW):
    """Raw rows after a first apply of a pack onto an empty log."""
    planned = plan_profile([], PERSONAL_ASSISTANT_ID, version, mode="run")
    return apply_profile_plan([], planned.plan, now).next_raw_entries


def _non_noop(plan):
    return {(a.managed_key, a.action) for a in plan.actions if a.action != MergeAction.NOOP}


class TestBuildDesiredEntries:
    def test_stamps_bookkeeping(self):
        entries = build_desired_entries(PERSONAL_ASSISTANT_ID, "pa-v1")
        assert len(entries) == 3
        for e in entries:
            assert e["managed"] is True
            assert e["source"] == "profile:personal-assistant"
            assert e["sourceVersion"] == "pa-v1"
            assert e["managedLastSeenVersion"] == "pa-v1"
            assert e["contentHash"] == e["managedBaselineHash"] == compute_entry_content_hash(e)

    def test_unknown_pack_raises(self):
        with pytest.raises(UnknownProfilePackError):
            build_desired_entries(PERSONAL_ASSISTANT_ID, "pa-v99")


class TestPlanProfile:
    def test_first_run_adds_everything(self):
        result = plan_profile([], PERSONAL_ASSISTANT_ID, "pa-v1", mode="run")
        assert result.plan.counts == {"ADD": 3}
        assert result.current_entries == []
        assert len(result.desired_entries) == 3

    def test_current_is_folded(self):
        rows = _install()
        duplicated = rows + [dict(r) for r in rows]
        result = plan_profile(duplicated, PERSONAL_ASSISTANT_ID, "pa-v1")
        assert len(result.current_entries) == 3
        assert result.plan.counts == {"NOOP": 3}

    def test_unknown_version_raises(self):
        with pytest.raises(UnknownProfilePackError) as exc:
            plan_profile([], PERSONAL_ASSISTANT_ID, "pa-v404")
        assert exc.value.version == "pa-v404"


class TestApply:
    def test_new_key_in_upgrade(self):
        current = _install("pa-v1")
        planned = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")
        assert planned.plan.by_key()["context:proactiveCadence"].action == MergeAction.ADD

        applied = apply_profile_plan(current, planned.plan, LATER)

        added = [r for r in applied.next_raw_entries if r.get("managedKey") == "context:proactiveCadence"]
        assert len(added) == 1
        assert added[0]["id"] == deterministic_id("context", "managed:context:proactiveCadence")
        assert added[0]["contentHash"] == added[0]["managedBaselineHash"]
        assert added[0]["created"] == LATER

    def test_upgrade_updates_unedited_behavior(self):
        current = _install("pa-v1")
        planned = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")
        action = planned.plan.by_key()[BEHAVIOR_KEY]
        assert action.action == MergeAction.UPDATE
        assert action.reason == "version-delta"
        assert planned.plan.counts == {"NOOP": 2, "UPDATE": 1, "ADD": 1}

    def test_upgrade_skips_user_edited_and_leaves_row_alone(self):
        current = _install("pa-v1")
        edited = next(r for r in current if r["managedKey"] == BEHAVIOR_KEY)
        edited["text"] = "Never take external actions"
        edited["contentHash"] = "user-edited"
        edited["managedBaselineHash"] = "seed"

        planned = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")
        assert planned.plan.by_key()[BEHAVIOR_KEY].action == MergeAction.SKIP_USER_EDITED

        applied = apply_profile_plan(current, planned.plan, LATER)
        rows = [r for r in applied.next_raw_entries if r.get("managedKey") == BEHAVIOR_KEY]
        assert rows == [edited]

    def test_input_not_mutated(self):
        current = _install("pa-v1")
        snapshot = [dict(r) for r in current]
        planned = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")
        applied = apply_profile_plan(current, planned.plan, LATER)
        assert current == snapshot
        assert len(applied.next_raw_entries) == len(current) + 2

    def test_deprecate_is_advisory(self):
        current = _install("pa-v2")
        planned = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v1", mode="upgrade")
        action = planned.plan.by_key()["context:proactiveCadence"]
        assert action.action == MergeAction.DEPRECATE

        applied = apply_profile_plan(current, planned.plan, LATER)
        assert any(r.get("managedKey") == "context:proactiveCadence" for r in applied.next_raw_entries)
        assert applied.applied_counts["DEPRECATE"] == 1

    def test_add_without_desired_is_skipped(self):
        plan = MergePlan()
        plan.add(MergePlanAction(managed_key="context:x", action=MergeAction.ADD))
        applied = apply_profile_plan([], plan, NOW)
        assert applied.next_raw_entries == []
        assert applied.applied_actions == []
        assert applied.applied_counts == {}

    def test_other_actions_pass_through(self):
        plan = MergePlan()
        plan.add(MergePlanAction(managed_key="a", action=MergeAction.NOOP))
        plan.add(MergePlanAction(managed_key="b", action=MergeAction.SKIP_CONFLICT, desired={"type": "x"}))
        applied = apply_profile_plan([], plan, NOW)
        assert applied.new_entries == []
        assert applied.applied_counts == {"NOOP": 1, "SKIP_CONFLICT": 1}


class TestProperties:
    def test_idempotent_reapply(self):
        current = _install("pa-v1")
        planned = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")
        after_upgrade = apply_profile_plan(current, planned.plan, LATER).next_raw_entries

        second = plan_profile(after_upgrade, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")

        assert second.plan.counts == {"NOOP": 4}

    def test_idempotent_keeps_skip_and_deprecate_set(self):
        current = _install("pa-v2")
        edited = next(r for r in current if r["managedKey"] == BEHAVIOR_KEY)
        edited["contentHash"] = "user-edited"

        first = plan_profile(current, PERSONAL_ASSISTANT_ID, "pa-v1", mode="upgrade")
        applied = apply_profile_plan(current, first.plan, LATER).next_raw_entries
        second = plan_profile(applied, PERSONAL_ASSISTANT_ID, "pa-v1", mode="upgrade")

        assert _non_noop(second.plan) == _non_noop(first.plan)
        assert "ADD" not in second.plan.counts
        assert "UPDATE" not in second.plan.counts

    def test_deterministic_ids_across_apply_calls(self):
        v1 = _install("pa-v1", now=NOW)
        planned = plan_profile(v1, PERSONAL_ASSISTANT_ID, "pa-v2", mode="upgrade")
        v2 = apply_profile_plan(v1, planned.plan, LATER).next_raw_entries

        ids = {r["id"] for r in v2 if r.get("managedKey") == BEHAVIOR_KEY}
        assert ids == {deterministic_id("behavior", f"managed:{BEHAVIOR_KEY}")}
        assert len(normalize_current_entries(v2)) == 4

    def test_persistable_entry_keeps_existing_baseline(self):
        row = ensure_persistable_entry({"type": "behavior", "text": "x", "managedBaselineHash": "kept"}, NOW)
        assert row["managedBaselineHash"] == "kept"
        assert row["contentHash"] == compute_entry_content_hash(row)

    def test_persistable_entry_defaults_type(self):
        row = ensure_persistable_entry({"text": "x"}, NOW)
        assert row["type"] == "context"
        assert row["managedKey"] == "context:x"
