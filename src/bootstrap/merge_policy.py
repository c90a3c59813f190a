"""Merge planner for managed profile entries.

Classifies each desired entry, and each current managed entry without a desired
counterpart, into exactly one action. Planning is pure: it reads its inputs and
returns a new ``MergePlan``.
"""

import structlog

from shared_types import PlanMode

from .hashing import compute_entry_content_hash
from .keys import derive_managed_key
from .models import MergeAction, MergePlan, MergePlanAction

logger = structlog.get_logger()


def _str_field(entry: dict, name: str) -> str:
    value = entry.get(name)
    return value.strip() if isinstance(value, str) else ""


def is_managed_entry(entry: dict) -> bool:
    if entry.get("managed") is True:
        return True
    return bool(_str_field(entry, "managedKey"))


def is_user_edited_managed_entry(entry: dict) -> bool:
    """True when a managed entry's content no longer matches what was last written."""
    if not is_managed_entry(entry):
        return False

    baseline = _str_field(entry, "managedBaselineHash")
    if not baseline:
        return False

    stored = _str_field(entry, "contentHash")
    if stored:
        return baseline != stored

    return baseline != compute_entry_content_hash(entry)


def equivalent_unmanaged_entry_exists(current: list[dict], desired_hash: str) -> bool:
    for row in current:
        if is_managed_entry(row):
            continue
        if compute_entry_content_hash(row) == desired_hash:
            return True
    return False


def _index_by_key(entries: list[dict], managed_only: bool) -> dict[str, dict]:
    indexed: dict[str, dict] = {}
    for row in entries:
        if not isinstance(row, dict):
            continue
        if managed_only and not is_managed_entry(row):
            continue
        # First occurrence wins
        indexed.setdefault(derive_managed_key(row), row)
    return indexed


def plan_merge_actions(
    current: list[dict] | None,
    desired: list[dict] | None,
    mode: str = PlanMode.REAPPLY,
) -> MergePlan:
    """Create a merge/upgrade plan for managed entries.

    ``mode`` only changes the recorded reasons, never the chosen action.
    """
    current = [r for r in (current or []) if isinstance(r, dict)]
    desired = desired or []
    upgrade = str(mode or PlanMode.REAPPLY).lower() == PlanMode.UPGRADE

    current_by_key = _index_by_key(current, managed_only=True)
    desired_by_key = _index_by_key(desired, managed_only=False)

    plan = MergePlan()

    for managed_key, desired_entry in desired_by_key.items():
        current_entry = current_by_key.get(managed_key)
        desired_hash = compute_entry_content_hash(desired_entry)

        if current_entry is None:
            if equivalent_unmanaged_entry_exists(current, desired_hash):
                plan.add(
                    MergePlanAction(
                        managed_key=managed_key,
                        action=MergeAction.SKIP_CONFLICT,
                        reason="semantic-duplicate-unmanaged",
                        desired=desired_entry,
                    )
                )
            else:
                plan.add(
                    MergePlanAction(
                        managed_key=managed_key,
                        action=MergeAction.ADD,
                        desired=desired_entry,
                    )
                )
            continue

        if is_user_edited_managed_entry(current_entry):
            plan.add(
                MergePlanAction(
                    managed_key=managed_key,
                    action=MergeAction.SKIP_USER_EDITED,
                    reason="managed-entry-modified-by-user",
                    current=current_entry,
                    desired=desired_entry,
                )
            )
            continue

        if compute_entry_content_hash(current_entry) == desired_hash:
            plan.add(
                MergePlanAction(
                    managed_key=managed_key,
                    action=MergeAction.NOOP,
                    current=current_entry,
                    desired=desired_entry,
                )
            )
            continue

        plan.add(
            MergePlanAction(
                managed_key=managed_key,
                action=MergeAction.UPDATE,
                reason="version-delta" if upgrade else "reapply-delta",
                current=current_entry,
                desired=desired_entry,
            )
        )

    for managed_key, current_entry in current_by_key.items():
        if managed_key in desired_by_key:
            continue
        plan.add(
            MergePlanAction(
                managed_key=managed_key,
                action=MergeAction.DEPRECATE,
                reason="removed-in-target-version" if upgrade else "absent-in-reapply-set",
                current=current_entry,
            )
        )

    logger.debug("merge_plan_built", mode=str(mode), counts=plan.counts)
    return plan
