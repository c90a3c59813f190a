"""Profile-pack planning and apply helpers.

``plan_profile`` compares a pack against the folded memory log; ``apply_profile_plan``
turns ADD/UPDATE actions into log rows with deterministic ids. Neither writes to
disk: persisting ``next_raw_entries`` is the caller's job.
"""

from dataclasses import dataclass, field

import structlog

from brain.store import deterministic_id, fold_brain
from shared_types import PlanMode

from .hashing import compute_entry_content_hash
from .keys import derive_managed_key
from .merge_policy import plan_merge_actions
from .models import MergeAction, MergePlan, MergePlanAction, bump
from .profile_pack import ProfilePackRegistry, default_registry
from .schema import PROFILE_SOURCE_PREFIX

logger = structlog.get_logger()


@dataclass
class PlanProfileResult:
    plan: MergePlan
    desired_entries: list[dict] = field(default_factory=list)
    current_entries: list[dict] = field(default_factory=list)


@dataclass
class ApplyProfileResult:
    next_raw_entries: list[dict] = field(default_factory=list)
    applied_actions: list[MergePlanAction] = field(default_factory=list)
    applied_counts: dict[str, int] = field(default_factory=dict)
    # Rows produced by this apply, also present at the tail of next_raw_entries
    new_entries: list[dict] = field(default_factory=list)


def normalize_current_entries(current_raw_entries: list[dict]) -> list[dict]:
    """Deduplicated records from raw log rows."""
    return fold_brain(current_raw_entries).flatten()


def normalize_managed_desired_entry(entry: dict, profile_id: str, version: str) -> dict:
    """Stamp provenance, managed key and hashes onto a pack entry."""
    base = {
        **entry,
        "managed": True,
        "source": f"{PROFILE_SOURCE_PREFIX}{profile_id}",
        "sourceVersion": version,
        "managedKey": derive_managed_key(entry),
    }
    content_hash = compute_entry_content_hash(base)
    return {
        **base,
        "managedBaselineHash": content_hash,
        "contentHash": content_hash,
        "managedLastSeenVersion": version,
    }


def build_desired_entries(
    profile_id: str,
    version: str,
    registry: ProfilePackRegistry | None = None,
) -> list[dict]:
    """Desired managed entries for a pack. Raises UnknownProfilePackError."""
    pack = (registry or default_registry).require(profile_id, version)
    return [normalize_managed_desired_entry(e, profile_id, version) for e in pack.entries]


def plan_profile(
    current_raw_entries: list[dict],
    profile_id: str,
    version: str,
    mode: str = PlanMode.REAPPLY,
    registry: ProfilePackRegistry | None = None,
) -> PlanProfileResult:
    current_entries = normalize_current_entries(current_raw_entries)
    desired_entries = build_desired_entries(profile_id, version, registry)

    plan = plan_merge_actions(current=current_entries, desired=desired_entries, mode=mode)

    logger.info(
        "profile_planned",
        profile_id=profile_id,
        version=version,
        mode=str(mode),
        counts=plan.counts,
    )
    return PlanProfileResult(
        plan=plan,
        desired_entries=desired_entries,
        current_entries=current_entries,
    )


def ensure_persistable_entry(entry: dict, now_iso: str) -> dict:
    """Log row for a desired entry: deterministic id, fresh hash, baseline if absent."""
    entry_type = entry.get("type") if isinstance(entry.get("type"), str) and entry["type"] else "context"
    managed_key = derive_managed_key(entry, default_type=entry_type)

    row = {
        **entry,
        "id": deterministic_id(entry_type, f"managed:{managed_key}"),
        "type": entry_type,
        "created": now_iso,
        "managedKey": managed_key,
    }

    content_hash = compute_entry_content_hash(row)
    row["contentHash"] = content_hash
    baseline = row.get("managedBaselineHash")
    if not isinstance(baseline, str) or not baseline.strip():
        row["managedBaselineHash"] = content_hash

    return row


def apply_profile_plan(
    current_raw_entries: list[dict],
    plan: MergePlan,
    now_iso: str,
) -> ApplyProfileResult:
    """Materialize ADD/UPDATE actions; report every other action unchanged.

    The input list and its rows are not mutated. Nothing is removed: DEPRECATE
    is advisory here.
    """
    result = ApplyProfileResult(next_raw_entries=[dict(e) for e in current_raw_entries])

    for action in plan.actions:
        if action.action in (MergeAction.ADD, MergeAction.UPDATE):
            if action.desired is None:
                continue
            row = ensure_persistable_entry(action.desired, now_iso)
            result.next_raw_entries.append(row)
            result.new_entries.append(row)

        result.applied_actions.append(action)
        bump(result.applied_counts, action.action)

    logger.info(
        "profile_plan_applied",
        written=len(result.new_entries),
        counts=result.applied_counts,
    )
    return result
