"""Data models for managed-entry merge planning."""

from dataclasses import dataclass, field
from enum import Enum


class MergeAction(str, Enum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    NOOP = "NOOP"
    SKIP_USER_EDITED = "SKIP_USER_EDITED"
    SKIP_CONFLICT = "SKIP_CONFLICT"
    DEPRECATE = "DEPRECATE"


MERGE_ACTIONS = tuple(a.value for a in MergeAction)


@dataclass
class MergePlanAction:
    """One planned action for a managed key."""

    managed_key: str
    action: MergeAction
    reason: str | None = None
    current: dict | None = None
    desired: dict | None = None

    def to_dict(self) -> dict:
        out = {"managedKey": self.managed_key, "action": self.action.value}
        if self.reason is not None:
            out["reason"] = self.reason
        if self.current is not None:
            out["current"] = self.current
        if self.desired is not None:
            out["desired"] = self.desired
        return out


@dataclass
class MergePlan:
    """Ordered actions plus a tally of the actions that occur."""

    actions: list[MergePlanAction] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    def add(self, action: MergePlanAction) -> None:
        self.actions.append(action)
        bump(self.counts, action.action)

    def by_key(self) -> dict[str, MergePlanAction]:
        return {a.managed_key: a for a in self.actions}

    def to_dict(self) -> dict:
        return {"actions": [a.to_dict() for a in self.actions], "counts": dict(self.counts)}


def bump(counts: dict[str, int], action: MergeAction | str) -> None:
    name = action.value if isinstance(action, MergeAction) else action
    counts[name] = counts.get(name, 0) + 1


def zero_plan_counts() -> dict[str, int]:
    return {name: 0 for name in MERGE_ACTIONS}


def normalize_plan_counts(counts: dict[str, int] | None = None) -> dict[str, int]:
    """All six action keys, zero-filled, overlaid with the given counts."""
    return {**zero_plan_counts(), **(counts or {})}
