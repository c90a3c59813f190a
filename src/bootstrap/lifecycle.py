"""Bootstrap lifecycle: orchestrates read -> plan -> apply -> append -> audit.

Each operation records start/plan/complete (or fail) events in the audit log and
returns a JSON-ready payload. Writes only ever append to the memory log, except
``reset`` which rewrites it.
"""

from collections.abc import Callable

import structlog

from brain.store import BrainStore, fold_brain
from shared_types import BootstrapStatus, EntryType, PlanMode

from .audit import AuditLog, now_iso
from .engine import apply_profile_plan, plan_profile
from .mapping import map_onboarding_answers_to_entries, materialize_onboarding_entries
from .models import MergeAction, normalize_plan_counts
from .onboarding import default_answers, require_valid_answers, should_mark_bootstrap_complete
from .profile_pack import (
    PERSONAL_ASSISTANT_ID,
    ProfilePackRegistry,
    UnknownProfilePackError,
    default_registry,
)
from .schema import BOOTSTRAP_META_KEYS, PROFILE_SOURCE_PREFIX
from .state import bootstrap_completion_entries, get_bootstrap_state

logger = structlog.get_logger()

RESET_CONFIRM_TOKEN = "RESET_BOOTSTRAP"

ERROR_PROFILE_NOT_FOUND = "BOOTSTRAP_PROFILE_NOT_FOUND"
ERROR_INVALID_ONBOARDING = "BOOTSTRAP_INVALID_ONBOARDING"
ERROR_CONFIRM_REQUIRED = "BOOTSTRAP_CONFIRM_REQUIRED"


class ResetConfirmationError(ValueError):
    """Reset was requested without the confirmation token."""

    def __init__(self):
        super().__init__(f"Confirmation required. Re-run with: --confirm {RESET_CONFIRM_TOKEN}")


def _latest_user_value(entries: list[dict], key: str) -> str | None:
    for entry in reversed(entries):
        value = entry.get("value")
        if entry.get("type") == EntryType.USER and entry.get("key") == key:
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


class BootstrapManager:
    """Runs bootstrap operations for one profile against one memory log."""

    def __init__(
        self,
        store: BrainStore,
        audit: AuditLog,
        profile_id: str = PERSONAL_ASSISTANT_ID,
        registry: ProfilePackRegistry | None = None,
        default_version: str | None = None,
        clock: Callable[[], str] = now_iso,
    ):
        self.store = store
        self.audit = audit
        self.profile_id = profile_id
        self.registry = registry or default_registry
        self._default_version = default_version
        self.clock = clock

    @property
    def default_version(self) -> str:
        return self._default_version or self.registry.latest_version(self.profile_id) or "pa-v1"

    def resolve_version(self, explicit: str | None = None, fallback: str | None = None) -> str:
        if explicit and explicit.strip():
            return explicit.strip()
        if fallback and fallback.strip():
            return fallback.strip()
        return self.default_version

    def _require_pack(self, op: str, version: str) -> None:
        """Audit a fail event and raise when the pack is unknown."""
        try:
            self.registry.require(self.profile_id, version)
        except UnknownProfilePackError as e:
            self.audit.append(
                op,
                "fail",
                profile_id=self.profile_id,
                to_version=version,
                result="error",
                error_code=ERROR_PROFILE_NOT_FOUND,
                message=str(e),
            )
            logger.warning("bootstrap.unknown_pack", op=op, version=version)
            raise

    def _audit(self, op: str, phase: str, from_version: str | None, to_version: str | None, **fields):
        return self.audit.append(
            op,
            phase,
            profile_id=self.profile_id,
            from_version=from_version,
            to_version=to_version,
            result=fields.pop("result", "ok"),
            **fields,
        )

    def status(self) -> dict:
        entries = self.store.read()
        state = get_bootstrap_state(entries)
        last = self.audit.last_terminal_event()
        return {
            "ok": True,
            "status": str(state.status),
            "profile": self.profile_id,
            "version": state.version,
            "completedAt": state.completed_at,
            "managedCount": sum(1 for e in fold_brain(entries).flatten() if e.get("managed") is True),
            "lastResult": last.result if last else None,
            "lastOperation": last.op if last else None,
            "lastOperationAt": last.ts if last else None,
        }

    def base_answers(self, overrides: dict | None = None, entries: list[dict] | None = None) -> dict:
        """Onboarding defaults: explicit overrides, then existing user entries, then defaults."""
        entries = entries if entries is not None else self.store.read()
        answers = default_answers()
        for key in ("name", "timezone"):
            existing = _latest_user_value(entries, key)
            if existing:
                answers[key] = existing
        answers.update({k: v for k, v in (overrides or {}).items() if v is not None})
        return answers

    def run(
        self,
        overrides: dict | None = None,
        version: str | None = None,
        force: bool = False,
        prompt: Callable[[dict], dict] | None = None,
    ) -> dict:
        """First-time bootstrap: apply the pack, write onboarding entries, mark completed."""
        current = self.store.read()
        state = get_bootstrap_state(current)
        version = self.resolve_version(version, state.version)

        self._require_pack("run", version)
        self._audit("run", "start", state.version, version)

        if state.status == BootstrapStatus.COMPLETED and not force:
            counts = normalize_plan_counts({MergeAction.NOOP.value: 1})
            self._audit(
                "run", "complete", state.version, state.version, counts=counts, message="already-completed"
            )
            return {
                "ok": True,
                "message": f"Bootstrap already completed at version {state.version or 'unknown'}.",
                "status": str(state.status),
                "version": state.version,
                "planCounts": counts,
            }

        answers = self.base_answers(overrides, current)
        if prompt is not None:
            answers = prompt(answers)
        try:
            require_valid_answers(answers)
        except ValueError as e:
            self._audit(
                "run",
                "fail",
                state.version,
                version,
                result="error",
                error_code=ERROR_INVALID_ONBOARDING,
                message=str(e),
            )
            raise

        mode = PlanMode.REAPPLY if state.status == BootstrapStatus.COMPLETED else PlanMode.RUN
        planned = plan_profile(current, self.profile_id, version, mode, self.registry)
        plan_counts = normalize_plan_counts(planned.plan.counts)
        self._audit("run", "plan", state.version, version, counts=plan_counts)

        now = self.clock()
        applied = apply_profile_plan(current, planned.plan, now)
        onboarding = materialize_onboarding_entries(
            map_onboarding_answers_to_entries(answers), now, version
        )

        new_rows = [*applied.new_entries, *onboarding]
        if should_mark_bootstrap_complete("applied"):
            new_rows.extend(bootstrap_completion_entries(version, now))
        self.store.append(new_rows)

        next_state = get_bootstrap_state([*current, *new_rows])
        applied_counts = normalize_plan_counts(applied.applied_counts)
        self._audit(
            "run",
            "complete",
            state.version,
            next_state.version,
            counts={**applied_counts, "ONBOARDING": len(onboarding)},
        )
        logger.info("bootstrap.run_complete", version=version, written=len(new_rows))

        return {
            "ok": True,
            "message": "Bootstrap applied and marked as completed.",
            "status": str(next_state.status),
            "version": next_state.version,
            "completedAt": next_state.completed_at,
            "onboardingApplied": len(onboarding),
            "planCounts": plan_counts,
            "appliedCounts": applied_counts,
        }

    def _plan_and_apply(self, op: str, mode: PlanMode, version: str, dry_run: bool) -> dict:
        current = self.store.read()
        state = get_bootstrap_state(current)

        self._audit(op, "start", state.version, version)

        planned = plan_profile(current, self.profile_id, version, mode, self.registry)
        plan_counts = normalize_plan_counts(planned.plan.counts)
        self._audit(op, "plan", state.version, version, counts=plan_counts)

        payload = {
            "ok": True,
            "profile": self.profile_id,
            "fromVersion": state.version,
            "dryRun": dry_run,
            "planCounts": plan_counts,
        }

        if dry_run:
            self._audit(op, "complete", state.version, version, counts=plan_counts, message="dry-run")
            return {
                **payload,
                "status": "planned",
                "toVersion": version,
                "actions": [a.to_dict() for a in planned.plan.actions],
            }

        now = self.clock()
        applied = apply_profile_plan(current, planned.plan, now)
        new_rows = [*applied.new_entries, *bootstrap_completion_entries(version, now)]
        self.store.append(new_rows)

        next_state = get_bootstrap_state([*current, *new_rows])
        applied_counts = normalize_plan_counts(applied.applied_counts)
        self._audit(op, "complete", state.version, next_state.version, counts=applied_counts)
        logger.info(f"bootstrap.{op}_complete", version=version, written=len(new_rows))

        return {
            **payload,
            "status": str(next_state.status),
            "toVersion": next_state.version,
            "completedAt": next_state.completed_at,
            "appliedCounts": applied_counts,
        }

    def reapply(self, version: str | None = None, dry_run: bool = False) -> dict:
        """Re-run the installed (or given) pack version; user edits are kept."""
        state = get_bootstrap_state(self.store.read())
        version = self.resolve_version(version, state.version)
        self._require_pack("reapply", version)
        return self._plan_and_apply("reapply", PlanMode.REAPPLY, version, dry_run)

    def upgrade(self, to_version: str, dry_run: bool = False) -> dict:
        self._require_pack("upgrade", to_version)
        return self._plan_and_apply("upgrade", PlanMode.UPGRADE, to_version, dry_run)

    def diff(self, to_version: str | None = None) -> dict:
        """Plan only; nothing is written and nothing is audited."""
        current = self.store.read()
        state = get_bootstrap_state(current)
        to_version = self.resolve_version(to_version, state.version)
        self.registry.require(self.profile_id, to_version)

        mode = (
            PlanMode.UPGRADE if state.version and state.version != to_version else PlanMode.REAPPLY
        )
        planned = plan_profile(current, self.profile_id, to_version, mode, self.registry)
        return {
            "ok": True,
            "profile": self.profile_id,
            "fromVersion": state.version,
            "toVersion": to_version,
            "mode": str(mode),
            "planCounts": normalize_plan_counts(planned.plan.counts),
            "actions": [a.to_dict() for a in planned.plan.actions],
        }

    def reset(self, confirm: str | None, purge_managed: bool = False) -> dict:
        """Drop bootstrap meta rows, and optionally every managed/profile-sourced row."""
        if confirm != RESET_CONFIRM_TOKEN:
            err = ResetConfirmationError()
            self.audit.append(
                "reset",
                "fail",
                profile_id=self.profile_id,
                result="error",
                error_code=ERROR_CONFIRM_REQUIRED,
                message=str(err),
            )
            raise err

        self.audit.append("reset", "start", profile_id=self.profile_id, result="ok")

        current = self.store.read()
        kept = [e for e in current if not self._reset_drops(e, purge_managed)]
        self.store.rewrite(kept)

        removed = len(current) - len(kept)
        self.audit.append(
            "reset", "complete", profile_id=self.profile_id, counts={"removed": removed}, result="ok"
        )
        logger.info("bootstrap.reset_complete", removed=removed, purge_managed=purge_managed)

        return {
            "ok": True,
            "removed": removed,
            "purgeManaged": purge_managed,
            "status": str(get_bootstrap_state(kept).status),
            "message": f"Bootstrap reset complete ({removed} entries removed).",
        }

    @staticmethod
    def _reset_drops(entry: dict, purge_managed: bool) -> bool:
        if entry.get("type") == EntryType.META and entry.get("key") in BOOTSTRAP_META_KEYS:
            return True
        if purge_managed:
            if entry.get("managed") is True:
                return True
            source = entry.get("source")
            if isinstance(source, str) and source.startswith(PROFILE_SOURCE_PREFIX):
                return True
        return False

    def audit_events(self, limit: int = 50) -> list[dict]:
        return [e.to_json_dict() for e in self.audit.read(max(0, limit))]
