"""Map onboarding answers into memory entries.

Mapping is deterministic: the same answers always produce the same drafts, and
materialized rows get ids derived from their natural key so a re-run replaces
rather than duplicates them.
"""

from dataclasses import dataclass, field

from brain.store import deterministic_id

ONBOARDING_SOURCE = "onboarding"
DEFAULT_PROJECT = "rho"


@dataclass
class MappedEntries:
    user: list[dict] = field(default_factory=list)
    preference: list[dict] = field(default_factory=list)
    context: list[dict] = field(default_factory=list)
    behavior: list[dict] = field(default_factory=list)
    reminder: list[dict] = field(default_factory=list)

    def all(self) -> list[dict]:
        return [*self.user, *self.preference, *self.context, *self.behavior, *self.reminder]


def _as_str(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_cadence(value) -> str:
    s = _as_str(value)
    return s if s in ("off", "light", "standard") else "off"


def map_onboarding_answers_to_entries(answers: dict) -> MappedEntries:
    name = _as_str(answers.get("name"))
    timezone = _as_str(answers.get("timezone"))
    style = _as_str(answers.get("style")) or "balanced"
    policy = _as_str(answers.get("externalActionPolicy")) or "ask-risky-only"
    coding_task_first = answers.get("codingTaskFirst") is True
    quiet_hours = _as_str(answers.get("quietHours"))
    cadence = _as_cadence(answers.get("proactiveCadence"))

    mapped = MappedEntries()

    mapped.user = [
        {"type": "user", "key": "name", "value": name, "text": f"name: {name}"},
        {"type": "user", "key": "timezone", "value": timezone, "text": f"timezone: {timezone}"},
    ]

    mapped.preference = [
        {
            "type": "preference",
            "category": "communication",
            "text": f"response style: {style}",
            "key": "communication.style",
            "value": style,
        },
        {
            "type": "preference",
            "category": "risk",
            "text": f"external actions policy: {policy}",
            "key": "risk.externalActions",
            "value": policy,
        },
    ]
    if coding_task_first:
        mapped.preference.append(
            {
                "type": "preference",
                "category": "coding",
                "text": "coding policy: propose code tasks before implementation",
                "key": "coding.taskFirst",
                "value": True,
            }
        )

    gate = "propose-approve-implement" if coding_task_first else "direct-implementation-allowed"
    mapped.context = [
        {
            "type": "context",
            "project": DEFAULT_PROJECT,
            "path": "bootstrap/workflow.approvalGate",
            "content": gate,
            "key": "workflow.approvalGate",
            "value": gate,
            "text": (
                "workflow: propose -> approve -> implement"
                if coding_task_first
                else "workflow: direct implementation allowed"
            ),
        }
    ]
    if quiet_hours:
        mapped.context.append(
            {
                "type": "context",
                "project": DEFAULT_PROJECT,
                "path": "bootstrap/quietHours",
                "content": quiet_hours,
                "key": "quietHours",
                "value": quiet_hours,
                "text": f"quiet hours: {quiet_hours}",
            }
        )
    mapped.context.append(
        {
            "type": "context",
            "project": DEFAULT_PROJECT,
            "path": "bootstrap/proactiveCadence",
            "content": cadence,
            "key": "proactiveCadence",
            "value": cadence,
            "text": f"proactive cadence: {cadence}",
        }
    )

    mapped.behavior = [
        {"type": "behavior", "category": "do", "text": "Be direct and useful; avoid filler."},
        {
            "type": "behavior",
            "category": "do",
            "text": (
                "Ask before external actions."
                if policy == "always-ask"
                else "Ask before risky external actions."
            ),
        },
    ]

    if cadence == "light":
        mapped.reminder = [
            {
                "type": "reminder",
                "text": "Review today and propose top priorities.",
                "value": {"kind": "daily", "at": "09:00"},
                "key": "cadence",
            }
        ]
    elif cadence == "standard":
        mapped.reminder = [
            {
                "type": "reminder",
                "text": "Morning planning check.",
                "value": {"kind": "daily", "at": "09:00"},
                "key": "cadence",
            },
            {
                "type": "reminder",
                "text": "Afternoon progress review.",
                "value": {"kind": "daily", "at": "16:00"},
                "key": "cadence",
            },
        ]

    return mapped


def _str_or(draft: dict, name: str, default: str) -> str:
    value = draft.get(name)
    return value if isinstance(value, str) else default


def _natural_key(draft: dict, entry_type: str, index: int) -> str:
    for name in ("key", "path", "text"):
        value = draft.get(name)
        if isinstance(value, str) and value:
            return value
    return f"{entry_type}:{index}"


def materialize_onboarding_entries(mapped: MappedEntries, now_iso: str, version: str) -> list[dict]:
    """Turn drafts into log rows. Rows are unmanaged and tagged ``source=onboarding``."""
    out = []

    for i, draft in enumerate(mapped.all()):
        entry_type = draft.get("type") if isinstance(draft.get("type"), str) else "context"
        natural_key = _natural_key(draft, entry_type, i)
        # Reminders share key="cadence"; their text tells them apart
        if entry_type == "reminder" and _as_str(draft.get("text")):
            natural_key = _as_str(draft["text"])

        base = {
            "id": deterministic_id(entry_type, f"onboarding:{natural_key}"),
            "type": entry_type,
            "created": now_iso,
            "source": ONBOARDING_SOURCE,
            "sourceVersion": version,
        }

        if entry_type == "user":
            out.append(
                {
                    **base,
                    "key": _str_or(draft, "key", f"onboarding.{i}"),
                    "value": draft.get("value", ""),
                }
            )
        elif entry_type == "preference":
            out.append(
                {
                    **base,
                    "category": _str_or(draft, "category", "general"),
                    "text": _str_or(draft, "text", str(draft.get("key", f"preference.{i}"))),
                    "key": draft.get("key"),
                    "value": draft.get("value"),
                }
            )
        elif entry_type == "context":
            content = next(
                (draft[f] for f in ("content", "value", "text") if isinstance(draft.get(f), str)),
                "",
            )
            out.append(
                {
                    **base,
                    "project": _str_or(draft, "project", DEFAULT_PROJECT),
                    "path": _str_or(draft, "path", f"bootstrap/{draft.get('key', i)}"),
                    "content": content,
                    "key": draft.get("key"),
                    "value": draft.get("value"),
                    "text": draft.get("text"),
                }
            )
        elif entry_type == "behavior":
            out.append(
                {
                    **base,
                    "category": _str_or(draft, "category", "do"),
                    "text": _str_or(draft, "text", ""),
                }
            )
        elif entry_type == "reminder":
            cadence = draft.get("value")
            if not isinstance(cadence, dict):
                cadence = {"kind": "daily", "at": "09:00"}
            out.append(
                {
                    **base,
                    "text": _str_or(draft, "text", "Reminder"),
                    "enabled": True,
                    "cadence": cadence,
                    "priority": "normal",
                    "tags": [],
                    "last_run": None,
                    "next_due": None,
                    "last_result": None,
                    "last_error": None,
                }
            )

    return out
