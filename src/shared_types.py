"""Shared enums and types for brain-bootstrap."""

from enum import StrEnum


class EntryType(StrEnum):
    BEHAVIOR = "behavior"
    LEARNING = "learning"
    PREFERENCE = "preference"
    CONTEXT = "context"
    TASK = "task"
    REMINDER = "reminder"
    IDENTITY = "identity"
    USER = "user"
    META = "meta"
    TOMBSTONE = "tombstone"


class BootstrapStatus(StrEnum):
    NOT_STARTED = "not_started"
    PARTIAL = "partial"
    COMPLETED = "completed"


class PlanMode(StrEnum):
    RUN = "run"
    REAPPLY = "reapply"
    UPGRADE = "upgrade"
