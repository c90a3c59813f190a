"""Bootstrap audit log: JSONL lifecycle events (start/plan/apply/complete/fail)."""

import json
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger()

Phase = Literal["start", "plan", "apply", "complete", "fail"]
Result = Literal["ok", "warning", "error"]

TERMINAL_PHASES = ("complete", "fail")


def now_iso() -> str:
    """Current UTC time as YYYY-MM-DDTHH:MM:SS.mmmZ."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_event_id() -> str:
    return f"bevt_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class AuditEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(default_factory=make_event_id, alias="eventId")
    ts: str = Field(default_factory=now_iso)
    op: str
    phase: Phase
    profile_id: Optional[str] = Field(default=None, alias="profileId")
    from_version: Optional[str] = Field(default=None, alias="fromVersion")
    to_version: Optional[str] = Field(default=None, alias="toVersion")
    counts: Optional[dict[str, int]] = None
    result: Optional[Result] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    message: Optional[str] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class AuditLog:
    """Append-only JSONL audit trail."""

    def __init__(self, path: str | Path = "~/.brain/logs/bootstrap-events.jsonl"):
        self.path = Path(path).expanduser()

    def append(self, op: str, phase: Phase, **fields) -> AuditEvent:
        event = AuditEvent(op=op, phase=phase, **fields)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_json_dict(), ensure_ascii=False) + "\n")
        logger.debug("audit_event", op=op, phase=phase, result=event.result)
        return event

    def read(self, limit: int = 50) -> list[AuditEvent]:
        """Last ``limit`` events (all when limit <= 0); malformed lines are skipped."""
        if not self.path.exists():
            return []

        events = []
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    events.append(AuditEvent.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError):
                    continue

        if limit <= 0:
            return events
        return events[-limit:]

    def last_terminal_event(self, limit: int = 100) -> AuditEvent | None:
        for event in reversed(self.read(limit)):
            if event.phase in TERMINAL_PHASES:
                return event
        return None
