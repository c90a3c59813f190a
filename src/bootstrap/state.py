"""Bootstrap lifecycle state derived from meta entries in the memory log."""

from dataclasses import dataclass

from brain.store import deterministic_id
from shared_types import BootstrapStatus, EntryType

from .schema import (
    BOOTSTRAP_META_KEYS,
    META_COMPLETED,
    META_COMPLETED_AT,
    META_VERSION,
    is_iso_timestamp,
    validate_bootstrap_meta,
)


@dataclass
class BootstrapState:
    status: BootstrapStatus
    version: str | None = None
    completed_at: str | None = None


def _normalize_bool(value) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def get_bootstrap_state(entries: list[dict]) -> BootstrapState:
    """Read bootstrap status from meta rows; later rows win per key."""
    by_key = {}
    for entry in entries:
        if entry.get("type") == EntryType.META and isinstance(entry.get("key"), str):
            by_key[entry["key"]] = entry.get("value")

    completed = _normalize_bool(by_key.get(META_COMPLETED))
    version_raw = by_key.get(META_VERSION)
    completed_at_raw = by_key.get(META_COMPLETED_AT)

    version = version_raw.strip() if isinstance(version_raw, str) and version_raw.strip() else None
    completed_at = (
        completed_at_raw
        if isinstance(completed_at_raw, str) and is_iso_timestamp(completed_at_raw)
        else None
    )

    meta = {"completed": completed, "version": version, "completedAt": completed_at}
    validation = validate_bootstrap_meta({k: v for k, v in meta.items() if v is not None})

    if completed is True and validation.ok:
        return BootstrapState(BootstrapStatus.COMPLETED, version, completed_at)

    if any(k in by_key for k in BOOTSTRAP_META_KEYS):
        return BootstrapState(BootstrapStatus.PARTIAL, version, completed_at)

    return BootstrapState(BootstrapStatus.NOT_STARTED)


def meta_entry(key: str, value, created: str) -> dict:
    return {
        "id": deterministic_id(EntryType.META, key),
        "type": str(EntryType.META),
        "key": key,
        "value": value,
        "created": created,
    }


def bootstrap_completion_entries(version: str, now_iso: str) -> list[dict]:
    """The three meta rows that mark a bootstrap as completed."""
    return [
        meta_entry(META_COMPLETED, True, now_iso),
        meta_entry(META_VERSION, version, now_iso),
        meta_entry(META_COMPLETED_AT, now_iso, now_iso),
    ]

