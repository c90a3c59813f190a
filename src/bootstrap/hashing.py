"""Canonical content hashing for memory records."""

import hashlib
import json

# Bookkeeping fields that never contribute to an entry's meaning
HASH_IGNORED_FIELDS = frozenset(
    {
        "id",
        "created",
        "updated",
        "managed",
        "managedKey",
        "managedBaselineHash",
        "contentHash",
        "source",
        "sourceVersion",
        "managedAppliedAt",
        "managedLastSeenVersion",
    }
)


def strip_meta_for_hash(entry: dict) -> dict:
    return {k: v for k, v in entry.items() if k not in HASH_IGNORED_FIELDS}


def stable_stringify(value) -> str:
    """Serialize with object keys sorted at every depth; list order is kept."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def compute_entry_content_hash(entry: dict) -> str:
    """SHA-256 hex of the entry's semantic payload."""
    body = stable_stringify(strip_meta_for_hash(entry))
    return hashlib.sha256(body.encode("utf-8")).hexdigest()
