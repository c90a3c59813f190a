"""Persistent memory log: append-only JSONL with last-write-wins fold."""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import structlog

from shared_types import EntryType

logger = structlog.get_logger()

# Types whose rows also collapse on their `key` field
KEYED_TYPES = (EntryType.IDENTITY, EntryType.USER, EntryType.META)

_LIST_TYPES = (
    EntryType.BEHAVIOR,
    EntryType.LEARNING,
    EntryType.PREFERENCE,
    EntryType.CONTEXT,
    EntryType.TASK,
    EntryType.REMINDER,
)


class BrainStoreError(RuntimeError):
    """Raised when a log operation targets an entry that does not exist."""


def deterministic_id(entry_type: str, natural_key: str) -> str:
    """Stable 8-hex id for a (type, natural key) pair."""
    digest = hashlib.sha256(f"{entry_type}:{natural_key}".encode("utf-8")).hexdigest()
    return digest[:8]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class MaterializedBrain:
    """Deduplicated view of the log, one row per logical entry."""

    rows: dict[str, dict] = field(default_factory=dict)
    tombstoned: set[str] = field(default_factory=set)

    def of_type(self, entry_type: str) -> list[dict]:
        return [r for r in self.rows.values() if r.get("type") == entry_type]

    def keyed(self, entry_type: str) -> dict[str, dict]:
        """Rows of a keyed type (user/identity/meta) indexed by `key`."""
        return {r["key"]: r for r in self.of_type(entry_type) if isinstance(r.get("key"), str)}

    def flatten(self) -> list[dict]:
        """All rows in a stable type order: list types, keyed types, then the rest."""
        out: list[dict] = []
        for t in (*_LIST_TYPES, *KEYED_TYPES):
            out.extend(self.of_type(t))
        known = {str(t) for t in (*_LIST_TYPES, *KEYED_TYPES)}
        out.extend(r for r in self.rows.values() if r.get("type") not in known)
        return out


def _fold_key(entry: dict, position: int) -> str:
    entry_type = entry["type"]
    if entry_type in KEYED_TYPES and isinstance(entry.get("key"), str) and entry["key"]:
        return f"{entry_type}:key:{entry['key']}"
    entry_id = entry.get("id")
    if isinstance(entry_id, str) and entry_id:
        return f"id:{entry_id}"
    return f"{entry_type}:anon:{position}"


def fold_brain(entries: list[dict]) -> MaterializedBrain:
    """Fold raw log rows into the materialized view.

    Later rows replace earlier ones with the same id (or, for user/identity/meta,
    the same key). Tombstones drop their target id. Rows without a string `type`
    are ignored.
    """
    brain = MaterializedBrain()
    ids_by_fold_key: dict[str, str] = {}

    for position, entry in enumerate(entries):
        if not isinstance(entry, dict) or not isinstance(entry.get("type"), str):
            continue

        if entry["type"] == EntryType.TOMBSTONE:
            target = entry.get("targetId")
            if isinstance(target, str) and target:
                brain.tombstoned.add(target)
                for fk, rid in list(ids_by_fold_key.items()):
                    if rid == target:
                        brain.rows.pop(fk, None)
                        del ids_by_fold_key[fk]
            continue

        fk = _fold_key(entry, position)
        # Re-insert so the view is ordered by last write
        brain.rows.pop(fk, None)
        brain.rows[fk] = entry
        entry_id = entry.get("id")
        if isinstance(entry_id, str):
            ids_by_fold_key[fk] = entry_id
            brain.tombstoned.discard(entry_id)

    return brain


class BrainStore:
    """JSONL-backed memory log. Writes append; only `rewrite` replaces the file."""

    def __init__(self, path: str | Path = "~/.brain/brain.jsonl"):
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> list[dict]:
        """Return every parseable object row, in log order."""
        if not self.path.exists():
            return []

        rows = []
        with open(self.path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    row = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.warning("brain_line_skipped", path=str(self.path), line=lineno, error=str(e))
                    continue
                if isinstance(row, dict):
                    rows.append(row)
        return rows

    def materialize(self) -> MaterializedBrain:
        return fold_brain(self.read())

    def append(self, entries: list[dict]) -> int:
        """Append rows to the log. Returns number written."""
        if not entries:
            return 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            for entry in entries:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        logger.debug("brain_appended", path=str(self.path), count=len(entries))
        return len(entries)

    def rewrite(self, entries: list[dict]) -> None:
        """Replace the whole log atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            for entry in entries:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        tmp.replace(self.path)
        logger.info("brain_rewritten", path=str(self.path), count=len(entries))

    def get(self, entry_id: str) -> dict | None:
        brain = self.materialize()
        for row in brain.rows.values():
            if row.get("id") == entry_id:
                return row
        return None

    def update(self, entry_id: str, **fields) -> dict:
        """Append a merged copy of an entry.

        Managed rows get a fresh `contentHash` so the edit stands out against
        their `managedBaselineHash`.
        """
        current = self.get(entry_id)
        if current is None:
            raise BrainStoreError(f"Entry not found: {entry_id}")

        row = {**current, **fields, "id": entry_id, "updated": _now_iso()}
        if row.get("managed") is True:
            from bootstrap.hashing import compute_entry_content_hash

            row["contentHash"] = compute_entry_content_hash(row)

        self.append([row])
        return row

    def remove(self, entry_id: str) -> dict:
        """Tombstone an entry."""
        if self.get(entry_id) is None:
            raise BrainStoreError(f"Entry not found: {entry_id}")
        now = _now_iso()
        tombstone = {
            "id": deterministic_id(EntryType.TOMBSTONE, f"{entry_id}:{now}"),
            "type": str(EntryType.TOMBSTONE),
            "targetId": entry_id,
            "created": now,
        }
        self.append([tombstone])
        return tombstone
