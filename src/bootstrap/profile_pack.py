"""Built-in profile packs: versioned default entry sets.

Packs are static data. Lookups hand back deep copies so callers can stamp
bookkeeping fields on entries without touching the registry.
"""

import copy
import re
from dataclasses import dataclass, field

PERSONAL_ASSISTANT_ID = "personal-assistant"

_VERSION_NUMBER = re.compile(r"-v(\d+)$")


class UnknownProfilePackError(LookupError):
    """No pack is registered for a (profile_id, version) pair."""

    def __init__(self, profile_id: str, version: str):
        self.profile_id = profile_id
        self.version = version
        super().__init__(f"Unknown profile pack: {profile_id}@{version}")


@dataclass(frozen=True)
class ProfilePack:
    profile_id: str
    version: str
    entries: tuple[dict, ...] = field(default_factory=tuple)


def parse_version_number(version: str) -> int:
    """Numeric suffix of a ``<prefix>-vN`` version, or -1."""
    match = _VERSION_NUMBER.search(version.strip())
    return int(match.group(1)) if match else -1


_PERSONAL_ASSISTANT_PACKS = (
    ProfilePack(
        profile_id=PERSONAL_ASSISTANT_ID,
        version="pa-v1",
        entries=(
            {
                "type": "preference",
                "category": "communication",
                "key": "communication.style",
                "value": "balanced",
                "text": "response style: balanced",
                "managedKey": "preference:communication.style",
            },
            {
                "type": "behavior",
                "category": "do",
                "text": "Ask before risky external actions",
                "managedKey": "behavior:do:ask-before-risky-external-actions",
            },
            {
                "type": "context",
                "project": "rho",
                "path": "bootstrap/workflow.approvalGate",
                "key": "workflow.approvalGate",
                "value": "propose-approve-implement",
                "content": "propose-approve-implement",
                "text": "workflow: propose -> approve -> implement",
                "managedKey": "context:workflow.approvalGate",
            },
        ),
    ),
    ProfilePack(
        profile_id=PERSONAL_ASSISTANT_ID,
        version="pa-v2",
        entries=(
            {
                "type": "preference",
                "category": "communication",
                "key": "communication.style",
                "value": "balanced",
                "text": "response style: balanced",
                "managedKey": "preference:communication.style",
            },
            {
                "type": "behavior",
                "category": "do",
                "text": "Ask before risky external actions and confirm irreversible operations",
                "managedKey": "behavior:do:ask-before-risky-external-actions",
            },
            {
                "type": "context",
                "project": "rho",
                "path": "bootstrap/workflow.approvalGate",
                "key": "workflow.approvalGate",
                "value": "propose-approve-implement",
                "content": "propose-approve-implement",
                "text": "workflow: propose -> approve -> implement",
                "managedKey": "context:workflow.approvalGate",
            },
            {
                "type": "context",
                "project": "rho",
                "path": "bootstrap/proactiveCadence",
                "key": "proactiveCadence",
                "value": "standard",
                "content": "standard",
                "text": "proactive cadence: standard",
                "managedKey": "context:proactiveCadence",
            },
        ),
    ),
)


class ProfilePackRegistry:
    """Read-only catalog of packs keyed by profile id."""

    def __init__(self, packs=()):
        self._packs: dict[str, list[ProfilePack]] = {}
        for pack in packs:
            self._packs.setdefault(pack.profile_id, []).append(pack)

    def profile_ids(self) -> list[str]:
        return sorted(self._packs)

    def list_versions(self, profile_id: str) -> list[str]:
        """Versions ordered by numeric suffix, oldest first."""
        packs = self._packs.get(profile_id, [])
        return sorted((p.version for p in packs), key=parse_version_number)

    def latest_version(self, profile_id: str) -> str | None:
        versions = self.list_versions(profile_id)
        return versions[-1] if versions else None

    def get(self, profile_id: str, version: str) -> ProfilePack | None:
        for pack in self._packs.get(profile_id, []):
            if pack.version == version:
                return ProfilePack(
                    profile_id=pack.profile_id,
                    version=pack.version,
                    entries=tuple(copy.deepcopy(e) for e in pack.entries),
                )
        return None

    def require(self, profile_id: str, version: str) -> ProfilePack:
        pack = self.get(profile_id, version)
        if pack is None:
            raise UnknownProfilePackError(profile_id, version)
        return pack


default_registry = ProfilePackRegistry(_PERSONAL_ASSISTANT_PACKS)


def get_profile_pack(profile_id: str, version: str) -> ProfilePack | None:
    return default_registry.get(profile_id, version)


def list_profile_versions(profile_id: str) -> list[str]:
    return default_registry.list_versions(profile_id)


def get_latest_profile_version(profile_id: str) -> str | None:
    return default_registry.latest_version(profile_id)
