"""Bootstrap metadata schema: meta keys, version format, validators.

Validators collect every problem rather than stopping at the first one and
never raise; callers decide what an invalid shape means.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime

PROFILE_SOURCE_PREFIX = "profile:"

META_COMPLETED = "bootstrap.completed"
META_VERSION = "bootstrap.version"
META_COMPLETED_AT = "bootstrap.completedAt"
BOOTSTRAP_META_KEYS = (META_COMPLETED, META_VERSION, META_COMPLETED_AT)

_PROFILE_VERSION = re.compile(r"^pa-v\d+$")
_ISO_UTC = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{3})?Z$")


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def is_known_profile_version(version: str) -> bool:
    return bool(_PROFILE_VERSION.match(version.strip()))


def is_iso_timestamp(value: str) -> bool:
    """Strict machine-generated UTC timestamp: YYYY-MM-DDTHH:MM:SS[.mmm]Z."""
    s = value.strip()
    if not _ISO_UTC.match(s):
        return False
    try:
        datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def _non_empty_str(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_bootstrap_meta(data) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(data, dict):
        result.errors.append("bootstrap meta must be an object")
        return result

    completed = data.get("completed")
    version = data.get("version")
    completed_at = data.get("completedAt")

    if completed is not None and not isinstance(completed, bool):
        result.errors.append("completed must be boolean when provided")

    if version is not None:
        if not _non_empty_str(version):
            result.errors.append("version must be a non-empty string when provided")
        elif not is_known_profile_version(version):
            result.errors.append(f'version must match pa-vN format (got "{version}")')

    if completed_at is not None:
        if not isinstance(completed_at, str) or not is_iso_timestamp(completed_at):
            result.errors.append("completedAt must be an ISO-8601 UTC timestamp")

    if completed is True:
        if not _non_empty_str(version):
            result.errors.append("version is required when completed is true")
        if not isinstance(completed_at, str) or not is_iso_timestamp(completed_at):
            result.errors.append("completedAt is required (ISO-8601 UTC) when completed is true")

    return result


def validate_managed_metadata(data) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(data, dict):
        result.errors.append("managed metadata must be an object")
        return result

    managed = data.get("managed")
    if managed is not None and not isinstance(managed, bool):
        result.errors.append("managed must be boolean when provided")

    if managed is True:
        if not _non_empty_str(data.get("source")):
            result.errors.append("source is required when managed is true")
        source_version = data.get("sourceVersion")
        if not _non_empty_str(source_version):
            result.errors.append("sourceVersion is required when managed is true")
        elif not is_known_profile_version(source_version):
            result.errors.append(f'sourceVersion must match pa-vN format (got "{source_version}")')
        if not _non_empty_str(data.get("managedKey")):
            result.errors.append("managedKey is required when managed is true")

    return result
