"""Managed-key derivation: stable logical identity for memory entries."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumerics to '-', trim dashes, cap at 80 chars."""
    slug = _NON_ALNUM.sub("-", text.lower().strip()).strip("-")
    return slug[:80]


def _as_str(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def build_managed_key(
    entry_type: str | None,
    category: str | None = None,
    key: str | None = None,
    text: str | None = None,
) -> str:
    """Build a managed key from an entry's semantic identity.

    Priority: explicit key, then category + text, then text alone. Falls back to
    ``<type>:generated`` so the result is never empty.

    An explicit key is kept verbatim (only trimmed), so dotted keys such as
    ``communication.style`` survive as written.
    """
    type_slug = slugify(_as_str(entry_type) or "entry") or "entry"

    explicit = _as_str(key)
    if explicit:
        return f"{type_slug}:{explicit}"

    category = _as_str(category)
    text = _as_str(text)

    if category and text:
        return f"{type_slug}:{slugify(category)}:{slugify(text)}"

    if text:
        return f"{type_slug}:{slugify(text)}"

    return f"{type_slug}:generated"


def derive_managed_key(entry: dict, default_type: str = "entry") -> str:
    """Managed key for a record: its own non-empty `managedKey`, else derived."""
    explicit = _as_str(entry.get("managedKey"))
    if explicit:
        return explicit

    entry_type = entry.get("type")
    return build_managed_key(
        entry_type if isinstance(entry_type, str) and entry_type else default_type,
        category=entry.get("category") if isinstance(entry.get("category"), str) else None,
        key=entry.get("key") if isinstance(entry.get("key"), str) else None,
        text=entry.get("text") if isinstance(entry.get("text"), str) else None,
    )
