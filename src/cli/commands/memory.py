"""Memory CLI commands: status, list, update, remove."""

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from bootstrap.schema import validate_managed_metadata
from brain import BrainStoreError
from cli.utils import get_components, print_json
from shared_types import EntryType

console = Console()


def _summary(entry: dict) -> str:
    for field in ("text", "value", "path"):
        value = entry.get(field)
        if isinstance(value, str) and value:
            return value
    return entry.get("key") or ""


@click.group()
def memory():
    """Folded view of the memory log."""
    pass


@memory.command("status")
@click.option("--json", "as_json", is_flag=True, help="Machine-readable output")
def memory_status(as_json: bool):
    """Show record counts by type."""
    c = get_components()
    store = c["store"]
    records = store.materialize().flatten()
    by_type = Counter(r["type"] for r in records)
    payload = {
        "path": str(store.path),
        "total": len(records),
        "managed": sum(1 for r in records if r.get("managed") is True),
        "invalidManaged": sum(1 for r in records if not validate_managed_metadata(r).ok),
        "byType": dict(sorted(by_type.items())),
    }

    if as_json:
        print_json(payload)
        return

    console.print(f"Memory log: [dim]{payload['path']}[/]")
    console.print(f"Records: {payload['total']} ({payload['managed']} managed)")
    if payload["invalidManaged"]:
        console.print(f"[yellow]Managed records missing provenance: {payload['invalidManaged']}[/]")
    if by_type:
        console.print("\nBy type:")
        for entry_type, cnt in payload["byType"].items():
            console.print(f"  {entry_type}: {cnt}")


@memory.command("list")
@click.option("--type", "-t", "entry_type", default=None, help="Filter by entry type")
@click.option("--managed-only", is_flag=True, help="Only profile-managed records")
def memory_list(entry_type: str | None, managed_only: bool):
    """List folded records."""
    c = get_components()
    brain = c["store"].materialize()

    if entry_type:
        try:
            records = brain.of_type(EntryType(entry_type))
        except ValueError:
            console.print(f"[red]Unknown type: {entry_type}[/]")
            console.print(f"Valid: {[t.value for t in EntryType if t != EntryType.TOMBSTONE]}")
            return
    else:
        records = brain.flatten()

    if managed_only:
        records = [r for r in records if r.get("managed") is True]

    if not records:
        console.print("No records stored.")
        return

    table = Table(title="Memory")
    table.add_column("ID", style="dim", width=8)
    table.add_column("Type", width=10)
    table.add_column("Key / Category", width=28)
    table.add_column("Content")
    table.add_column("Source", width=24)

    for r in records:
        table.add_row(
            str(r.get("id", ""))[:8],
            r["type"],
            r.get("managedKey") or r.get("key") or r.get("category") or "",
            _summary(r)[:80],
            r.get("source") or "",
        )

    console.print(table)


@memory.command("update")
@click.argument("entry_id")
@click.option("--text", default=None, help="New text")
@click.option("--value", default=None, help="New value (user/meta records)")
def memory_update(entry_id: str, text: str | None, value: str | None):
    """Edit a record. Edited profile-managed records are kept by later upgrades."""
    fields = {k: v for k, v in (("text", text), ("value", value)) if v is not None}
    if not fields:
        console.print("[red]Nothing to update: pass --text or --value[/]")
        return

    c = get_components()
    try:
        row = c["store"].update(entry_id, **fields)
    except BrainStoreError:
        console.print(f"[red]Record not found: {entry_id}[/]")
        return
    console.print(f"Updated {row['type']} {entry_id[:8]}")


@memory.command("remove")
@click.argument("entry_id")
@click.confirmation_option(prompt="Remove this record?")
def memory_remove(entry_id: str):
    """Tombstone a record."""
    c = get_components()
    try:
        c["store"].remove(entry_id)
    except BrainStoreError:
        console.print(f"[red]Record not found: {entry_id}[/]")
        return
    console.print(f"Removed record {entry_id[:8]}")
