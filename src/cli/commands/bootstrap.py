"""Bootstrap CLI commands: status, run, reapply, upgrade, diff, reset, audit."""

import sys

import click
from rich.console import Console
from rich.table import Table

from bootstrap import (
    OnboardingQuestionnaire,
    OnboardingValidationError,
    ResetConfirmationError,
    UnknownProfilePackError,
)
from bootstrap.lifecycle import (
    ERROR_CONFIRM_REQUIRED,
    ERROR_INVALID_ONBOARDING,
    ERROR_PROFILE_NOT_FOUND,
)
from bootstrap.onboarding import EXTERNAL_ACTION_POLICIES, PROACTIVE_CADENCE_PRESETS, RESPONSE_STYLES
from cli.utils import get_components, print_json

console = Console()

_ERROR_CODES = {
    UnknownProfilePackError: ERROR_PROFILE_NOT_FOUND,
    OnboardingValidationError: ERROR_INVALID_ONBOARDING,
    ResetConfirmationError: ERROR_CONFIRM_REQUIRED,
}

json_option = click.option("--json", "as_json", is_flag=True, help="Machine-readable output")


def _fail(e: Exception, as_json: bool):
    code = next((c for cls, c in _ERROR_CODES.items() if isinstance(e, cls)), "BOOTSTRAP_ERROR")
    if as_json:
        print_json({"ok": False, "errorCode": code, "message": str(e)})
    else:
        console.print(f"[red]Error:[/] {e}")
        if isinstance(e, OnboardingValidationError):
            for err in e.errors:
                console.print(f"  [red]-[/] {err}")
    sys.exit(1)


def _counts_table(title: str, counts: dict) -> Table:
    table = Table(title=title)
    table.add_column("Action")
    table.add_column("Count", justify="right")
    for action, count in counts.items():
        table.add_row(action, str(count))
    return table


def _actions_table(actions: list[dict]) -> Table:
    table = Table(title="Planned actions")
    table.add_column("Action", width=24)
    table.add_column("Managed key")
    table.add_column("Reason", style="dim")
    for a in actions:
        table.add_row(a["action"], a["managedKey"], a.get("reason") or "")
    return table


@click.group()
def bootstrap():
    """Install and upgrade profile packs in the memory log."""
    pass


@bootstrap.command("status")
@json_option
def bootstrap_status(as_json: bool):
    """Show bootstrap state and the last lifecycle result."""
    c = get_components()
    payload = c["manager"].status()
    if as_json:
        print_json(payload)
        return

    console.print(f"Status: [cyan]{payload['status']}[/]")
    console.print(f"Profile: {payload['profile']}")
    console.print(f"Version: {payload['version'] or 'none'}")
    if payload["completedAt"]:
        console.print(f"Completed at: {payload['completedAt']}")
    console.print(f"Managed entries: {payload['managedCount']}")
    if payload["lastOperation"]:
        console.print(
            f"[dim]Last operation: {payload['lastOperation']} "
            f"({payload['lastResult']}) at {payload['lastOperationAt']}[/]"
        )


@bootstrap.command("run")
@click.option("--force", is_flag=True, help="Re-run even when already completed")
@click.option("--to", "version", default=None, help="Pack version (default: latest)")
@click.option("--name", default=None, help="What the assistant should call you")
@click.option("--timezone", default=None, help="IANA timezone, e.g. Europe/Berlin")
@click.option("--style", type=click.Choice(RESPONSE_STYLES), default=None)
@click.option("--external-action-policy", type=click.Choice(EXTERNAL_ACTION_POLICIES), default=None)
@click.option("--coding-task-first/--no-coding-task-first", default=None)
@click.option("--quiet-hours", default=None, help="HH:mm-HH:mm")
@click.option("--proactive-cadence", type=click.Choice(PROACTIVE_CADENCE_PRESETS), default=None)
@click.option("--non-interactive", is_flag=True, help="Never prompt; use flags and defaults")
@json_option
def bootstrap_run(
    force: bool,
    version: str | None,
    name: str | None,
    timezone: str | None,
    style: str | None,
    external_action_policy: str | None,
    coding_task_first: bool | None,
    quiet_hours: str | None,
    proactive_cadence: str | None,
    non_interactive: bool,
    as_json: bool,
):
    """Apply the profile pack, record onboarding answers and mark bootstrap completed."""
    c = get_components()
    overrides = {
        "name": name,
        "timezone": timezone,
        "style": style,
        "externalActionPolicy": external_action_policy,
        "codingTaskFirst": coding_task_first,
        "quietHours": quiet_hours,
        "proactiveCadence": proactive_cadence,
    }

    prompt = None
    if not non_interactive and not as_json and sys.stdin.isatty():
        questionnaire = OnboardingQuestionnaire(
            input_fn=lambda q: console.input(q),
            output_fn=lambda t: console.print(t),
        )
        prompt = questionnaire.run

    try:
        payload = c["manager"].run(overrides, version=version, force=force, prompt=prompt)
    except (UnknownProfilePackError, OnboardingValidationError) as e:
        _fail(e, as_json)

    if as_json:
        print_json(payload)
        return

    console.print(f"[green]{payload['message']}[/]")
    console.print(f"Status: {payload['status']} | Version: {payload['version'] or 'none'}")
    if "appliedCounts" in payload:
        console.print(_counts_table("Applied", payload["appliedCounts"]))
        console.print(f"[dim]Onboarding entries written: {payload['onboardingApplied']}[/]")


def _print_plan_result(payload: dict, label: str):
    if payload["dryRun"]:
        console.print(f"[yellow]Dry run[/] {label} -> {payload['toVersion']}")
        console.print(_counts_table("Plan", payload["planCounts"]))
        if payload["actions"]:
            console.print(_actions_table(payload["actions"]))
        return

    console.print(f"[green]{label.capitalize()} complete.[/] Version: {payload['toVersion']}")
    console.print(_counts_table("Applied", payload["appliedCounts"]))


@bootstrap.command("reapply")
@click.option("--to", "version", default=None, help="Pack version (default: installed)")
@click.option("--dry-run", is_flag=True, help="Show the plan without writing")
@json_option
def bootstrap_reapply(version: str | None, dry_run: bool, as_json: bool):
    """Re-apply a pack version; user-edited entries are preserved."""
    c = get_components()
    try:
        payload = c["manager"].reapply(version, dry_run=dry_run)
    except UnknownProfilePackError as e:
        _fail(e, as_json)

    if as_json:
        print_json(payload)
    else:
        _print_plan_result(payload, "reapply")


@bootstrap.command("upgrade")
@click.option("--to", "version", required=True, help="Target pack version")
@click.option("--dry-run", is_flag=True, help="Show the plan without writing")
@json_option
def bootstrap_upgrade(version: str, dry_run: bool, as_json: bool):
    """Move managed entries to a newer pack version."""
    c = get_components()
    try:
        payload = c["manager"].upgrade(version, dry_run=dry_run)
    except UnknownProfilePackError as e:
        _fail(e, as_json)

    if as_json:
        print_json(payload)
    else:
        _print_plan_result(payload, "upgrade")


@bootstrap.command("diff")
@click.option("--to", "version", default=None, help="Target pack version")
@json_option
def bootstrap_diff(version: str | None, as_json: bool):
    """Show what applying a pack version would change."""
    c = get_components()
    try:
        payload = c["manager"].diff(version)
    except UnknownProfilePackError as e:
        _fail(e, as_json)

    if as_json:
        print_json(payload)
        return

    console.print(
        f"Diff {payload['fromVersion'] or 'none'} -> {payload['toVersion']} ([cyan]{payload['mode']}[/])"
    )
    console.print(_counts_table("Plan", payload["planCounts"]))
    if payload["actions"]:
        console.print(_actions_table(payload["actions"]))


@bootstrap.command("reset")
@click.option("--confirm", default=None, help="Type RESET_BOOTSTRAP to confirm")
@click.option("--purge-managed", is_flag=True, help="Also remove managed and profile-sourced entries")
@json_option
def bootstrap_reset(confirm: str | None, purge_managed: bool, as_json: bool):
    """Clear bootstrap markers so the next run starts fresh."""
    c = get_components()
    try:
        payload = c["manager"].reset(confirm, purge_managed=purge_managed)
    except ResetConfirmationError as e:
        _fail(e, as_json)

    if as_json:
        print_json(payload)
    else:
        console.print(f"[green]{payload['message']}[/]")


@bootstrap.command("audit")
@click.option("--limit", "-n", default=50, help="Number of events to show")
@json_option
def bootstrap_audit(limit: int, as_json: bool):
    """Show recent lifecycle events."""
    c = get_components()
    events = c["manager"].audit_events(limit)
    if as_json:
        print_json({"ok": True, "events": events})
        return

    if not events:
        console.print("No bootstrap events recorded.")
        return

    table = Table(title="Bootstrap events")
    table.add_column("Time", style="dim")
    table.add_column("Op")
    table.add_column("Phase")
    table.add_column("Versions")
    table.add_column("Result")
    table.add_column("Message")
    for e in events:
        versions = f"{e.get('fromVersion') or '-'} -> {e.get('toVersion') or '-'}"
        result = e.get("result") or ""
        color = {"ok": "green", "warning": "yellow", "error": "red"}.get(result, "white")
        table.add_row(
            e["ts"],
            e["op"],
            e["phase"],
            versions,
            f"[{color}]{result}[/]",
            e.get("errorCode") or e.get("message") or "",
        )
    console.print(table)
