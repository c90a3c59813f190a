"""Shared CLI utilities."""

import json
import sys

import click
import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components(config_path=None) -> dict:
    """Build store, audit log and bootstrap manager from config."""
    from bootstrap import AuditLog, BootstrapManager
    from brain import BrainStore
    from cli.config import get_paths, load_config_model

    try:
        config = load_config_model(config_path)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)

    paths = get_paths(config)
    store = BrainStore(paths["brain_path"])
    audit = AuditLog(paths["audit_path"])
    manager = BootstrapManager(
        store,
        audit,
        profile_id=config.bootstrap.profile_id,
        default_version=config.bootstrap.default_version,
    )

    return {
        "config": config,
        "paths": paths,
        "store": store,
        "audit": audit,
        "manager": manager,
    }


def print_json(payload) -> None:
    """Machine-readable output on stdout."""
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
