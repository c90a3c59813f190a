"""Brain CLI entry point."""

import click

from cli.commands import bootstrap, memory
from cli.config import load_config_model
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON on stderr")
def cli(verbose: bool, log_json: bool):
    """Brain - profile bootstrap and memory log tools."""
    try:
        logging_cfg = load_config_model().logging
        level, json_mode = logging_cfg.level, logging_cfg.json_mode
    except ValueError:
        # Reported by the command itself once it loads config
        level, json_mode = "INFO", False
    if verbose:
        level = "DEBUG"
    setup_logging(json_mode=json_mode or log_json, level=level)


cli.add_command(bootstrap)
cli.add_command(memory)


if __name__ == "__main__":
    cli()
