"""Vault curator CLI entry point."""

from pathlib import Path

import click
from rich.console import Console

from cli.commands import config_cmd, scan, tidy, trash, undo
from cli.config import load_config_model
from cli.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines on stderr")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./curator.yaml, then ~/.vault-curator/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool, config_path: Path | None):
    """Vault curator - keep a markdown vault tidy, reversibly."""
    try:
        config_model = load_config_model(config_path)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        ctx.exit(1)

    level = "DEBUG" if verbose else config_model.logging.level
    setup_logging(json_mode=json_logs or config_model.logging.json_logs, level=level)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


cli.add_command(tidy)
cli.add_command(scan)
cli.add_command(undo)
cli.add_command(trash)
cli.add_command(config_cmd)


if __name__ == "__main__":
    cli()
