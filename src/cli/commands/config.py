"""Config CLI commands."""

import click
import yaml
from rich.console import Console

from cli.config import find_config, load_config_model

console = Console()


def _mask(key: str | None) -> str | None:
    if not key:
        return key
    return key[:6] + "..." if len(key) > 10 else "***"


@click.group("config")
def config_cmd():
    """Inspect curator configuration."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx):
    """Print the effective configuration as YAML (API key masked)."""
    config_path = (ctx.obj or {}).get("config_path")
    try:
        model = load_config_model(config_path)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        raise SystemExit(1)

    data = model.to_dict()
    data["llm"]["api_key"] = _mask(data["llm"].get("api_key"))
    data["structure"]["canonical_folders"] = model.structure.canonical_folders()

    source = config_path or find_config()
    click.echo(f"# source: {source or 'built-in defaults'}")
    click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
