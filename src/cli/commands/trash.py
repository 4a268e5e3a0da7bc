"""Trash CLI command: list notes soft-deleted by tidy runs."""

import json

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components

console = Console()


@click.command("trash")
@click.option("--json", "as_json", is_flag=True, help="Print tombstones as JSON")
@click.pass_context
def trash(ctx, as_json: bool):
    """List tombstones in the vault trash."""
    c = get_components((ctx.obj or {}).get("config_path"), use_ai=False)
    entries = [
        {
            "original_path": e["original_path"],
            "deleted_at": str(e["deleted_at"]) if e["deleted_at"] else None,
            "tombstone": e["tombstone"],
            "size": len(e["content"]),
        }
        for e in c["vault"].list_trash()
    ]

    if as_json:
        click.echo(json.dumps(entries, indent=2))
        return

    if not entries:
        console.print("Trash is empty.")
        return

    table = Table(title=f"Trash ({c['vault'].trash_dir})")
    table.add_column("Original path", style="cyan")
    table.add_column("Deleted")
    table.add_column("Size", justify="right")
    table.add_column("Tombstone", style="dim")
    for e in entries:
        table.add_row(e["original_path"] or "-", e["deleted_at"] or "-", str(e["size"]), e["tombstone"])
    console.print(table)
