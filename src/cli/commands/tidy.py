"""Tidy CLI commands: scan the vault and fix what can be fixed."""

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components

console = Console()

CHECKS_HELP = "Checks to run: dupes, structure, stubs or all (default: all)"


def _resolve_checks_or_exit(checks: tuple[str, ...]) -> list[str]:
    from tidy.scanner import resolve_checks

    try:
        resolve_checks(checks)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)
    return list(checks) or ["all"]


@click.command("tidy", help=f"Detect and fix vault housekeeping issues.\n\n{CHECKS_HELP}")
@click.argument("checks", nargs=-1)
@click.option("--dry-run", is_flag=True, help="Preview actions without changing anything")
@click.option("--session-id", default=None, help="Undo session id (default: generated)")
@click.option("--no-ai", is_flag=True, help="Flag low-confidence issues instead of asking the LLM")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def tidy(ctx, checks, dry_run: bool, session_id: str | None, no_ai: bool, as_json: bool):
    from tidy.executor import TidyExecutor
    from undo import UndoHistoryError

    checks = _resolve_checks_or_exit(checks)
    c = get_components((ctx.obj or {}).get("config_path"), use_ai=not no_ai)

    executor = TidyExecutor(c["vault"], c["undo_store"], c["settings"], provider=c["provider"])
    try:
        if as_json:
            report = executor.run(checks=checks, dry_run=dry_run, session_id=session_id)
            click.echo(json.dumps(report.to_dict(), indent=2, default=str))
            return

        with console.status("Tidying vault..."):
            report = executor.run(checks=checks, dry_run=dry_run, session_id=session_id)
    except UndoHistoryError as e:
        console.print(f"[red]{e}[/]")
        console.print("Nothing was changed. Fix or remove the history file, or use --dry-run.")
        sys.exit(1)
    _print_report(report)


def _print_report(report):
    mode = "[yellow]DRY RUN[/] " if report.dry_run else ""
    console.print(
        f"{mode}Scanned {report.total_notes} notes, "
        f"{report.total_issues} issues ({report.raw_issue_count} before dedup)"
    )

    counts = report.counts()
    table = Table(show_header=True)
    table.add_column("Outcome")
    table.add_column("Count", justify="right")
    table.add_row("[green]Auto-fixed[/]", str(counts["auto_fixed"]))
    table.add_row("[cyan]AI-fixed[/]", str(counts["ai_fixed"]))
    table.add_row("[yellow]Flagged[/]", str(counts["flagged"]))
    table.add_row("[red]Failed[/]", str(counts["failed"]))
    console.print(table)

    for result in report.auto_fixed + report.ai_fixed:
        verb = "would " + str(result.action) if report.dry_run else str(result.action)
        target = f" -> {result.target_path}" if result.target_path else ""
        console.print(f"  [green]{verb}[/] {result.path}{target} [dim]({result.source})[/]")

    if report.flagged:
        console.print("\n[bold]Flagged for review:[/]")
        for result in report.flagged:
            console.print(f"  [yellow]?[/] {result.path}: {result.flag_reason or result.reason}")

    if report.failed:
        console.print("\n[bold red]Failed:[/]")
        for result in report.failed:
            console.print(f"  [red]x[/] {result.path}: {result.error}")

    if not report.dry_run and (report.auto_fixed or report.ai_fixed):
        console.print(f"\nUndo with: [bold]curator undo run {report.session_id}[/]")


@click.command("scan", help=f"List housekeeping issues without changing anything.\n\n{CHECKS_HELP}")
@click.argument("checks", nargs=-1)
@click.pass_context
def scan(ctx, checks):
    from tidy.scanner import scan_vault

    checks = _resolve_checks_or_exit(checks)
    c = get_components((ctx.obj or {}).get("config_path"), use_ai=False)
    result = scan_vault(c["vault"], c["settings"], checks)

    if not result.issues:
        console.print(f"No issues found in {len(result.notes)} notes.")
        return

    table = Table(title=f"{len(result.issues)} issues in {len(result.notes)} notes")
    table.add_column("Path")
    table.add_column("Type")
    table.add_column("Subtype")
    table.add_column("Conf", justify="right", width=5)
    table.add_column("Suggested")
    table.add_column("Reason", style="dim")

    for issue in sorted(result.issues, key=lambda i: (-i.confidence, i.path)):
        table.add_row(
            issue.path,
            str(issue.type),
            issue.subtype,
            f"{issue.confidence:.2f}",
            str(issue.suggested_action),
            issue.reason[:80],
        )
    console.print(table)
