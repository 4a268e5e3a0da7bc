"""Undo CLI commands: list, show, run, clear."""

import sys
from datetime import datetime

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components

console = Console()


def _fmt_time(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def _store(ctx):
    return get_components((ctx.obj or {}).get("config_path"), use_ai=False)


@click.group()
def undo():
    """Reverse previous tidy sessions."""
    pass


@undo.command("list")
@click.option("--limit", "-n", default=10, help="Max sessions to show")
@click.option("--all", "include_undone", is_flag=True, help="Include sessions already undone")
@click.pass_context
def undo_list(ctx, limit: int, include_undone: bool):
    """List recent sessions, newest first."""
    from undo import UndoHistoryError

    c = _store(ctx)
    try:
        sessions = c["undo_store"].get_recent_sessions(limit=limit, include_undone=include_undone)
    except UndoHistoryError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    if not sessions:
        console.print("No undoable sessions.")
        return

    table = Table(title="Undo sessions")
    table.add_column("Session", style="cyan")
    table.add_column("Started")
    table.add_column("Ops", justify="right")
    table.add_column("Actions", style="dim")
    table.add_column("Status")

    for s in sessions:
        actions = sorted(set(s["actions"]))
        table.add_row(
            s["session_id"],
            _fmt_time(s["start_time"]),
            str(s["operation_count"]),
            ", ".join(actions),
            "undone" if s["undone"] else "active",
        )
    console.print(table)


@undo.command("show")
@click.argument("session_id")
@click.pass_context
def undo_show(ctx, session_id: str):
    """Show the operations recorded in a session."""
    from undo import UndoHistoryError

    c = _store(ctx)
    try:
        session = c["undo_store"].get_session(session_id)
    except UndoHistoryError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)
    if session is None:
        console.print(f"[red]Session not found: {session_id}[/]")
        sys.exit(1)

    console.print(f"Session: {session_id}")
    console.print(f"Started: {_fmt_time(session.start_time)}")
    console.print(f"Undone: {_fmt_time(session.undone_at) if session.undone else 'no'}")

    table = Table(show_header=True)
    table.add_column("Time")
    table.add_column("Action")
    table.add_column("Path")
    table.add_column("Target", style="dim")
    table.add_column("Content")

    for op in session.operations:
        table.add_row(
            _fmt_time(op.timestamp),
            str(op.action),
            op.original_path,
            op.target_path or "",
            "[red]expired[/]" if op.content_expired else "kept",
        )
    console.print(table)


@undo.command("run")
@click.argument("session_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def undo_run(ctx, session_id: str, yes: bool):
    """Undo every operation in a session, newest first."""
    from undo import UndoError

    c = _store(ctx)
    if not yes:
        if not click.confirm(f"Undo session {session_id}?"):
            return

    try:
        result = c["undo_store"].undo_session(session_id, c["vault"])
    except UndoError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    for detail in result.details:
        if detail.status == "undone":
            console.print(f"  [green]undone[/] {detail.action} {detail.path}")
        else:
            console.print(f"  [red]failed[/] {detail.action} {detail.path}: {detail.error}")

    console.print(f"\nUndone: {result.undone}, failed: {result.failed}")


@undo.command("clear")
@click.confirmation_option(prompt="Delete all undo history?")
@click.pass_context
def undo_clear(ctx):
    """Delete all undo history."""
    c = _store(ctx)
    c["undo_store"].clear_history()
    console.print("Undo history cleared.")
