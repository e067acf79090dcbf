"""CLI commands for SessionLab."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable

import click
from rich.console import Console
from rich.table import Table

from sessionlab.config import Settings, configure_logging
from sessionlab.core.engine import SessionLab
from sessionlab.core.models import (
    HISTORY_METRICS,
    InfoCategory,
    Message,
    SessionStatus,
    SessionType,
    TestSession,
)
from sessionlab.errors import SessionLabError

console = Console()

STATUS_COLORS = {
    SessionStatus.SCHEDULED: "blue",
    SessionStatus.IN_PROGRESS: "yellow",
    SessionStatus.COMPLETED: "green",
    SessionStatus.FAILED: "red",
}
TREND_ICONS = {"up": "[green]▲[/green]", "down": "[red]▼[/red]", "neutral": "[dim]●[/dim]"}


def _run(ctx: click.Context, action: Callable[[SessionLab], Awaitable[Any]]) -> Any:
    """Build a SessionLab, run ``action`` on it and report core errors."""
    settings: Settings = ctx.obj["settings"]
    factory = ctx.obj.get("lab_factory", SessionLab)

    async def _main():
        lab = factory(settings)
        try:
            return await action(lab)
        finally:
            await lab.aclose()

    try:
        return asyncio.run(_main())
    except SessionLabError as e:
        console.print(f"[red]✗ {type(e).__name__}: {str(e)}[/red]")
        ctx.exit(1)


def _print_session(session: TestSession) -> None:
    color = STATUS_COLORS[session.status]
    console.print(f"[bold]{session.title}[/bold] [dim]({session.id})[/dim]")
    console.print(f"  Type:         {session.type.value}")
    console.print(f"  Status:       [{color}]{session.status.value}[/{color}]")
    console.print(f"  Created:      {session.created_at.isoformat()}")
    if session.conversation_id:
        console.print(f"  Conversation: {session.conversation_id}")
    if session.completed_at:
        console.print(f"  Completed:    {session.completed_at.isoformat()}")

    metrics = session.metrics.to_json_dict()
    if metrics:
        table = Table(title="Metrics")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        for name, value in metrics.items():
            table.add_row(name, f"{value:g}" if isinstance(value, (int, float)) else str(value))
        console.print(table)


def _load_transcript(path: Path) -> list[Message]:
    data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("messages", [])
    return [Message.model_validate(item) for item in data]


@click.group()
@click.version_option(version="0.1.0")
@click.option("--db", "db_path", default=None, help="SQLite database path (default: $SESSIONLAB_DB_PATH or sessionlab.db)")
@click.option("--api-url", default=None, help="Remote API URL")
@click.option("--log-level", default=None, help="Log level (default: INFO)")
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, api_url: str | None, log_level: str | None):
    """SessionLab CLI - run test sessions and track AI quality metrics."""
    ctx.ensure_object(dict)
    settings = Settings.from_env(db_path=db_path, api_url=api_url, log_level=log_level)
    configure_logging(settings.log_level)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("session_type", type=click.Choice([t.value for t in SessionType]))
@click.option("--title", default=None, help="Session title (default: preset for the type)")
@click.option("--description", default=None, help="Session description")
@click.pass_context
def create(ctx: click.Context, session_type: str, title: str | None, description: str | None):
    """Create a scheduled test session.

    Non-baseline sessions require a completed baseline session.
    """
    session = _run(ctx, lambda lab: lab.create(session_type, title, description))
    console.print(f"[green]✓[/green] Created session [cyan]{session.id}[/cyan]")
    _print_session(session)


@cli.command()
@click.argument("session_id")
@click.pass_context
def start(ctx: click.Context, session_id: str):
    """Start a scheduled session by opening a remote conversation."""
    session = _run(ctx, lambda lab: lab.start(session_id))
    console.print(f"[green]✓[/green] Started session, conversation [cyan]{session.conversation_id}[/cyan]")


@cli.command()
@click.argument("session_id")
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def complete(ctx: click.Context, session_id: str, transcript: Path):
    """Score a transcript and complete the session.

    TRANSCRIPT: JSON file with a list of messages ({text, isUser, metadata?})
    """
    try:
        messages = _load_transcript(transcript)
    except ValueError as e:
        console.print(f"[red]Invalid transcript: {str(e)}[/red]")
        ctx.exit(1)

    session = _run(ctx, lambda lab: lab.finish(session_id, messages))
    console.print("[green]✓[/green] Session completed")
    _print_session(session)


@cli.command()
@click.argument("session_id")
@click.option("--reason", default="", help="Why the session failed")
@click.pass_context
def fail(ctx: click.Context, session_id: str, reason: str):
    """Mark an in-progress session as failed."""
    _run(ctx, lambda lab: lab.fail(session_id, reason))
    console.print(f"[yellow]Session {session_id} marked as failed[/yellow]")


@cli.command("list")
@click.option("--type", "session_type", type=click.Choice([t.value for t in SessionType]), default=None)
@click.pass_context
def list_sessions(ctx: click.Context, session_type: str | None):
    """List test sessions."""
    sessions = _run(ctx, lambda lab: lab.sessions(session_type))

    if not sessions:
        console.print("[yellow]No test sessions found.[/yellow]")
        return

    table = Table(title="Test Sessions")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Type", style="cyan")
    table.add_column("Status")
    table.add_column("Created")

    for s in sessions:
        color = STATUS_COLORS[s.status]
        table.add_row(
            s.id,
            s.title,
            s.type.value,
            f"[{color}]{s.status.value}[/{color}]",
            s.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@cli.command()
@click.argument("session_id")
@click.pass_context
def show(ctx: click.Context, session_id: str):
    """Show one session and its metrics."""
    session = _run(ctx, lambda lab: lab.get(session_id))
    if session is None:
        console.print(f"[red]Session not found: {session_id}[/red]")
        ctx.exit(1)
    _print_session(session)


@cli.command()
@click.pass_context
def history(ctx: click.Context):
    """Show the latest value and trend of every tracked metric."""

    async def _collect(lab: SessionLab):
        return await lab.history(), await lab.summary()

    entries, summary = _run(ctx, _collect)

    table = Table(title="Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Latest", justify="right")
    table.add_column("Trend", justify="center")
    table.add_column("Sessions", justify="right")

    for metric in HISTORY_METRICS:
        s = summary[metric]
        latest = f"{s.latest:g}" if s.latest is not None else "-"
        trend = TREND_ICONS[s.trend] + (f" {s.change:.1f}" if s.change else "")
        table.add_row(metric, latest, trend, str(len(entries.get(metric, []))))
    console.print(table)


@cli.command()
@click.argument("category", type=click.Choice([c.value for c in InfoCategory]))
@click.argument("fields", nargs=-1, required=True)
@click.pass_context
def share(ctx: click.Context, category: str, fields: tuple):
    """Record shared information for a category.

    FIELDS: one or more KEY=VALUE pairs
    """
    payload: dict[str, str] = {}
    for field in fields:
        key, sep, value = field.partition("=")
        if not sep or not key:
            console.print(f"[red]Expected KEY=VALUE, got: {field}[/red]")
            ctx.exit(1)
        payload[key] = value

    stored = _run(ctx, lambda lab: lab.share(category, payload))
    console.print(f"[green]✓[/green] Updated [cyan]{category}[/cyan] ({len(stored) - 1} fields)")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8765, type=int, help="Port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Run the dashboard API server."""
    import uvicorn

    from sessionlab.dashboard.server import create_app

    settings: Settings = ctx.obj["settings"]
    lab = ctx.obj.get("lab_factory", SessionLab)(settings)
    console.print(f"Serving dashboard on [cyan]http://{host}:{port}[/cyan]")
    uvicorn.run(create_app(lab), host=host, port=port, log_level=settings.log_level.lower())


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
