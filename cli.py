#!/usr/bin/env python3
"""
Notekeeper CLI.

Primary entry point for running the server and managing notes from the
command line. Note commands call NoteService directly against the
configured notes file; no server needs to be running.

Usage:
    python cli.py --help
    python cli.py server --reload --verbose
    python cli.py config
    python cli.py notes list --category Work
    python cli.py notes add "Buy milk" "2%"
    python cli.py notes update <id> --done
    python cli.py notes delete <id>
    python cli.py notes due --window 600
"""

import asyncio
import json
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notekeeper.backend.core.exceptions import ApplicationError
from notekeeper.backend.core.logging import bind_source, get_logger, setup_logging
from notekeeper.backend.models.note import Note

console = Console()


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _build_service(data_file: str | None):
    from notekeeper.backend.core.config import get_app_config
    from notekeeper.backend.repositories.note import NoteStore
    from notekeeper.backend.services.note import NoteService

    app_config = get_app_config()
    if data_file:
        storage = app_config.storage
        store = NoteStore(
            data_file,
            indent=storage.indent,
            fsync=storage.fsync,
            backup_corrupt=storage.backup_corrupt,
        )
    else:
        store = NoteStore.from_config()
    return NoteService(store, reminder_window_seconds=app_config.reminders.window_seconds)


def _run(ctx: click.Context, operation: str, *args: Any, **kwargs: Any) -> Any:
    """Run one NoteService coroutine, turning application errors into CLI errors."""
    service = _build_service(ctx.obj.get("data_file"))
    try:
        return asyncio.run(getattr(service, operation)(*args, **kwargs))
    except ApplicationError as e:
        raise click.ClickException(f"{e.message} ({e.code})") from e


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else ""


def _print_notes(notes: list[Note], as_json: bool, title: str = "Notes") -> None:
    if as_json:
        click.echo(json.dumps([note.to_record() for note in notes], indent=2, ensure_ascii=False))
        return
    if not notes:
        console.print("[dim]No notes found.[/dim]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Category")
    table.add_column("Reminder")
    table.add_column("Done", justify="center")
    table.add_column("Updated")
    for note in notes:
        table.add_row(
            note.id,
            note.title,
            note.category,
            _format_time(note.reminder_date) if note.is_reminder else "",
            "✓" if note.completed else "",
            _format_time(note.updated_at),
        )
    console.print(table)


def _print_note(note: Note) -> None:
    click.echo(json.dumps(note.to_record(), indent=2, ensure_ascii=False))


@click.group()
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--data-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Notes file to use instead of the configured one.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, debug: bool, data_file: str | None) -> None:
    """
    Notekeeper CLI.

    Run the API server or manage notes directly.

    \b
    Examples:
        python cli.py server --reload --verbose
        python cli.py config
        python cli.py notes list
        python cli.py notes add "Standup" "Prepare notes" --category Work
        python cli.py notes due
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")
    bind_source("cli")

    ctx.ensure_object(dict)
    ctx.obj["data_file"] = data_file
    get_logger(__name__).debug(
        "CLI invoked",
        extra={"command": ctx.invoked_subcommand, "log_level": log_level},
    )


@main.command()
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Enable auto-reload.")
def server(host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI server."""
    from notekeeper.backend.core.config import get_server_address

    logger = get_logger(__name__)
    default_host, default_port = get_server_address()
    server_host = host or default_host
    server_port = port or default_port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "notekeeper.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]
    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


@main.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show the effective configuration."""
    from notekeeper.backend.core.config import (
        get_app_config,
        get_data_file_path,
        get_log_level,
    )

    app_config = get_app_config()
    data_file = ctx.obj.get("data_file") or str(get_data_file_path())

    table = Table(title="Configuration", show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("name", app_config.application.name)
    table.add_row("version", app_config.application.version)
    table.add_row("environment", app_config.application.environment)
    table.add_row("server", f"{app_config.application.server.host}:{app_config.application.server.port}")
    table.add_row("data_file", data_file)
    table.add_row("fsync", str(app_config.storage.fsync))
    table.add_row("backup_corrupt", str(app_config.storage.backup_corrupt))
    table.add_row("reminder_window_seconds", str(app_config.reminders.window_seconds))
    table.add_row("log_level", get_log_level())
    console.print(table)


@main.group()
def notes() -> None:
    """Create, edit, delete and list notes."""


@notes.command("list")
@click.option("--category", default=None, help="Exact category to filter by.")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON.")
@click.pass_context
def list_notes(ctx: click.Context, category: str | None, as_json: bool) -> None:
    """List notes."""
    result = _run(ctx, "list_notes", category=category)
    _print_notes(result, as_json)


@notes.command("show")
@click.argument("note_id")
@click.pass_context
def show_note(ctx: click.Context, note_id: str) -> None:
    """Show one note as JSON."""
    _print_note(_run(ctx, "get_note", note_id))


@notes.command("add")
@click.argument("title")
@click.argument("content")
@click.option("--category", default=None, help="Category (default: Personal).")
@click.option(
    "--remind-at",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Make the note a reminder due at this UTC time.",
)
@click.pass_context
def add_note(
    ctx: click.Context,
    title: str,
    content: str,
    category: str | None,
    remind_at: datetime | None,
) -> None:
    """Create a note."""
    data: dict[str, Any] = {"title": title, "content": content, "category": category}
    if remind_at is not None:
        data.update(is_reminder=True, reminder_date=remind_at)
    _print_note(_run(ctx, "create_note", data))


@notes.command("update")
@click.argument("note_id")
@click.option("--title", default=None, help="New title.")
@click.option("--content", default=None, help="New content.")
@click.option("--category", default=None, help="New category.")
@click.option(
    "--remind-at",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Set the reminder time (UTC) and mark the note as a reminder.",
)
@click.option("--clear-reminder", is_flag=True, help="Remove the reminder.")
@click.option("--done/--not-done", "completed", default=None, help="Set completion status.")
@click.pass_context
def update_note(
    ctx: click.Context,
    note_id: str,
    title: str | None,
    content: str | None,
    category: str | None,
    remind_at: datetime | None,
    clear_reminder: bool,
    completed: bool | None,
) -> None:
    """Update fields of a note; unspecified fields are kept."""
    patch: dict[str, Any] = {
        key: value
        for key, value in {
            "title": title,
            "content": content,
            "category": category,
            "completed": completed,
        }.items()
        if value is not None
    }
    if clear_reminder:
        patch.update(is_reminder=False, reminder_date=None)
    elif remind_at is not None:
        patch.update(is_reminder=True, reminder_date=remind_at)
    _print_note(_run(ctx, "update_note", note_id, patch))


@notes.command("delete")
@click.argument("note_id")
@click.pass_context
def delete_note(ctx: click.Context, note_id: str) -> None:
    """Delete a note permanently."""
    _run(ctx, "delete_note", note_id)
    click.echo(f"Deleted {note_id}")


@notes.command("due")
@click.option("--window", "window_seconds", type=int, default=None, help="Look-ahead in seconds.")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON.")
@click.pass_context
def due_reminders(ctx: click.Context, window_seconds: int | None, as_json: bool) -> None:
    """List open reminders that are overdue or due soon."""
    result = _run(ctx, "list_due_reminders", window_seconds=window_seconds)
    _print_notes(result, as_json, title="Due reminders")


if __name__ == "__main__":
    main()
