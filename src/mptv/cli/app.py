"""
Main application entry point for the mptv CLI
"""

import typer
from functools import wraps
from datetime import datetime, timedelta, timezone
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from mptv import recurrence
from mptv.cli import config
from mptv.cli.utils import get_app_state
from mptv.errors import TvServiceError


console = Console()

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config.app, name="config", help="Manage mptv configuration", rich_help_panel="⚙️ Settings")


def handle_errors(func):
    """Prints backend errors instead of a traceback"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TvServiceError as e:
            console.print(f"[red]{type(e).__name__}:[/] {str(e)}")
            raise typer.Exit(1)

    return wrapper


def _when(value: datetime) -> str:
    return value.astimezone().strftime("%a %d %b %H:%M") if value else "-"


@app.command(rich_help_panel="📋 Backend")
@handle_errors
def status(ctx: typer.Context):
    """Shows the backend status and its tuner cards"""

    service = ctx.obj.get("service")
    info = service.get_status_info()
    connected = "[green]connected[/]" if info.has_connection_to_tv_server else "[red]not connected[/]"
    console.print(f"\n📡 Service v{info.service_version} (API {info.api_version}), TV server {connected}\n")

    active = {card.id: card for card in service.get_active_cards()}
    table = Table("Id", "Name", "Enabled", "Activity")
    for card in service.get_tuner_cards():
        busy = active.get(card.id)
        activity = f"{'recording' if busy.is_recording else 'streaming'} {busy.channel_name}" if busy else ""
        table.add_row(str(card.id), card.name, "✅" if card.enabled else "❌", activity)
    console.print(table)


@app.command(rich_help_panel="📋 Guide")
@handle_errors
def channels(
    ctx: typer.Context,
    groups: bool = typer.Option(False, "--groups", "-g", help="List channel groups instead"),
):
    """Lists the channels visible in the guide"""

    service = ctx.obj.get("service")

    if groups:
        table = Table("Id", "Group", "Type")
        for group in service.get_channel_groups():
            table.add_row(str(group.id), group.group_name, "Radio" if group.is_radio else "TV")
        console.print(table)
        return

    table = Table("Id", "Name", "Type")
    for channel in service.get_channels():
        table.add_row(channel.id, channel.name, channel.channel_type.value)
    console.print(table)


@app.command(rich_help_panel="📋 Guide", no_args_is_help=True)
@handle_errors
def programs(
    ctx: typer.Context,
    channel_id: Annotated[str, typer.Argument(help="Channel id", show_default=False)],
    hours: Annotated[int, typer.Option("--hours", "-H", help="How far ahead to look")] = 6,
):
    """Lists upcoming programs on a channel"""

    service = ctx.obj.get("service")
    start = datetime.now(timezone.utc)

    table = Table("Id", "Start", "End", "Title", "Genres")
    for program in service.get_programs(channel_id, start, start + timedelta(hours=hours)):
        table.add_row(program.id, _when(program.start_date), _when(program.end_date), program.name, ", ".join(program.genres))
    console.print(table)


@app.command(rich_help_panel="📋 Guide", no_args_is_help=True)
@handle_errors
def stream(
    ctx: typer.Context,
    channel_id: Annotated[str, typer.Argument(help="Channel id", show_default=False)],
):
    """Tunes a channel and prints its streaming URL"""

    service = ctx.obj.get("service")
    console.print(service.get_channel_stream(channel_id))


@app.command(rich_help_panel="📼 Recording")
@handle_errors
def recordings(ctx: typer.Context):
    """Lists recordings"""

    service = ctx.obj.get("service")

    table = Table("Id", "Start", "Title", "Series", "Path")
    for recording in service.get_recordings():
        table.add_row(
            recording.id,
            _when(recording.start_date),
            recording.name,
            recording.series_timer_id or ("✅" if recording.is_series else ""),
            recording.path or "",
        )
    console.print(table)


@app.command(name="delete-recording", rich_help_panel="📼 Recording", no_args_is_help=True)
@handle_errors
def delete_recording(
    ctx: typer.Context,
    recording_id: Annotated[str, typer.Argument(help="Recording id", show_default=False)],
):
    """Deletes a recording"""

    service = ctx.obj.get("service")
    service.delete_recording(recording_id)
    console.print(f"🗑️ Recording {recording_id} deleted")


@app.command(rich_help_panel="📼 Recording")
@handle_errors
def timers(ctx: typer.Context):
    """Lists one-off timers"""

    service = ctx.obj.get("service")

    table = Table("Id", "Start", "End", "Title", "Channel", "Series")
    for timer in service.get_timers():
        table.add_row(timer.id, _when(timer.start_date), _when(timer.end_date), timer.name, timer.channel_id, timer.series_timer_id or "")
    console.print(table)


@app.command(rich_help_panel="📼 Recording")
@handle_errors
def series(ctx: typer.Context):
    """Lists series timers and their recurrence"""

    service = ctx.obj.get("service")

    table = Table("Id", "Title", "Channel", "Recurrence", "Padding")
    for timer in service.get_series_timers():
        schedule_type = recurrence.encode(timer.recurrence)
        padding = f"-{timer.pre_padding_seconds // 60}m / +{timer.post_padding_seconds // 60}m"
        table.add_row(timer.id, timer.name, timer.channel_id, f"{recurrence.describe(schedule_type)} ({timer.recurrence})", padding)
    console.print(table)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version information"),
):
    if version:
        from importlib.metadata import version as package_version
        console.print(f"mptv v{package_version('mptv-bridge')}")
        raise typer.Exit()

    ctx.obj = get_app_state(verbose=verbose)


if __name__ == "__main__":
    app()
