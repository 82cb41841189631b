"""
Command group of config-related commands for the mptv CLI
"""

import typer
from rich.console import Console
from typing_extensions import Annotated

from mptv.errors import ConfigurationError
from mptv.models import ValidationResult


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Manage mptv configuration",
)


@app.command(
    rich_help_panel="📋 View & Edit"
)
def show(
    ctx: typer.Context
):
    """Prints the config in a human-readable format"""

    config_manager = ctx.obj.get("config_manager")
    try:
        config = config_manager.snapshot()
    except ConfigurationError as e:
        console.print(f"[red]{type(e).__name__}:[/] {str(e)}")
        _print_issues(config_manager.validate_config())
        raise typer.Exit(1)

    console.print(f"\n📝 [dim]{config_manager.config_file_path}[/]\n")

    console.print("[bold cyan]Backend[/]\n")
    console.print(f"  🌐 [yellow]{config.base_url}[/]")
    console.print(f"  👤 User: [yellow]{config.username or 'anonymous'}[/]")

    console.print("\n[bold cyan]Channels[/]\n")
    console.print(f"  📺 Group: [yellow]{config.default_channel_group or 'all'}[/]")
    console.print(f"  🔢 Sort order: [yellow]{config.channel_sort_order.value}[/]")

    console.print("\n[bold cyan]Recordings[/]\n")
    if not config.enable_direct_access:
        console.print("  ⚠️ Direct access disabled")
    elif config.requires_path_substitution:
        console.print(f"  📂 [dim]{config.local_file_path}[/] → [dim]{config.remote_file_path}[/]")
    else:
        console.print("  📂 Direct access without path substitution")

    console.print("\n[bold cyan]Genres[/]\n")
    for tag in config_manager.genre_tags():
        console.print(f"  🏷️ [yellow]{tag}[/]: {', '.join(config.genre_mappings[tag])}")

    # Validate and show any issues
    _print_issues(config_manager.validate_config())


def _print_issues(validation: ValidationResult) -> None:
    if validation.failed or validation.warnings:
        console.print("\n[bold yellow]Configuration Issues:[/]")
        for key, result in validation.errors.items():
            for item in result:
                console.print(f"  ❗ [red]{key.upper()}:[/] {item}")
        for key, result in validation.warnings.items():
            for item in result:
                console.print(f"  ⚠️ [yellow]{key.upper()}:[/] {item}")


@app.command(
    rich_help_panel="📋 View & Edit"
)
def path(
    ctx: typer.Context,
    local: Annotated[str, typer.Argument(help="Path prefix as reported by the backend", show_default=False)] = None,
    remote: Annotated[str, typer.Argument(help="Path prefix to use instead", show_default=False)] = None,
):
    """Enables direct access to recordings, optionally substituting a path prefix"""

    if (local is None) != (remote is None):
        console.print("[red]Both a local and a remote path are needed for substitution[/]")
        raise typer.Exit(1)

    config_manager = ctx.obj.get("config_manager")
    if config_manager.set_path_substitution(local, remote):
        console.print("✅ Direct access enabled" + (f": {local} → {remote}" if local else ""))
    else:
        console.print("[red]Configuration was not saved, see the log for details[/]")
        raise typer.Exit(1)
