"""spotidrome CLI - Main application entry point and app structure."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

from rich.console import Console
import typer

from spotidrome import __version__
from spotidrome.config import get_logger, log_startup_info, settings, setup_loguru_logger
from spotidrome.infrastructure.cli.status_commands import register_status_commands
from spotidrome.infrastructure.cli.sync_commands import register_sync_commands

try:
    VERSION = version("spotidrome")
except PackageNotFoundError:
    VERSION = __version__

# Initialize console and logger with reasonable width
console = Console(width=80)
logger = get_logger(__name__)

# Initialize main app with modern configuration
app = typer.Typer(
    help=f"🎵 spotidrome v{VERSION} - Sync your Spotify library to Navidrome",
    no_args_is_help=True,  # Show help when no command provided
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

# Register command groups
register_status_commands(app)
register_sync_commands(app)


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(
        f"[bold bright_blue]🎵 spotidrome[/bold bright_blue] [dim]v{VERSION}[/dim]"
    )


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize spotidrome CLI."""
    # Store verbosity in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    # Setup logging first
    setup_loguru_logger(verbose)
    if verbose:
        log_startup_info()

    # Create data directory for the match cache
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)


def main() -> int:
    """Application entry point."""
    try:
        # Let Typer handle command execution
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
