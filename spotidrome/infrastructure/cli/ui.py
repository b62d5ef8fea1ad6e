"""UI helpers for CLI interaction.

This module provides reusable UI components and helpers for the CLI,
keeping the presentation logic separate from business logic.
"""

from collections.abc import Callable
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.table import Table
import typer

from spotidrome.config import get_logger
from spotidrome.domain.entities import (
    ExportError,
    ExportResult,
    FavoritesExportResult,
    UpdatePreview,
    UpdateResult,
)
from spotidrome.domain.exceptions import DestinationAuthError, OperationCancelledError
from spotidrome.domain.matching.types import (
    ExportEstimate,
    MatchStatistics,
    MatchStatus,
    TrackMatch,
)

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

# Type variables for command handler decorator
P = ParamSpec("P")
R = TypeVar("R")

EXIT_CANCELLED = 130
MAX_ISSUE_ROWS = 25


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    This decorator wraps a command function to:
    1. Provide consistent error handling using Typer's Exit mechanism
    2. Log errors using Loguru with proper context
    3. Display user-friendly error messages with Rich

    Args:
        func: The command function to wrap

    Returns:
        Wrapped function with integrated error handling
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        # Get operation name from function name for logging context
        operation = func.__name__.replace("_", " ")

        # Execute with logging context
        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                # Let typer.Exit propagate to Typer - it's already being handled
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except OperationCancelledError as e:
                logger.info(f"Operation {operation} cancelled")
                console.print(f"\n[yellow]⚠ {e}[/yellow]")
                raise typer.Exit(code=EXIT_CANCELLED) from e

            except DestinationAuthError as e:
                logger.error(f"Navidrome authorization failed during {operation}: {e}")
                console.print(
                    f"\n[bold red]✗ Navidrome connection failed:[/bold red] {e}\n"
                    "[dim]Check NAVIDROME_URL, NAVIDROME_USERNAME and NAVIDROME_PASSWORD.[/dim]"
                )
                raise typer.Exit(code=1) from e

            except Exception as e:
                # Log the exception with full traceback
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def _summary_table(rows: list[tuple[str, str]]) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="cyan")
    table.add_column(style="green bold")
    for metric, value in rows:
        table.add_row(metric, value)
    return table


def display_match_statistics(
    statistics: MatchStatistics, estimate: ExportEstimate | None = None
) -> None:
    console.print("\n[bold blue]Matching Results[/bold blue]")
    rows = [
        ("Total Tracks", str(statistics.total)),
        ("Matched", f"{statistics.matched} ({statistics.matched_percentage:.1f}%)"),
        ("Ambiguous", str(statistics.ambiguous)),
        ("Unmatched", str(statistics.unmatched)),
    ]
    if estimate is not None:
        rows.extend([
            ("Will Export", str(estimate.estimated_exported)),
            ("Will Skip", str(estimate.estimated_skipped)),
        ])
    console.print(_summary_table(rows))


def display_match_issues(matches: list[TrackMatch]) -> None:
    """List ambiguous and unmatched tracks so nothing is hidden from the user."""
    issues = [m for m in matches if m.status is not MatchStatus.MATCHED]
    if not issues:
        return

    table = Table(title="Tracks Needing Attention")
    table.add_column("Status", style="yellow")
    table.add_column("Artist", style="cyan")
    table.add_column("Track", style="green")
    table.add_column("Candidates", style="dim")
    for match in issues[:MAX_ISSUE_ROWS]:
        candidates = ", ".join(
            f"{c.artist} - {c.title}" for c in match.candidates[:3]
        )
        table.add_row(
            match.status.value,
            match.source_track.artist_names,
            match.source_track.title,
            candidates or "-",
        )
    console.print(table)
    if len(issues) > MAX_ISSUE_ROWS:
        console.print(f"[dim]... and {len(issues) - MAX_ISSUE_ROWS} more[/dim]")


def display_errors(errors: list[ExportError]) -> None:
    if not errors:
        return
    table = Table(title="Errors")
    table.add_column("Artist", style="cyan")
    table.add_column("Track", style="green")
    table.add_column("Reason", style="red")
    for error in errors[:MAX_ISSUE_ROWS]:
        table.add_row(error.artist_name, error.track_name, error.reason)
    console.print(table)
    if len(errors) > MAX_ISSUE_ROWS:
        console.print(f"[dim]... and {len(errors) - MAX_ISSUE_ROWS} more[/dim]")


def _status_line(success: bool, failed: int) -> str:
    if not success:
        return "[bold red]✗ Failed[/bold red]"
    if failed:
        return "[yellow]⚠ Partially completed[/yellow]"
    return "[green]✓ Completed[/green]"


def display_export_result(result: ExportResult) -> None:
    stats = result.statistics
    console.print(f"\n[bold blue]Export: {result.playlist_name}[/bold blue]")
    console.print(
        _summary_table([
            ("Status", _status_line(result.success, stats.failed)),
            ("Mode", result.mode.value),
            ("Playlist ID", result.playlist_id or "-"),
            ("Total", str(stats.total)),
            ("Exported", str(stats.exported)),
            ("Skipped", str(stats.skipped)),
            ("Failed", str(stats.failed)),
            ("Duration", f"{result.duration_ms / 1000:.1f}s"),
        ])
    )
    display_errors(result.errors)


def display_favorites_result(result: FavoritesExportResult) -> None:
    stats = result.statistics
    console.print("\n[bold blue]Favorites Export[/bold blue]")
    console.print(
        _summary_table([
            ("Status", _status_line(result.success, stats.failed)),
            ("Total", str(stats.total)),
            ("Starred", str(stats.starred)),
            ("Skipped", str(stats.skipped)),
            ("Failed", str(stats.failed)),
            ("Duration", f"{result.duration_ms / 1000:.1f}s"),
        ])
    )
    display_errors(result.errors)


def display_update_result(result: UpdateResult) -> None:
    stats = result.statistics
    console.print(f"\n[bold blue]Update: {result.playlist_name}[/bold blue]")
    console.print(
        _summary_table([
            ("Status", _status_line(result.success, stats.failed)),
            ("Source Tracks", str(stats.total_source_tracks)),
            ("Already In Playlist", str(stats.already_in_playlist)),
            ("Added", str(stats.added_to_playlist)),
            ("Failed", str(stats.failed)),
            ("Duration", f"{result.duration_ms / 1000:.1f}s"),
        ])
    )
    display_errors(result.errors)


def display_update_preview(preview: UpdatePreview) -> None:
    console.print("\n[bold blue]Update Preview[/bold blue]")
    console.print(
        _summary_table([
            ("Source Tracks", str(preview.total_source_tracks)),
            ("Already In Playlist", str(preview.already_in_playlist)),
            ("Will Add", str(preview.estimated_to_add)),
            ("Need Re-Match", str(preview.needs_rematch)),
        ])
    )
    if preview.needs_rematch:
        console.print(
            "[dim]Tracks without a cached match are skipped; run "
            "[bold]spotidrome export --mode sync[/bold] to match them.[/dim]"
        )
