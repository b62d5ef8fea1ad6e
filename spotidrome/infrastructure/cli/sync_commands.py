"""Export, favorites and incremental update commands for spotidrome CLI."""

from typing import Annotated

from rich.console import Console
import typer

from spotidrome.application.services.matching_service import MatchingOptions
from spotidrome.application.use_cases.export_favorites import (
    FavoritesExporter,
    FavoritesOptions,
)
from spotidrome.application.use_cases.export_playlist import (
    ExportOptions,
    PlaylistExporter,
)
from spotidrome.application.use_cases.match_tracks import BatchMatcher
from spotidrome.application.use_cases.update_playlist import (
    IncrementalUpdateOrchestrator,
    UpdateOptions,
)
from spotidrome.application.utilities.cancellation import CancellationToken
from spotidrome.config import get_logger, settings
from spotidrome.domain.entities import ExportMode, ExportResult, Track
from spotidrome.domain.matching.types import estimate_export
from spotidrome.infrastructure.cli.async_helpers import interactive_async_operation
from spotidrome.infrastructure.cli.progress_provider import RichProgressProvider
from spotidrome.infrastructure.cli.ui import (
    command_error_handler,
    display_export_result,
    display_favorites_result,
    display_match_issues,
    display_match_statistics,
    display_update_preview,
    display_update_result,
)
from spotidrome.infrastructure.connectors.navidrome import NavidromeConnector
from spotidrome.infrastructure.connectors.spotify import SpotifyConnector
from spotidrome.infrastructure.persistence.match_cache import (
    MatchCacheStore,
    StoredPlaylistCache,
)

console = Console()
logger = get_logger(__name__)

LIKED_SOURCE = "liked"
LIKED_PLAYLIST_NAME = "Liked Songs"

SourceArgument = Annotated[
    str, typer.Argument(help=f"Spotify playlist ID, or '{LIKED_SOURCE}' for saved tracks")
]
ThresholdOption = Annotated[
    float | None,
    typer.Option(
        "--threshold",
        min=0.0,
        max=1.0,
        help="Fuzzy match threshold (defaults to MATCHING__FUZZY_THRESHOLD)",
    ),
]


def register_sync_commands(app: typer.Typer) -> None:
    """Register export, favorites and update commands with the Typer app."""
    app.command(
        name="export",
        help="Match a Spotify playlist and export it to Navidrome",
        rich_help_panel="🎵 Sync",
    )(export)
    app.command(
        name="favorites",
        help="Star matched Spotify tracks in Navidrome",
        rich_help_panel="🎵 Sync",
    )(favorites)
    app.command(
        name="update",
        help="Add previously matched tracks missing from an exported playlist",
        rich_help_panel="🎵 Sync",
    )(update)


async def _load_source(spotify: SpotifyConnector, source: str) -> tuple[list[Track], str]:
    """Fetch source tracks and a display name for them."""
    if source == LIKED_SOURCE:
        return await spotify.get_saved_tracks(), LIKED_PLAYLIST_NAME
    tracks = await spotify.get_playlist_tracks(source)
    return tracks, await spotify.get_playlist_name(source)


@command_error_handler
def export(
    source: SourceArgument,
    mode: Annotated[
        ExportMode, typer.Option("--mode", "-m", help="How to treat the destination playlist")
    ] = ExportMode.CREATE,
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Existing Navidrome playlist ID (append/sync/overwrite)"),
    ] = None,
    name: Annotated[
        str | None, typer.Option("--name", "-n", help="Playlist name (defaults to the Spotify name)")
    ] = None,
    skip_unmatched: Annotated[
        bool,
        typer.Option(
            "--skip-unmatched/--include-ambiguous",
            help="Skip ambiguous matches instead of exporting their best candidate",
        ),
    ] = True,
    threshold: ThresholdOption = None,
) -> None:
    """Match a Spotify playlist (or saved tracks) and export it to Navidrome."""
    if mode is not ExportMode.CREATE and target is None:
        stored = MatchCacheStore().load(source)
        if stored is None:
            console.print(f"[red]--target is required for mode '{mode.value}'[/red]")
            raise typer.Exit(code=2)
        target = stored.destination_playlist_id

    result = _run_export(source, mode, target, name, skip_unmatched, threshold)
    if not result.success:
        raise typer.Exit(code=1)


@interactive_async_operation()
async def _run_export(
    source: str,
    mode: ExportMode,
    target: str | None,
    name: str | None,
    skip_unmatched: bool,
    threshold: float | None,
    cancel_token: CancellationToken,
) -> ExportResult:
    spotify = SpotifyConnector()
    async with NavidromeConnector() as navidrome:
        await navidrome.ping()
        tracks, source_name = await _load_source(spotify, source)
        playlist_name = name or source_name
        options = MatchingOptions.from_settings(fuzzy_threshold=threshold)

        with logger.contextualize(source=source, mode=mode.value):
            with RichProgressProvider(console) as progress:
                matched = await BatchMatcher(navidrome, options).match_tracks(
                    tracks, progress, cancel_token
                )
            display_match_statistics(
                matched.statistics, estimate_export(matched.statistics, skip_unmatched)
            )
            display_match_issues(matched.matches)

            with RichProgressProvider(console) as progress:
                result = await PlaylistExporter(navidrome).export_playlist(
                    matched.matches,
                    playlist_name,
                    ExportOptions(
                        mode=mode,
                        existing_playlist_id=target,
                        skip_unmatched=skip_unmatched,
                        batch_size=settings.api.navidrome_batch_size,
                    ),
                    progress,
                    cancel_token,
                )

    if result.playlist_id:
        MatchCacheStore().save(
            StoredPlaylistCache(
                source_playlist_id=source,
                destination_playlist_id=result.playlist_id,
                playlist_name=playlist_name,
                matches=result.cached_matches,
            )
        )
    display_export_result(result)
    return result


@command_error_handler
def favorites(
    source: SourceArgument = LIKED_SOURCE,
    skip_unmatched: Annotated[
        bool,
        typer.Option(
            "--skip-unmatched/--include-ambiguous",
            help="Skip ambiguous matches instead of starring their best candidate",
        ),
    ] = True,
    threshold: ThresholdOption = None,
) -> None:
    """Star matched tracks in Navidrome (defaults to Spotify saved tracks)."""
    _run_favorites(source, skip_unmatched, threshold)


@interactive_async_operation()
async def _run_favorites(
    source: str,
    skip_unmatched: bool,
    threshold: float | None,
    cancel_token: CancellationToken,
) -> None:
    spotify = SpotifyConnector()
    async with NavidromeConnector() as navidrome:
        await navidrome.ping()
        tracks, _ = await _load_source(spotify, source)
        options = MatchingOptions.from_settings(fuzzy_threshold=threshold)

        with RichProgressProvider(console) as progress:
            matched = await BatchMatcher(navidrome, options).match_tracks(
                tracks, progress, cancel_token
            )
        display_match_statistics(matched.statistics)
        display_match_issues(matched.matches)

        with RichProgressProvider(console) as progress:
            result = await FavoritesExporter(navidrome).export_favorites(
                matched.matches,
                FavoritesOptions(
                    skip_unmatched=skip_unmatched,
                    batch_size=settings.api.navidrome_batch_size,
                ),
                progress,
                cancel_token,
            )
    display_favorites_result(result)


@command_error_handler
def update(
    source: SourceArgument,
    preview: Annotated[
        bool, typer.Option("--preview", help="Show what would change without modifying Navidrome")
    ] = False,
) -> None:
    """Re-sync an exported playlist from its match cache without re-matching."""
    stored = MatchCacheStore().load(source)
    if stored is None:
        console.print(
            f"[red]No export recorded for '{source}'.[/red] "
            "Run [bold]spotidrome export[/bold] first."
        )
        raise typer.Exit(code=1)

    success = _run_update(stored, preview)
    if not success:
        raise typer.Exit(code=1)


@interactive_async_operation()
async def _run_update(
    stored: StoredPlaylistCache,
    preview: bool,
    cancel_token: CancellationToken,
) -> bool:
    spotify = SpotifyConnector()
    async with NavidromeConnector() as navidrome:
        await navidrome.ping()
        tracks, _ = await _load_source(spotify, stored.source_playlist_id)
        orchestrator = IncrementalUpdateOrchestrator(navidrome)

        if preview:
            display_update_preview(
                await orchestrator.preview_update(
                    stored.destination_playlist_id, tracks, stored.matches
                )
            )
            return True

        with RichProgressProvider(console) as progress:
            result = await orchestrator.update_playlist(
                stored.destination_playlist_id,
                tracks,
                stored.playlist_name,
                stored.matches,
                UpdateOptions(batch_size=settings.api.navidrome_batch_size),
                progress,
                cancel_token,
            )
    display_update_result(result)
    return result.success
