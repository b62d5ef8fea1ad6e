"""Service status commands for spotidrome CLI."""

import asyncio

from rich.console import Console
from rich.table import Table
import typer

from spotidrome.config import get_logger
from spotidrome.domain.exceptions import SpotidromeError
from spotidrome.infrastructure.cli.ui import command_error_handler
from spotidrome.infrastructure.connectors.navidrome import NavidromeConnector
from spotidrome.infrastructure.connectors.spotify import SpotifyConnector

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

SERVICES = ["Navidrome", "Spotify"]


def register_status_commands(app: typer.Typer) -> None:
    """Register status commands with the Typer app."""
    app.command(
        name="status",
        help="Check connection status of Navidrome and Spotify",
        rich_help_panel="⚙️ System",
    )(status)


async def _check_navidrome() -> tuple[bool, str]:
    """Check Navidrome reachability and credentials."""
    async with NavidromeConnector() as connector:
        try:
            server_version = await connector.ping()
        except SpotidromeError as e:
            return False, str(e)
        return True, f"Connected to {connector.base_url} (v{server_version or '?'})"


async def _check_spotify() -> tuple[bool, str]:
    """Check Spotify API connectivity."""
    connector = SpotifyConnector()
    match connector.client.auth_manager:
        case None:
            return False, "Not configured - missing API credentials"
        case _:
            try:
                user = await asyncio.to_thread(connector.client.current_user)
            except Exception as e:
                return False, f"Authentication failed: {e}"
            if user is None:
                return False, "Failed to get user information"
            return True, f"Connected as {user.get('display_name') or user.get('id')}"


async def _check_connections() -> list[tuple[str, bool, str]]:
    """Check all service connections concurrently.

    Returns:
        list[tuple[str, bool, str]]: List of (service_name, is_connected, details)
    """
    results = await asyncio.gather(
        _check_navidrome(), _check_spotify(), return_exceptions=True
    )

    def process_result(service: str, result: object) -> tuple[str, bool, str]:
        match result:
            case Exception() as e:
                return service, False, f"Error: {e!s}"
            case (is_connected, details):
                return service, is_connected, details
            case _:
                return service, False, "Invalid response format"

    return [
        process_result(service, result)
        for service, result in zip(SERVICES, results, strict=True)
    ]


@command_error_handler
def status() -> None:
    """Check connection status of music services."""
    results = asyncio.run(_check_connections())

    table = Table(title="spotidrome Service Status")
    table.add_column("Service", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Details", style="dim")

    for service, connected, details in results:
        status_text = (
            "[green]✓ Connected[/green]" if connected else "[red]✗ Not Connected[/red]"
        )
        table.add_row(service, status_text, details)

    console.print(table)

    connected_count = sum(1 for _, connected, _ in results if connected)
    logger.info(
        "Service status check completed",
        connected=connected_count,
        total=len(SERVICES),
    )
    if connected_count < len(SERVICES):
        console.print(
            "\n[yellow]Some services are not connected. "
            "Check your .env credentials.[/yellow]"
        )
        raise typer.Exit(code=1)
