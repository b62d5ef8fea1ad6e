"""Connectors for the source (Spotify) and destination (Navidrome) services."""

from .navidrome import NavidromeConnector, NavidromePlaylist
from .rate_limiter import RateLimiter
from .spotify import SpotifyConnector, convert_spotify_track

__all__ = [
    "NavidromeConnector",
    "NavidromePlaylist",
    "RateLimiter",
    "SpotifyConnector",
    "convert_spotify_track",
]
