"""spotidrome - reconcile a Spotify library with a Navidrome server."""

__version__ = "0.1.0"
