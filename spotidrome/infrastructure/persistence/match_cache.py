"""JSON file store for match caches recorded at export time.

The store is a caller-side convenience for the CLI: each exported source
playlist keeps its destination playlist id and the CachedTrackMatch map that
incremental updates consume. The core use cases never depend on it.

File layout::

    {
      "version": 1,
      "playlists": {
        "<source playlist id>": {
          "destination_playlist_id": "...",
          "playlist_name": "...",
          "updated_at": "2024-01-01T00:00:00+00:00",
          "matches": {"<source track id>": {...CachedTrackMatch.as_dict()}}
        }
      }
    }
"""

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any

from attrs import define, field

from spotidrome.config import get_logger, settings
from spotidrome.domain.matching.types import CachedTrackMatch, MatchCache

logger = get_logger(__name__)

CACHE_VERSION = 1
CACHE_FILENAME = "match_cache.json"


@define(frozen=True, slots=True)
class StoredPlaylistCache:
    """Cached export state of one source playlist."""

    source_playlist_id: str
    destination_playlist_id: str
    playlist_name: str
    matches: MatchCache = field(factory=dict)
    updated_at: datetime = field(factory=lambda: datetime.now(UTC))

    def as_dict(self) -> dict[str, Any]:
        return {
            "destination_playlist_id": self.destination_playlist_id,
            "playlist_name": self.playlist_name,
            "updated_at": self.updated_at.isoformat(),
            "matches": {
                track_id: cached.as_dict() for track_id, cached in self.matches.items()
            },
        }

    @classmethod
    def from_dict(cls, source_playlist_id: str, data: dict[str, Any]) -> "StoredPlaylistCache":
        return cls(
            source_playlist_id=source_playlist_id,
            destination_playlist_id=str(data["destination_playlist_id"]),
            playlist_name=data.get("playlist_name", ""),
            matches={
                track_id: CachedTrackMatch.from_dict(entry)
                for track_id, entry in data.get("matches", {}).items()
            },
            updated_at=datetime.fromisoformat(data["updated_at"])
            if data.get("updated_at")
            else datetime.now(UTC),
        )


class MatchCacheStore:
    """Read and write match caches in a single JSON file."""

    def __init__(self, path: Path | None = None):
        self.path = path or Path(settings.data_dir) / CACHE_FILENAME

    def _load_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Match cache file {self.path} is corrupt: {e}") from e

        if data.get("version") != CACHE_VERSION:
            logger.warning(
                "Ignoring match cache with unknown version",
                path=str(self.path),
                version=data.get("version"),
            )
            return {}
        return data.get("playlists", {})

    def load(self, source_playlist_id: str) -> StoredPlaylistCache | None:
        entry = self._load_all().get(source_playlist_id)
        if entry is None:
            return None
        return StoredPlaylistCache.from_dict(source_playlist_id, entry)

    def save(self, cache: StoredPlaylistCache) -> None:
        playlists = self._load_all()
        playlists[cache.source_playlist_id] = cache.as_dict()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump({"version": CACHE_VERSION, "playlists": playlists}, f, indent=2)
        tmp_path.replace(self.path)
        logger.debug(
            "Saved match cache",
            source_playlist_id=cache.source_playlist_id,
            entries=len(cache.matches),
        )
