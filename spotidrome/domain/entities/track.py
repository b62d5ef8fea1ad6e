"""Track-related domain entities.

Pure track representations for both sides of a sync with zero external dependencies.
"""

from typing import Any

from attrs import define, field, validators


@define(frozen=True, slots=True)
class Artist:
    """Artist representation with normalized metadata."""

    name: str = field(validator=validators.instance_of(str))


@define(frozen=True, slots=True)
class Track:
    """Immutable track from the source catalog.

    The source track id is the key for cached match records, so it must be
    stable across runs (a Spotify track id).
    """

    id: str = field(validator=validators.instance_of(str))
    title: str = field(validator=validators.instance_of(str))
    artists: list[Artist] = field(
        factory=list,
        validator=validators.deep_iterable(
            member_validator=validators.instance_of(Artist),
            iterable_validator=validators.min_len(1),
        ),
    )
    album: str | None = field(default=None)
    duration_ms: int | None = field(default=None)
    isrc: str | None = field(default=None)

    @property
    def primary_artist(self) -> str:
        """Name of the first credited artist."""
        return self.artists[0].name

    @property
    def artist_names(self) -> str:
        """Comma-joined artist names for display."""
        return ", ".join(artist.name for artist in self.artists)


@define(frozen=True, slots=True)
class DestinationSong:
    """Song as known by the destination media server."""

    id: str = field(validator=validators.instance_of(str))
    title: str = field(validator=validators.instance_of(str))
    artist: str = field(default="")
    duration_ms: int | None = field(default=None)
    album: str | None = field(default=None)
    isrcs: list[str] = field(factory=list)

    @classmethod
    def from_subsonic(cls, child: dict[str, Any]) -> "DestinationSong":
        """Build from a Subsonic ``child`` song element.

        Subsonic reports duration in seconds; OpenSubsonic servers add an
        ``isrc`` list.
        """
        duration = child.get("duration")
        raw_isrcs = child.get("isrc") or []
        if isinstance(raw_isrcs, str):
            raw_isrcs = [raw_isrcs]
        return cls(
            id=str(child["id"]),
            title=child.get("title", ""),
            artist=child.get("artist", ""),
            duration_ms=int(duration) * 1000 if duration is not None else None,
            album=child.get("album"),
            isrcs=[str(code) for code in raw_isrcs],
        )
