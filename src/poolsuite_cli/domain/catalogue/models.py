"""
Catalogue domain models.

Contains immutable data structures for SoundCloud tracks and streams.
"""

from typing import Any, NamedTuple, Optional


class Transcoding(NamedTuple):
    """One encoded rendition of a track offered by SoundCloud."""

    url: str
    preset: str = ""
    protocol: str = "progressive"  # 'hls' or 'progressive'
    mime_type: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Transcoding":
        fmt = data.get("format") or {}
        return cls(
            url=data.get("url", ""),
            preset=data.get("preset", ""),
            protocol=fmt.get("protocol", "progressive"),
            mime_type=fmt.get("mime_type", ""),
        )


class Track(NamedTuple):
    """Represents a catalogue track. Immutable once fetched."""

    id: int
    title: str
    artist: str  # Uploader username
    duration_ms: int = 0
    transcodings: tuple[Transcoding, ...] = ()
    artwork_url: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000

    @property
    def display_name(self) -> str:
        return f"{self.artist} - {self.title}"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Track":
        """Build a Track from a SoundCloud API track payload."""
        media = data.get("media") or {}
        user = data.get("user") or {}
        return cls(
            id=int(data["id"]),
            title=data.get("title") or "Unknown",
            artist=user.get("username") or "Unknown",
            duration_ms=int(data.get("duration") or 0),
            transcodings=tuple(
                Transcoding.from_api(t) for t in media.get("transcodings") or []
            ),
            artwork_url=data.get("artwork_url"),
        )


class StreamInfo(NamedTuple):
    """A playable stream URL and its transport kind."""

    url: str
    protocol: str  # 'hls' or 'progressive'
