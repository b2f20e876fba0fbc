"""
Curated playlist registry.

Maps short playlist keys (used on the command line and as UI tabs) to the
SoundCloud sets they stream from.
"""

from typing import NamedTuple, Optional


class PlaylistInfo(NamedTuple):
    name: str
    description: str
    url: str


PLAYLISTS: dict[str, PlaylistInfo] = {
    "official": PlaylistInfo(
        name="Official Poolsuite FM Playlist",
        description="The main Poolsuite FM experience",
        url="https://soundcloud.com/poolsuite/sets/poolsuite-fm-official-playlist",
    ),
    "official2": PlaylistInfo(
        name="Official Poolsuite FM Playlist Two",
        description="More summer vibes",
        url="https://soundcloud.com/poolsuite/sets/poolsuite-fm-official-playlist-two",
    ),
    "mixtapes": PlaylistInfo(
        name="Poolsuite Mixtapes",
        description="Curated mixtape collection",
        url="https://soundcloud.com/poolsuite/sets/poolsuite-mixtapes",
    ),
    "balearic": PlaylistInfo(
        name="Balearic Sundown",
        description="Sunset vibes from the Mediterranean",
        url="https://soundcloud.com/poolsuite/sets/balearic-sundown",
    ),
    "indie": PlaylistInfo(
        name="Indie Summer",
        description="Indie gems for sunny days",
        url="https://soundcloud.com/poolsuite/sets/indie-summer",
    ),
    "tokyo": PlaylistInfo(
        name="Tokyo Disco",
        description="Japanese city pop and disco",
        url="https://soundcloud.com/poolsuite/sets/tokyo-disco",
    ),
    "friday": PlaylistInfo(
        name="Friday Nite Heat",
        description="Weekend party energy",
        url="https://soundcloud.com/poolsuite/sets/friday-nite-heat",
    ),
    "hangover": PlaylistInfo(
        name="Hangover Club",
        description="Recovery tunes for the morning after",
        url="https://soundcloud.com/poolsuite/sets/hangover-club",
    ),
}


def get_playlist_names() -> list[str]:
    """Playlist keys in display (tab) order."""
    return list(PLAYLISTS.keys())


def get_playlist(key: str) -> Optional[PlaylistInfo]:
    return PLAYLISTS.get(key)


def next_playlist_key(current: str, keys: list[str]) -> str:
    """Return the key after `current`, wrapping around to the first.

    An unknown `current` yields the first key.
    """
    if not keys:
        return current
    try:
        idx = keys.index(current)
    except ValueError:
        return keys[0]
    return keys[(idx + 1) % len(keys)]
