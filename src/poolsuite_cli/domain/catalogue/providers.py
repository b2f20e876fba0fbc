"""
Async collaborator adapters over the blocking SoundCloud client.

The playback engine consumes two contracts:
- TrackListProvider(playlist_key) -> list[Track] (empty on failure)
- StreamResolver(track) -> StreamInfo | None
"""

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger

from .exceptions import SoundCloudError
from .models import StreamInfo, Track
from .playlists import get_playlist
from .soundcloud import SoundCloudClient

TrackListProvider = Callable[[str], Awaitable[list[Track]]]
StreamResolver = Callable[[Track], Awaitable[Optional[StreamInfo]]]


def make_track_list_provider(client: SoundCloudClient) -> TrackListProvider:
    """Build a TrackListProvider that resolves registry keys through `client`."""

    async def provide(playlist_key: str) -> list[Track]:
        playlist = get_playlist(playlist_key)
        if playlist is None:
            logger.warning(f"Unknown playlist key: {playlist_key}")
            return []
        try:
            return await asyncio.to_thread(client.resolve_playlist_tracks, playlist.url)
        except SoundCloudError as e:
            logger.error(f"Failed to resolve playlist '{playlist_key}': {e}")
            return []

    return provide


def make_stream_resolver(client: SoundCloudClient) -> StreamResolver:
    """Build a StreamResolver backed by `client`."""

    async def resolve(track: Track) -> Optional[StreamInfo]:
        try:
            return await asyncio.to_thread(client.get_stream_url, track)
        except SoundCloudError as e:
            logger.warning(f"Stream resolution failed for track {track.id}: {e}")
            return None

    return resolve
