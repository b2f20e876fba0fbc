"""Catalogue domain - SoundCloud playlists, tracks and stream URLs.

This domain handles:
- The curated playlist registry
- Track and stream models
- SoundCloud api-v2 access and async collaborator adapters
"""

from .exceptions import (
    AuthenticationError,
    PlaylistUnavailableError,
    RateLimitedError,
    SoundCloudError,
    TrackUnavailableError,
)
from .models import StreamInfo, Track, Transcoding
from .playlists import (
    PLAYLISTS,
    PlaylistInfo,
    get_playlist,
    get_playlist_names,
    next_playlist_key,
)
from .providers import (
    StreamResolver,
    TrackListProvider,
    make_stream_resolver,
    make_track_list_provider,
)
from .soundcloud import SoundCloudClient

__all__ = [
    # Exceptions
    "AuthenticationError",
    "PlaylistUnavailableError",
    "RateLimitedError",
    "SoundCloudError",
    "TrackUnavailableError",
    # Models
    "StreamInfo",
    "Track",
    "Transcoding",
    # Playlists
    "PLAYLISTS",
    "PlaylistInfo",
    "get_playlist",
    "get_playlist_names",
    "next_playlist_key",
    # Providers
    "StreamResolver",
    "TrackListProvider",
    "make_stream_resolver",
    "make_track_list_provider",
    "SoundCloudClient",
]
