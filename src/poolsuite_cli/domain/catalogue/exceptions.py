"""SoundCloud api-v2 errors, keyed to the HTTP status that produced them."""

from typing import Optional


class SoundCloudError(Exception):
    """Any failed catalogue lookup. ``status_code`` is None for network errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(SoundCloudError):
    """401/403: the client_id (or OAuth token) was rejected."""

    pass


class PlaylistUnavailableError(SoundCloudError):
    """A set URL did not resolve to a playlist (404, private, or not a set)."""

    pass


class TrackUnavailableError(SoundCloudError):
    """A transcoding URL returned 404; the track cannot be streamed."""

    pass


class RateLimitedError(SoundCloudError):
    """429: too many requests for this client_id."""

    pass
