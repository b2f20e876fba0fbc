"""Playback engine exceptions."""


class PlaybackError(Exception):
    """Base exception for playback operations."""

    pass


class ProcessSpawnFailure(PlaybackError):
    """Raised when the mpv executable is missing or cannot be started."""

    pass


class ConnectFailure(PlaybackError):
    """Raised when mpv's IPC socket never becomes connectable."""

    pass


class CommandFailure(PlaybackError):
    """Raised when an IPC command fails, times out, or loses its channel."""

    def __init__(self, message: str, command: list | None = None):
        self.command = command
        super().__init__(message)


class StreamResolutionFailure(PlaybackError):
    """Raised when a track has no playable stream URL."""

    pass
