"""Poolsuite CLI - stream Poolsuite FM playlists through mpv."""

__version__ = "1.1.0"
