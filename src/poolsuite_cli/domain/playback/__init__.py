"""Playback domain - mpv integration and playlist traversal.

This domain handles:
- mpv JSON IPC over a Unix socket
- mpv process lifecycle and commands
- The playlist session state machine
- The top-level orchestrator and UI refresh timer
"""

from .controller import PlaybackController, check_player_available
from .exceptions import (
    CommandFailure,
    ConnectFailure,
    PlaybackError,
    ProcessSpawnFailure,
    StreamResolutionFailure,
)
from .ipc import ConnectionState, IpcChannel, LineDecoder
from .orchestrator import Orchestrator
from .session import (
    IntentKind,
    NavigationIntent,
    PlaylistSession,
    SessionResult,
    build_play_order,
)
from .snapshot import Snapshot, loading_snapshot

__all__ = [
    # Controller
    "PlaybackController",
    "check_player_available",
    # Exceptions
    "CommandFailure",
    "ConnectFailure",
    "PlaybackError",
    "ProcessSpawnFailure",
    "StreamResolutionFailure",
    # IPC
    "ConnectionState",
    "IpcChannel",
    "LineDecoder",
    # Session
    "IntentKind",
    "NavigationIntent",
    "Orchestrator",
    "PlaylistSession",
    "SessionResult",
    "build_play_order",
    # Snapshot
    "Snapshot",
    "loading_snapshot",
]
