"""
Playlist traversal state machine.

A PlaylistSession walks a fixed play order one track at a time:
resolve a stream, play it, wait for the track to end, then move according
to the pending navigation intent (if any).

    Idle -> Loading(i) -> Playing(i) -> Loading(i±1) | Ended(reason)

Navigation keys set the intent and force the player to quit, which unblocks
the end-of-track wait exactly like a natural end does.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from loguru import logger

from poolsuite_cli.domain.catalogue.models import StreamInfo, Track
from poolsuite_cli.domain.catalogue.playlists import next_playlist_key
from poolsuite_cli.domain.catalogue.providers import StreamResolver

from .exceptions import (
    CommandFailure,
    ConnectFailure,
    ProcessSpawnFailure,
    StreamResolutionFailure,
)
from .ipc import TimeChangeCallback
from .snapshot import Snapshot

SEEK_BACK_KEYS = frozenset({"left", ","})
SEEK_FORWARD_KEYS = frozenset({"right", "."})
PAUSE_KEYS = frozenset({"space"})
NEXT_KEYS = frozenset({"n", ">"})
PREV_KEYS = frozenset({"p", "<"})
QUIT_KEYS = frozenset({"q", "escape"})
SWITCH_KEYS = frozenset({"tab"})


class Controller(Protocol):
    """The slice of PlaybackController a session drives."""

    async def play(self, url: str) -> None: ...

    async def seek(self, delta_seconds: float) -> None: ...

    async def toggle_pause(self) -> None: ...

    async def is_paused(self) -> bool: ...

    async def quit(self) -> None: ...

    def on_time_change(self, callback: Optional[TimeChangeCallback]) -> None: ...

    def on_end(self, callback: Callable[[], None]) -> None: ...

    async def wait_for_end(self) -> None: ...


class IntentKind(Enum):
    NEXT = "next"
    PREV = "prev"
    QUIT = "quit"
    SWITCH = "switch"


@dataclass(frozen=True)
class NavigationIntent:
    kind: IntentKind
    target: Optional[str] = None  # Playlist key for SWITCH


@dataclass(frozen=True)
class SessionResult:
    reason: str  # 'end', 'quit' or 'switch'
    target: Optional[str] = None


def build_play_order(
    tracks: Sequence[Track], shuffle: bool, rng: Optional[random.Random] = None
) -> tuple[Track, ...]:
    """Fix the order tracks will be attempted in.

    Shuffled orders are a permutation of `tracks`; otherwise the order is
    unchanged.
    """
    order = list(tracks)
    if shuffle:
        (rng or random).shuffle(order)
    return tuple(order)


class PlaylistSession:
    """Plays one track list to completion, quit, or a playlist switch."""

    def __init__(
        self,
        tracks: Sequence[Track],
        controller: Controller,
        resolve_stream: StreamResolver,
        *,
        shuffle: bool = False,
        playlist_key: str = "",
        available_keys: Sequence[str] = (),
        seek_seconds: float = 10,
        rng: Optional[random.Random] = None,
        on_track_start: Optional[Callable[["PlaylistSession"], None]] = None,
        on_track_end: Optional[Callable[["PlaylistSession"], None]] = None,
        on_change: Optional[Callable[["PlaylistSession"], None]] = None,
    ):
        self.play_order = build_play_order(tracks, shuffle, rng)
        self.controller = controller
        self.resolve_stream = resolve_stream
        self.playlist_key = playlist_key
        self.available_keys = tuple(available_keys)
        self.seek_seconds = seek_seconds

        self.current_index = 0
        self.position = 0.0
        self.duration = 0.0
        self.paused = False
        self.played_count = 0

        self._intent: Optional[NavigationIntent] = None
        self._on_track_start = on_track_start
        self._on_track_end = on_track_end
        self._on_change = on_change

    @property
    def current_track(self) -> Optional[Track]:
        if 0 <= self.current_index < len(self.play_order):
            return self.play_order[self.current_index]
        return None

    @property
    def pending_intent(self) -> Optional[NavigationIntent]:
        return self._intent

    def snapshot(self) -> Snapshot:
        track = self.current_track
        return Snapshot(
            playlist_key=self.playlist_key,
            available_keys=self.available_keys,
            track=track,
            index=self.current_index + 1 if track else 0,
            total=len(self.play_order),
            position=self.position,
            duration=self.duration,
            paused=self.paused,
        )

    async def run(self) -> SessionResult:
        """Drive playback until the session ends."""
        total = len(self.play_order)
        logger.info(f"Session start: playlist={self.playlist_key} tracks={total}")

        while 0 <= self.current_index < total:
            result = self._exit_result(self._intent)
            if result is not None:
                self._intent = None
                return self._finish(result)

            track = self.play_order[self.current_index]
            try:
                stream = await self._load(track)
            except StreamResolutionFailure as e:
                logger.warning(f"Skipping unplayable track: {e}")
                self._skip()
                continue
            if self._exit_result(self._intent) is not None:
                continue

            if not await self._play(track, stream):
                self._skip()
                continue

            intent, self._intent = self._intent, None
            result = self._exit_result(intent)
            if result is not None:
                return self._finish(result)
            self._advance(intent)

        return self._finish(SessionResult("end"))

    def _finish(self, result: SessionResult) -> SessionResult:
        logger.info(
            f"Session ended: reason={result.reason} target={result.target} "
            f"index={self.current_index}"
        )
        return result

    async def _load(self, track: Track) -> StreamInfo:
        try:
            stream = await self.resolve_stream(track)
        except Exception as e:
            logger.exception(f"Stream resolver raised for track {track.id}")
            raise StreamResolutionFailure(f"Resolver error for track {track.id}") from e
        if stream is None:
            raise StreamResolutionFailure(f"No stream for track {track.id}: {track.display_name}")
        return stream

    async def _play(self, track: Track, stream: StreamInfo) -> bool:
        """Play one track and wait for it to end. False if it never started."""
        self.position = 0.0
        self.duration = track.duration_seconds
        self.paused = False

        try:
            await self.controller.play(stream.url)
        except (ConnectFailure, ProcessSpawnFailure, CommandFailure) as e:
            logger.warning(f"Could not start track {track.id}: {e}")
            return False

        self.played_count += 1
        logger.info(
            f"Playing [{self.current_index + 1}/{len(self.play_order)}] "
            f"{track.display_name} ({stream.protocol})"
        )
        self.controller.on_time_change(self._on_time)
        self.controller.on_end(lambda: logger.debug(f"Track {track.id} ended"))

        if self._on_track_start:
            self._on_track_start(self)

        # Intent set while the stream was loading applies right away
        if self._intent is not None:
            await self.controller.quit()

        try:
            await self.controller.wait_for_end()
        finally:
            self.controller.on_time_change(None)
            if self._on_track_end:
                self._on_track_end(self)
        return True

    @staticmethod
    def _exit_result(intent: Optional[NavigationIntent]) -> Optional[SessionResult]:
        if intent is None:
            return None
        if intent.kind is IntentKind.QUIT:
            return SessionResult("quit")
        if intent.kind is IntentKind.SWITCH:
            return SessionResult("switch", intent.target)
        return None

    def _skip(self) -> None:
        """Move past a track that never started.

        A pending next/prev is consumed by the skip, so one key press moves
        one step. Quit and switch stay pending for the loop to act on.
        """
        intent = self._intent
        if intent is not None and intent.kind in (IntentKind.NEXT, IntentKind.PREV):
            self._intent = None
            self._advance(intent)
        else:
            self._advance(None)

    def _advance(self, intent: Optional[NavigationIntent]) -> None:
        if intent is not None and intent.kind is IntentKind.PREV:
            if self.current_index > 0:
                self.current_index -= 1
        else:
            self.current_index += 1

    def _on_time(self, position: float, duration: float) -> None:
        self.position = position
        if duration > 0:
            self.duration = duration

    async def request(self, intent: NavigationIntent) -> None:
        """Set the pending intent (latest wins) and stop the current track."""
        logger.info(f"Navigation intent: {intent.kind.value} {intent.target or ''}".rstrip())
        self._intent = intent
        await self.controller.quit()

    async def handle_key(self, key: str) -> None:
        """React to one raw key id from the UI."""
        if key in SEEK_BACK_KEYS:
            await self._seek(-self.seek_seconds)
        elif key in SEEK_FORWARD_KEYS:
            await self._seek(self.seek_seconds)
        elif key in PAUSE_KEYS:
            await self._toggle_pause()
        elif key in NEXT_KEYS:
            await self.request(NavigationIntent(IntentKind.NEXT))
        elif key in PREV_KEYS:
            await self.request(NavigationIntent(IntentKind.PREV))
        elif key in QUIT_KEYS:
            await self.request(NavigationIntent(IntentKind.QUIT))
        elif key in SWITCH_KEYS:
            if not self.available_keys:
                return
            target = next_playlist_key(self.playlist_key, list(self.available_keys))
            await self.request(NavigationIntent(IntentKind.SWITCH, target))

    async def _seek(self, delta: float) -> None:
        try:
            await self.controller.seek(delta)
        except CommandFailure as e:
            logger.debug(f"Seek {delta:+}s failed: {e}")

    async def _toggle_pause(self) -> None:
        try:
            await self.controller.toggle_pause()
        except CommandFailure as e:
            logger.debug(f"Pause toggle failed: {e}")
        self.paused = await self.controller.is_paused()
        if self._on_change:
            self._on_change(self)
