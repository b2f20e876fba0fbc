"""
Top-level playback driver.

Plays the current playlist through a PlaylistSession, rebinds to another
playlist on a switch, and stops on quit or when the playlist runs out.
Also owns the UI refresh timer, which only runs while a track is playing.
"""

import asyncio
import random
from typing import Optional, Sequence

from loguru import logger

from poolsuite_cli.context import PlayerContext
from poolsuite_cli.domain.catalogue.providers import StreamResolver, TrackListProvider

from .session import QUIT_KEYS, Controller, PlaylistSession, SessionResult
from .snapshot import loading_snapshot

LOADING_MESSAGE = "Resolving playlist..."


class Orchestrator:
    """Runs playlist sessions back to back until quit or end."""

    def __init__(
        self,
        context: PlayerContext,
        controller: Controller,
        track_list_provider: TrackListProvider,
        resolve_stream: StreamResolver,
        *,
        available_keys: Sequence[str],
        shuffle: bool = False,
        refresh_interval: float = 0.5,
        seek_seconds: float = 10,
        rng: Optional[random.Random] = None,
    ):
        self.context = context
        self.controller = controller
        self.track_list_provider = track_list_provider
        self.resolve_stream = resolve_stream
        self.available_keys = tuple(available_keys)
        self.shuffle = shuffle
        self.refresh_interval = refresh_interval
        self.seek_seconds = seek_seconds
        self.rng = rng

        self.playlist_key: Optional[str] = None
        self.session: Optional[PlaylistSession] = None
        self._timer: Optional[asyncio.Task] = None
        self._quit_while_loading = False

    async def run(self, initial_key: str) -> int:
        """Play from `initial_key` until quit or end.

        Returns:
            Process exit code: 1 if nothing in the whole run was playable,
            else 0
        """
        self.playlist_key = initial_key
        played_any = False
        result: Optional[SessionResult] = None

        try:
            while True:
                key = self.playlist_key
                if key not in self.available_keys:
                    logger.error(f"Unknown playlist '{key}', stopping")
                    break

                tracks = await self._fetch_tracks(key)
                if self._quit_while_loading:
                    result = SessionResult("quit")
                    break

                self.session = PlaylistSession(
                    tracks,
                    self.controller,
                    self.resolve_stream,
                    shuffle=self.shuffle,
                    playlist_key=key,
                    available_keys=self.available_keys,
                    seek_seconds=self.seek_seconds,
                    rng=self.rng,
                    on_track_start=self._start_timer,
                    on_track_end=self._stop_timer,
                    on_change=self._render_session,
                )
                self.context.bind_key_handler(self.session.handle_key)
                try:
                    result = await self.session.run()
                finally:
                    self._stop_timer()
                    self.context.clear_key_handler()

                played_any = played_any or self.session.played_count > 0
                if result.reason == "switch" and result.target:
                    logger.info(f"Switching playlist: {key} -> {result.target}")
                    self.playlist_key = result.target
                    continue
                break
        finally:
            await self.controller.quit()

        if not played_any and (result is None or result.reason == "end"):
            logger.error("No playable tracks in this run")
            return 1
        return 0

    async def _fetch_tracks(self, key: str) -> list:
        self._quit_while_loading = False
        self.context.render(loading_snapshot(key, self.available_keys, LOADING_MESSAGE))
        self.context.bind_key_handler(self._loading_key)
        try:
            tracks = await self.track_list_provider(key)
        finally:
            self.context.clear_key_handler()
        logger.info(f"Playlist '{key}': {len(tracks)} tracks")
        return tracks

    async def _loading_key(self, key: str) -> None:
        if key in QUIT_KEYS:
            self._quit_while_loading = True

    def _render_session(self, session: PlaylistSession) -> None:
        self.context.render(session.snapshot())

    def _start_timer(self, session: PlaylistSession) -> None:
        self._stop_timer()
        self._timer = asyncio.create_task(self._refresh_loop(session))

    def _stop_timer(self, session: Optional[PlaylistSession] = None) -> None:
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()

    async def _refresh_loop(self, session: PlaylistSession) -> None:
        while True:
            await self._tick(session)
            await asyncio.sleep(self.refresh_interval)

    async def _tick(self, session: PlaylistSession) -> None:
        session.paused = await self.controller.is_paused()
        self._render_session(session)
