"""Async and data helpers shared across test modules."""

import asyncio
from typing import Any, Callable, Coroutine

from poolsuite_cli.domain.catalogue.models import StreamInfo, Track, Transcoding
from poolsuite_cli.domain.playback.exceptions import CommandFailure, ConnectFailure


def run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run an async scenario from a sync test function."""
    return asyncio.run(coro)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until `predicate` holds, failing after `timeout`."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


def make_track(track_id: int, title: str = "", duration_ms: int = 180_000) -> Track:
    return Track(
        id=track_id,
        title=title or f"Track {track_id}",
        artist="Poolsuite",
        duration_ms=duration_ms,
        transcodings=(
            Transcoding(
                url=f"https://api-v2.soundcloud.com/media/{track_id}/hls",
                preset="mp3_1_0",
                protocol="hls",
                mime_type="audio/mpeg",
            ),
        ),
    )


def stream_for(track: Track) -> StreamInfo:
    return StreamInfo(url=f"https://cdn.example/{track.id}.m3u8", protocol="hls")


class FakeController:
    """In-memory stand-in for PlaybackController.

    Tracks never end on their own unless `auto_end` is set; tests end them
    with `finish()` or through `quit()`.
    """

    def __init__(self, auto_end: bool = False) -> None:
        self.auto_end = auto_end
        self.played: list[str] = []
        self.seeks: list[float] = []
        self.quit_calls = 0
        self.paused = False
        self.fail_urls: set[str] = set()
        self.time_callback = None
        self.end_callback = None
        self._end: asyncio.Event | None = None

    @property
    def playing(self) -> bool:
        return self._end is not None and not self._end.is_set()

    async def play(self, url: str) -> None:
        if url in self.fail_urls:
            raise ConnectFailure(f"cannot connect for {url}")
        self._end = asyncio.Event()
        self.end_callback = None
        self.paused = False
        self.played.append(url)
        if self.auto_end:
            self._end.set()

    def finish(self) -> None:
        if self._end is None or self._end.is_set():
            return
        self._end.set()
        callback, self.end_callback = self.end_callback, None
        if callback:
            callback()

    def emit_time(self, position: float, duration: float) -> None:
        if self.time_callback:
            self.time_callback(position, duration)

    async def seek(self, delta_seconds: float) -> None:
        if not self.playing:
            raise CommandFailure("mpv not connected")
        self.seeks.append(delta_seconds)

    async def toggle_pause(self) -> None:
        if not self.playing:
            raise CommandFailure("mpv not connected")
        self.paused = not self.paused

    async def is_paused(self) -> bool:
        return self.paused

    async def quit(self) -> None:
        self.quit_calls += 1
        self.finish()

    def on_time_change(self, callback) -> None:
        self.time_callback = callback

    def on_end(self, callback) -> None:
        self.end_callback = callback

    async def wait_for_end(self) -> None:
        await self._end.wait()
