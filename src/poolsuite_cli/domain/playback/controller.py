"""
MPV process lifecycle and typed command surface.

One PlaybackController owns at most one mpv process and its IPC channel.
Every ``play()`` spawns a fresh process on a fresh socket path after fully
releasing the previous one.
"""

import asyncio
import contextlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from poolsuite_cli.core.config import PlayerConfig

from .exceptions import CommandFailure, ConnectFailure, ProcessSpawnFailure
from .ipc import ConnectionState, IpcChannel, TimeChangeCallback

# Seconds to wait for mpv to exit after SIGTERM before SIGKILL
TERMINATE_GRACE = 2.0


def check_player_available(mpv_path: str = "mpv") -> str:
    """Return the resolved mpv executable path.

    Raises:
        ProcessSpawnFailure: if the executable cannot be found
    """
    resolved = shutil.which(mpv_path)
    if resolved is None:
        raise ProcessSpawnFailure(f"mpv executable not found: {mpv_path}")
    return resolved


class PlaybackController:
    """Command surface over one mpv process / IPC channel pair."""

    def __init__(
        self,
        mpv_path: str = "mpv",
        socket_dir: Optional[str] = None,
        volume: Optional[int] = None,
        connect_timeout: float = 5.0,
        command_timeout: float = 3.0,
    ):
        self.mpv_path = mpv_path
        self.socket_dir = Path(socket_dir) if socket_dir else Path(tempfile.gettempdir())
        self.volume = volume
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout

        self._process: Optional[asyncio.subprocess.Process] = None
        self._channel: Optional[IpcChannel] = None
        self._socket_path: Optional[str] = None
        self._spawn_count = 0

        self._time_callback: Optional[TimeChangeCallback] = None
        self._end_callback: Optional[Callable[[], None]] = None
        self._end_event = asyncio.Event()

    @classmethod
    def from_config(cls, config: PlayerConfig) -> "PlaybackController":
        return cls(
            mpv_path=config.mpv_path,
            socket_dir=config.socket_dir,
            volume=config.volume,
            connect_timeout=config.connect_timeout,
            command_timeout=config.command_timeout,
        )

    @property
    def socket_path(self) -> Optional[str]:
        return self._socket_path

    @property
    def connection_state(self) -> ConnectionState:
        if self._channel is None:
            return ConnectionState.DISCONNECTED
        return self._channel.state

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    def _next_socket_path(self) -> str:
        self._spawn_count += 1
        return str(self.socket_dir / f"poolsuite-mpv-{os.getpid()}-{self._spawn_count}.sock")

    def build_command(self, url: str, socket_path: str) -> list[str]:
        cmd = [
            self.mpv_path,
            "--no-video",
            "--really-quiet",
            f"--input-ipc-server={socket_path}",
        ]
        if self.volume is not None:
            cmd.append(f"--volume={self.volume}")
        cmd.append(url)
        return cmd

    async def play(self, url: str) -> None:
        """Start a new mpv process streaming `url` and connect to it.

        Raises:
            ProcessSpawnFailure: if mpv cannot be started
            ConnectFailure: if its IPC socket never becomes connectable, mpv
                exits first, or quit() is called while connecting
        """
        await self._teardown()
        self._end_event = asyncio.Event()
        self._end_callback = None

        socket_path = self._next_socket_path()
        self._remove_socket(socket_path)

        cmd = self.build_command(url, socket_path)
        logger.info(f"Starting mpv with socket: {socket_path}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"Failed to start mpv: {e}")
            raise ProcessSpawnFailure(f"Failed to start mpv: {e}") from e

        self._process = process
        self._socket_path = socket_path
        channel = IpcChannel(
            socket_path,
            connect_timeout=self.connect_timeout,
            command_timeout=self.command_timeout,
            on_end=lambda: self._handle_end(channel),
            on_close=lambda: self._handle_end(channel),
        )
        channel.subscribe(self._emit_time)
        self._channel = channel

        try:
            await channel.establish(is_alive=lambda: process.returncode is None)
        except ConnectFailure:
            await self._teardown()
            raise

    def _handle_end(self, channel: IpcChannel) -> None:
        # Late signals from a channel that was already replaced are ignored
        if channel is not self._channel:
            return
        self._fire_end(self._end_event)

    def _fire_end(self, end_event: asyncio.Event) -> None:
        if end_event.is_set():
            return
        end_event.set()
        if end_event is not self._end_event:
            return
        callback, self._end_callback = self._end_callback, None
        if callback is not None:
            try:
                callback()
            except Exception:
                logger.exception("End-of-stream callback failed")

    def _emit_time(self, position: float, duration: float) -> None:
        callback = self._time_callback
        if callback is not None:
            callback(position, duration)

    def _require_channel(self) -> IpcChannel:
        channel = self._channel
        if channel is None or channel.state is not ConnectionState.CONNECTED:
            raise CommandFailure("mpv not connected")
        return channel

    async def _get_property(self, name: str) -> Any:
        response = await self._require_channel().request(["get_property", name])
        return response.get("data")

    async def seek(self, delta_seconds: float) -> None:
        """Seek relative to the current position.

        Raises:
            CommandFailure: if mpv rejects or never acknowledges the seek
        """
        await self._require_channel().request(["seek", delta_seconds, "relative"])

    async def _get_number(self, name: str) -> float:
        try:
            value = await self._get_property(name)
        except CommandFailure as e:
            logger.debug(f"Reading {name} failed: {e}")
            return 0.0
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return 0.0

    async def get_position(self) -> float:
        return await self._get_number("playback-time")

    async def get_duration(self) -> float:
        return await self._get_number("duration")

    async def toggle_pause(self) -> None:
        """Flip mpv's pause flag (read, then write the negation).

        Raises:
            CommandFailure: if either round trip fails
        """
        paused = await self._get_property("pause")
        await self._require_channel().request(["set_property", "pause", not bool(paused)])

    async def is_paused(self) -> bool:
        try:
            return (await self._get_property("pause")) is True
        except CommandFailure:
            return False

    async def quit(self) -> None:
        """Stop playback and release the process and socket.

        Best effort and idempotent. Unblocks any pending ``wait_for_end()``.
        """
        end_event = self._end_event
        channel = self._channel
        if channel is not None and channel.state is ConnectionState.CONNECTED:
            try:
                await channel.notify(["quit"])
            except CommandFailure as e:
                logger.debug(f"mpv quit command failed: {e}")

        await self._teardown()
        self._fire_end(end_event)

    async def _teardown(self) -> None:
        process, self._process = self._process, None
        socket_path, self._socket_path = self._socket_path, None
        channel = self._channel

        if process is not None:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE)
            except asyncio.TimeoutError:
                logger.warning("mpv did not exit after SIGTERM, killing")
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        if channel is not None:
            # Kept so connection_state reports CLOSED until the next play()
            await channel.close()

        if socket_path is not None:
            self._remove_socket(socket_path)

    @staticmethod
    def _remove_socket(socket_path: str) -> None:
        if os.path.exists(socket_path):
            try:
                os.unlink(socket_path)
            except OSError as e:
                logger.debug(f"Could not remove socket {socket_path}: {e}")

    def on_time_change(self, callback: Optional[TimeChangeCallback]) -> None:
        """Install the single position/duration subscriber (latest wins)."""
        self._time_callback = callback

    def on_end(self, callback: Callable[[], None]) -> None:
        """Register a one-shot end-of-stream hook for the current track."""
        self._end_callback = callback

    async def wait_for_end(self) -> None:
        """Wait until the current track ends or playback is quit."""
        await self._end_event.wait()
