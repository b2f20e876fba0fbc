"""
mpv JSON IPC channel.

Newline-delimited JSON over a Unix socket to one mpv process. Requests carry
a monotonically increasing ``request_id`` and are matched to responses by
that id alone, so replies may arrive in any order. Everything else on the
wire is an event (property changes, end-of-file).
"""

import asyncio
import contextlib
import json
import os
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger

from .exceptions import CommandFailure, ConnectFailure

TimeChangeCallback = Callable[[float, float], None]

# Properties observed on every connection, keyed by mpv observer id
OBSERVED_PROPERTIES = {1: "playback-time", 2: "duration"}


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class LineDecoder:
    """Incremental newline framing for the IPC byte stream.

    Bytes are appended to a buffer, complete lines are parsed as JSON one by
    one, and a trailing partial line is carried over to the next ``feed``.
    Lines that are not JSON objects are dropped and counted.
    """

    def __init__(self) -> None:
        self._buffer = b""
        self.dropped = 0

    @property
    def pending(self) -> bytes:
        return self._buffer

    def feed(self, data: bytes) -> list[dict[str, Any]]:
        self._buffer += data
        *lines, self._buffer = self._buffer.split(b"\n")

        messages = []
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError:
                self.dropped += 1
                logger.debug(f"Dropping malformed IPC line: {line[:200]!r}")
                continue
            if not isinstance(message, dict):
                self.dropped += 1
                logger.debug(f"Dropping non-object IPC line: {line[:200]!r}")
                continue
            messages.append(message)
        return messages


class IpcChannel:
    """Request/response and event transport to a single mpv process."""

    def __init__(
        self,
        socket_path: str,
        connect_timeout: float = 5.0,
        command_timeout: float = 3.0,
        poll_interval: float = 0.1,
        on_end: Optional[Callable[[], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.socket_path = socket_path
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.poll_interval = poll_interval
        self.state = ConnectionState.DISCONNECTED

        self.position = 0.0
        self.duration = 0.0

        self._on_end = on_end
        self._on_close = on_close
        self._time_callback: Optional[TimeChangeCallback] = None

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._decoder = LineDecoder()
        self._request_id = 0
        self._pending: dict[int, asyncio.Future] = {}

    @property
    def dropped_lines(self) -> int:
        return self._decoder.dropped

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def subscribe(self, callback: Optional[TimeChangeCallback]) -> None:
        """Install the single position/duration subscriber, replacing any other."""
        self._time_callback = callback

    async def establish(self, is_alive: Optional[Callable[[], bool]] = None) -> None:
        """Wait for the socket path, connect, and observe position/duration.

        Args:
            is_alive: Optional check on the process serving the socket; the
                wait stops as soon as it returns False

        Raises:
            ConnectFailure: if the socket is not connectable within
                ``connect_timeout`` seconds, the process exits first, or the
                channel is closed while connecting
        """
        if self.state is not ConnectionState.DISCONNECTED:
            raise ConnectFailure(f"Channel already used ({self.state.value})")

        self.state = ConnectionState.CONNECTING
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.connect_timeout
        last_error: Optional[Exception] = None

        while True:
            if self.state is ConnectionState.CLOSED:
                raise ConnectFailure(f"Connect cancelled: {self.socket_path}")
            if is_alive is not None and not is_alive():
                self._mark_closed("mpv exited")
                logger.error(f"mpv exited before its socket was ready: {self.socket_path}")
                raise ConnectFailure(f"mpv exited before connecting: {self.socket_path}")
            if os.path.exists(self.socket_path):
                try:
                    self._reader, self._writer = await asyncio.open_unix_connection(
                        self.socket_path
                    )
                    break
                except OSError as e:
                    # Socket file exists but mpv is not accepting yet
                    last_error = e
            if loop.time() >= deadline:
                self.state = ConnectionState.CLOSED
                logger.error(
                    f"mpv socket not connectable after {self.connect_timeout}s: {self.socket_path}"
                )
                raise ConnectFailure(
                    f"mpv socket not available: {self.socket_path}"
                ) from last_error
            await asyncio.sleep(self.poll_interval)

        if self.state is ConnectionState.CLOSED:
            # Closed while the connection was opening
            writer, self._writer = self._writer, None
            writer.close()
            raise ConnectFailure(f"Connect cancelled: {self.socket_path}")

        self.state = ConnectionState.CONNECTED
        self._reader_task = asyncio.create_task(self._read_loop())
        logger.debug(f"Connected to mpv IPC at {self.socket_path}")

        try:
            for observer_id, name in OBSERVED_PROPERTIES.items():
                await self.notify(["observe_property", observer_id, name])
        except CommandFailure as e:
            raise ConnectFailure(f"mpv closed the connection: {e}") from e

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _write(self, command: list, request_id: int) -> None:
        if self.state is not ConnectionState.CONNECTED or self._writer is None:
            raise CommandFailure("mpv not connected", command)
        line = json.dumps({"command": command, "request_id": request_id}) + "\n"
        try:
            self._writer.write(line.encode("utf-8"))
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            raise CommandFailure(f"Write failed: {e}", command) from e

    async def notify(self, command: list) -> None:
        """Send a command without waiting for its reply."""
        await self._write(command, self._next_request_id())

    async def request(
        self, command: list, timeout: Optional[float] = None
    ) -> dict[str, Any]:
        """Send a command and wait for the matching response.

        Returns:
            The full response object (``data`` holds any payload)

        Raises:
            CommandFailure: on a non-success error, timeout, or channel close
        """
        request_id = self._next_request_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        limit = self.command_timeout if timeout is None else timeout
        try:
            await self._write(command, request_id)
            return await asyncio.wait_for(future, limit)
        except asyncio.TimeoutError as e:
            raise CommandFailure(f"No reply to {command[0]!r} within {limit}s", command) from e
        finally:
            self._pending.pop(request_id, None)

    async def _read_loop(self) -> None:
        assert self._reader is not None
        try:
            while True:
                chunk = await self._reader.read(4096)
                if not chunk:
                    break
                for message in self._decoder.feed(chunk):
                    self._dispatch(message)
        except (ConnectionError, OSError) as e:
            logger.debug(f"mpv IPC read error: {e}")
        finally:
            self._mark_closed("connection closed by mpv")

    def _dispatch(self, message: dict[str, Any]) -> None:
        event = message.get("event")
        if event is None and "request_id" in message:
            request_id = message["request_id"]
            if not isinstance(request_id, int) or isinstance(request_id, bool):
                self._decoder.dropped += 1
                logger.debug(f"Dropping reply with invalid request_id: {request_id!r}")
                return
            self._resolve(message)
            return

        if event == "property-change":
            name = message.get("name")
            data = message.get("data")
            if not isinstance(data, (int, float)) or isinstance(data, bool):
                return
            if name == "playback-time":
                self.position = float(data)
            elif name == "duration":
                self.duration = float(data)
            else:
                return
            self._notify_time()
        elif event == "end-file":
            logger.debug(f"mpv end-file (reason={message.get('reason')})")
            if self._on_end:
                self._on_end()

    def _resolve(self, message: dict[str, Any]) -> None:
        future = self._pending.pop(message["request_id"], None)
        if future is None or future.done():
            return
        error = message.get("error")
        if error and error != "success":
            future.set_exception(CommandFailure(str(error)))
        else:
            future.set_result(message)

    def _notify_time(self) -> None:
        callback = self._time_callback
        if callback is None:
            return
        try:
            callback(self.position, self.duration)
        except Exception:
            logger.exception("Time change subscriber failed")

    def _mark_closed(self, reason: str) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED

        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(CommandFailure(reason))

        logger.debug(f"mpv IPC channel closed: {reason}")
        if self._on_close:
            self._on_close()

    async def close(self) -> None:
        """Stop reading, fail outstanding requests, and close the socket.

        Safe to call more than once.
        """
        task, self._reader_task = self._reader_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._mark_closed("channel closed")

        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()
