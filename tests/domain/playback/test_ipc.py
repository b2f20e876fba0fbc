"""Tests for mpv IPC framing and the request/event channel."""

import asyncio
import json
import os
import shutil
import tempfile

import pytest

from helpers import run, wait_until
from poolsuite_cli.domain.playback.exceptions import CommandFailure, ConnectFailure
from poolsuite_cli.domain.playback.ipc import ConnectionState, IpcChannel, LineDecoder


@pytest.fixture
def socket_path():
    # Short directory so the path stays under the AF_UNIX length limit
    directory = tempfile.mkdtemp(prefix="psk-")
    yield os.path.join(directory, "mpv.sock")
    shutil.rmtree(directory, ignore_errors=True)


class FakeServer:
    """Scripted mpv peer: records commands and sends whatever a test tells it to."""

    def __init__(self) -> None:
        self.commands: asyncio.Queue = asyncio.Queue()
        self.writer = None
        self.server = None

    async def start(self, path: str) -> None:
        self.server = await asyncio.start_unix_server(self._handle, path=path)

    async def _handle(self, reader, writer) -> None:
        self.writer = writer
        while True:
            line = await reader.readline()
            if not line:
                break
            await self.commands.put(json.loads(line))

    async def next_command(self) -> dict:
        return await asyncio.wait_for(self.commands.get(), timeout=2.0)

    async def send(self, message) -> None:
        raw = message if isinstance(message, bytes) else (json.dumps(message) + "\n").encode()
        self.writer.write(raw)
        await self.writer.drain()

    async def disconnect(self) -> None:
        self.writer.close()

    async def stop(self) -> None:
        if self.writer is not None:
            self.writer.close()
        self.server.close()


async def connected_pair(path: str, **kwargs):
    """Start a fake server, connect a channel, and consume the observe commands."""
    server = FakeServer()
    await server.start(path)
    channel = IpcChannel(path, poll_interval=0.01, **kwargs)
    await channel.establish()
    observed = [await server.next_command(), await server.next_command()]
    return server, channel, observed


class TestLineDecoder:
    """Test newline framing of the IPC byte stream."""

    def test_complete_lines_are_parsed(self):
        decoder = LineDecoder()
        messages = decoder.feed(b'{"a": 1}\n{"b": 2}\n')
        assert messages == [{"a": 1}, {"b": 2}]
        assert decoder.pending == b""

    def test_partial_line_is_carried_over(self):
        """A line split across reads is parsed once complete."""
        decoder = LineDecoder()
        assert decoder.feed(b'{"event": "end-') == []
        assert decoder.pending == b'{"event": "end-'
        assert decoder.feed(b'file"}\n{"x"') == [{"event": "end-file"}]
        assert decoder.pending == b'{"x"'

    def test_blank_lines_are_skipped(self):
        decoder = LineDecoder()
        assert decoder.feed(b'\n\n  \n{"a": 1}\n') == [{"a": 1}]
        assert decoder.dropped == 0

    def test_malformed_lines_are_dropped_and_counted(self):
        """Bad lines never stop later lines from being processed."""
        decoder = LineDecoder()
        messages = decoder.feed(b'not json\n[1, 2]\n{"ok": true}\n')
        assert messages == [{"ok": True}]
        assert decoder.dropped == 2


class TestEstablish:
    """Test connecting to the mpv socket."""

    def test_missing_socket_times_out(self, socket_path):
        channel = IpcChannel(socket_path, connect_timeout=0.1, poll_interval=0.01)
        with pytest.raises(ConnectFailure):
            run(channel.establish())
        assert channel.state is ConnectionState.CLOSED

    def test_observes_position_and_duration(self, socket_path):
        async def scenario():
            server, channel, observed = await connected_pair(socket_path)
            try:
                assert channel.state is ConnectionState.CONNECTED
                return observed
            finally:
                await channel.close()
                await server.stop()

        observed = run(scenario())
        assert [c["command"] for c in observed] == [
            ["observe_property", 1, "playback-time"],
            ["observe_property", 2, "duration"],
        ]

    def test_channel_cannot_be_reused(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            try:
                with pytest.raises(ConnectFailure):
                    await channel.establish()
            finally:
                await channel.close()
                await server.stop()

        run(scenario())

    def test_close_while_waiting_aborts_connect(self, socket_path):
        async def scenario():
            loop = asyncio.get_running_loop()
            channel = IpcChannel(socket_path, connect_timeout=5.0, poll_interval=0.01)
            task = asyncio.create_task(channel.establish())
            await wait_until(lambda: channel.state is ConnectionState.CONNECTING)
            started = loop.time()
            await channel.close()
            with pytest.raises(ConnectFailure, match="cancelled"):
                await task
            return channel.state, loop.time() - started

        state, elapsed = run(scenario())
        assert state is ConnectionState.CLOSED
        assert elapsed < 1.0

    def test_dead_process_aborts_connect(self, socket_path):
        closed = []
        channel = IpcChannel(
            socket_path,
            connect_timeout=5.0,
            poll_interval=0.01,
            on_close=lambda: closed.append(True),
        )
        with pytest.raises(ConnectFailure, match="exited"):
            run(channel.establish(is_alive=lambda: False))
        assert channel.state is ConnectionState.CLOSED
        assert closed == [True]

    def test_request_before_connect_fails(self, socket_path):
        channel = IpcChannel(socket_path)
        with pytest.raises(CommandFailure):
            run(channel.request(["get_property", "pause"]))


class TestRequests:
    """Test request/response correlation."""

    def test_out_of_order_replies_reach_their_callers(self, socket_path):
        """Each caller gets the reply whose request_id matches its own."""

        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            try:
                names = ["pause", "playback-time", "duration"]
                tasks = [
                    asyncio.create_task(channel.request(["get_property", name]))
                    for name in names
                ]
                received = [await server.next_command() for _ in names]
                request_ids = {c["request_id"] for c in received}
                assert len(request_ids) == len(names)

                for command in reversed(received):
                    await server.send(
                        {
                            "request_id": command["request_id"],
                            "error": "success",
                            "data": command["command"][1],
                        }
                    )
                results = await asyncio.gather(*tasks)
                return names, [r["data"] for r in results], channel.pending_count
            finally:
                await channel.close()
                await server.stop()

        names, data, pending = run(scenario())
        assert data == names
        assert pending == 0

    def test_error_reply_raises_command_failure(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            try:
                task = asyncio.create_task(channel.request(["seek", 10, "relative"]))
                command = await server.next_command()
                await server.send(
                    {"request_id": command["request_id"], "error": "property unavailable"}
                )
                with pytest.raises(CommandFailure, match="property unavailable"):
                    await task
            finally:
                await channel.close()
                await server.stop()

        run(scenario())

    def test_unanswered_request_times_out(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path, command_timeout=0.05)
            try:
                with pytest.raises(CommandFailure):
                    await channel.request(["get_property", "pause"])
                return channel.pending_count
            finally:
                await channel.close()
                await server.stop()

        assert run(scenario()) == 0

    def test_timeout_message_names_the_limit_used(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path, command_timeout=5.0)
            try:
                with pytest.raises(CommandFailure, match=r"within 0\.05s"):
                    await channel.request(["get_property", "pause"], timeout=0.05)
            finally:
                await channel.close()
                await server.stop()

        run(scenario())

    def test_reply_for_unknown_id_is_ignored(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            try:
                task = asyncio.create_task(channel.request(["get_property", "pause"]))
                command = await server.next_command()
                await server.send({"request_id": 9999, "error": "success", "data": True})
                await server.send(
                    {"request_id": command["request_id"], "error": "success", "data": False}
                )
                return (await task)["data"]
            finally:
                await channel.close()
                await server.stop()

        assert run(scenario()) is False

    def test_reply_with_invalid_id_is_dropped(self, socket_path):
        """A reply whose request_id is not an integer is counted and skipped."""

        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            try:
                task = asyncio.create_task(channel.request(["get_property", "pause"]))
                command = await server.next_command()
                await server.send({"request_id": [1], "error": "success"})
                await server.send({"request_id": True, "error": "success"})
                await server.send(
                    {"request_id": command["request_id"], "error": "success", "data": True}
                )
                data = (await task)["data"]
                return data, channel.dropped_lines, channel.state
            finally:
                await channel.close()
                await server.stop()

        data, dropped, state = run(scenario())
        assert data is True
        assert dropped == 2
        assert state is ConnectionState.CONNECTED


class TestClose:
    """Test channel shutdown behaviour."""

    def test_close_fails_pending_requests(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            try:
                task = asyncio.create_task(channel.request(["get_property", "pause"]))
                await server.next_command()
                await channel.close()
                with pytest.raises(CommandFailure):
                    await task
                return channel.state, channel.pending_count
            finally:
                await server.stop()

        state, pending = run(scenario())
        assert state is ConnectionState.CLOSED
        assert pending == 0

    def test_peer_disconnect_fails_pending_and_reports_close(self, socket_path):
        closed = []

        async def scenario():
            server, channel, _ = await connected_pair(
                socket_path, on_close=lambda: closed.append(True)
            )
            try:
                task = asyncio.create_task(channel.request(["get_property", "pause"]))
                await server.next_command()
                await server.disconnect()
                with pytest.raises(CommandFailure):
                    await task
            finally:
                await channel.close()
                await server.stop()

        run(scenario())
        assert closed == [True]

    def test_close_is_idempotent(self, socket_path):
        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            await channel.close()
            await channel.close()
            await server.stop()
            return channel.state

        assert run(scenario()) is ConnectionState.CLOSED


class TestEvents:
    """Test property-change and end-file event handling."""

    def test_property_changes_reach_subscriber(self, socket_path):
        updates = []

        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            channel.subscribe(lambda pos, dur: updates.append((pos, dur)))
            try:
                await server.send({"event": "property-change", "id": 2, "name": "duration", "data": 200})
                await server.send(
                    {"event": "property-change", "id": 1, "name": "playback-time", "data": 10.5}
                )
                await wait_until(lambda: len(updates) == 2)
            finally:
                await channel.close()
                await server.stop()

        run(scenario())
        assert updates == [(0.0, 200.0), (10.5, 200.0)]

    def test_latest_subscriber_wins(self, socket_path):
        first, second = [], []

        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            channel.subscribe(lambda pos, dur: first.append(pos))
            channel.subscribe(lambda pos, dur: second.append(pos))
            try:
                await server.send(
                    {"event": "property-change", "id": 1, "name": "playback-time", "data": 3}
                )
                await wait_until(lambda: second)
            finally:
                await channel.close()
                await server.stop()

        run(scenario())
        assert first == []
        assert second == [3.0]

    def test_non_numeric_data_and_bad_lines_are_ignored(self, socket_path):
        updates = []

        async def scenario():
            server, channel, _ = await connected_pair(socket_path)
            channel.subscribe(lambda pos, dur: updates.append(pos))
            try:
                await server.send(
                    {"event": "property-change", "id": 1, "name": "playback-time", "data": None}
                )
                await server.send(b"garbage line\n")
                await server.send(
                    {"event": "property-change", "id": 1, "name": "playback-time", "data": 7}
                )
                await wait_until(lambda: updates)
                return channel.dropped_lines
            finally:
                await channel.close()
                await server.stop()

        assert run(scenario()) == 1
        assert updates == [7.0]

    def test_end_file_invokes_end_callback(self, socket_path):
        ended = []

        async def scenario():
            server, channel, _ = await connected_pair(
                socket_path, on_end=lambda: ended.append(True)
            )
            try:
                await server.send({"event": "end-file", "reason": "eof"})
                await wait_until(lambda: ended)
            finally:
                await channel.close()
                await server.stop()

        run(scenario())
        assert ended == [True]
