"""
Unit tests for core.pubsub module.
Tests room membership and event broadcasting.
"""
import json
import pytest
from tutor.core.pubsub import Channel


class MockWebSocket:
    """Mock WebSocket for testing."""

    def __init__(self):
        self.sent_texts = []
        self.sent_bytes = []

    async def send_text(self, text: str):
        self.sent_texts.append(text)

    async def send_bytes(self, data: bytes):
        self.sent_bytes.append(data)


class FailingWebSocket(MockWebSocket):
    async def send_text(self, text: str):
        raise RuntimeError("Connection closed")

    async def send_bytes(self, data: bytes):
        raise RuntimeError("Connection closed")


class TestRoomMembership:

    @pytest.mark.asyncio
    async def test_join_adds_socket_to_room(self):
        channel = Channel()
        ws = MockWebSocket()
        await channel.join("session-1", ws)
        assert ws in channel.members("session-1")

    @pytest.mark.asyncio
    async def test_leave_removes_socket_and_empty_room(self):
        channel = Channel()
        ws = MockWebSocket()
        await channel.join("session-1", ws)
        channel.leave("session-1", ws)
        assert channel.members("session-1") == set()
        assert "session-1" not in channel._rooms

    def test_leave_unknown_room_does_not_error(self):
        Channel().leave("nope", MockWebSocket())

    @pytest.mark.asyncio
    async def test_leave_all_removes_socket_everywhere(self):
        channel = Channel()
        ws, other = MockWebSocket(), MockWebSocket()
        await channel.join("a", ws)
        await channel.join("b", ws)
        await channel.join("b", other)
        channel.leave_all(ws)
        assert channel.members("a") == set()
        assert channel.members("b") == {other}


class TestEmit:

    @pytest.mark.asyncio
    async def test_emit_sends_typed_json_to_room_only(self):
        channel = Channel()
        ws1, ws2, outsider = MockWebSocket(), MockWebSocket(), MockWebSocket()
        await channel.join("s1", ws1)
        await channel.join("s1", ws2)
        await channel.join("s2", outsider)

        await channel.emit("s1", "new-message", {"content": "hi"})

        for ws in (ws1, ws2):
            assert json.loads(ws.sent_texts[0]) == {"type": "new-message", "content": "hi"}
        assert outsider.sent_texts == []

    @pytest.mark.asyncio
    async def test_emit_to_empty_room_does_not_error(self):
        await Channel().emit("empty", "avatar-end")

    @pytest.mark.asyncio
    async def test_emit_bytes_sends_binary_frames_in_order(self):
        channel = Channel()
        ws = MockWebSocket()
        await channel.join("s1", ws)
        await channel.emit_bytes("s1", b"chunk1")
        await channel.emit_bytes("s1", b"chunk2")
        assert ws.sent_bytes == [b"chunk1", b"chunk2"]

    @pytest.mark.asyncio
    async def test_failed_socket_is_dropped(self):
        channel = Channel()
        bad, good = FailingWebSocket(), MockWebSocket()
        await channel.join("s1", bad)
        await channel.join("s1", good)

        await channel.emit("s1", "voice-start")

        assert channel.members("s1") == {good}
        assert len(good.sent_texts) == 1
