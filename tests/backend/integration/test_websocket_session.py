"""
WebSocket /ws/session tests: handshake auth, room join/leave with ownership
checks, message rebroadcast and the voice relay framing.

Users and session ownership are stubbed, so no database is needed.
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from tutor.api.v1.deps import get_ws_user
from tutor.core.errors import SessionNotFound
from tutor.main import app


OWNED = {"s-1", "s-2", "s-3", "s-4", "s-5", "s-6"}


async def _require_owned(user, session_id):
    if session_id not in OWNED:
        raise SessionNotFound("Session not found")
    return SimpleNamespace(id=session_id)


@pytest.fixture
def ws_client(offline_services):
    offline_services.sessions.require_owned = AsyncMock(side_effect=_require_owned)
    app.dependency_overrides[get_ws_user] = lambda: SimpleNamespace(id="user-1")
    yield TestClient(app)
    app.dependency_overrides.pop(get_ws_user, None)


def joined(ws, session_id):
    ws.send_json({"type": "join-session", "sessionId": session_id})
    assert ws.receive_json() == {"type": "joined", "sessionId": session_id}


class TestHandshakeAuth:

    def test_missing_token_is_rejected(self, offline_services):
        client = TestClient(app)
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws/session"):
                pass
        assert exc.value.code == 1008

    def test_invalid_token_is_rejected(self, offline_services):
        client = TestClient(app)
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws/session?token=not-a-jwt"):
                pass
        assert exc.value.code == 1008


class TestRooms:

    def test_join_session_acknowledged(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            joined(ws, "s-1")
            assert len(app.state.services.channel.members("s-1")) == 1

    def test_cannot_join_someone_elses_session(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            ws.send_json({"type": "join-session", "sessionId": "someone-elses-session"})
            assert ws.receive_json() == {"type": "error", "error": "Session not found"}
            assert app.state.services.channel.members("someone-elses-session") == set()

    def test_send_and_speak_require_join(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            ws.send_json({"type": "send-message", "sessionId": "s-1", "content": "hi"})
            assert ws.receive_json() == {"type": "error", "error": "Join the session first"}
            ws.send_json({"type": "speak", "sessionId": "s-1", "text": "hi"})
            assert ws.receive_json() == {"type": "error", "error": "Join the session first"}

    def test_send_message_rebroadcast_to_room(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as a, \
                ws_client.websocket_connect("/ws/session?token=t") as b:
            joined(a, "s-2")
            joined(b, "s-2")

            a.send_json({"type": "send-message", "sessionId": "s-2", "content": "hi all"})
            for ws in (a, b):
                assert ws.receive_json() == {"type": "new-message", "sessionId": "s-2", "content": "hi all"}

    def test_missing_session_id_is_error(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            ws.send_json({"type": "join-session"})
            assert ws.receive_json() == {"type": "error", "error": "sessionId is required"}

    @pytest.mark.parametrize("raw", ["[]", '"x"', "42"])
    def test_non_object_frame_keeps_connection(self, ws_client, raw):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            ws.send_text(raw)
            assert ws.receive_json() == {"type": "error", "error": "Frame must be a JSON object"}
            joined(ws, "s-1")

    def test_invalid_json_and_unknown_event(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            ws.send_text("{not json")
            assert ws.receive_json()["error"] == "Invalid JSON"
            ws.send_json({"type": "dance", "sessionId": "s-1"})
            assert ws.receive_json()["error"] == "Unknown event: dance"

    def test_leave_session(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            joined(ws, "s-3")
            ws.send_json({"type": "leave-session", "sessionId": "s-3"})
            # round-trip to make sure the leave was processed
            joined(ws, "s-4")
            assert app.state.services.channel.members("s-3") == set()


class TestVoiceRelay:

    def test_speak_streams_binary_between_start_and_end(self, ws_client):
        async def fake_stream(text, voice_id=None):
            yield b"mp3-1"
            yield b"mp3-2"

        app.state.services.orchestrator.tts.stream_speech = fake_stream
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            joined(ws, "s-5")
            ws.send_json({"type": "speak", "sessionId": "s-5", "text": "Hello Ana"})

            assert ws.receive_json()["type"] == "voice-start"
            assert ws.receive_bytes() == b"mp3-1"
            assert ws.receive_bytes() == b"mp3-2"
            end = json.loads(ws.receive_text())
            assert end == {"type": "voice-end", "gotAudio": True}

    def test_speak_without_tts_key_reports_error(self, ws_client):
        with ws_client.websocket_connect("/ws/session?token=t") as ws:
            joined(ws, "s-6")
            ws.send_json({"type": "speak", "sessionId": "s-6", "text": "Hello"})
            kinds = [ws.receive_json()["type"] for _ in range(3)]
            assert kinds == ["voice-start", "voice-error", "voice-end"]
