# tutor/api/v1/routers/ws_session.py
from fastapi import APIRouter, Depends, WebSocket
from starlette.websockets import WebSocketDisconnect
import json
import logging

from tutor.api.v1.deps import get_ws_user
from tutor.core.errors import SessionNotFound
from tutor.models.user import User

logger = logging.getLogger("uvicorn.error")

router = APIRouter()


@router.websocket("/ws/session")
async def ws_session(ws: WebSocket, user: User = Depends(get_ws_user)):
    """
    Realtime channel for the authenticated user's tutoring sessions.

    Connect with ``/ws/session?token=<jwt>``; a missing or invalid token closes
    the handshake with 1008. Every frame is JSON ``{"type": <event>, ...}``;
    voice audio arrives as binary frames between ``voice-start`` and ``voice-end``.

    Client -> server:
    - {"type": "join-session", "sessionId": "..."}   -> {"type": "joined", "sessionId": "..."}
    - {"type": "leave-session", "sessionId": "..."}
    - {"type": "send-message", "sessionId": "...", ...} -> "new-message" to the room
    - {"type": "speak", "sessionId": "...", "text": "...", "voiceId"?: "..."}

    Only sessions owned by the user can be joined, and send-message / speak
    require the socket to have joined the session first.

    Server -> room: new-message, voice-start / binary / voice-end,
    avatar-start, avatar-video-ready, avatar-stream, avatar-end.
    """
    services = ws.app.state.services
    channel = services.channel
    joined: set[str] = set()
    await ws.accept()
    logger.info("[ws_session] connected user=%s", user.id)

    async def send_error(message: str):
        await ws.send_text(json.dumps({"type": "error", "error": message}))

    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = json.loads(raw)
            except ValueError:
                await send_error("Invalid JSON")
                continue
            if not isinstance(msg, dict):
                await send_error("Frame must be a JSON object")
                continue
            kind = msg.get("type")
            room = str(msg.get("sessionId") or "")

            if kind in ("join-session", "leave-session", "send-message", "speak") and not room:
                await send_error("sessionId is required")
                continue
            if kind in ("send-message", "speak") and room not in joined:
                await send_error("Join the session first")
                continue

            if kind == "join-session":
                try:
                    session = await services.sessions.require_owned(user, room)
                except SessionNotFound:
                    await send_error("Session not found")
                    continue
                room = str(session.id)
                await channel.join(room, ws)
                joined.add(room)
                logger.info("[ws_session] joined %s", room)
                await ws.send_text(json.dumps({"type": "joined", "sessionId": room}))
            elif kind == "leave-session":
                channel.leave(room, ws)
                joined.discard(room)
                logger.info("[ws_session] left %s", room)
            elif kind == "send-message":
                payload = {k: v for k, v in msg.items() if k != "type"}
                await channel.emit(room, "new-message", payload)
            elif kind == "speak":
                text = (msg.get("text") or "").strip()
                if not text:
                    await send_error("text is required")
                    continue
                await services.orchestrator.relay_speech(channel, room, text, msg.get("voiceId"))
            else:
                await send_error(f"Unknown event: {kind}")
    except WebSocketDisconnect:
        logger.info("[ws_session] disconnected")
    except Exception as e:
        logger.warning("[ws_session] error: %r", e)
    finally:
        channel.leave_all(ws)
