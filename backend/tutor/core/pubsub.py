# tutor/core/pubsub.py
"""
Room-based broadcasting for the realtime session channel.

Each tutoring session id is a room. Sockets join a room through the
``/ws/session`` endpoint and receive every event published to it: chat
messages, voice audio and streaming-avatar lifecycle events.
"""
import json
import logging
from typing import Dict, Set
from starlette.websockets import WebSocket

logger = logging.getLogger("uvicorn.error")


class Channel:
    """
    Simple PubSub channel keyed by tutoring session id.

    Architecture:
    - Router is responsible for ws.accept(); this module only handles routing
    - Events are JSON frames ``{"type": event, ...payload}``
    - Voice audio is sent as raw binary frames between ``voice-start`` and ``voice-end``
    - A socket that fails to receive is dropped from every room it joined

    Data structure:
    - _rooms: Dict[session_id, Set[WebSocket]]
    """
    def __init__(self):
        self._rooms: Dict[str, Set[WebSocket]] = {}

    # -------- join / leave (no accept, only register) --------
    async def join(self, room: str, ws: WebSocket):
        self._rooms.setdefault(room, set()).add(ws)

    def leave(self, room: str, ws: WebSocket):
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(ws)
        if not members:
            self._rooms.pop(room, None)

    def leave_all(self, ws: WebSocket):
        for room in list(self._rooms):
            self.leave(room, ws)

    def members(self, room: str) -> Set[WebSocket]:
        return set(self._rooms.get(room, set()))

    # -------- publish --------
    async def emit(self, room: str, event: str, payload: dict | None = None):
        """
        Publish a JSON event to all sockets in a room.

        Args:
            room: Tutoring session id
            event: Event name (e.g. "new-message", "avatar-start")
            payload: Extra fields merged into the frame
        """
        msg = json.dumps({"type": event, **(payload or {})}, default=str)
        for s in list(self._rooms.get(room, set())):
            try:
                await s.send_text(msg)
            except Exception as e:
                logger.debug("[pubsub] dropping socket from %s after send error: %r", room, e)
                self.leave_all(s)

    async def emit_bytes(self, room: str, chunk: bytes):
        """Publish a binary frame (voice audio) to all sockets in a room."""
        for s in list(self._rooms.get(room, set())):
            try:
                await s.send_bytes(chunk)
            except Exception as e:
                logger.debug("[pubsub] dropping socket from %s after send error: %r", room, e)
                self.leave_all(s)
