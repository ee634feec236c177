"""
Live avatar streams

``StreamManager`` is an actor: one asyncio task owns the
{session_id: StreamHandle} map and everything else talks to it through a
command queue. ``VideoStreamService`` layers reply generation, HeyGen live
sessions and the demo fallback on top of it, and publishes avatar-* events
to the session's realtime room.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional

from ..config import Settings, settings
from ..core.pubsub import Channel
from .demo_videos import DemoVideoLibrary
from .orchestrator import Orchestrator
from .providers.base import ChatTurn
from .providers.heygen_streaming import HeyGenStreamingClient

logger = logging.getLogger("uvicorn.error")


@dataclass
class StreamHandle:
    stream_id: str
    provider_session_id: str
    avatar_id: str
    voice_id: str
    is_active: bool = True

    def to_public(self) -> dict:
        return {
            "streamId": self.stream_id,
            "providerSessionId": self.provider_session_id,
            "avatarId": self.avatar_id,
            "voiceId": self.voice_id,
            "isActive": self.is_active,
        }


class Cmd(Enum):
    PUT = auto()
    GET = auto()
    POP = auto()


@dataclass
class Command:
    kind: Cmd
    session_id: str
    handle: Optional[StreamHandle] = None
    reply: "asyncio.Future[Any]" = field(default=None)


class StreamManager:
    """Sole owner of the live-stream map"""

    def __init__(self) -> None:
        self._streams: Dict[str, StreamHandle] = {}
        self._q: Optional["asyncio.Queue[Command]"] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _ensure_running(self) -> None:
        loop = asyncio.get_running_loop()
        if self._task is not None and not self._task.done() and self._loop is loop:
            return
        # first use, or a new event loop (e.g. a fresh test client)
        self._loop = loop
        self._q = asyncio.Queue()
        self._task = loop.create_task(self._run(self._q))

    async def _run(self, q: "asyncio.Queue[Command]") -> None:
        while True:
            cmd = await q.get()
            if cmd.kind is Cmd.PUT:
                self._streams[cmd.session_id] = cmd.handle
                result = cmd.handle
            elif cmd.kind is Cmd.GET:
                result = self._streams.get(cmd.session_id)
            else:
                result = self._streams.pop(cmd.session_id, None)
            if not cmd.reply.done():
                cmd.reply.set_result(result)

    async def _send(self, kind: Cmd, session_id: str, handle: Optional[StreamHandle] = None):
        self._ensure_running()
        fut = asyncio.get_running_loop().create_future()
        await self._q.put(Command(kind, session_id, handle, fut))
        return await fut

    async def put(self, session_id: str, handle: StreamHandle) -> StreamHandle:
        return await self._send(Cmd.PUT, session_id, handle)

    async def get(self, session_id: str) -> Optional[StreamHandle]:
        return await self._send(Cmd.GET, session_id)

    async def pop(self, session_id: str) -> Optional[StreamHandle]:
        return await self._send(Cmd.POP, session_id)

    async def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None


class VideoStreamService:

    def __init__(
        self,
        orchestrator: Orchestrator,
        streaming: HeyGenStreamingClient,
        demo: DemoVideoLibrary,
        channel: Channel,
        manager: Optional[StreamManager] = None,
        cfg: Optional[Settings] = None,
    ):
        cfg = cfg or settings
        self.orchestrator = orchestrator
        self.streaming = streaming
        self.demo = demo
        self.channel = channel
        self.manager = manager or StreamManager()
        self.avatar_id = cfg.heygen_stream_avatar_id
        self.voice_id = cfg.heygen_voice_id

    async def _reply_for(self, session, text: str) -> str:
        result = await self.orchestrator.generate_reply(
            [ChatTurn(sender="user", content=text)],
            session.user_name,
            session.ai_tutor_name,
            session.user_language,
            session.subject,
        )
        return result.text

    def _demo_stream(self, tutor_name: str, ai_response: Optional[str]) -> dict:
        if ai_response:
            clip = self.demo.generate_talking_response(tutor_name, ai_response)
        else:
            clip = self.demo.get_demo_video(tutor_name)
        return {
            "isStreaming": False,
            "videoUrl": clip.video_url,
            "audioUrl": clip.audio_url,
            "duration": clip.duration,
            "isLive": clip.is_live,
            "aiResponse": ai_response,
            "degraded": True,
        }

    async def start_stream(self, session, tutor_name: str, initial_message: Optional[str] = None) -> dict:
        room = str(session.id)
        await self.channel.emit(room, "avatar-start", {"sessionId": room, "tutorName": tutor_name})

        ai_response = await self._reply_for(session, initial_message) if initial_message else None

        if self.streaming.is_available():
            try:
                provider_session_id = await self.streaming.create_session(self.avatar_id, self.voice_id)
                if ai_response:
                    await self.streaming.send_text(provider_session_id, ai_response)
                handle = StreamHandle(
                    stream_id=uuid.uuid4().hex,
                    provider_session_id=provider_session_id,
                    avatar_id=self.avatar_id,
                    voice_id=self.voice_id,
                )
                await self.manager.put(room, handle)
                url = f"streaming://{provider_session_id}"
                stream = {
                    "isStreaming": True,
                    "videoUrl": url,
                    "audioUrl": url,
                    "streamId": handle.stream_id,
                    "aiResponse": ai_response,
                    "degraded": False,
                }
                await self.channel.emit(room, "avatar-stream", {"sessionId": room, "stream": stream})
                logger.info("[stream] live stream %s started for session %s", handle.stream_id, room)
                return stream
            except Exception as e:
                logger.warning("[stream] live stream for session %s failed, using demo video: %r", room, e)
        else:
            logger.info("[stream] live streaming not configured, using demo video for %s", room)

        stream = self._demo_stream(tutor_name, ai_response)
        await self.channel.emit(room, "avatar-video-ready", {"sessionId": room, "stream": stream})
        return stream

    async def talking_response(self, session, tutor_name: str, message: str) -> dict:
        room = str(session.id)
        ai_response = await self._reply_for(session, message)

        handle = await self.manager.get(room)
        if handle is not None and handle.is_active:
            try:
                await self.streaming.send_text(handle.provider_session_id, ai_response)
                url = f"streaming://{handle.provider_session_id}"
                stream = {
                    "isStreaming": True,
                    "videoUrl": url,
                    "audioUrl": url,
                    "streamId": handle.stream_id,
                    "aiResponse": ai_response,
                    "degraded": False,
                }
                await self.channel.emit(room, "avatar-stream", {"sessionId": room, "stream": stream})
                return stream
            except Exception as e:
                logger.warning("[stream] send to live stream %s failed: %r", handle.stream_id, e)

        stream = self._demo_stream(tutor_name, ai_response)
        await self.channel.emit(room, "avatar-video-ready", {"sessionId": room, "stream": stream})
        return stream

    async def stop_stream(self, session_id: str) -> bool:
        """Stop and forget the live stream; returns whether one existed"""
        room = str(session_id)
        handle = await self.manager.pop(room)
        if handle is None:
            return False
        try:
            await self.streaming.disconnect(handle.provider_session_id)
        except Exception as e:
            logger.warning("[stream] disconnect of %s failed: %r", handle.provider_session_id, e)
        await self.channel.emit(room, "avatar-end", {"sessionId": room, "streamId": handle.stream_id})
        logger.info("[stream] stream %s stopped", handle.stream_id)
        return True

    async def stream_status(self, session_id: str) -> dict:
        handle = await self.manager.get(str(session_id))
        return {
            "isActive": bool(handle and handle.is_active),
            "stream": handle.to_public() if handle else None,
        }
