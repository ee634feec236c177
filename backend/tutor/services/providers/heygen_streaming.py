"""
HeyGen Streaming Avatar Client

A live avatar session is stateful on HeyGen's side: it is created once,
then receives text tasks that the avatar speaks incrementally, and must be
stopped explicitly. The browser renders the media over WebRTC; this client
only drives the session lifecycle.
"""
import logging
from typing import Optional

import httpx

from ...config import Settings, settings
from .base import ProviderClient, ProviderError, ProviderNotConfigured

logger = logging.getLogger("uvicorn.error")


class HeyGenStreamingClient(ProviderClient):

    def __init__(self, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.access_token = cfg.heygen_access_token
        self.api_key = cfg.heygen_api_key
        self.api_base = cfg.heygen_api_base

    @property
    def name(self) -> str:
        return "heygen-streaming"

    def is_available(self) -> bool:
        return bool(self.access_token or self.api_key)

    def _headers(self) -> dict:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"}
        return {"x-api-key": self.api_key, "Content-Type": "application/json"}

    async def _call(self, path: str, payload: dict) -> dict:
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "HEYGEN_ACCESS_TOKEN")
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.post(f"{self.api_base}/v1/{path}", headers=self._headers(), json=payload)
            resp.raise_for_status()
            return resp.json()

    async def create_session(self, avatar_id: str, voice_id: str) -> str:
        """Open and start a live session; returns HeyGen's session id"""
        body = await self._call(
            "streaming.new",
            {"quality": "medium", "avatar_id": avatar_id, "voice": {"voice_id": voice_id}, "version": "v2"},
        )
        session_id = (body.get("data") or {}).get("session_id")
        if not session_id:
            raise ProviderError(self.name, "streaming.new returned no session_id")
        await self._call("streaming.start", {"session_id": session_id})
        logger.info("[heygen-stream] session started: %s", session_id)
        return session_id

    async def send_text(self, session_id: str, text: str) -> None:
        """Make the avatar speak ``text`` verbatim"""
        await self._call("streaming.task", {"session_id": session_id, "text": text, "task_type": "repeat"})
        logger.info("[heygen-stream] text sent to %s (%d chars)", session_id, len(text))

    async def disconnect(self, session_id: str) -> None:
        await self._call("streaming.stop", {"session_id": session_id})
        logger.info("[heygen-stream] session stopped: %s", session_id)
