"""
HeyGen Video Generation Client

Talking-avatar videos are rendered asynchronously: ``submit`` returns a
video id and ``poll_status`` reports progress until HeyGen marks the job
``completed`` or ``failed``. Status lives under ``data.status``.
"""
import logging
from typing import Optional

import httpx

from ...config import Settings, settings
from .base import (
    AvatarRequest,
    JobFailed,
    JobPending,
    JobStatus,
    JobSucceeded,
    ProviderError,
    ProviderNotConfigured,
    VideoJobClient,
)

logger = logging.getLogger("uvicorn.error")


class HeyGenVideoClient(VideoJobClient):
    """HeyGen v2 video generation"""

    def __init__(self, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.api_key = cfg.heygen_api_key
        self.api_base = cfg.heygen_api_base
        self.avatar_id = cfg.heygen_avatar_id
        self.voice_id = cfg.heygen_voice_id

    @property
    def name(self) -> str:
        return "heygen"

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        return {"X-Api-Key": self.api_key, "Content-Type": "application/json"}

    async def submit(self, text: str, avatar: AvatarRequest) -> str:
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "HEYGEN_API_KEY")

        voice = {
            "type": "text",
            "input_text": text,
            "voice_id": avatar.voice_id or self.voice_id,
        }
        if avatar.speed != 1.0:
            voice["speed"] = avatar.speed
        if avatar.pitch != 1.0:
            voice["pitch"] = avatar.pitch

        payload = {
            "video_inputs": [
                {
                    "character": {"type": "avatar", "avatar_id": self.avatar_id},
                    "voice": voice,
                }
            ],
            "title": f"{avatar.tutor_name} reply",
            "test": False,
            "aspect_ratio": "16:9",
        }
        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.post(f"{self.api_base}/v2/video/generate", headers=self._headers(), json=payload)
            resp.raise_for_status()
            body = resp.json()

        video_id = (body.get("data") or {}).get("video_id")
        if not video_id:
            raise ProviderError(self.name, "No video ID received from HeyGen")
        logger.info("[heygen] video job submitted: %s", video_id)
        return video_id

    async def poll_status(self, job_id: str) -> JobStatus:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(
                f"{self.api_base}/v1/video_status.get",
                headers=self._headers(),
                params={"video_id": job_id},
            )
            resp.raise_for_status()
            data = resp.json().get("data") or {}

        status = data.get("status")
        if status == "completed":
            return JobSucceeded(url=data.get("video_url", ""), provider=self.name)
        if status == "failed":
            error = data.get("error") or {}
            reason = error.get("message") if isinstance(error, dict) else str(error)
            return JobFailed(reason=reason or "Video generation failed")
        return JobPending(progress=data.get("progress"))

    async def create_streaming_token(self) -> str:
        """Mint a short-lived token for the browser streaming-avatar SDK"""
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "HEYGEN_API_KEY")

        try:
            async with httpx.AsyncClient(timeout=15) as client:
                resp = await client.post(
                    f"{self.api_base}/v1/streaming.create_token",
                    headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
                    json={},
                )
                resp.raise_for_status()
                token = (resp.json().get("data") or {}).get("token")
        except httpx.HTTPStatusError as e:
            try:
                detail = e.response.json().get("message")
            except ValueError:
                detail = None
            logger.warning("[heygen] streaming token request failed: %s", e.response.status_code)
            raise ProviderError(self.name, detail or "Failed to get HeyGen streaming token") from e
        except httpx.HTTPError as e:
            logger.warning("[heygen] streaming token request failed: %r", e)
            raise ProviderError(self.name, "Failed to get HeyGen streaming token") from e
        if not token:
            raise ProviderError(self.name, "Failed to generate streaming token")
        return token
