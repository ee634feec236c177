import asyncio
import logging
from typing import AsyncGenerator, List, Optional

import httpx

from ...config import Settings, settings
from .base import DEFAULT_VOICES, ProviderClient, ProviderError, ProviderNotConfigured, Voice

logger = logging.getLogger("uvicorn.error")


class ElevenLabsClient(ProviderClient):
    """
    ElevenLabs text-to-speech

    Text-to-speech has no fallback tier: a missing key or a failed call
    raises so the caller gets an explicit error.

    Configuration source: tutor.config.settings
    - eleven_api_base: API base URL
    - eleven_api_key: API key
    """

    MODEL_ID = "eleven_monolingual_v1"

    def __init__(self, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.api_key = cfg.eleven_api_key
        self.api_base = cfg.eleven_api_base
        self.default_voice_id = cfg.default_voice_id

    @property
    def name(self) -> str:
        return "elevenlabs"

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _payload(self, text: str, stability: float, similarity_boost: float) -> dict:
        return {
            "text": text,
            "model_id": self.MODEL_ID,
            "voice_settings": {
                "stability": stability,
                "similarity_boost": similarity_boost,
            },
        }

    def _headers(self) -> dict:
        return {
            "xi-api-key": self.api_key,
            "accept": "audio/mpeg",
            "content-type": "application/json",
        }

    async def text_to_speech(
        self,
        text: str,
        voice_id: Optional[str] = None,
        stability: float = 0.5,
        similarity_boost: float = 0.5,
    ) -> bytes:
        """
        Synthesize ``text`` and return the whole MP3 body

        Raises:
        - ProviderNotConfigured: ELEVENLABS_API_KEY missing
        - ProviderError: HTTP or transport failure
        """
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "ELEVENLABS_API_KEY")

        voice_id = voice_id or self.default_voice_id
        url = f"{self.api_base}/text-to-speech/{voice_id}"
        logger.info("[tts] HTTP POST %s voice=%s chars=%d", url, voice_id, len(text))
        try:
            async with httpx.AsyncClient(timeout=60) as client:
                resp = await client.post(url, headers=self._headers(), json=self._payload(text, stability, similarity_boost))
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPError as e:
            logger.warning("[tts] ElevenLabs error: %r", e)
            raise ProviderError(self.name, "Failed to convert text to speech") from e

    async def stream_speech(
        self,
        text: str,
        voice_id: Optional[str] = None,
        stability: float = 0.5,
        similarity_boost: float = 0.5,
    ) -> AsyncGenerator[bytes, None]:
        """
        Stream MP3 chunks as ElevenLabs produces them

        Used to relay voice over the realtime channel.
        """
        if not text or not text.strip():
            logger.info("[tts] skip empty text")
            return
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "ELEVENLABS_API_KEY")

        voice_id = voice_id or self.default_voice_id
        url = f"{self.api_base}/text-to-speech/{voice_id}/stream?optimize_streaming_latency=3"
        logger.info("[tts] HTTP POST %s voice=%s (stream)", url, voice_id)
        async with httpx.AsyncClient(timeout=None) as client:
            async with client.stream("POST", url, headers=self._headers(), json=self._payload(text, stability, similarity_boost)) as resp:
                resp.raise_for_status()
                async for chunk in resp.aiter_bytes():
                    if chunk:
                        yield chunk
                    await asyncio.sleep(0)

    async def list_voices(self) -> List[Voice]:
        """Available voices; the built-in defaults when the API is unreachable"""
        if not self.is_available():
            return list(DEFAULT_VOICES)
        try:
            async with httpx.AsyncClient(timeout=15) as client:
                resp = await client.get(f"{self.api_base}/voices", headers={"xi-api-key": self.api_key})
                resp.raise_for_status()
                voices = resp.json().get("voices") or []
            return [
                Voice(
                    id=v.get("voice_id", ""),
                    name=v.get("name", ""),
                    gender=(v.get("labels") or {}).get("gender") or "unknown",
                )
                for v in voices
            ]
        except Exception as e:
            logger.warning("[tts] failed to fetch voices, using defaults: %r", e)
            return list(DEFAULT_VOICES)
