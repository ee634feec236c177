"""
OpenAI Whisper API Client

Speech-to-text for uploaded voice notes. The upload endpoint takes a file,
so the audio bytes are spooled to a temporary file that exists only for the
duration of the call.
"""
import logging
import os
import tempfile
from typing import Optional

import httpx

from ...config import Settings, settings
from .base import ProviderClient, ProviderError, ProviderNotConfigured

logger = logging.getLogger("uvicorn.error")


class OpenAIWhisperClient(ProviderClient):
    """OpenAI Whisper API Service"""

    def __init__(self, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.api_key = cfg.openai_api_key
        self.api_url = f"{cfg.openai_api_base}/audio/transcriptions"
        self.model = cfg.whisper_model

    @property
    def name(self) -> str:
        return "whisper"

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    async def speech_to_text(
        self,
        audio: bytes,
        language: str = "en",
        suffix: str = ".webm",
    ) -> str:
        """
        Transcribe an audio clip

        Parameters:
        - audio: Raw audio bytes (webm/opus from the browser recorder, wav, mp3...)
        - language: ISO language hint passed to Whisper
        - suffix: File extension Whisper uses to sniff the container

        Returns:
        - Transcribed text (stripped)

        Raises:
        - ProviderNotConfigured: OPENAI_API_KEY missing
        - ProviderError: upload or API failure
        """
        if not self.is_available():
            raise ProviderNotConfigured(self.name, "OPENAI_API_KEY")

        tmp = tempfile.NamedTemporaryFile(delete=False, suffix=suffix)
        try:
            with tmp:
                tmp.write(audio)

            headers = {"Authorization": f"Bearer {self.api_key}"}
            data = {
                "model": self.model,
                "language": language,
                "response_format": "json",
            }
            async with httpx.AsyncClient(timeout=120) as client:
                with open(tmp.name, "rb") as f:
                    files = {"file": (f"audio{suffix}", f, "application/octet-stream")}
                    resp = await client.post(self.api_url, headers=headers, data=data, files=files)
                resp.raise_for_status()
                result = resp.json()
            return (result.get("text") or "").strip()
        except ProviderError:
            raise
        except Exception as e:
            logger.warning("[whisper] transcription failed: %r", e)
            raise ProviderError(self.name, "Failed to convert speech to text") from e
        finally:
            if os.path.exists(tmp.name):
                os.unlink(tmp.name)
