"""
Fallback Orchestrator

Single entry point for every AI/media capability. It sequences the provider
clients for a capability, normalizes their results and decides what the
caller sees when providers fail:

- text replies:   OpenAI -> canned replies           (never raises)
- avatar video:   AVATAR_PROVIDER_ORDER -> demo clip  (never raises)
- text-to-speech: ElevenLabs                          (raises, no fallback)
- speech-to-text: Whisper                             (raises, no fallback)
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from ..config import Settings, settings
from ..core.errors import UpstreamUnavailable, ValidationFailed
from ..core.pubsub import Channel
from .cascade import poll_job, run_cascade
from .demo_videos import DemoVideoLibrary, estimate_talk_seconds
from .providers.base import (
    AvatarRequest,
    JobStatus,
    MediaResult,
    ProviderError,
    TextResult,
    VideoJobClient,
    Voice,
)
from .providers.openai_chat import OpenAIChatClient
from .providers.openai_whisper import OpenAIWhisperClient
from .providers.tts_elevenlabs import ElevenLabsClient

logger = logging.getLogger("uvicorn.error")


class Orchestrator:

    def __init__(
        self,
        chat: OpenAIChatClient,
        stt: OpenAIWhisperClient,
        tts: ElevenLabsClient,
        video_clients: Dict[str, VideoJobClient],
        demo: DemoVideoLibrary,
        cfg: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        cfg = cfg or settings
        self.chat = chat
        self.stt = stt
        self.tts = tts
        self.video_clients = video_clients
        self.demo = demo
        self.provider_order = list(cfg.avatar_provider_order)
        self.poll_interval = cfg.video_poll_interval_sec
        self.poll_max_attempts = cfg.video_poll_max_attempts
        self._sleep = sleep

    # ------------------------------------------------------------------ text
    async def generate_reply(
        self,
        history: Sequence,
        user_name: str,
        tutor_name: str,
        language: str = "English",
        subject: Optional[str] = None,
    ) -> TextResult:
        return await self.chat.generate_text(history, user_name, tutor_name, language, subject)

    # ----------------------------------------------------------------- video
    async def generate_avatar_video(
        self,
        text: str,
        tutor_name: str,
        voice: Optional[str] = None,
        speed: float = 1.0,
        pitch: float = 1.0,
    ) -> MediaResult:
        """
        Render a talking-avatar clip for ``text``

        Providers are tried in AVATAR_PROVIDER_ORDER; unknown or unconfigured
        ids are skipped. The demo library is the last tier, so this never raises.
        """
        avatar = AvatarRequest(tutor_name=tutor_name, voice_id=voice, speed=speed, pitch=pitch)
        attempts = []
        for name in self.provider_order:
            client = self.video_clients.get(name)
            if client is None or not client.is_available():
                logger.info("[avatar] skipping %s (not configured)", name)
                continue
            attempts.append((name, self._render_with(client, text, avatar)))

        async def demo_clip() -> MediaResult:
            clip = self.demo.generate_talking_response(tutor_name, text)
            return MediaResult(
                video_url=clip.video_url,
                audio_url=clip.audio_url,
                duration_seconds=clip.duration,
                is_live=clip.is_live,
                source_provider="demo",
                degraded=True,
            )

        outcome = await run_cascade("avatar-video", attempts, fallback=demo_clip)
        return outcome.value

    def _render_with(self, client: VideoJobClient, text: str, avatar: AvatarRequest):
        async def render() -> MediaResult:
            job_id = await client.submit(text, avatar)
            url = await poll_job(
                client.name,
                lambda: client.poll_status(job_id),
                interval=self.poll_interval,
                max_attempts=self.poll_max_attempts,
                sleep=self._sleep,
            )
            return MediaResult(
                video_url=url,
                audio_url=url,
                duration_seconds=estimate_talk_seconds(text),
                is_live=False,
                source_provider=client.name,
            )
        return render

    async def poll_video_status(self, platform: str, video_id: str) -> JobStatus:
        client = self.video_clients.get(platform)
        if client is None:
            raise ValidationFailed(f"Platform must be one of: {', '.join(sorted(self.video_clients))}")
        try:
            return await client.poll_status(video_id)
        except ProviderError as e:
            raise UpstreamUnavailable(e.message) from e
        except Exception as e:
            logger.warning("[avatar] status poll for %s/%s failed: %r", platform, video_id, e)
            raise UpstreamUnavailable("Failed to get video status") from e

    # ----------------------------------------------------------------- voice
    async def synthesize_speech(self, text: str, voice_id: Optional[str] = None) -> bytes:
        try:
            return await self.tts.text_to_speech(text, voice_id)
        except ProviderError as e:
            raise UpstreamUnavailable(e.message) from e

    async def transcribe(self, audio: bytes, language: str = "en", suffix: str = ".webm") -> str:
        try:
            return await self.stt.speech_to_text(audio, language=language, suffix=suffix)
        except ProviderError as e:
            raise UpstreamUnavailable(e.message) from e

    async def list_voices(self) -> list[Voice]:
        return await self.tts.list_voices()

    async def relay_speech(self, channel: Channel, room: str, text: str, voice_id: Optional[str] = None) -> bool:
        """
        Stream synthesized speech to every socket in ``room``

        Frames: {"type": "voice-start"}, binary chunks, {"type": "voice-end"}.
        Returns whether any audio was sent.
        """
        await channel.emit(room, "voice-start", {"mime": "audio/mpeg"})
        got_any = False
        try:
            async for chunk in self.tts.stream_speech(text, voice_id):
                got_any = True
                await channel.emit_bytes(room, chunk)
        except Exception as e:
            logger.warning("[voice] relay to %s failed: %r", room, e)
            await channel.emit(room, "voice-error", {"error": "Text-to-speech processing failed"})
        finally:
            await channel.emit(room, "voice-end", {"gotAudio": got_any})
        return got_any

    # ---------------------------------------------------------------- status
    def service_status(self) -> dict:
        configured_video = [n for n in self.provider_order if n in self.video_clients and self.video_clients[n].is_available()]
        return {
            "textGeneration": self.chat.is_available(),
            "speechToText": self.stt.is_available(),
            "textToSpeech": self.tts.is_available(),
            "avatarGeneration": bool(configured_video),
            "avatarProviders": configured_video,
            "providerOrder": self.provider_order,
            "demoFallback": True,
        }
