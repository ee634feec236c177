"""
Provider Gateway

One client per external capability:
- Text generation: OpenAI chat completions (canned replies as fallback)
- Speech-to-text: OpenAI Whisper API
- Text-to-speech: ElevenLabs
- Avatar video: HeyGen, D-ID (asynchronous render jobs)
- Live avatar streaming: HeyGen streaming API
"""
from .base import (
    AvatarRequest,
    CascadeExhausted,
    ChatTurn,
    JobFailed,
    JobPending,
    JobStatus,
    JobSucceeded,
    MediaResult,
    ProviderError,
    ProviderJobFailed,
    ProviderNotConfigured,
    ProviderTimeout,
    TextResult,
    Voice,
    VideoJobClient,
)
from .avatar_did import DIDVideoClient
from .avatar_heygen import HeyGenVideoClient
from .heygen_streaming import HeyGenStreamingClient
from .openai_chat import OpenAIChatClient
from .openai_whisper import OpenAIWhisperClient
from .tts_elevenlabs import ElevenLabsClient

__all__ = [
    "AvatarRequest",
    "CascadeExhausted",
    "ChatTurn",
    "JobFailed",
    "JobPending",
    "JobStatus",
    "JobSucceeded",
    "MediaResult",
    "ProviderError",
    "ProviderJobFailed",
    "ProviderNotConfigured",
    "ProviderTimeout",
    "TextResult",
    "Voice",
    "VideoJobClient",
    "DIDVideoClient",
    "HeyGenVideoClient",
    "HeyGenStreamingClient",
    "OpenAIChatClient",
    "OpenAIWhisperClient",
    "ElevenLabsClient",
]
