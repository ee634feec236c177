"""
Provider Gateway Types

Normalized result shapes and error types shared by every third-party client
(OpenAI, ElevenLabs, D-ID, HeyGen). Each client converts its provider's JSON
into these types right after the HTTP call, so nothing downstream inspects
raw provider payloads.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Union


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ProviderError(Exception):
    """A provider call failed (transport error, HTTP error or bad payload)."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderNotConfigured(ProviderError):
    """The provider's credential is absent."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(provider, f"{env_var} is not configured")
        self.env_var = env_var


class ProviderJobFailed(ProviderError):
    """An asynchronous render job reached a terminal failure state."""


class ProviderTimeout(ProviderError):
    """An asynchronous render job did not finish within the allowed poll attempts."""


class CascadeExhausted(Exception):
    """Every provider in a cascade failed and no fallback tier exists."""

    def __init__(self, capability: str, errors: dict):
        names = ", ".join(errors) or "none configured"
        super().__init__(f"{capability}: all providers failed ({names})")
        self.capability = capability
        self.errors = errors


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class TextResult:
    """Text generation result"""
    text: str
    source_provider: str
    degraded: bool = False


@dataclass
class MediaResult:
    """
    Normalized avatar/voice media result

    Note: for provider-rendered videos the audio track is embedded in the
    video, so audio_url points at the same asset.
    """
    video_url: str
    audio_url: str
    duration_seconds: Optional[int]
    is_live: bool
    source_provider: str
    degraded: bool = False

    def to_public(self) -> dict:
        return {
            "videoUrl": self.video_url,
            "audioUrl": self.audio_url,
            "duration": self.duration_seconds,
            "isLive": self.is_live,
            "provider": self.source_provider,
            "degraded": self.degraded,
        }


@dataclass
class JobSucceeded:
    url: str
    provider: str
    status: str = field(default="done", init=False)


@dataclass
class JobPending:
    progress: Optional[float] = None
    status: str = field(default="pending", init=False)


@dataclass
class JobFailed:
    reason: str
    status: str = field(default="failed", init=False)


JobStatus = Union[JobSucceeded, JobPending, JobFailed]


@dataclass
class ChatTurn:
    """One history entry; tutor.models.Message satisfies the same shape"""
    sender: str  # "user" | "ai"
    content: str


@dataclass
class AvatarRequest:
    """What to render: the tutor persona plus voice tuning"""
    tutor_name: str
    voice_id: Optional[str] = None
    speed: float = 1.0
    pitch: float = 1.0


@dataclass
class Voice:
    id: str
    name: str
    gender: str = "unknown"


DEFAULT_VOICES: List[Voice] = [
    Voice(id="21m00Tcm4TlvDq8ikWAM", name="Josh", gender="male"),
    Voice(id="AZnzlk1XvdvUeBnXmlld", name="Domi", gender="female"),
    Voice(id="EXAVITQu4vr4xnSDxMaL", name="Bella", gender="female"),
]


# ---------------------------------------------------------------------------
# Client interfaces
# ---------------------------------------------------------------------------

class ProviderClient(ABC):
    """Common surface of every provider client"""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider id used in logs and results (e.g. "heygen")"""

    @abstractmethod
    def is_available(self) -> bool:
        """True when the credential for this provider is configured"""


class VideoJobClient(ProviderClient):
    """Asynchronous render job: submit, then poll until terminal"""

    @abstractmethod
    async def submit(self, text: str, avatar: AvatarRequest) -> str:
        """Start a render job and return the provider's job id"""

    @abstractmethod
    async def poll_status(self, job_id: str) -> JobStatus:
        """Fetch the job state once, normalized"""
