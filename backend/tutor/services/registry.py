"""
Service registry

Every long-lived object the routers need, built once per application and
stored on ``app.state.services``. Tests build their own with a custom
Settings (e.g. no provider keys) and swap it in.
"""
from dataclasses import dataclass
from typing import Optional

from ..config import Settings, settings
from ..core.pubsub import Channel
from .demo_videos import DemoVideoLibrary
from .orchestrator import Orchestrator
from .providers import (
    DIDVideoClient,
    ElevenLabsClient,
    HeyGenStreamingClient,
    HeyGenVideoClient,
    OpenAIChatClient,
    OpenAIWhisperClient,
)
from .session_service import SessionService
from .session_store import SessionStore
from .stream_manager import StreamManager, VideoStreamService


@dataclass
class Services:
    channel: Channel
    orchestrator: Orchestrator
    sessions: SessionService
    streams: VideoStreamService
    heygen: HeyGenVideoClient
    demo: DemoVideoLibrary


def build_services(cfg: Optional[Settings] = None) -> Services:
    cfg = cfg or settings
    channel = Channel()
    demo = DemoVideoLibrary()
    heygen = HeyGenVideoClient(cfg)
    orchestrator = Orchestrator(
        chat=OpenAIChatClient(cfg),
        stt=OpenAIWhisperClient(cfg),
        tts=ElevenLabsClient(cfg),
        video_clients={"heygen": heygen, "did": DIDVideoClient(cfg)},
        demo=demo,
        cfg=cfg,
    )
    return Services(
        channel=channel,
        orchestrator=orchestrator,
        sessions=SessionService(SessionStore(), orchestrator, cfg),
        streams=VideoStreamService(orchestrator, HeyGenStreamingClient(cfg), demo, channel, StreamManager(), cfg),
        heygen=heygen,
        demo=demo,
    )
