"""
Services Module

- providers: one client per external API (OpenAI, ElevenLabs, HeyGen, D-ID)
- orchestrator: provider cascades with the demo / canned fallbacks
- session_service: tutoring session lifecycle on top of session_store
- stream_manager: live avatar streams
- registry: builds the object graph the API uses
"""
from .orchestrator import Orchestrator
from .registry import Services, build_services
from .session_service import SessionService
from .stream_manager import StreamManager, VideoStreamService

__all__ = [
    "Orchestrator",
    "Services",
    "build_services",
    "SessionService",
    "StreamManager",
    "VideoStreamService",
]
