# tutor/schemas/media.py
"""
Request models for the voice, avatar, video and streaming endpoints.
"""
from pydantic import BaseModel, Field


class TextToSpeechIn(BaseModel):
    text: str = Field(min_length=1)
    voiceId: str | None = None


class AvatarGenerateIn(BaseModel):
    text: str = Field(min_length=1)
    tutorName: str = Field(min_length=1)
    voice: str | None = None
    speed: float = Field(default=1.0, gt=0)
    pitch: float = Field(default=1.0, gt=0)


class StartStreamIn(BaseModel):
    sessionId: str = Field(min_length=1)
    tutorName: str = Field(min_length=1)
    initialMessage: str | None = None


class TalkingResponseIn(BaseModel):
    sessionId: str = Field(min_length=1)
    tutorName: str = Field(min_length=1)
    message: str = Field(min_length=1)
