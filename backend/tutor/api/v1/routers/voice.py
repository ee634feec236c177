# tutor/api/v1/routers/voice.py
"""
Voice HTTP API Router

Speech-to-text via Whisper and text-to-speech via ElevenLabs. Neither has a
fallback tier: when the provider is missing or fails the caller gets a 500.
"""
import os
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from tutor.api.v1.deps import get_current_user, get_services
from tutor.core.errors import AppError
from tutor.models.user import User
from tutor.schemas.media import TextToSpeechIn
from tutor.services.registry import Services

router = APIRouter(prefix="/voice", tags=["voice"])

MAX_AUDIO_BYTES = 10 * 1024 * 1024  # 10MB


@router.post("/speech-to-text")
async def speech_to_text(
    audio: UploadFile | None = File(default=None),
    language: str = Form(default="en"),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Transcribe an uploaded recording.

    The multipart field is ``audio`` (any audio/* type, at most 10MB);
    ``language`` is an ISO-639-1 hint for Whisper.
    """
    if audio is None:
        raise AppError("No audio file provided")
    if not (audio.content_type or "").startswith("audio/"):
        raise AppError("Only audio files are allowed")
    data = await audio.read()
    if not data:
        raise AppError("No audio file provided")
    if len(data) > MAX_AUDIO_BYTES:
        raise AppError("Audio file too large (max 10MB)", 413)

    suffix = os.path.splitext(audio.filename or "")[1] or ".webm"
    text = await services.orchestrator.transcribe(data, language=language, suffix=suffix)
    return {"success": True, "text": text, "language": language}


@router.post("/text-to-speech")
async def text_to_speech(
    body: TextToSpeechIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    audio = await services.orchestrator.synthesize_speech(body.text, body.voiceId)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Disposition": 'attachment; filename="speech.mp3"'},
    )


@router.get("/voices")
async def voices(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    items = await services.orchestrator.list_voices()
    return {"success": True, "voices": [{"id": v.id, "name": v.name, "gender": v.gender} for v in items]}


@router.get("/status")
async def voice_status(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    status = services.orchestrator.service_status()
    return {
        "success": True,
        "status": {
            "speechToText": status["speechToText"],
            "textToSpeech": status["textToSpeech"],
        },
    }
