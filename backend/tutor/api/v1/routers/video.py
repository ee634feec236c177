# tutor/api/v1/routers/video.py
from fastapi import APIRouter, Depends
from tutor.api.v1.deps import get_current_user, get_services
from tutor.models.user import User
from tutor.schemas.media import StartStreamIn, TalkingResponseIn
from tutor.services.registry import Services

router = APIRouter(prefix="/video", tags=["video"])


@router.post("/start-stream")
async def start_stream(
    body: StartStreamIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Start a live avatar stream for one of the user's sessions.

    Falls back to a demo clip (``isStreaming: false``) when live streaming is
    not configured or HeyGen refuses the session.
    """
    session = await services.sessions.require_owned(user, body.sessionId)
    stream = await services.streams.start_stream(session, body.tutorName, body.initialMessage)
    return {"success": True, "stream": stream}


@router.post("/talking-response")
async def talking_response(
    body: TalkingResponseIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    session = await services.sessions.require_owned(user, body.sessionId)
    stream = await services.streams.talking_response(session, body.tutorName, body.message)
    return {"success": True, "stream": stream, "aiResponse": stream["aiResponse"]}


@router.delete("/stop-stream/{session_id}")
async def stop_stream(
    session_id: str,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    session = await services.sessions.require_owned(user, session_id)
    stopped = await services.streams.stop_stream(str(session.id))
    return {"success": True, "stopped": stopped}


@router.get("/stream-status/{session_id}")
async def stream_status(
    session_id: str,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    session = await services.sessions.require_owned(user, session_id)
    status = await services.streams.stream_status(str(session.id))
    return {"success": True, **status}
