# tutor/api/v1/routers/session.py
from fastapi import APIRouter, Depends, Query, status
from tutor.api.v1.deps import get_current_user, get_services
from tutor.models.user import User
from tutor.schemas.session import MessageIn, StartSessionIn
from tutor.services.registry import Services
from tutor.services.session_store import session_to_public

router = APIRouter(prefix="/session", tags=["session"])


@router.post("/start", status_code=status.HTTP_201_CREATED)
async def start_session(
    body: StartSessionIn | None = None,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Start a tutoring session.

    The session opens with the tutor's greeting already stored as its first
    message.

    Raises:
        ActiveSessionExists (400): The user already has an active session
    """
    subject = body.subject if body else None
    session, messages = await services.sessions.start_session(user, subject)
    return {
        "success": True,
        "message": "Session started successfully",
        "session": session_to_public(session, messages),
    }


@router.post("/message")
async def post_message(
    body: MessageIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Send one message to the tutor and get the reply.

    Both the user's message and the reply are stored. ``degraded`` is true
    when the reply came from the canned responder instead of the model.

    Raises:
        SessionNotFound (404): No active session with this id for the user
    """
    ai_message, reply, session, stored = await services.sessions.post_message(
        user, body.sessionId, body.message, body.attachments
    )
    room = str(session.id)
    for m in stored:
        await services.channel.emit(room, "new-message", {"sessionId": room, "message": m.to_public()})
    return {
        "success": True,
        "message": "Message sent successfully",
        "response": ai_message.content,
        "provider": reply.source_provider,
        "degraded": reply.degraded,
        "session": {
            "id": room,
            "version": session.version,
            "messages": [m.to_public() for m in stored],
        },
    }


@router.get("/active")
async def active_session(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    session, messages = await services.sessions.get_active_session(user)
    return {"success": True, "session": session_to_public(session, messages)}


@router.put("/end")
async def end_session(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    """
    End the user's active session.

    Any live avatar stream attached to it is stopped as well.

    Raises:
        SessionNotFound (404): No active session
    """
    session, message_count = await services.sessions.end_session(user)
    await services.streams.stop_stream(str(session.id))
    return {
        "success": True,
        "message": "Session ended successfully",
        "session": {**session_to_public(session), "messageCount": message_count},
    }


@router.get("/history")
async def session_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Ended sessions, most recently ended first."""
    rows, pagination = await services.sessions.history(user, page, limit)
    return {
        "success": True,
        "sessions": [session_to_public(s, msgs) for s, msgs in rows],
        "pagination": pagination,
    }
