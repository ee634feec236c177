# tutor/api/v1/routers/avatar.py
from fastapi import APIRouter, Depends, Query
from tutor.api.v1.deps import get_current_user, get_services
from tutor.models.user import User
from tutor.schemas.media import AvatarGenerateIn
from tutor.services.providers.base import JobFailed, JobPending, JobSucceeded
from tutor.services.registry import Services

router = APIRouter(prefix="/avatar", tags=["avatar"])


@router.post("/generate")
async def generate_avatar(
    body: AvatarGenerateIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Render a talking-avatar video for ``text``.

    Tries the configured video providers in order and falls back to a demo
    clip, so this always succeeds; ``degraded`` tells the client which one
    it got. Provider renders can take minutes.
    """
    media = await services.orchestrator.generate_avatar_video(
        body.text, body.tutorName, body.voice, body.speed, body.pitch
    )
    return {"success": True, **media.to_public()}


@router.get("/status")
async def avatar_service_status(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    status = services.orchestrator.service_status()
    return {
        "success": True,
        "status": {
            "avatarGeneration": status["avatarGeneration"],
            "providers": status["avatarProviders"],
            "providerOrder": status["providerOrder"],
            "demoFallback": status["demoFallback"],
        },
    }


@router.get("/available")
async def available_avatars(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    return {"success": True, "avatars": services.demo.available_tutors()}


@router.get("/status/{video_id}")
async def video_status(
    video_id: str,
    platform: str = Query(default="heygen"),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Poll a provider render job once."""
    job = await services.orchestrator.poll_video_status(platform, video_id)
    out = {"success": True, "videoId": video_id, "platform": platform, "status": job.status, "url": None, "progress": None}
    if isinstance(job, JobSucceeded):
        out["url"] = job.url
    elif isinstance(job, JobPending):
        out["progress"] = job.progress
    elif isinstance(job, JobFailed):
        out["error"] = job.reason
    return out
