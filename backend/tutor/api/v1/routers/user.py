# tutor/api/v1/routers/user.py
from fastapi import APIRouter, Depends
from tutor.api.v1.deps import get_current_user, get_services
from tutor.models.user import User
from tutor.schemas.auth import ProfileUpdateIn
from tutor.services.registry import Services

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return {"success": True, "user": user.to_public()}


@router.put("/profile")
async def update_profile(
    body: ProfileUpdateIn,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Update name, language and/or tutor persona.

    Sessions already started keep the values they snapshotted; only new
    sessions see the change.
    """
    changed = []
    if body.name is not None:
        user.name = body.name.strip()
        changed.append("name")
    if body.language is not None:
        user.language = body.language
        changed.append("language")
    if body.aiTutorName is not None:
        user.ai_tutor_name = body.aiTutorName
        user.is_custom_tutor = not services.demo.is_catalogue_tutor(body.aiTutorName)
        changed += ["ai_tutor_name", "is_custom_tutor"]
    if changed:
        await user.save(update_fields=changed + ["updated_at"])
    return {"success": True, "user": user.to_public()}
