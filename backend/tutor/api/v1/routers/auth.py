# tutor/api/v1/routers/auth.py
import logging
from fastapi import APIRouter, Depends, status
from tortoise.exceptions import IntegrityError
from tutor.api.v1.deps import get_current_user, get_services
from tutor.core.errors import AuthError, EmailAlreadyRegistered
from tutor.core.security import create_access_token, hash_password, verify_password
from tutor.models.user import User
from tutor.schemas.auth import LoginIn, RegisterIn
from tutor.services.registry import Services

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, services: Services = Depends(get_services)):
    """
    Register a new learner account.

    Creates the user with an argon2 password hash and returns a token so the
    client is signed in straight away. ``isCustomTutor`` is set when the
    chosen tutor name is not one of the catalogue avatars.

    Returns:
        dict: {success, token, user}

    Raises:
        EmailAlreadyRegistered (400): Email is taken
    """
    if await User.exists(email=body.email):
        raise EmailAlreadyRegistered()

    fields = {"name": body.name, "email": body.email, "password_hash": hash_password(body.password)}
    if body.language:
        fields["language"] = body.language
    if body.aiTutorName:
        fields["ai_tutor_name"] = body.aiTutorName
        fields["is_custom_tutor"] = not services.demo.is_catalogue_tutor(body.aiTutorName)
    try:
        user = await User.create(**fields)
    except IntegrityError:
        raise EmailAlreadyRegistered()

    logger.info("[auth] registered user %s", user.id)
    return {"success": True, "token": create_access_token(str(user.id)), "user": user.to_public()}


@router.post("/login")
async def login(body: LoginIn):
    """
    Authenticate with email and password.

    Raises:
        AuthError (401): Unknown email or wrong password
    """
    user = await User.get_or_none(email=body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise AuthError("Invalid credentials")
    return {"success": True, "token": create_access_token(str(user.id)), "user": user.to_public()}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": user.to_public()}
