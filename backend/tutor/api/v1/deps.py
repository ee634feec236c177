# tutor/api/v1/deps.py
from fastapi import Header, Query, Request, WebSocketException, status
from tutor.core.errors import AuthError
from tutor.core.security import decode_access_token
from tutor.models.user import User
from tutor.services.registry import Services


async def get_current_user(authorization: str | None = Header(default=None)) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Extracts and validates the JWT from the ``Authorization: Bearer <token>``
    header and loads the user it names.

    Returns:
        User: The authenticated user object from database

    Raises:
        AuthError (401): No token, invalid/expired token, or unknown user

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": str(user.id)}
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()

    if not token:
        raise AuthError("No token, authorization denied")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise AuthError("Token is not valid")

    user = await User.get_or_none(id=user_id) if user_id else None
    if not user:
        raise AuthError("Token is not valid")
    return user


async def get_ws_user(token: str | None = Query(default=None)) -> User:
    """
    Authenticate a WebSocket handshake from the ``?token=<jwt>`` query param.

    Browsers cannot set headers on a WebSocket upgrade, so the token travels
    in the URL. Failures close the handshake with 1008 (policy violation).
    """
    if not token:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="No token, authorization denied")
    try:
        user_id = decode_access_token(token).get("sub")
    except Exception:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Token is not valid")

    user = await User.get_or_none(id=user_id) if user_id else None
    if not user:
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Token is not valid")
    return user


def get_services(request: Request) -> Services:
    """The application's service registry (see tutor.services.registry)"""
    return request.app.state.services
