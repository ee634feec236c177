# tutor/api/v1/routers/heygen.py
from fastapi import APIRouter, Depends
from tutor.api.v1.deps import get_current_user, get_services
from tutor.core.errors import UpstreamUnavailable
from tutor.models.user import User
from tutor.services.providers.base import ProviderError
from tutor.services.registry import Services

router = APIRouter(prefix="/heygen", tags=["heygen"])


@router.post("/streaming-token")
async def streaming_token(user: User = Depends(get_current_user), services: Services = Depends(get_services)):
    """Mint a short-lived HeyGen token for the browser streaming SDK."""
    try:
        token = await services.heygen.create_streaming_token()
    except ProviderError as e:
        raise UpstreamUnavailable(e.message) from e
    return {"success": True, "token": token}
