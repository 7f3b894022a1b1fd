from fastapi import APIRouter, Depends

from src.analysis_gateway.api.schemas import AuthRequest, AuthTokenResponse
from src.analysis_gateway.api.deps import get_auth_service
from src.analysis_gateway.services.auth_service import AuthService


router = APIRouter(tags=["auth"])


@router.post("/auth", response_model=AuthTokenResponse)
async def auth(
    req: AuthRequest,
    svc: AuthService = Depends(get_auth_service),
):
    """
    Проверка логина/пароля у identity provider'а и выдача токена.
    """
    token = await svc.login(username=req.username or "", password=req.password or "")
    return AuthTokenResponse(token=token)
