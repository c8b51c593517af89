"""Auth API Routes - Password login and cookie sessions"""
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep, get_correlation_id_dep
from ..responses import success
from ...config.settings import settings
from ...domain.models import ActorContext
from ...services.auth_service import AuthService
from ...services.access_service import AccessService
from ...repositories.user_repo import UserRepository
from ...utils.jwt import get_token_service
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


class LoginRequest(BaseModel):
    """Username or email plus password"""
    identifier: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=256)


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Log in with username or email

    Issues the session token as an httpOnly cookie and returns the user's
    effective permissions and landing route.
    """
    user, token = AuthService().login(request.identifier.strip(), request.password)

    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=get_token_service().max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return success(AccessService().describe_user(user))


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie"""
    response.delete_cookie(key=settings.cookie_name, path="/")
    return success({"loggedOut": True})


@router.get("/me")
async def get_me(actor: ActorContext = Depends(get_current_user_dep)):
    """Current user with effective permissions and home route"""
    user = UserRepository().get_user_or_raise(actor.user_id)
    return success(AccessService().describe_user(user))
