"""API Dependencies - Authentication and authorization for routes"""
from typing import List, Optional
from fastapi import Depends, Header, Query, Request

from ..config.settings import settings
from ..domain.models import ActorContext, EffectiveAccess
from ..domain.errors import PermissionDeniedError, PageAccessDeniedError
from ..engine.access_evaluator import has_permission, has_any_permission
from ..services.auth_service import AuthService
from ..services.access_service import AccessService
from ..utils.logger import set_correlation_id, get_logger
from ..utils.idgen import generate_correlation_id

logger = get_logger(__name__)


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the session cookie, falling back to a Bearer header"""
    token = request.cookies.get(settings.cookie_name)
    if token:
        return token
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]
    return None


async def get_current_user_dep(request: Request) -> ActorContext:
    """
    Dependency to get the current user from the session token

    Raises:
        AuthenticationError: 401 if token is missing/invalid or the user is
            unknown or disabled
    """
    user = AuthService().resolve_user(get_session_token(request))
    actor = AuthService.to_actor(user)
    request.state.actor = actor
    return actor


def _load_effective_access(actor: ActorContext) -> EffectiveAccess:
    """Effective permissions for the caller; any lookup failure grants nothing"""
    try:
        return AccessService().get_effective_access(actor.user_id)
    except Exception as e:
        logger.error(
            f"Failed to load access for {actor.user_id}: {e}",
            extra={"user_id": actor.user_id, "error_type": type(e).__name__}
        )
        return EffectiveAccess()


def require_permission(key: str):
    """Dependency factory: caller must hold `key`"""

    async def dependency(actor: ActorContext = Depends(get_current_user_dep)) -> ActorContext:
        if not has_permission(_load_effective_access(actor), key):
            logger.warning(
                f"Permission denied: {key}",
                extra={"user_id": actor.user_id, "permission": key}
            )
            raise PermissionDeniedError(key)
        return actor

    return dependency


def require_any_permission(keys: List[str]):
    """Dependency factory: caller must hold at least one of `keys`"""

    async def dependency(actor: ActorContext = Depends(get_current_user_dep)) -> ActorContext:
        if not has_any_permission(_load_effective_access(actor), keys):
            logger.warning(
                f"Permission denied: any of {keys}",
                extra={"user_id": actor.user_id, "permission": ",".join(keys)}
            )
            raise PermissionDeniedError(list(keys))
        return actor

    return dependency


def require_page_access(permission: str):
    """
    Dependency factory: caller must hold `permission` and pass any page,
    section and department/section scope restrictions configured for it.

    Reads `page`, `departmentId` and `sectionId` from the query string.
    """

    async def dependency(
        page: int = Query(1, ge=1),
        department_id: Optional[str] = Query(None, alias="departmentId"),
        section_id: Optional[str] = Query(None, alias="sectionId"),
        actor: ActorContext = Depends(get_current_user_dep)
    ) -> ActorContext:
        try:
            allowed = AccessService().check_page_access(
                actor.user_id, permission, page,
                department=department_id, section=section_id
            )
        except Exception as e:
            logger.error(
                f"Page access check failed for {actor.user_id}: {e}",
                extra={"user_id": actor.user_id, "permission": permission, "error_type": type(e).__name__}
            )
            allowed = False

        if not allowed:
            logger.warning(
                f"Page access denied: {permission} page {page}",
                extra={"user_id": actor.user_id, "permission": permission}
            )
            raise PageAccessDeniedError(permission, page, section_id)
        return actor

    return dependency
