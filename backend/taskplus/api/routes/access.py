"""Access API Routes - Permission registry and per-user access administration"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from ..deps import require_permission, require_any_permission, get_correlation_id_dep
from ..responses import success
from ...domain.models import ActorContext, PageAccessRule
from ...services.access_service import AccessService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

MANAGE_ACCESS = "settings.access.manage"
# Organization lookups also back the section pickers on support pages
ORGANIZATION_READERS = [MANAGE_ACCESS, "support.tickets", "support.followups"]


# ============================================================================
# Request Models
# ============================================================================

class RoleRequest(BaseModel):
    """Create or replace a role"""
    label: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    permissions: List[str] = Field(default_factory=list)


class UserAccessRequest(BaseModel):
    """
    Partial access update; only the fields present in the body are written.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    roles: List[str] = Field(default_factory=list)
    perms_extra: List[str] = Field(default_factory=list, alias="permsExtra")
    perms_denied: List[str] = Field(default_factory=list, alias="permsDenied")
    home_route: Optional[str] = Field(None, alias="homeRoute", max_length=200)
    page_access: List[PageAccessRule] = Field(default_factory=list, alias="pageAccess")
    department_restrictions: List[str] = Field(default_factory=list, alias="departmentRestrictions")
    section_restrictions: List[str] = Field(default_factory=list, alias="sectionRestrictions")


# ============================================================================
# Registry
# ============================================================================

@router.get("/permissions")
async def list_permissions(actor: ActorContext = Depends(require_permission(MANAGE_ACCESS))):
    """Permission catalog"""
    permissions = AccessService().list_permissions()
    return success([p.model_dump() for p in permissions])


@router.get("/roles")
async def list_roles(actor: ActorContext = Depends(require_permission(MANAGE_ACCESS))):
    """Role presets and custom roles"""
    roles = AccessService().list_roles()
    return success([r.model_dump() for r in roles])


@router.post("/roles/{role_key}")
async def upsert_role(
    role_key: str,
    request: RoleRequest,
    actor: ActorContext = Depends(require_permission(MANAGE_ACCESS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Create or replace a role; unknown permission keys are rejected"""
    role = AccessService().upsert_role(
        key=role_key,
        label=request.label,
        permissions=request.permissions,
        description=request.description,
        actor_user_id=actor.user_id
    )
    return success(role.model_dump())


# ============================================================================
# User Access
# ============================================================================

@router.get("/users/{user_id}")
async def get_user_access(
    user_id: str,
    actor: ActorContext = Depends(require_permission(MANAGE_ACCESS))
):
    """User summary and access record"""
    return success(AccessService().get_user_access_view(user_id))


@router.post("/users/{user_id}")
async def update_user_access(
    user_id: str,
    request: UserAccessRequest,
    actor: ActorContext = Depends(require_permission(MANAGE_ACCESS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Upsert a user's access record

    Unknown role keys fail with `invalidRoles`, unknown permission keys with
    `invalidPerms`; nothing is written in either case.
    """
    updates = request.model_dump(exclude_unset=True)
    view = AccessService().update_user_access(user_id, updates, actor_user_id=actor.user_id)
    return success(view)


@router.get("/page-restrictions/{user_id}/{permission}")
async def get_page_restrictions(
    user_id: str,
    permission: str,
    actor: ActorContext = Depends(require_permission(MANAGE_ACCESS))
):
    """Page rule configured for one permission of a user, or null"""
    return success(AccessService().get_page_restrictions(user_id, permission))


# ============================================================================
# Organization
# ============================================================================

@router.get("/departments")
async def list_departments(actor: ActorContext = Depends(require_any_permission(ORGANIZATION_READERS))):
    return success(AccessService().list_departments())


@router.get("/sections")
async def list_sections(
    department_id: Optional[str] = Query(None, alias="departmentId"),
    actor: ActorContext = Depends(require_any_permission(ORGANIZATION_READERS))
):
    return success(AccessService().list_sections(department_id))
