"""Follow-up API Routes - Customer call-backs after ticket handling"""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import require_permission, require_page_access, get_correlation_id_dep
from ..responses import success, paginated
from ...domain.models import ActorContext
from ...services.follow_up_service import FollowUpService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

FOLLOW_UPS = "support.followups"


# ============================================================================
# Request Models
# ============================================================================

class CreateFollowUpRequest(BaseModel):
    ticket_id: int
    follow_up_agent_id: Optional[int] = None
    follow_up_date: Optional[datetime] = None
    issue_solved: Optional[bool] = None
    satisfied: Optional[bool] = None
    repeated_issue: bool = False
    follow_up_notes: Optional[str] = Field(None, max_length=5000)


class UpdateFollowUpRequest(BaseModel):
    follow_up_agent_id: Optional[int] = None
    follow_up_date: Optional[datetime] = None
    issue_solved: Optional[bool] = None
    satisfied: Optional[bool] = None
    repeated_issue: Optional[bool] = None
    follow_up_notes: Optional[str] = Field(None, max_length=5000)


class SolvedRequest(BaseModel):
    satisfied: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=5000)


class NotSolvedRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


# ============================================================================
# Routes
# ============================================================================

@router.get("/")
async def list_follow_ups(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ticket_id: Optional[int] = Query(None),
    agent_id: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    actor: ActorContext = Depends(require_page_access(FOLLOW_UPS))
):
    """List follow-ups; `status` is pending, solved or not_solved"""
    items, total = FollowUpService().list_follow_ups(
        page=page, page_size=page_size, ticket_id=ticket_id,
        agent_id=agent_id, status=status_filter
    )
    return paginated(items, page, page_size, total)


@router.get("/pending")
async def list_pending_follow_ups(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS))
):
    """Follow-ups still waiting for an outcome"""
    items, total = FollowUpService().list_pending(page=page, page_size=page_size)
    return paginated(items, page, page_size, total)


@router.get("/{follow_up_id}")
async def get_follow_up(
    follow_up_id: int,
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS))
):
    return success(FollowUpService().get_follow_up(follow_up_id))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_follow_up(
    request: CreateFollowUpRequest,
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Record a follow-up; an unsolved outcome reopens the ticket"""
    follow_up = FollowUpService().create_follow_up(request.model_dump(), actor)
    return success(follow_up)


@router.patch("/{follow_up_id}")
async def update_follow_up(
    follow_up_id: int,
    request: UpdateFollowUpRequest,
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    follow_up = FollowUpService().update_follow_up(
        follow_up_id, request.model_dump(exclude_unset=True), actor
    )
    return success(follow_up)


@router.patch("/{follow_up_id}/solved")
async def mark_solved(
    follow_up_id: int,
    request: Optional[SolvedRequest] = None,
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS))
):
    """Customer confirmed the issue is solved"""
    request = request or SolvedRequest()
    follow_up = FollowUpService().mark_solved(
        follow_up_id, satisfied=request.satisfied, notes=request.notes, actor=actor
    )
    return success(follow_up)


@router.patch("/{follow_up_id}/not-solved")
async def mark_not_solved(
    follow_up_id: int,
    request: Optional[NotSolvedRequest] = None,
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS))
):
    """Customer still has the issue; the ticket is reopened"""
    request = request or NotSolvedRequest()
    follow_up = FollowUpService().mark_not_solved(follow_up_id, notes=request.notes, actor=actor)
    return success(follow_up)


@router.patch("/{follow_up_id}/assign-to-me")
async def assign_to_me(
    follow_up_id: int,
    actor: ActorContext = Depends(require_permission(FOLLOW_UPS))
):
    """Take over a follow-up as the caller's linked employee"""
    return success(FollowUpService().assign_to_me(follow_up_id, actor))
