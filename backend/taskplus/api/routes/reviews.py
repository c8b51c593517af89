"""Review API Routes - QA reviews and the stuck-ticket queue"""
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import require_permission, get_correlation_id_dep
from ..responses import success, paginated
from ...domain.models import ActorContext
from ...services.review_service import ReviewService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

REVIEWS = "support.reviews"


class CreateReviewRequest(BaseModel):
    ticket_id: int
    reviewer_id: Optional[int] = None
    review_date: Optional[datetime] = None
    issue_status: Optional[str] = Field(None, max_length=200)
    resolved: bool = False
    notes: Optional[str] = Field(None, max_length=5000)


class ResolveReviewRequest(BaseModel):
    resolved: bool = True
    notes: Optional[str] = Field(None, max_length=5000)


@router.get("/")
async def list_reviews(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ticket_id: Optional[int] = Query(None),
    reviewer_id: Optional[int] = Query(None),
    resolved: Optional[bool] = Query(None),
    actor: ActorContext = Depends(require_permission(REVIEWS))
):
    items, total = ReviewService().list_reviews(
        page=page, page_size=page_size, ticket_id=ticket_id,
        reviewer_id=reviewer_id, resolved=resolved
    )
    return paginated(items, page, page_size, total)


@router.get("/stuck/tickets")
async def list_stuck_tickets(actor: ActorContext = Depends(require_permission(REVIEWS))):
    """Pending or in-progress tickets untouched past the staleness threshold"""
    return success(ReviewService().get_stuck_tickets())


@router.get("/{review_id}")
async def get_review(
    review_id: int,
    actor: ActorContext = Depends(require_permission(REVIEWS))
):
    return success(ReviewService().get_review(review_id))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_review(
    request: CreateReviewRequest,
    actor: ActorContext = Depends(require_permission(REVIEWS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Record a review; the caller's linked employee is the default reviewer"""
    return success(ReviewService().create_review(request.model_dump(), actor))


@router.patch("/{review_id}/resolve")
async def resolve_review(
    review_id: int,
    request: Optional[ResolveReviewRequest] = None,
    actor: ActorContext = Depends(require_permission(REVIEWS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Set the review outcome; resolving completes the ticket"""
    request = request or ResolveReviewRequest()
    review = ReviewService().resolve_review(
        review_id, resolved=request.resolved, notes=request.notes, actor=actor
    )
    return success(review)
