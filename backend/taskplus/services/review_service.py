"""Review Service - QA reviews and the stuck-ticket queue"""
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import Review, ActorContext
from ..domain.errors import ValidationError
from ..repositories.review_repo import ReviewRepository
from ..repositories.ticket_repo import TicketRepository
from ..repositories.counter_repo import CounterRepository
from ..repositories.user_repo import UserRepository
from ..services.ticket_service import TicketService, review_to_dict
from ..utils.time import storage_now, to_storage
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ReviewService:
    """Service for QA review operations"""

    def __init__(self):
        self.review_repo = ReviewRepository()
        self.ticket_repo = TicketRepository()
        self.counter_repo = CounterRepository()
        self.user_repo = UserRepository()
        self.ticket_service = TicketService()

    def create_review(self, data: Dict[str, Any], actor: Optional[ActorContext] = None) -> Dict[str, Any]:
        """
        Record a QA review of a ticket

        The reviewer defaults to the caller's linked employee. A review created
        already resolved completes the ticket.

        Raises:
            TicketNotFoundError: Referenced ticket does not exist
            ValidationError: Missing/unknown reviewer or blank issue_status
        """
        ticket = self.ticket_repo.get_ticket_or_raise(data["ticket_id"])

        errors: List[Dict[str, str]] = []
        reviewer_id = data.get("reviewer_id")
        if reviewer_id is None and actor is not None:
            reviewer_id = actor.employee_id
        if reviewer_id is None:
            errors.append({"field": "reviewer_id", "code": "required", "detail": "reviewer_id is required"})
        elif not self.user_repo.employee_exists(reviewer_id):
            errors.append({
                "field": "reviewer_id",
                "code": "not_found",
                "detail": f"Employee {reviewer_id} does not exist"
            })

        issue_status = (data.get("issue_status") or "").strip()
        if not issue_status:
            errors.append({"field": "issue_status", "code": "required", "detail": "issue_status is required"})
        if errors:
            raise ValidationError(errors=errors)

        now = storage_now()
        review_date = data.get("review_date")
        review = Review(
            review_id=self.counter_repo.next_sequence("reviews"),
            ticket_id=ticket.ticket_id,
            reviewer_id=reviewer_id,
            review_date=to_storage(review_date) if review_date else now,
            issue_status=issue_status,
            resolved=bool(data.get("resolved", False)),
            notes=data.get("notes"),
            created_at=now,
            updated_at=now,
        )
        self.review_repo.create_review(review)

        if review.resolved:
            self.ticket_service.complete_ticket(ticket.ticket_id, actor)
        return review_to_dict(review)

    def resolve_review(
        self,
        review_id: int,
        resolved: bool = True,
        notes: Optional[str] = None,
        actor: Optional[ActorContext] = None
    ) -> Dict[str, Any]:
        """Set the review outcome; resolving completes the ticket through its lifecycle"""
        self.review_repo.get_review_or_raise(review_id)

        updates: Dict[str, Any] = {"resolved": resolved}
        if notes is not None:
            updates["notes"] = notes
        review = self.review_repo.update_review(review_id, updates)

        if resolved:
            self.ticket_service.complete_ticket(review.ticket_id, actor)
            logger.info(
                f"Review {review_id} resolved ticket {review.ticket_id}",
                extra={"review_id": review_id, "ticket_id": review.ticket_id}
            )
        return review_to_dict(review)

    def get_review(self, review_id: int) -> Dict[str, Any]:
        return review_to_dict(self.review_repo.get_review_or_raise(review_id))

    def list_reviews(
        self,
        page: int = 1,
        page_size: int = 20,
        ticket_id: Optional[int] = None,
        reviewer_id: Optional[int] = None,
        resolved: Optional[bool] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        filters = {"ticket_id": ticket_id, "reviewer_id": reviewer_id, "resolved": resolved}
        skip = (page - 1) * page_size
        reviews = self.review_repo.list_reviews(skip=skip, limit=page_size, **filters)
        total = self.review_repo.count_reviews(**filters)
        return [review_to_dict(r) for r in reviews], total

    def get_stuck_tickets(self) -> List[Dict[str, Any]]:
        return self.ticket_service.get_stuck_tickets()
