"""Follow-up Service - Customer call-backs after a ticket is handled

A follow-up recorded as not solved reopens its ticket through the ticket
lifecycle; a solved follow-up leaves the ticket status alone.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import FollowUp, ActorContext
from ..domain.errors import ValidationError
from ..repositories.follow_up_repo import FollowUpRepository, UNSET
from ..repositories.ticket_repo import TicketRepository
from ..repositories.counter_repo import CounterRepository
from ..repositories.user_repo import UserRepository
from ..services.notification_service import NotificationService
from ..services.ticket_service import TicketService, follow_up_to_dict
from ..domain.enums import NotificationType
from ..utils.time import storage_now, to_storage
from ..utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = [
    "follow_up_agent_id",
    "follow_up_date",
    "issue_solved",
    "satisfied",
    "repeated_issue",
    "follow_up_notes",
]

# Query-string status filter -> stored issue_solved value
STATUS_FILTERS = {
    "pending": None,
    "solved": True,
    "not_solved": False,
}


class FollowUpService:
    """Service for follow-up operations"""

    def __init__(self):
        self.follow_up_repo = FollowUpRepository()
        self.ticket_repo = TicketRepository()
        self.counter_repo = CounterRepository()
        self.user_repo = UserRepository()
        self.notification_service = NotificationService()
        self.ticket_service = TicketService()

    def _validate_agent(self, agent_id: Optional[int]) -> None:
        if agent_id is not None and not self.user_repo.employee_exists(agent_id):
            raise ValidationError(errors=[{
                "field": "follow_up_agent_id",
                "code": "not_found",
                "detail": f"Employee {agent_id} does not exist"
            }])

    def _with_ticket(self, follow_up: FollowUp) -> Dict[str, Any]:
        data = follow_up_to_dict(follow_up)
        ticket = self.ticket_repo.get_ticket(follow_up.ticket_id)
        data["ticket"] = {
            "ticket_id": ticket.ticket_id,
            "customer_phone": ticket.customer_phone,
            "issue_description": ticket.issue_description,
            "resolution_status": ticket.resolution_status,
        } if ticket else None
        return data

    def _reopen_ticket(self, follow_up: FollowUp, actor: Optional[ActorContext]) -> None:
        self.ticket_service.reopen_ticket(follow_up.ticket_id, actor)
        logger.info(
            f"Ticket {follow_up.ticket_id} reopened by unsolved follow-up {follow_up.follow_up_id}",
            extra={"ticket_id": follow_up.ticket_id, "follow_up_id": follow_up.follow_up_id}
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def create_follow_up(self, data: Dict[str, Any], actor: Optional[ActorContext] = None) -> Dict[str, Any]:
        """
        Record a manual follow-up

        Raises:
            TicketNotFoundError: Referenced ticket does not exist
            ValidationError: Unknown follow-up agent
        """
        ticket = self.ticket_repo.get_ticket_or_raise(data["ticket_id"])
        agent_id = data.get("follow_up_agent_id")
        self._validate_agent(agent_id)

        now = storage_now()
        follow_up_date: Optional[datetime] = data.get("follow_up_date")
        follow_up = FollowUp(
            follow_up_id=self.counter_repo.next_sequence("follow_ups"),
            ticket_id=ticket.ticket_id,
            follow_up_agent_id=agent_id,
            follow_up_date=to_storage(follow_up_date) if follow_up_date else now,
            issue_solved=data.get("issue_solved"),
            satisfied=data.get("satisfied"),
            repeated_issue=bool(data.get("repeated_issue", False)),
            follow_up_notes=data.get("follow_up_notes"),
            created_at=now,
            updated_at=now,
        )
        self.follow_up_repo.create_follow_up(follow_up)

        self.notification_service.notify_employee(
            ticket.agent_id,
            title="Follow-up created",
            message=f"A follow-up has been created for ticket #{ticket.ticket_id}",
            notification_type=NotificationType.FOLLOW_UP_CREATED,
            ticket_id=ticket.ticket_id,
        )
        if follow_up.issue_solved is False:
            self._reopen_ticket(follow_up, actor)

        return self._with_ticket(follow_up)

    def update_follow_up(
        self,
        follow_up_id: int,
        data: Dict[str, Any],
        actor: Optional[ActorContext] = None
    ) -> Dict[str, Any]:
        existing = self.follow_up_repo.get_follow_up_or_raise(follow_up_id)
        if "follow_up_agent_id" in data:
            self._validate_agent(data["follow_up_agent_id"])

        updates = {field: data[field] for field in EDITABLE_FIELDS if field in data}
        if updates.get("follow_up_date") is not None:
            updates["follow_up_date"] = to_storage(updates["follow_up_date"])
        elif "follow_up_date" in updates:
            updates.pop("follow_up_date")

        updated = self.follow_up_repo.update_follow_up(follow_up_id, updates)
        if updated.issue_solved is False and existing.issue_solved is not False:
            self._reopen_ticket(updated, actor)
        return self._with_ticket(updated)

    def mark_solved(
        self,
        follow_up_id: int,
        satisfied: Optional[bool] = None,
        notes: Optional[str] = None,
        actor: Optional[ActorContext] = None
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {"issue_solved": True}
        if satisfied is not None:
            data["satisfied"] = satisfied
        if notes is not None:
            data["follow_up_notes"] = notes
        return self.update_follow_up(follow_up_id, data, actor)

    def mark_not_solved(
        self,
        follow_up_id: int,
        notes: Optional[str] = None,
        actor: Optional[ActorContext] = None
    ) -> Dict[str, Any]:
        """Customer still has the issue: record it and reopen the ticket"""
        data: Dict[str, Any] = {"issue_solved": False}
        if notes is not None:
            data["follow_up_notes"] = notes
        return self.update_follow_up(follow_up_id, data, actor)

    def assign_to_me(self, follow_up_id: int, actor: ActorContext) -> Dict[str, Any]:
        if actor.employee_id is None:
            raise ValidationError(
                "Your account is not linked to an employee",
                errors=[{
                    "field": "follow_up_agent_id",
                    "code": "not_linked",
                    "detail": "Caller has no linked employee"
                }]
            )
        return self.update_follow_up(follow_up_id, {"follow_up_agent_id": actor.employee_id}, actor)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_follow_up(self, follow_up_id: int) -> Dict[str, Any]:
        return self._with_ticket(self.follow_up_repo.get_follow_up_or_raise(follow_up_id))

    def list_follow_ups(
        self,
        page: int = 1,
        page_size: int = 20,
        ticket_id: Optional[int] = None,
        agent_id: Optional[int] = None,
        status: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Paginated follow-ups

        Args:
            status: pending, solved or not_solved
        """
        filters: Dict[str, Any] = {"ticket_id": ticket_id, "agent_id": agent_id}
        if status is not None:
            if status not in STATUS_FILTERS:
                raise ValidationError(errors=[{
                    "field": "status",
                    "code": "invalid_choice",
                    "detail": f"status must be one of {', '.join(STATUS_FILTERS)}"
                }])
            filters["issue_solved"] = STATUS_FILTERS[status]
        else:
            filters["issue_solved"] = UNSET

        skip = (page - 1) * page_size
        follow_ups = self.follow_up_repo.list_follow_ups(skip=skip, limit=page_size, **filters)
        total = self.follow_up_repo.count_follow_ups(**filters)
        return [self._with_ticket(f) for f in follow_ups], total

    def list_pending(self, page: int = 1, page_size: int = 20) -> Tuple[List[Dict[str, Any]], int]:
        """Follow-ups whose outcome has not been recorded yet"""
        return self.list_follow_ups(page=page, page_size=page_size, status="pending")
