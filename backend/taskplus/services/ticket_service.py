"""Ticket Service - Support ticket lifecycle

Applies the rules in `engine.ticket_lifecycle`: batch validation, agent
resolution, derived first-call-resolution, allowed status transitions,
automatic follow-up on completion and reopen. Follow-up creation and
notifications are side effects; their failures are logged, never raised.
"""
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import Ticket, FollowUp, Review, ActorContext
from ..domain.enums import ResolutionStatus, FirstCallResolution
from ..domain.errors import ValidationError
from ..engine.ticket_lifecycle import (
    validate_ticket_fields, check_transition, derive_first_call_resolution,
    derive_ticket_state, needs_follow_up, parse_agent_id
)
from ..repositories.ticket_repo import TicketRepository
from ..repositories.follow_up_repo import FollowUpRepository
from ..repositories.review_repo import ReviewRepository
from ..repositories.counter_repo import CounterRepository
from ..repositories.user_repo import UserRepository
from ..services.notification_service import NotificationService
from ..config.settings import settings
from ..utils.time import storage_now, minutes_ago, age_in_hours, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = [
    "customer_phone",
    "customer_location",
    "communication_channel",
    "device_type",
    "issue_category",
    "issue_type",
    "issue_description",
    "agent_id",
    "resolution_status",
]


def ticket_to_dict(
    ticket: Ticket,
    latest_follow_up: Optional[FollowUp] = None
) -> Dict[str, Any]:
    """API representation of a ticket, including its derived display state"""
    data = ticket.model_dump(mode="json")
    data["created_at"] = format_iso(ticket.created_at)
    data["updated_at"] = format_iso(ticket.updated_at)
    data["createdAt"] = data["created_at"]
    data["updatedAt"] = data["updated_at"]
    data["ticket_state"] = derive_ticket_state(ticket.resolution_status, latest_follow_up)
    return data


def _has_field_error(errors: List[Dict[str, str]], field: str) -> bool:
    return any(error["field"] == field for error in errors)


def follow_up_to_dict(follow_up: FollowUp) -> Dict[str, Any]:
    data = follow_up.model_dump(mode="json")
    for field in ("follow_up_date", "created_at", "updated_at"):
        data[field] = format_iso(getattr(follow_up, field))
    return data


def review_to_dict(review: Review) -> Dict[str, Any]:
    data = review.model_dump(mode="json")
    for field in ("review_date", "created_at", "updated_at"):
        data[field] = format_iso(getattr(review, field))
    return data


class TicketService:
    """Service for ticket operations"""

    def __init__(self):
        self.ticket_repo = TicketRepository()
        self.follow_up_repo = FollowUpRepository()
        self.review_repo = ReviewRepository()
        self.counter_repo = CounterRepository()
        self.user_repo = UserRepository()
        self.notification_service = NotificationService()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_agent(
        self,
        actor: Optional[ActorContext],
        requested_agent_id: Optional[int]
    ) -> Tuple[Optional[int], List[Dict[str, str]]]:
        """
        Agent for a new ticket.

        The caller's own linked employee wins; a supplied agent_id is only
        used when the caller has none.
        """
        if actor and actor.employee_id is not None:
            if self.user_repo.employee_exists(actor.employee_id):
                return actor.employee_id, []
            logger.warning(
                f"Linked employee {actor.employee_id} not found for user {actor.user_id}",
                extra={"user_id": actor.user_id}
            )

        if requested_agent_id is None:
            return None, []
        if not self.user_repo.employee_exists(requested_agent_id):
            return None, [{
                "field": "agent_id",
                "code": "not_found",
                "detail": f"Employee {requested_agent_id} does not exist"
            }]
        return requested_agent_id, []

    def _drop_client_fcr(self, data: Dict[str, Any], ticket_id: Optional[int] = None) -> Dict[str, Any]:
        if "first_call_resolution" in data:
            logger.info(
                "Ignoring client-supplied first_call_resolution",
                extra={"ticket_id": ticket_id}
            )
            data = {k: v for k, v in data.items() if k != "first_call_resolution"}
        return data

    def _create_auto_follow_up(self, ticket: Ticket) -> Optional[FollowUp]:
        """Follow-up owed when a ticket enters Completed; never raises"""
        try:
            now = storage_now()
            follow_up = FollowUp(
                follow_up_id=self.counter_repo.next_sequence("follow_ups"),
                ticket_id=ticket.ticket_id,
                follow_up_agent_id=ticket.agent_id,
                follow_up_date=now,
                issue_solved=None,
                satisfied=None,
                repeated_issue=False,
                created_at=now,
                updated_at=now,
            )
            self.follow_up_repo.create_follow_up(follow_up)
        except Exception as e:
            logger.error(
                f"Auto follow-up creation failed for ticket {ticket.ticket_id}: {e}",
                extra={"ticket_id": ticket.ticket_id, "error_type": type(e).__name__}
            )
            return None

        self.notification_service.notify_follow_up_created(follow_up)
        return follow_up

    # =========================================================================
    # Commands
    # =========================================================================

    def create_ticket(
        self,
        data: Dict[str, Any],
        actor: Optional[ActorContext] = None,
        initial_status: ResolutionStatus = ResolutionStatus.PENDING
    ) -> Dict[str, Any]:
        """
        Create a ticket

        Args:
            data: Ticket fields from the client
            actor: Creating user; their linked employee becomes the agent
            initial_status: Pending for interactive creation; import paths
                may create tickets already Completed

        Raises:
            ValidationError: With every field error found
        """
        data = self._drop_client_fcr(dict(data))
        if "resolution_status" in data:
            logger.info("Ignoring client-supplied resolution_status on create")
            data.pop("resolution_status")

        errors = validate_ticket_fields(data)
        requested_agent_id = None
        if not _has_field_error(errors, "agent_id"):
            requested_agent_id = parse_agent_id(data.get("agent_id"))
        agent_id, agent_errors = self._resolve_agent(actor, requested_agent_id)
        errors.extend(agent_errors)
        if errors:
            raise ValidationError(errors=errors)

        status = ResolutionStatus(initial_status)
        now = storage_now()
        ticket = Ticket(
            ticket_id=self.counter_repo.next_sequence("tickets"),
            customer_phone=str(data["customer_phone"]).strip(),
            customer_location=data.get("customer_location"),
            communication_channel=data.get("communication_channel"),
            device_type=data.get("device_type"),
            issue_category=data["issue_category"],
            issue_type=data.get("issue_type"),
            issue_description=(data.get("issue_description") or "").strip() or None,
            agent_id=agent_id,
            resolution_status=status,
            first_call_resolution=derive_first_call_resolution(status),
            created_at=now,
            updated_at=now,
        )
        self.ticket_repo.create_ticket(ticket)

        if ticket.agent_id is not None:
            self.notification_service.notify_ticket_assigned(ticket)
        if needs_follow_up(None, ticket.resolution_status):
            self._create_auto_follow_up(ticket)

        return ticket_to_dict(ticket)

    def update_ticket(
        self,
        ticket_id: int,
        data: Dict[str, Any],
        actor: Optional[ActorContext] = None
    ) -> Dict[str, Any]:
        """
        Update ticket fields and status

        Raises:
            TicketNotFoundError: Ticket does not exist
            ValidationError: Field errors
            InvalidTransitionError: Status change not allowed
        """
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        data = self._drop_client_fcr(dict(data), ticket_id)

        errors = validate_ticket_fields(data, partial=True)
        if "agent_id" in data and not _has_field_error(errors, "agent_id"):
            new_agent_id = data["agent_id"] = parse_agent_id(data["agent_id"])
            if new_agent_id is not None and not self.user_repo.employee_exists(new_agent_id):
                errors.append({
                    "field": "agent_id",
                    "code": "not_found",
                    "detail": f"Employee {new_agent_id} does not exist"
                })
        if errors:
            raise ValidationError(errors=errors)

        previous_status = ticket.resolution_status
        new_status = data.get("resolution_status", previous_status)
        check_transition(ticket_id, previous_status, new_status)

        updates = {field: data[field] for field in EDITABLE_FIELDS if field in data}
        if "customer_phone" in updates:
            updates["customer_phone"] = str(updates["customer_phone"]).strip()
        if isinstance(updates.get("issue_description"), str):
            updates["issue_description"] = updates["issue_description"].strip()
        updates["resolution_status"] = new_status
        updates["first_call_resolution"] = derive_first_call_resolution(new_status)

        updated = self.ticket_repo.update_ticket(ticket_id, updates)
        logger.info(
            f"Ticket {ticket_id} updated ({previous_status} -> {new_status})",
            extra={
                "ticket_id": ticket_id,
                "status": new_status,
                "actor_user_id": actor.user_id if actor else None
            }
        )

        if needs_follow_up(previous_status, new_status):
            self._create_auto_follow_up(updated)
        if "agent_id" in data and updated.agent_id is not None and updated.agent_id != ticket.agent_id:
            self.notification_service.notify_ticket_assigned(updated)
        if new_status != previous_status:
            self.notification_service.notify_ticket_status_changed(updated, previous_status)

        return ticket_to_dict(updated, self.follow_up_repo.get_latest_for_ticket(ticket_id))

    def complete_ticket(self, ticket_id: int, actor: Optional[ActorContext] = None) -> Dict[str, Any]:
        """Move a ticket to Completed through the regular update path"""
        return self.update_ticket(
            ticket_id,
            {"resolution_status": ResolutionStatus.COMPLETED.value},
            actor
        )

    def reopen_ticket(self, ticket_id: int, actor: Optional[ActorContext] = None) -> Dict[str, Any]:
        """
        Return a ticket to Pending with FCR No, keeping its agent.

        Reopening an already Pending ticket succeeds with the same result.
        """
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        previous_status = ticket.resolution_status

        updated = self.ticket_repo.update_ticket(ticket_id, {
            "resolution_status": ResolutionStatus.PENDING.value,
            "first_call_resolution": FirstCallResolution.NO.value,
        })
        logger.info(
            f"Ticket {ticket_id} reopened (was {previous_status})",
            extra={
                "ticket_id": ticket_id,
                "status": updated.resolution_status,
                "actor_user_id": actor.user_id if actor else None
            }
        )

        if previous_status != updated.resolution_status:
            self.notification_service.notify_ticket_status_changed(updated, previous_status)

        return ticket_to_dict(updated, self.follow_up_repo.get_latest_for_ticket(ticket_id))

    def delete_ticket(self, ticket_id: int, actor: Optional[ActorContext] = None) -> Dict[str, Any]:
        """Hard-delete a ticket with its follow-ups and reviews"""
        self.ticket_repo.get_ticket_or_raise(ticket_id)

        follow_ups_deleted = self.follow_up_repo.delete_for_ticket(ticket_id)
        reviews_deleted = self.review_repo.delete_for_ticket(ticket_id)
        self.ticket_repo.delete_ticket(ticket_id)

        logger.warning(
            f"Ticket {ticket_id} deleted with {follow_ups_deleted} follow-ups and {reviews_deleted} reviews",
            extra={"ticket_id": ticket_id, "actor_user_id": actor.user_id if actor else None}
        )
        return {
            "ticket_id": ticket_id,
            "follow_ups_deleted": follow_ups_deleted,
            "reviews_deleted": reviews_deleted,
        }

    # =========================================================================
    # Queries
    # =========================================================================

    def get_ticket(self, ticket_id: int) -> Dict[str, Any]:
        """Ticket with its follow-ups, reviews and display state"""
        ticket = self.ticket_repo.get_ticket_or_raise(ticket_id)
        follow_ups = self.follow_up_repo.list_for_ticket(ticket_id)
        reviews = self.review_repo.list_for_ticket(ticket_id)

        data = ticket_to_dict(ticket, follow_ups[0] if follow_ups else None)
        data["follow_ups"] = [follow_up_to_dict(f) for f in follow_ups]
        data["reviews"] = [review_to_dict(review) for review in reviews]
        return data

    def list_tickets(
        self,
        page: int = 1,
        page_size: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        **filters: Any
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Filtered, paginated tickets and the total match count"""
        skip = (page - 1) * page_size
        tickets = self.ticket_repo.list_tickets(
            sort_by=sort_by, sort_order=sort_order, skip=skip, limit=page_size, **filters
        )
        total = self.ticket_repo.count_tickets(**filters)
        items = [
            ticket_to_dict(ticket, self.follow_up_repo.get_latest_for_ticket(ticket.ticket_id))
            for ticket in tickets
        ]
        return items, total

    def list_my_tickets(
        self,
        actor: ActorContext,
        page: int = 1,
        page_size: int = 20,
        status: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Tickets assigned to the caller's linked employee"""
        if actor.employee_id is None:
            return [], 0
        return self.list_tickets(
            page=page, page_size=page_size, agent_id=actor.employee_id, status=status
        )

    def get_stuck_tickets(self, threshold_minutes: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Unfinished tickets untouched for longer than the staleness threshold,
        oldest first, with age and review markers
        """
        threshold = threshold_minutes or settings.stuck_ticket_threshold_minutes
        now = storage_now()
        tickets = self.ticket_repo.list_stuck_tickets(minutes_ago(threshold, now))

        reviewed = self.review_repo.ticket_ids_with_reviews(t.ticket_id for t in tickets)
        agents: Dict[int, Optional[Dict[str, Any]]] = {}

        items = []
        for ticket in tickets:
            if ticket.agent_id is not None and ticket.agent_id not in agents:
                employee = self.user_repo.get_employee(ticket.agent_id)
                agents[ticket.agent_id] = (
                    {"employee_id": employee.employee_id, "name": employee.name} if employee else None
                )
            data = ticket_to_dict(ticket)
            data["agent_info"] = agents.get(ticket.agent_id) if ticket.agent_id is not None else None
            data["age_hours"] = age_in_hours(ticket.updated_at, now)
            data["has_review"] = ticket.ticket_id in reviewed
            items.append(data)
        return items
