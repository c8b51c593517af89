"""
Ticket CRUD Routes

Create, read, list, update and delete ticket endpoints.
"""

import re
from typing import Optional
from datetime import datetime, time
from fastapi import APIRouter, Depends, Query, status

from ...deps import get_correlation_id_dep, require_permission, require_page_access
from ...responses import success, paginated
from ....domain.models import ActorContext
from ....services.ticket_service import TicketService
from ....domain.errors import ValidationError
from ....utils.time import parse_iso, to_storage
from ....utils.logger import get_logger
from .schemas import CreateTicketRequest, UpdateTicketRequest

logger = get_logger(__name__)
router = APIRouter()

TICKETS = "support.tickets"
DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_date_param(name: str, value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    ISO date or datetime query value as naive UTC

    With `end_of_day`, a bare date covers the whole day (inclusive upper bound).
    """
    if not value:
        return None
    try:
        parsed = to_storage(parse_iso(value))
    except (ValueError, OverflowError):
        raise ValidationError(errors=[{
            "field": name,
            "code": "invalid_format",
            "detail": f"{name} must be an ISO 8601 date or datetime"
        }])
    if end_of_day and DATE_ONLY.match(value.strip()):
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


@router.get("/my/tickets")
async def list_my_tickets(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    actor: ActorContext = Depends(require_permission(TICKETS))
):
    """Tickets assigned to the caller's linked employee"""
    items, total = TicketService().list_my_tickets(
        actor, page=page, page_size=page_size, status=status_filter
    )
    return paginated(items, page, page_size, total)


@router.get("/")
async def list_tickets(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    status_filter: Optional[str] = Query(None, alias="status"),
    agent_id: Optional[int] = Query(None),
    communication_channel: Optional[str] = Query(None),
    issue_category: Optional[str] = Query(None),
    device_type: Optional[str] = Query(None),
    issue_type: Optional[str] = Query(None),
    first_call_resolution: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    actor: ActorContext = Depends(require_page_access(TICKETS))
):
    """
    List tickets

    Subject to the caller's page restrictions for `support.tickets`.
    """
    items, total = TicketService().list_tickets(
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        status=status_filter,
        agent_id=agent_id,
        communication_channel=communication_channel,
        issue_category=issue_category,
        device_type=device_type,
        issue_type=issue_type,
        first_call_resolution=first_call_resolution,
        date_from=_parse_date_param("date_from", date_from),
        date_to=_parse_date_param("date_to", date_to, end_of_day=True),
        search=search,
    )
    return paginated(items, page, page_size, total)


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    actor: ActorContext = Depends(require_permission(TICKETS))
):
    """Ticket with follow-ups, reviews and display state"""
    return success(TicketService().get_ticket(ticket_id))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: CreateTicketRequest,
    actor: ActorContext = Depends(require_permission(TICKETS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Create a ticket

    New tickets start Pending. The caller's linked employee is the agent;
    `agent_id` is only used for callers without one.
    """
    ticket = TicketService().create_ticket(request.model_dump(exclude_unset=True), actor)
    logger.info(
        f"Created ticket: {ticket['ticket_id']}",
        extra={"ticket_id": ticket["ticket_id"], "actor_user_id": actor.user_id}
    )
    return success(ticket)


@router.patch("/{ticket_id}")
async def update_ticket(
    ticket_id: int,
    request: UpdateTicketRequest,
    actor: ActorContext = Depends(require_permission(TICKETS)),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Update ticket fields and move it along Pending -> In-Progress -> Completed"""
    ticket = TicketService().update_ticket(ticket_id, request.model_dump(exclude_unset=True), actor)
    return success(ticket)


@router.delete("/{ticket_id}")
async def delete_ticket(
    ticket_id: int,
    actor: ActorContext = Depends(require_permission("support.tickets.delete")),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Delete a ticket together with its follow-ups and reviews"""
    return success(TicketService().delete_ticket(ticket_id, actor))
