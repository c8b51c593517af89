"""
Ticket Lifecycle Routes

Status changes outside the regular update path.
"""

from fastapi import APIRouter, Depends

from ...deps import require_permission, get_correlation_id_dep
from ...responses import success
from ....domain.models import ActorContext
from ....services.ticket_service import TicketService
from ....utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.patch("/{ticket_id}/reopen")
async def reopen_ticket(
    ticket_id: int,
    actor: ActorContext = Depends(require_permission("support.tickets")),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Reopen a ticket

    Sets status Pending and FCR No, keeps the agent. Reopening a Pending
    ticket is a no-op that still succeeds.
    """
    return success(TicketService().reopen_ticket(ticket_id, actor))
