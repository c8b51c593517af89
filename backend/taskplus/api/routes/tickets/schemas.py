"""
Ticket Schemas

Request models for ticket API endpoints. Fields are deliberately loose;
the ticket service validates the whole payload, types and lengths included,
and reports every field error in one response.
"""

from typing import Any, Optional
from pydantic import BaseModel


# =============================================================================
# Ticket CRUD Schemas
# =============================================================================

class CreateTicketRequest(BaseModel):
    """Request to create a new ticket"""
    customer_phone: Optional[Any] = None
    customer_location: Optional[Any] = None
    communication_channel: Optional[Any] = None
    device_type: Optional[Any] = None
    issue_category: Optional[Any] = None
    issue_type: Optional[Any] = None
    issue_description: Optional[Any] = None
    agent_id: Optional[Any] = None
    # Accepted for compatibility; always derived server-side
    first_call_resolution: Optional[Any] = None


class UpdateTicketRequest(BaseModel):
    """Partial ticket update; only fields present in the body are applied"""
    customer_phone: Optional[Any] = None
    customer_location: Optional[Any] = None
    communication_channel: Optional[Any] = None
    device_type: Optional[Any] = None
    issue_category: Optional[Any] = None
    issue_type: Optional[Any] = None
    issue_description: Optional[Any] = None
    agent_id: Optional[Any] = None
    resolution_status: Optional[Any] = None
    first_call_resolution: Optional[Any] = None
