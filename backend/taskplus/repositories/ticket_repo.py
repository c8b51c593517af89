"""Ticket Repository - Data access for support tickets"""
import re
from typing import Any, Dict, List, Optional
from datetime import datetime
from pymongo.collection import Collection
from pymongo import DESCENDING, ASCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import Ticket
from ..domain.enums import ResolutionStatus
from ..domain.errors import TicketNotFoundError
from ..utils.logger import get_logger
from ..utils.time import storage_now

logger = get_logger(__name__)

VALID_SORT_FIELDS = ["created_at", "updated_at", "ticket_id", "resolution_status", "issue_category"]


class TicketRepository:
    """Repository for ticket operations"""

    def __init__(self):
        self._tickets: Collection = get_collection("tickets")

    # =========================================================================
    # Ticket CRUD
    # =========================================================================

    def create_ticket(self, ticket: Ticket) -> Ticket:
        """Create a new ticket"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = ticket.model_dump()
        self._tickets.insert_one(doc)
        logger.info(f"Created ticket: {ticket.ticket_id}", extra={"ticket_id": ticket.ticket_id})
        return ticket

    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        """Get ticket by ID"""
        doc = self._tickets.find_one({"ticket_id": ticket_id})
        if doc:
            doc.pop("_id", None)
            return Ticket.model_validate(doc)
        return None

    def get_ticket_or_raise(self, ticket_id: int) -> Ticket:
        """Get ticket by ID or raise error"""
        ticket = self.get_ticket(ticket_id)
        if not ticket:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    def update_ticket(self, ticket_id: int, updates: Dict[str, Any]) -> Ticket:
        """Apply field updates; last write wins"""
        updates["updated_at"] = storage_now()

        result = self._tickets.find_one_and_update(
            {"ticket_id": ticket_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")

        result.pop("_id", None)
        logger.info(f"Updated ticket: {ticket_id}", extra={"ticket_id": ticket_id})
        return Ticket.model_validate(result)

    def delete_ticket(self, ticket_id: int) -> bool:
        result = self._tickets.delete_one({"ticket_id": ticket_id})
        return result.deleted_count > 0

    # =========================================================================
    # Queries
    # =========================================================================

    def _build_query(
        self,
        status: Optional[str] = None,
        agent_id: Optional[int] = None,
        communication_channel: Optional[str] = None,
        issue_category: Optional[str] = None,
        device_type: Optional[str] = None,
        issue_type: Optional[str] = None,
        first_call_resolution: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        search: Optional[str] = None
    ) -> Dict[str, Any]:
        and_conditions: List[Dict[str, Any]] = []

        exact_filters = {
            "resolution_status": status,
            "agent_id": agent_id,
            "communication_channel": communication_channel,
            "issue_category": issue_category,
            "device_type": device_type,
            "issue_type": issue_type,
            "first_call_resolution": first_call_resolution,
        }
        for field, value in exact_filters.items():
            if value is not None:
                and_conditions.append({field: value})

        if date_from or date_to:
            date_query: Dict[str, Any] = {}
            if date_from:
                date_query["$gte"] = date_from
            if date_to:
                date_query["$lte"] = date_to
            and_conditions.append({"created_at": date_query})

        if search:
            pattern = re.escape(search.strip())
            search_conditions: List[Dict[str, Any]] = [
                {"customer_phone": {"$regex": pattern, "$options": "i"}},
                {"customer_location": {"$regex": pattern, "$options": "i"}},
                {"issue_type": {"$regex": pattern, "$options": "i"}},
                {"issue_description": {"$regex": pattern, "$options": "i"}},
            ]
            if search.strip().isdigit():
                search_conditions.append({"ticket_id": int(search.strip())})
            and_conditions.append({"$or": search_conditions})

        if not and_conditions:
            return {}
        if len(and_conditions) == 1:
            return and_conditions[0]
        return {"$and": and_conditions}

    def list_tickets(
        self,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int = 50,
        **filters: Any
    ) -> List[Ticket]:
        """List tickets with filters (see `_build_query` for the accepted keys)"""
        query = self._build_query(**filters)

        sort_direction = DESCENDING if sort_order == "desc" else ASCENDING
        if sort_by not in VALID_SORT_FIELDS:
            sort_by = "created_at"

        cursor = self._tickets.find(query).sort(sort_by, sort_direction).skip(skip).limit(limit)

        tickets = []
        for doc in cursor:
            doc.pop("_id", None)
            tickets.append(Ticket.model_validate(doc))
        return tickets

    def count_tickets(self, **filters: Any) -> int:
        return self._tickets.count_documents(self._build_query(**filters))

    def list_stuck_tickets(self, updated_before: datetime, limit: int = 200) -> List[Ticket]:
        """Unfinished tickets not touched since `updated_before`, oldest first"""
        cursor = self._tickets.find({
            "resolution_status": {"$in": [
                ResolutionStatus.PENDING.value, ResolutionStatus.IN_PROGRESS.value
            ]},
            "updated_at": {"$lte": updated_before},
        }).sort("updated_at", ASCENDING).limit(limit)

        tickets = []
        for doc in cursor:
            doc.pop("_id", None)
            tickets.append(Ticket.model_validate(doc))
        return tickets
