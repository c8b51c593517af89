"""Follow-up Repository - Customer follow-ups attached to tickets"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import FollowUp
from ..domain.errors import FollowUpNotFoundError
from ..utils.logger import get_logger
from ..utils.time import storage_now

logger = get_logger(__name__)

# Sentinel so callers can filter on issue_solved being null
UNSET = object()


class FollowUpRepository:
    """Repository for follow-up operations"""

    def __init__(self):
        self._follow_ups: Collection = get_collection("follow_ups")

    def create_follow_up(self, follow_up: FollowUp) -> FollowUp:
        self._follow_ups.insert_one(follow_up.model_dump())
        logger.info(
            f"Created follow-up {follow_up.follow_up_id} for ticket {follow_up.ticket_id}",
            extra={"follow_up_id": follow_up.follow_up_id, "ticket_id": follow_up.ticket_id}
        )
        return follow_up

    def get_follow_up(self, follow_up_id: int) -> Optional[FollowUp]:
        doc = self._follow_ups.find_one({"follow_up_id": follow_up_id})
        if doc:
            doc.pop("_id", None)
            return FollowUp.model_validate(doc)
        return None

    def get_follow_up_or_raise(self, follow_up_id: int) -> FollowUp:
        follow_up = self.get_follow_up(follow_up_id)
        if not follow_up:
            raise FollowUpNotFoundError(f"Follow-up {follow_up_id} not found")
        return follow_up

    def update_follow_up(self, follow_up_id: int, updates: Dict[str, Any]) -> FollowUp:
        updates["updated_at"] = storage_now()
        result = self._follow_ups.find_one_and_update(
            {"follow_up_id": follow_up_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise FollowUpNotFoundError(f"Follow-up {follow_up_id} not found")
        result.pop("_id", None)
        logger.info(f"Updated follow-up: {follow_up_id}", extra={"follow_up_id": follow_up_id})
        return FollowUp.model_validate(result)

    def _build_query(
        self,
        ticket_id: Optional[int] = None,
        agent_id: Optional[int] = None,
        issue_solved: Any = UNSET
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if ticket_id is not None:
            query["ticket_id"] = ticket_id
        if agent_id is not None:
            query["follow_up_agent_id"] = agent_id
        if issue_solved is not UNSET:
            query["issue_solved"] = issue_solved
        return query

    def list_follow_ups(self, skip: int = 0, limit: int = 50, **filters: Any) -> List[FollowUp]:
        """List follow-ups, newest first"""
        cursor = (
            self._follow_ups.find(self._build_query(**filters))
            .sort([("created_at", DESCENDING), ("follow_up_id", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        follow_ups = []
        for doc in cursor:
            doc.pop("_id", None)
            follow_ups.append(FollowUp.model_validate(doc))
        return follow_ups

    def count_follow_ups(self, **filters: Any) -> int:
        return self._follow_ups.count_documents(self._build_query(**filters))

    def list_for_ticket(self, ticket_id: int) -> List[FollowUp]:
        return self.list_follow_ups(ticket_id=ticket_id, limit=0)

    def get_latest_for_ticket(self, ticket_id: int) -> Optional[FollowUp]:
        docs = list(
            self._follow_ups.find({"ticket_id": ticket_id})
            .sort([("created_at", DESCENDING), ("follow_up_id", DESCENDING)])
            .limit(1)
        )
        if not docs:
            return None
        docs[0].pop("_id", None)
        return FollowUp.model_validate(docs[0])

    def delete_for_ticket(self, ticket_id: int) -> int:
        result = self._follow_ups.delete_many({"ticket_id": ticket_id})
        return result.deleted_count
