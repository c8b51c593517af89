"""Review Repository - QA reviews of tickets"""
from typing import Any, Dict, Iterable, List, Optional, Set
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import Review
from ..domain.errors import ReviewNotFoundError
from ..utils.logger import get_logger
from ..utils.time import storage_now

logger = get_logger(__name__)


class ReviewRepository:
    """Repository for QA review operations"""

    def __init__(self):
        self._reviews: Collection = get_collection("reviews")

    def create_review(self, review: Review) -> Review:
        self._reviews.insert_one(review.model_dump())
        logger.info(
            f"Created review {review.review_id} for ticket {review.ticket_id}",
            extra={"review_id": review.review_id, "ticket_id": review.ticket_id}
        )
        return review

    def get_review(self, review_id: int) -> Optional[Review]:
        doc = self._reviews.find_one({"review_id": review_id})
        if doc:
            doc.pop("_id", None)
            return Review.model_validate(doc)
        return None

    def get_review_or_raise(self, review_id: int) -> Review:
        review = self.get_review(review_id)
        if not review:
            raise ReviewNotFoundError(f"Review {review_id} not found")
        return review

    def update_review(self, review_id: int, updates: Dict[str, Any]) -> Review:
        updates["updated_at"] = storage_now()
        result = self._reviews.find_one_and_update(
            {"review_id": review_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise ReviewNotFoundError(f"Review {review_id} not found")
        result.pop("_id", None)
        return Review.model_validate(result)

    def _build_query(
        self,
        ticket_id: Optional[int] = None,
        reviewer_id: Optional[int] = None,
        resolved: Optional[bool] = None
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if ticket_id is not None:
            query["ticket_id"] = ticket_id
        if reviewer_id is not None:
            query["reviewer_id"] = reviewer_id
        if resolved is not None:
            query["resolved"] = resolved
        return query

    def list_reviews(self, skip: int = 0, limit: int = 50, **filters: Any) -> List[Review]:
        cursor = (
            self._reviews.find(self._build_query(**filters))
            .sort("review_date", DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        reviews = []
        for doc in cursor:
            doc.pop("_id", None)
            reviews.append(Review.model_validate(doc))
        return reviews

    def count_reviews(self, **filters: Any) -> int:
        return self._reviews.count_documents(self._build_query(**filters))

    def list_for_ticket(self, ticket_id: int) -> List[Review]:
        return self.list_reviews(ticket_id=ticket_id, limit=0)

    def ticket_ids_with_reviews(self, ticket_ids: Iterable[int]) -> Set[int]:
        """Subset of ticket_ids that have at least one review"""
        ids = list(ticket_ids)
        if not ids:
            return set()
        return {
            doc["ticket_id"]
            for doc in self._reviews.find({"ticket_id": {"$in": ids}}, {"ticket_id": 1})
        }

    def delete_for_ticket(self, ticket_id: int) -> int:
        result = self._reviews.delete_many({"ticket_id": ticket_id})
        return result.deleted_count
