"""Notification Repository - Outbox entries and delivered in-app notifications

The outbox is claimed with an atomic find_one_and_update lock so that two
dispatcher processes never deliver the same entry twice.
"""
from typing import Dict, List, Optional
from datetime import timedelta
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from .mongo_client import get_collection
from ..domain.models import NotificationOutbox, Notification
from ..domain.enums import NotificationStatus
from ..domain.errors import NotFoundError, NotificationNotFoundError
from ..config.settings import settings
from ..utils.logger import get_logger
from ..utils.time import storage_now

logger = get_logger(__name__)


class NotificationRepository:
    """Repository for notification outbox and in-app notifications"""

    def __init__(self):
        self._outbox: Collection = get_collection("notification_outbox")
        self._notifications: Collection = get_collection("notifications")

    # =========================================================================
    # Outbox
    # =========================================================================

    def enqueue(self, entry: NotificationOutbox) -> NotificationOutbox:
        """Add an entry to the outbox"""
        self._outbox.insert_one(entry.model_dump())
        logger.info(
            f"Queued notification: {entry.notification_type}",
            extra={
                "outbox_id": entry.outbox_id,
                "user_id": entry.recipient_user_id,
                "ticket_id": entry.ticket_id
            }
        )
        return entry

    def get_outbox_entry(self, outbox_id: str) -> Optional[NotificationOutbox]:
        doc = self._outbox.find_one({"outbox_id": outbox_id})
        if doc:
            doc.pop("_id", None)
            return NotificationOutbox.model_validate(doc)
        return None

    def get_pending(self, limit: int = 50) -> List[NotificationOutbox]:
        """
        Pending entries ready for (re)delivery.

        Only returns entries that are PENDING, unlocked (or lock expired) and
        due for retry.
        """
        now = storage_now()
        try:
            cursor = self._outbox.find({
                "status": NotificationStatus.PENDING.value,
                "$and": [
                    {"$or": [
                        {"next_retry_at": {"$lte": now}},
                        {"next_retry_at": None}
                    ]},
                    {"$or": [
                        {"locked_until": {"$lte": now}},
                        {"locked_until": None},
                        {"locked_until": {"$exists": False}}
                    ]}
                ]
            }).sort("created_at", ASCENDING).limit(limit)

            entries = []
            for doc in cursor:
                doc.pop("_id", None)
                entries.append(NotificationOutbox.model_validate(doc))
            return entries
        except PyMongoError as e:
            logger.error(
                f"Database error fetching pending notifications: {e}",
                extra={"error_type": type(e).__name__}
            )
            return []

    def acquire_lock(self, outbox_id: str, lock_by: str, lock_duration_seconds: int = 60) -> bool:
        """Atomically claim an entry; False if another worker holds it"""
        now = storage_now()
        result = self._outbox.find_one_and_update(
            {
                "outbox_id": outbox_id,
                "status": NotificationStatus.PENDING.value,
                "$or": [
                    {"locked_until": {"$lte": now}},
                    {"locked_until": None},
                    {"locked_until": {"$exists": False}}
                ]
            },
            {"$set": {
                "locked_until": now + timedelta(seconds=lock_duration_seconds),
                "locked_by": lock_by
            }}
        )
        return result is not None

    def mark_sent(self, outbox_id: str) -> NotificationOutbox:
        result = self._outbox.find_one_and_update(
            {"outbox_id": outbox_id},
            {"$set": {
                "status": NotificationStatus.SENT.value,
                "sent_at": storage_now(),
                "locked_until": None,
                "locked_by": None
            }},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise NotFoundError(f"Notification {outbox_id} not found")
        result.pop("_id", None)
        return NotificationOutbox.model_validate(result)

    def mark_failed(self, outbox_id: str, error: str) -> NotificationOutbox:
        """
        Record a delivery failure

        Retries back off exponentially (2^retry_count minutes); the entry is
        FAILED once notification_max_retries is reached.
        """
        entry = self.get_outbox_entry(outbox_id)
        if not entry:
            raise NotFoundError(f"Notification {outbox_id} not found")

        new_retry_count = entry.retry_count + 1
        if new_retry_count >= settings.notification_max_retries:
            new_status = NotificationStatus.FAILED.value
            next_retry = None
        else:
            new_status = NotificationStatus.PENDING.value
            next_retry = storage_now() + timedelta(minutes=2 ** entry.retry_count)

        result = self._outbox.find_one_and_update(
            {"outbox_id": outbox_id},
            {"$set": {
                "status": new_status,
                "retry_count": new_retry_count,
                "last_error": error,
                "next_retry_at": next_retry,
                "locked_until": None,
                "locked_by": None
            }},
            return_document=ReturnDocument.AFTER
        )
        logger.warning(
            f"Notification {outbox_id} failed: {error}",
            extra={"outbox_id": outbox_id, "status": new_status}
        )
        result.pop("_id", None)
        return NotificationOutbox.model_validate(result)

    def count_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in NotificationStatus}
        for doc in self._outbox.aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}]):
            counts[doc["_id"]] = doc["count"]
        return counts

    # =========================================================================
    # In-app notifications
    # =========================================================================

    def create_notification(self, notification: Notification) -> Notification:
        self._notifications.insert_one(notification.model_dump())
        return notification

    def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = {"user_id": user_id}
        if unread_only:
            query["is_read"] = False
        cursor = self._notifications.find(query).sort("created_at", DESCENDING).limit(limit)
        notifications = []
        for doc in cursor:
            doc.pop("_id", None)
            notifications.append(Notification.model_validate(doc))
        return notifications

    def count_unread(self, user_id: str) -> int:
        return self._notifications.count_documents({"user_id": user_id, "is_read": False})

    def mark_read(self, notification_id: int, user_id: str) -> Notification:
        """Mark one of the user's notifications read"""
        result = self._notifications.find_one_and_update(
            {"notification_id": notification_id, "user_id": user_id},
            {"$set": {"is_read": True}},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        result.pop("_id", None)
        return Notification.model_validate(result)

    def mark_all_read(self, user_id: str) -> int:
        result = self._notifications.update_many(
            {"user_id": user_id, "is_read": False},
            {"$set": {"is_read": True}}
        )
        return result.modified_count
