"""Notification Service - Best-effort in-app notifications through an outbox

Mutations call the `notify_*` helpers, which only write an outbox entry and
never raise. The scheduler later calls `process_pending` to deliver entries
into the user's in-app notification list.
"""
from typing import Any, Dict, List, Optional

from ..domain.models import NotificationOutbox, Notification, Ticket, FollowUp
from ..domain.enums import NotificationType
from ..repositories.notification_repo import NotificationRepository
from ..repositories.counter_repo import CounterRepository
from ..repositories.user_repo import UserRepository
from ..config.settings import settings
from ..utils.idgen import generate_outbox_id, generate_id
from ..utils.time import storage_now, format_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Service for queueing and delivering notifications"""

    def __init__(self):
        self.repo = NotificationRepository()
        self.counter_repo = CounterRepository()
        self.user_repo = UserRepository()

    # =========================================================================
    # Outbox Creation
    # =========================================================================

    def notify_user(
        self,
        user_id: str,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.SYSTEM,
        ticket_id: Optional[int] = None
    ) -> Optional[NotificationOutbox]:
        """
        Queue a notification for one user.

        Failures are logged and swallowed; the caller's operation never depends
        on a notification being queued.
        """
        try:
            entry = NotificationOutbox(
                outbox_id=generate_outbox_id(),
                recipient_user_id=user_id,
                title=title,
                message=message,
                notification_type=notification_type,
                ticket_id=ticket_id,
                created_at=storage_now(),
            )
            return self.repo.enqueue(entry)
        except Exception as e:
            logger.warning(
                f"Failed to queue notification: {e}",
                extra={"user_id": user_id, "ticket_id": ticket_id, "error_type": type(e).__name__}
            )
            return None

    def notify_employee(
        self,
        employee_id: Optional[int],
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.SYSTEM,
        ticket_id: Optional[int] = None
    ) -> List[NotificationOutbox]:
        """Queue a notification for every active user linked to an employee"""
        if employee_id is None:
            return []
        try:
            users = self.user_repo.list_users_for_employee(employee_id)
        except Exception as e:
            logger.warning(
                f"Failed to resolve users for employee {employee_id}: {e}",
                extra={"ticket_id": ticket_id, "error_type": type(e).__name__}
            )
            return []

        queued = []
        for user in users:
            entry = self.notify_user(user.user_id, title, message, notification_type, ticket_id)
            if entry:
                queued.append(entry)
        return queued

    def notify_ticket_assigned(self, ticket: Ticket) -> None:
        self.notify_employee(
            ticket.agent_id,
            title="New ticket assigned",
            message=f"Ticket #{ticket.ticket_id} ({ticket.issue_category}) was assigned to you",
            notification_type=NotificationType.TICKET_ASSIGNMENT,
            ticket_id=ticket.ticket_id,
        )

    def notify_ticket_status_changed(self, ticket: Ticket, previous_status: str) -> None:
        self.notify_employee(
            ticket.agent_id,
            title="Ticket updated",
            message=(
                f"Ticket #{ticket.ticket_id} moved from {previous_status} "
                f"to {ticket.resolution_status}"
            ),
            notification_type=NotificationType.TICKET_UPDATE,
            ticket_id=ticket.ticket_id,
        )

    def notify_follow_up_created(self, follow_up: FollowUp) -> None:
        self.notify_employee(
            follow_up.follow_up_agent_id,
            title="Follow-up required",
            message=f"Ticket #{follow_up.ticket_id} was completed and needs a customer follow-up",
            notification_type=NotificationType.FOLLOW_UP_CREATED,
            ticket_id=follow_up.ticket_id,
        )

    # =========================================================================
    # Delivery
    # =========================================================================

    def deliver(self, entry: NotificationOutbox) -> bool:
        """
        Move one outbox entry into the recipient's in-app notifications

        Returns:
            True if delivered, False if the failure was recorded for retry
        """
        try:
            if not self.user_repo.get_active_user(entry.recipient_user_id):
                raise LookupError(f"Recipient {entry.recipient_user_id} is not an active user")

            notification = Notification(
                notification_id=self.counter_repo.next_sequence("notifications"),
                user_id=entry.recipient_user_id,
                title=entry.title,
                message=entry.message,
                notification_type=entry.notification_type,
                ticket_id=entry.ticket_id,
                created_at=storage_now(),
            )
            self.repo.create_notification(notification)
            self.repo.mark_sent(entry.outbox_id)
            return True
        except Exception as e:
            self.repo.mark_failed(entry.outbox_id, str(e))
            return False

    def process_pending(self, worker_id: Optional[str] = None) -> Dict[str, int]:
        """
        Deliver every due outbox entry this worker can lock

        Returns:
            Counts of sent, failed and skipped (locked elsewhere) entries
        """
        worker_id = worker_id or generate_id()
        counts = {"sent": 0, "failed": 0, "skipped": 0}

        for entry in self.repo.get_pending(limit=settings.notification_batch_size):
            if not self.repo.acquire_lock(entry.outbox_id, worker_id):
                counts["skipped"] += 1
                continue
            if self.deliver(entry):
                counts["sent"] += 1
            else:
                counts["failed"] += 1

        if counts["sent"] or counts["failed"]:
            logger.info(
                f"Notification cycle complete: {counts['sent']} sent, "
                f"{counts['failed']} failed, {counts['skipped']} skipped"
            )
        return counts

    # =========================================================================
    # In-app inbox
    # =========================================================================

    @staticmethod
    def to_dict(notification: Notification) -> Dict[str, Any]:
        data = notification.model_dump(mode="json")
        data["created_at"] = format_iso(notification.created_at)
        return data

    def get_inbox(self, user_id: str, unread_only: bool = False, limit: int = 50) -> Dict[str, Any]:
        """Delivered notifications for a user, newest first, with the unread badge count"""
        notifications = self.repo.list_for_user(user_id, unread_only=unread_only, limit=limit)
        return {
            "items": [self.to_dict(n) for n in notifications],
            "unread_count": self.repo.count_unread(user_id),
        }

    def mark_read(self, notification_id: int, user_id: str) -> Dict[str, Any]:
        return self.to_dict(self.repo.mark_read(notification_id, user_id))

    def mark_all_read(self, user_id: str) -> int:
        return self.repo.mark_all_read(user_id)
