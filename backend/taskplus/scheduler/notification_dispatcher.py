"""Notification Dispatcher - APScheduler job that drains the notification outbox

Each process runs its own dispatcher; outbox entries are locked before
delivery so several servers can share one database.
"""
import os
import socket
from typing import Dict, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import settings
from ..services.notification_service import NotificationService
from ..utils.logger import get_logger, set_correlation_id
from ..utils.idgen import generate_correlation_id, generate_id

logger = get_logger(__name__)


class NotificationDispatcher:
    """Periodically delivers pending outbox entries"""

    def __init__(self, notification_service: Optional[NotificationService] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.notification_service = notification_service or NotificationService()
        self._is_running = False
        self._server_id = self._generate_server_id()
        self._process_count = 0

    def _generate_server_id(self) -> str:
        """Unique identifier used as the outbox lock owner"""
        return f"{socket.gethostname()}-{os.getpid()}-{generate_id()[:8]}"

    def start(self) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Notification dispatcher already running")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=settings.scheduler_interval_seconds),
            id="dispatch_notifications",
            name="Dispatch pending notifications",
            replace_existing=True,
            max_instances=1
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Notification dispatcher started on {self._server_id} "
            f"(every {settings.scheduler_interval_seconds}s)"
        )

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Notification dispatcher stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def run_once(self) -> Dict[str, int]:
        """One dispatch cycle; errors are logged so the job keeps running"""
        set_correlation_id(generate_correlation_id())
        try:
            counts = self.notification_service.process_pending(worker_id=self._server_id)
            self._process_count += counts["sent"]
            return counts
        except Exception as e:
            logger.error(
                f"Error in notification dispatch job: {e}",
                extra={"error_type": type(e).__name__}
            )
            return {"sent": 0, "failed": 0, "skipped": 0}


# Global dispatcher instance
_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    """Get or create dispatcher instance"""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher


def start_scheduler() -> None:
    """Start the global dispatcher"""
    get_dispatcher().start()


def stop_scheduler() -> None:
    """Stop the global dispatcher"""
    global _dispatcher
    if _dispatcher:
        _dispatcher.stop()
        _dispatcher = None
