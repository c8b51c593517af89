"""Notification outbox delivery, retry and the scheduler job"""
import asyncio

import pytest

from taskplus.config.settings import settings
from taskplus.domain.enums import NotificationStatus, NotificationType
from taskplus.repositories.notification_repo import NotificationRepository
from taskplus.scheduler.notification_dispatcher import NotificationDispatcher
from taskplus.services.notification_service import NotificationService


@pytest.fixture
def service():
    return NotificationService()


def test_deliver_pending_entry(service, users):
    entry = service.notify_user(
        users["agent"].user_id, "Hello", "Ticket #1 assigned",
        NotificationType.TICKET_ASSIGNMENT, ticket_id=1
    )

    counts = service.process_pending(worker_id="worker-1")

    assert counts == {"sent": 1, "failed": 0, "skipped": 0}
    repo = NotificationRepository()
    assert repo.get_outbox_entry(entry.outbox_id).status == NotificationStatus.SENT.value
    delivered = repo.list_for_user(users["agent"].user_id)
    assert [n.title for n in delivered] == ["Hello"]
    assert delivered[0].notification_id == 1
    assert delivered[0].is_read is False


def test_sent_entries_are_not_redelivered(service, users):
    service.notify_user(users["agent"].user_id, "Once", "Only once")

    service.process_pending()
    counts = service.process_pending()

    assert counts == {"sent": 0, "failed": 0, "skipped": 0}
    assert len(NotificationRepository().list_for_user(users["agent"].user_id)) == 1


def test_unknown_recipient_is_retried_with_backoff(service, users):
    entry = service.notify_user("USR-ghost", "Lost", "Nobody home")

    counts = service.process_pending()

    assert counts["failed"] == 1
    stored = NotificationRepository().get_outbox_entry(entry.outbox_id)
    assert stored.status == NotificationStatus.PENDING.value
    assert stored.retry_count == 1
    assert stored.next_retry_at is not None
    assert "not an active user" in stored.last_error

    # Not due again until the backoff expires
    assert service.process_pending() == {"sent": 0, "failed": 0, "skipped": 0}


def test_entry_fails_after_max_retries(service, users):
    entry = service.notify_user("USR-ghost", "Lost", "Nobody home")
    repo = NotificationRepository()

    for _ in range(settings.notification_max_retries):
        repo.mark_failed(entry.outbox_id, "boom")

    stored = repo.get_outbox_entry(entry.outbox_id)
    assert stored.status == NotificationStatus.FAILED.value
    assert stored.retry_count == settings.notification_max_retries
    assert repo.count_by_status()[NotificationStatus.FAILED.value] == 1


def test_locked_entry_is_skipped(service, users):
    entry = service.notify_user(users["agent"].user_id, "Busy", "Locked elsewhere")
    repo = NotificationRepository()

    assert repo.acquire_lock(entry.outbox_id, "other-worker")
    assert not repo.acquire_lock(entry.outbox_id, "worker-2")
    assert service.process_pending(worker_id="worker-2")["sent"] == 0


def test_notify_employee_without_users_queues_nothing(service, users):
    assert service.notify_employee(None, "t", "m") == []
    assert service.notify_employee(99999, "t", "m") == []


def test_queue_failure_is_swallowed(service, users, monkeypatch):
    def broken(self, entry):
        raise RuntimeError("outbox down")

    monkeypatch.setattr(NotificationRepository, "enqueue", broken)

    assert service.notify_user(users["agent"].user_id, "t", "m") is None


def test_dispatcher_run_once(service, users):
    service.notify_user(users["manager"].user_id, "Report", "Weekly report ready")
    dispatcher = NotificationDispatcher(notification_service=service)

    counts = asyncio.run(dispatcher.run_once())

    assert counts["sent"] == 1
    assert not dispatcher.is_running


def test_dispatcher_survives_errors(users, monkeypatch):
    def broken(self, worker_id=None):
        raise RuntimeError("database gone")

    monkeypatch.setattr(NotificationService, "process_pending", broken)

    counts = asyncio.run(NotificationDispatcher().run_once())

    assert counts == {"sent": 0, "failed": 0, "skipped": 0}


class TestInbox:

    def test_delivered_notifications_are_listed_for_the_recipient(self, service, users, login_as):
        service.notify_user(users["agent"].user_id, "Hello", "Ticket #1 assigned", ticket_id=1)
        service.notify_user(users["manager"].user_id, "Other", "Not for the agent")
        service.process_pending()

        response = login_as("agent").get("/api/notifications/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [n["title"] for n in data["items"]] == ["Hello"]
        assert data["items"][0]["ticket_id"] == 1
        assert data["unread_count"] == 1

    def test_mark_read(self, service, users, login_as):
        service.notify_user(users["agent"].user_id, "First", "one")
        service.notify_user(users["agent"].user_id, "Second", "two")
        service.process_pending()
        session = login_as("agent")
        items = session.get("/api/notifications/").json()["data"]["items"]
        first_id = next(n["notification_id"] for n in items if n["title"] == "First")

        read = session.post(f"/api/notifications/{first_id}/read")
        unread = session.get("/api/notifications/", params={"unread_only": True}).json()["data"]

        assert read.json()["data"]["is_read"] is True
        assert [n["title"] for n in unread["items"]] == ["Second"]
        assert unread["unread_count"] == 1

        assert session.post("/api/notifications/read-all").json()["data"] == {"marked_count": 1}
        assert session.get("/api/notifications/").json()["data"]["unread_count"] == 0

    def test_cannot_read_another_users_notification(self, service, users, login_as):
        service.notify_user(users["manager"].user_id, "Private", "Manager only")
        service.process_pending()

        response = login_as("agent").post("/api/notifications/1/read")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOTIFICATION_NOT_FOUND"

    def test_requires_session(self, client, users):
        assert client.get("/api/notifications/").status_code == 401
