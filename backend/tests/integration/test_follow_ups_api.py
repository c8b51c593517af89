"""Follow-up endpoints and their effect on tickets"""
import pytest

from taskplus.domain.enums import ResolutionStatus
from taskplus.services.auth_service import AuthService
from taskplus.services.ticket_service import TicketService

TICKET = {"customer_phone": "0712345678", "issue_category": "IPTV", "issue_description": "Freezes"}


@pytest.fixture
def followup(login_as, users):
    return login_as("followup")


@pytest.fixture
def completed_ticket(users):
    """Ticket handled by the agent and completed, so it owns one auto follow-up"""
    actor = AuthService.to_actor(users["agent"])
    service = TicketService()
    ticket = service.create_ticket(TICKET, actor)
    return service.complete_ticket(ticket["ticket_id"], actor)


def auto_follow_up_id(db, ticket_id):
    return db["follow_ups"].find_one({"ticket_id": ticket_id})["follow_up_id"]


def test_list_pending(followup, completed_ticket):
    response = followup.get("/api/follow-ups/pending")

    assert response.status_code == 200
    items = response.json()["data"]
    assert len(items) == 1
    assert items[0]["ticket"]["ticket_id"] == completed_ticket["ticket_id"]
    assert items[0]["issue_solved"] is None


def test_list_status_filter(followup, completed_ticket, db):
    follow_up_id = auto_follow_up_id(db, completed_ticket["ticket_id"])
    followup.patch(f"/api/follow-ups/{follow_up_id}/solved", json={"satisfied": True})

    solved = followup.get("/api/follow-ups/", params={"status": "solved"}).json()
    pending = followup.get("/api/follow-ups/", params={"status": "pending"}).json()
    invalid = followup.get("/api/follow-ups/", params={"status": "maybe"})

    assert solved["meta"]["total"] == 1
    assert pending["meta"]["total"] == 0
    assert invalid.status_code == 400


def test_mark_solved_leaves_ticket_completed(followup, completed_ticket, db):
    ticket_id = completed_ticket["ticket_id"]
    follow_up_id = auto_follow_up_id(db, ticket_id)

    response = followup.patch(
        f"/api/follow-ups/{follow_up_id}/solved",
        json={"satisfied": True, "notes": "Works now"},
    )

    data = response.json()["data"]
    assert data["issue_solved"] is True
    assert data["satisfied"] is True
    assert data["follow_up_notes"] == "Works now"
    assert db["tickets"].find_one({"ticket_id": ticket_id})["resolution_status"] == "Completed"


def test_mark_not_solved_reopens_ticket(followup, completed_ticket, db, users):
    ticket_id = completed_ticket["ticket_id"]
    follow_up_id = auto_follow_up_id(db, ticket_id)

    response = followup.patch(f"/api/follow-ups/{follow_up_id}/not-solved")

    assert response.status_code == 200
    ticket = db["tickets"].find_one({"ticket_id": ticket_id})
    assert ticket["resolution_status"] == "Pending"
    assert ticket["first_call_resolution"] == "No"
    assert ticket["agent_id"] == users["agent"].employee_id

    detail = TicketService().get_ticket(ticket_id)
    assert detail["ticket_state"] == "Reopened"


def test_create_manual_follow_up(followup, completed_ticket, users):
    response = followup.post("/api/follow-ups/", json={
        "ticket_id": completed_ticket["ticket_id"],
        "follow_up_agent_id": users["followup"].employee_id,
        "follow_up_date": "2024-05-01T10:00:00Z",
        "follow_up_notes": "Called twice",
    })

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["follow_up_date"] == "2024-05-01T10:00:00Z"
    assert data["follow_up_agent_id"] == users["followup"].employee_id


def test_create_unsolved_follow_up_reopens_ticket(followup, completed_ticket, db):
    followup.post("/api/follow-ups/", json={
        "ticket_id": completed_ticket["ticket_id"],
        "issue_solved": False,
    })

    ticket = db["tickets"].find_one({"ticket_id": completed_ticket["ticket_id"]})
    assert ticket["resolution_status"] == "Pending"


def test_create_for_missing_ticket(followup, users):
    response = followup.post("/api/follow-ups/", json={"ticket_id": 4040})

    assert response.status_code == 404


def test_create_with_unknown_agent(followup, completed_ticket):
    response = followup.post("/api/follow-ups/", json={
        "ticket_id": completed_ticket["ticket_id"],
        "follow_up_agent_id": 777,
    })

    assert response.status_code == 400
    assert response.json()["error"]["errors"][0]["field"] == "follow_up_agent_id"


def test_assign_to_me(followup, completed_ticket, db, users):
    follow_up_id = auto_follow_up_id(db, completed_ticket["ticket_id"])

    response = followup.patch(f"/api/follow-ups/{follow_up_id}/assign-to-me")

    assert response.json()["data"]["follow_up_agent_id"] == users["followup"].employee_id


def test_assign_to_me_requires_linked_employee(make_user, login_as, completed_ticket, db):
    make_user("floater", roles=["followup"])
    follow_up_id = auto_follow_up_id(db, completed_ticket["ticket_id"])

    response = login_as("floater").patch(f"/api/follow-ups/{follow_up_id}/assign-to-me")

    assert response.status_code == 400
    assert response.json()["error"]["errors"][0]["code"] == "not_linked"


def test_get_unknown_follow_up(followup, users):
    response = followup.get("/api/follow-ups/999")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "FOLLOW_UP_NOT_FOUND"


def test_agents_cannot_manage_follow_ups(login_as, users):
    assert login_as("agent").get("/api/follow-ups/pending").status_code == 403


def test_follow_up_agent_is_notified_on_completion(completed_ticket, db, users):
    entries = list(db["notification_outbox"].find({
        "ticket_id": completed_ticket["ticket_id"],
        "notification_type": "follow_up_created",
    }))

    assert [e["recipient_user_id"] for e in entries] == [users["agent"].user_id]


def test_completed_import_creates_follow_up(users, db):
    ticket = TicketService().create_ticket(
        TICKET, AuthService.to_actor(users["agent"]), initial_status=ResolutionStatus.COMPLETED
    )

    assert ticket["first_call_resolution"] == "Yes"
    assert db["follow_ups"].count_documents({"ticket_id": ticket["ticket_id"]}) == 1
