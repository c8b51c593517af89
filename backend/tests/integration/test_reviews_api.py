"""QA review endpoints and the stuck-ticket queue"""
from datetime import timedelta

import pytest

from taskplus.services.auth_service import AuthService
from taskplus.services.ticket_service import TicketService
from taskplus.utils.time import storage_now

TICKET = {"customer_phone": "0712345678", "issue_category": "VOD", "issue_description": "No audio"}


@pytest.fixture
def supervisor(login_as, users):
    return login_as("supervisor")


@pytest.fixture
def ticket_service():
    return TicketService()


@pytest.fixture
def agent_actor(users):
    return AuthService.to_actor(users["agent"])


def backdate(db, ticket_id, minutes):
    db["tickets"].update_one(
        {"ticket_id": ticket_id},
        {"$set": {"updated_at": storage_now() - timedelta(minutes=minutes)}}
    )


class TestStuckTickets:

    def test_only_stale_unfinished_tickets_oldest_first(self, supervisor, ticket_service, agent_actor, db):
        fresh = ticket_service.create_ticket(TICKET, agent_actor)
        stale = ticket_service.create_ticket(TICKET, agent_actor)
        staler = ticket_service.create_ticket(TICKET, agent_actor)
        done = ticket_service.create_ticket(TICKET, agent_actor)
        ticket_service.complete_ticket(done["ticket_id"], agent_actor)

        backdate(db, stale["ticket_id"], 90)
        backdate(db, staler["ticket_id"], 60 * 5 + 10)
        backdate(db, done["ticket_id"], 60 * 24)

        response = supervisor.get("/api/reviews/stuck/tickets")

        assert response.status_code == 200
        items = response.json()["data"]
        assert [t["ticket_id"] for t in items] == [staler["ticket_id"], stale["ticket_id"]]
        assert fresh["ticket_id"] not in [t["ticket_id"] for t in items]
        assert items[0]["age_hours"] == 5
        assert items[1]["age_hours"] == 1
        assert items[0]["agent_info"]["name"] == "Amina Agent"
        assert items[0]["has_review"] is False

    def test_in_progress_counts_as_stuck(self, supervisor, ticket_service, agent_actor, db):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)
        ticket_service.update_ticket(ticket["ticket_id"], {"resolution_status": "In-Progress"}, agent_actor)
        backdate(db, ticket["ticket_id"], 61)

        items = supervisor.get("/api/reviews/stuck/tickets").json()["data"]

        assert [t["resolution_status"] for t in items] == ["In-Progress"]

    def test_has_review_marker(self, supervisor, ticket_service, agent_actor, db):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)
        supervisor.post("/api/reviews/", json={"ticket_id": ticket["ticket_id"], "issue_status": "Escalated"})
        backdate(db, ticket["ticket_id"], 120)

        items = supervisor.get("/api/reviews/stuck/tickets").json()["data"]

        assert items[0]["has_review"] is True


class TestReviews:

    def test_create_defaults_reviewer_to_caller(self, supervisor, ticket_service, agent_actor, users):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)

        response = supervisor.post("/api/reviews/", json={
            "ticket_id": ticket["ticket_id"],
            "issue_status": "Waiting on customer",
        })

        assert response.status_code == 201
        review = response.json()["data"]
        assert review["reviewer_id"] == users["supervisor"].employee_id
        assert review["resolved"] is False

    def test_create_requires_issue_status(self, supervisor, ticket_service, agent_actor):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)

        response = supervisor.post("/api/reviews/", json={"ticket_id": ticket["ticket_id"]})

        assert response.status_code == 400
        assert response.json()["error"]["errors"] == [
            {"field": "issue_status", "code": "required", "detail": "issue_status is required"}
        ]

    def test_caller_without_employee_must_name_reviewer(self, login_as, ticket_service, agent_actor, users):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)

        response = login_as("admin").post("/api/reviews/", json={
            "ticket_id": ticket["ticket_id"],
            "issue_status": "Checked",
        })

        assert response.status_code == 400
        assert response.json()["error"]["errors"][0]["field"] == "reviewer_id"

    def test_resolve_completes_ticket_and_creates_follow_up(self, supervisor, ticket_service, agent_actor, db):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)
        review = supervisor.post("/api/reviews/", json={
            "ticket_id": ticket["ticket_id"],
            "issue_status": "Escalated",
        }).json()["data"]

        response = supervisor.patch(f"/api/reviews/{review['review_id']}/resolve", json={"notes": "Fixed"})

        assert response.status_code == 200
        assert response.json()["data"]["resolved"] is True
        stored = db["tickets"].find_one({"ticket_id": ticket["ticket_id"]})
        assert stored["resolution_status"] == "Completed"
        assert stored["first_call_resolution"] == "Yes"
        assert db["follow_ups"].count_documents({"ticket_id": ticket["ticket_id"]}) == 1

    def test_created_resolved_review_completes_ticket(self, supervisor, ticket_service, agent_actor, db):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)

        supervisor.post("/api/reviews/", json={
            "ticket_id": ticket["ticket_id"],
            "issue_status": "Resolved on call",
            "resolved": True,
        })

        stored = db["tickets"].find_one({"ticket_id": ticket["ticket_id"]})
        assert stored["resolution_status"] == "Completed"

    def test_list_and_get(self, supervisor, ticket_service, agent_actor):
        ticket = ticket_service.create_ticket(TICKET, agent_actor)
        created = supervisor.post("/api/reviews/", json={
            "ticket_id": ticket["ticket_id"],
            "issue_status": "Checked",
        }).json()["data"]

        listed = supervisor.get("/api/reviews/", params={"ticket_id": ticket["ticket_id"]}).json()
        fetched = supervisor.get(f"/api/reviews/{created['review_id']}").json()["data"]

        assert listed["meta"]["total"] == 1
        assert fetched["issue_status"] == "Checked"

    def test_unknown_ticket(self, supervisor):
        response = supervisor.post("/api/reviews/", json={"ticket_id": 31337, "issue_status": "x"})

        assert response.status_code == 404

    def test_agent_cannot_review(self, login_as, users):
        assert login_as("agent").get("/api/reviews/").status_code == 403
