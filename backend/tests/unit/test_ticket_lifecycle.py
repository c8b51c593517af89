"""Ticket lifecycle rules: FCR, transitions, validation and display state"""
import pytest

from taskplus.domain.errors import InvalidTransitionError
from taskplus.domain.models import FollowUp
from taskplus.engine.ticket_lifecycle import (
    derive_first_call_resolution, derive_ticket_state, needs_follow_up,
    can_transition, check_transition, validate_ticket_fields, parse_agent_id
)
from taskplus.utils.time import storage_now


VALID_TICKET = {
    "customer_phone": "0712345678",
    "issue_category": "App",
    "issue_description": "Cannot log in",
}


def error_codes(errors):
    return {(e["field"], e["code"]) for e in errors}


@pytest.mark.parametrize("status, expected", [
    ("Pending", "No"),
    ("In-Progress", "No"),
    ("Completed", "Yes"),
    (None, "No"),
    ("bogus", "No"),
])
def test_first_call_resolution_follows_status(status, expected):
    assert derive_first_call_resolution(status) == expected


class TestTransitions:

    @pytest.mark.parametrize("current, target", [
        ("Pending", "In-Progress"),
        ("Pending", "Completed"),
        ("In-Progress", "Completed"),
        ("Pending", "Pending"),
        ("Completed", "Completed"),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current, target", [
        ("In-Progress", "Pending"),
        ("Completed", "Pending"),
        ("Completed", "In-Progress"),
        ("Pending", "Closed"),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)

    def test_check_transition_raises_with_details(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(7, "Completed", "In-Progress")

        assert exc_info.value.http_status == 409
        assert exc_info.value.details == {"ticket_id": 7, "from": "Completed", "to": "In-Progress"}

    def test_follow_up_only_on_entering_completed(self):
        assert needs_follow_up("Pending", "Completed")
        assert needs_follow_up("In-Progress", "Completed")
        assert needs_follow_up(None, "Completed")
        assert not needs_follow_up("Completed", "Completed")
        assert not needs_follow_up("Pending", "In-Progress")


class TestValidation:

    def test_valid_ticket(self):
        assert validate_ticket_fields(VALID_TICKET) == []

    def test_all_errors_are_reported_together(self):
        errors = validate_ticket_fields({
            "customer_phone": "abc",
            "issue_category": "Hardware",
            "issue_description": "   ",
            "communication_channel": "Fax",
        })

        assert error_codes(errors) == {
            ("customer_phone", "invalid_format"),
            ("issue_category", "invalid_choice"),
            ("issue_description", "blank"),
            ("communication_channel", "invalid_choice"),
        }

    def test_required_fields_on_create(self):
        errors = validate_ticket_fields({})

        assert error_codes(errors) == {
            ("customer_phone", "required"),
            ("issue_category", "required"),
        }

    @pytest.mark.parametrize("phone", ["123456", "1234567890123456", "07-1234-567", "+212612345678"])
    def test_phone_format(self, phone):
        errors = validate_ticket_fields({**VALID_TICKET, "customer_phone": phone})

        assert ("customer_phone", "invalid_format") in error_codes(errors)

    def test_partial_update_skips_absent_fields(self):
        assert validate_ticket_fields({"issue_type": "Login"}, partial=True) == []

    def test_partial_update_rejects_emptied_required_fields(self):
        errors = validate_ticket_fields({"customer_phone": "", "issue_category": None}, partial=True)

        assert error_codes(errors) == {
            ("customer_phone", "required"),
            ("issue_category", "required"),
        }

    def test_unknown_status(self):
        errors = validate_ticket_fields({"resolution_status": "Closed"}, partial=True)

        assert error_codes(errors) == {("resolution_status", "invalid_choice")}

    def test_type_and_length_errors_join_the_batch(self):
        errors = validate_ticket_fields({
            "customer_phone": "1" * 40,
            "issue_category": "Nope",
            "agent_id": "x",
            "device_type": 42,
            "issue_type": "a" * 201,
        })

        assert error_codes(errors) == {
            ("customer_phone", "invalid_format"),
            ("issue_category", "invalid_choice"),
            ("agent_id", "invalid_type"),
            ("device_type", "invalid_type"),
            ("issue_type", "too_long"),
        }

    def test_non_text_phone(self):
        errors = validate_ticket_fields({**VALID_TICKET, "customer_phone": ["0612345678"]})

        assert error_codes(errors) == {("customer_phone", "invalid_type")}


class TestParseAgentId:

    @pytest.mark.parametrize("value,expected", [(None, None), (7, 7), ("12", 12), (" 3 ", 3)])
    def test_accepted(self, value, expected):
        assert parse_agent_id(value) == expected

    @pytest.mark.parametrize("value", ["someone", True, 2.5, "", ["1"]])
    def test_rejected(self, value):
        with pytest.raises(ValueError):
            parse_agent_id(value)


class TestTicketState:

    def follow_up(self, issue_solved):
        now = storage_now()
        return FollowUp(
            follow_up_id=1, ticket_id=1, follow_up_date=now,
            issue_solved=issue_solved, created_at=now, updated_at=now,
        )

    def test_open_without_follow_up(self):
        assert derive_ticket_state("Pending") == "Open"
        assert derive_ticket_state("In-Progress") == "Open"

    def test_completed_is_closed(self):
        assert derive_ticket_state("Completed") == "Closed"
        assert derive_ticket_state("Completed", self.follow_up(None)) == "Closed"
        assert derive_ticket_state("Completed", self.follow_up(True)) == "Closed"

    def test_unsolved_follow_up_reopens(self):
        assert derive_ticket_state("Completed", self.follow_up(False)) == "Reopened"
        assert derive_ticket_state("Pending", {"issue_solved": False}) == "Reopened"
