"""Ticket Lifecycle - Status transition rules for support tickets

Pending -> In-Progress -> Completed, with reopen returning any ticket to
Pending. Pure rules only; `services.ticket_service` applies them and runs the
side effects (follow-up creation, notifications).
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from ..domain.enums import (
    ResolutionStatus, FirstCallResolution, TicketState,
    CommunicationChannel, IssueCategory
)
from ..domain.errors import InvalidTransitionError
from ..domain.models import FollowUp


PHONE_PATTERN = re.compile(r"^\d{7,15}$")

# Free-text ticket fields and their maximum lengths
TEXT_FIELD_LIMITS: Dict[str, int] = {
    "customer_location": 200,
    "device_type": 100,
    "issue_type": 200,
    "issue_description": 5000,
}

# Status edits accepted through a regular update; same-status edits are no-ops
ALLOWED_TRANSITIONS: Dict[ResolutionStatus, set] = {
    ResolutionStatus.PENDING: {ResolutionStatus.IN_PROGRESS, ResolutionStatus.COMPLETED},
    ResolutionStatus.IN_PROGRESS: {ResolutionStatus.COMPLETED},
    ResolutionStatus.COMPLETED: set(),
}

StatusLike = Union[ResolutionStatus, str, None]


def _status(value: StatusLike) -> Optional[ResolutionStatus]:
    if value is None:
        return None
    try:
        return ResolutionStatus(value)
    except ValueError:
        return None


def _choices(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _field_error(field: str, code: str, detail: str) -> Dict[str, str]:
    return {"field": field, "code": code, "detail": detail}


# ============================================================================
# Derived values
# ============================================================================

def derive_first_call_resolution(status: StatusLike) -> str:
    """FCR is Yes exactly when the ticket is Completed"""
    if _status(status) == ResolutionStatus.COMPLETED:
        return FirstCallResolution.YES.value
    return FirstCallResolution.NO.value


def derive_ticket_state(
    status: StatusLike,
    latest_follow_up: Optional[Union[FollowUp, Mapping[str, Any]]] = None
) -> str:
    """
    Display state computed on read, never stored.

    A latest follow-up that explicitly failed (issue_solved is False) marks
    the ticket Reopened regardless of status.
    """
    if latest_follow_up is not None:
        if isinstance(latest_follow_up, FollowUp):
            issue_solved = latest_follow_up.issue_solved
        else:
            issue_solved = latest_follow_up.get("issue_solved")
        if issue_solved is False:
            return TicketState.REOPENED.value

    if _status(status) == ResolutionStatus.COMPLETED:
        return TicketState.CLOSED.value
    return TicketState.OPEN.value


def needs_follow_up(previous: StatusLike, new: StatusLike) -> bool:
    """A follow-up is owed when a ticket enters Completed"""
    return (
        _status(new) == ResolutionStatus.COMPLETED
        and _status(previous) != ResolutionStatus.COMPLETED
    )


# ============================================================================
# Transitions
# ============================================================================

def can_transition(current: StatusLike, target: StatusLike) -> bool:
    current_status = _status(current)
    target_status = _status(target)
    if current_status is None or target_status is None:
        return False
    if current_status == target_status:
        return True
    return target_status in ALLOWED_TRANSITIONS[current_status]


def check_transition(ticket_id: int, current: StatusLike, target: StatusLike) -> None:
    """Raise InvalidTransitionError unless the update may move current -> target"""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change ticket {ticket_id} from {current} to {target}",
            details={"ticket_id": ticket_id, "from": current, "to": target}
        )


# ============================================================================
# Validation
# ============================================================================

def parse_agent_id(value: Any) -> Optional[int]:
    """
    Employee id from client input: an integer or a string of digits.

    Raises:
        ValueError: Anything else
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid employee id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"Invalid employee id: {value!r}")


def validate_ticket_fields(data: Mapping[str, Any], partial: bool = False) -> List[Dict[str, str]]:
    """
    Validate ticket input, collecting every violation.

    Type and length problems are reported alongside format and choice
    errors, so a client sees everything wrong with a payload at once.

    Args:
        data: Incoming ticket fields
        partial: Update mode; absent fields are skipped but present required
            fields still may not be empty

    Returns:
        List of {field, code, detail}; empty when valid
    """
    errors: List[Dict[str, str]] = []

    # customer_phone
    if "customer_phone" in data or not partial:
        phone = data.get("customer_phone")
        if _is_empty(phone):
            errors.append(_field_error("customer_phone", "required", "customer_phone is required"))
        elif isinstance(phone, bool) or not isinstance(phone, (str, int)):
            errors.append(_field_error(
                "customer_phone", "invalid_type", "customer_phone must be a string of digits"
            ))
        elif not PHONE_PATTERN.match(str(phone).strip()):
            errors.append(_field_error(
                "customer_phone", "invalid_format", "customer_phone must be 7-15 digits"
            ))

    # issue_category
    if "issue_category" in data or not partial:
        category = data.get("issue_category")
        if _is_empty(category):
            errors.append(_field_error("issue_category", "required", "issue_category is required"))
        elif category not in _choices(IssueCategory):
            errors.append(_field_error(
                "issue_category", "invalid_choice",
                f"issue_category must be one of {', '.join(_choices(IssueCategory))}"
            ))

    for field, limit in TEXT_FIELD_LIMITS.items():
        value = data.get(field)
        if value is None:
            continue
        if not isinstance(value, str):
            errors.append(_field_error(field, "invalid_type", f"{field} must be a string"))
        elif len(value) > limit:
            errors.append(_field_error(
                field, "too_long", f"{field} must be at most {limit} characters"
            ))

    description = data.get("issue_description")
    if isinstance(description, str) and not description.strip():
        errors.append(_field_error("issue_description", "blank", "issue_description cannot be blank"))

    if "resolution_status" in data and data["resolution_status"] not in _choices(ResolutionStatus):
        errors.append(_field_error(
            "resolution_status", "invalid_choice",
            f"resolution_status must be one of {', '.join(_choices(ResolutionStatus))}"
        ))

    channel = data.get("communication_channel")
    if channel is not None and channel not in _choices(CommunicationChannel):
        errors.append(_field_error(
            "communication_channel", "invalid_choice",
            f"communication_channel must be one of {', '.join(_choices(CommunicationChannel))}"
        ))

    if "agent_id" in data:
        try:
            parse_agent_id(data["agent_id"])
        except ValueError:
            errors.append(_field_error("agent_id", "invalid_type", "agent_id must be an employee id"))

    return errors
